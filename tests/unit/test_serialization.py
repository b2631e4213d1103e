"""
Unit tests for serialization.py module.

Tests JSON persistence of snapshots, states and run results.
"""

import json

import pytest

from fdsim.exceptions import SerializationError
from fdsim.ledger import RunMeta
from fdsim.serialization import (
    SCHEMA_VERSION,
    load_run,
    run_result_from_dict,
    run_result_to_dict,
    save_run,
    snapshot_from_dict,
    snapshot_to_dict,
    state_from_dict,
    state_to_dict,
)
from fdsim.simulation import run_simulation, step_year


@pytest.fixture(scope="module")
def result():
    return run_simulation(seed="RUN-001", years=5)


class TestSnapshotSerialization:
    """Test snapshot dictionaries."""

    def test_json_safe(self, result):
        data = snapshot_to_dict(result.history[0])
        json.dumps(data)
        assert data["year"] == 1
        assert isinstance(data["chosen_card_ids"], list)
        assert isinstance(data["flags"], dict)

    def test_card_results_and_event(self, result):
        snap = result.history[0]
        data = snapshot_to_dict(snap)
        assert [r["card_id"] for r in data["card_results"]] == [r.card_id for r in snap.card_results]
        if snap.event is not None:
            assert data["event"]["id"] == snap.event.id

    def test_roundtrip_through_json(self, result):
        for snap in result.history:
            restored = snapshot_from_dict(json.loads(json.dumps(snapshot_to_dict(snap))))
            assert restored == snap

    def test_missing_field(self, result):
        data = snapshot_to_dict(result.history[0])
        del data["net_worth"]
        with pytest.raises(SerializationError, match="Invalid snapshot"):
            snapshot_from_dict(data)

    def test_bad_card_result(self, result):
        data = snapshot_to_dict(result.history[0])
        data["card_results"] = [{"card_id": "x"}]
        with pytest.raises(SerializationError):
            snapshot_from_dict(data)


class TestStateSerialization:
    """Test state dictionaries."""

    def test_ledger_plain_form(self, state, rng):
        step_year(state, rng, ["overtime_push"])
        data = state_to_dict(state)
        json.dumps(data)
        assert data["run_meta"]["cooldowns"] == {"overtime_push": 1}
        assert data["run_meta"]["unlocked"] == sorted(data["run_meta"]["unlocked"])

    def test_roundtrip_restores_ledger_types(self, state, rng):
        state.run_meta.cooldowns["career_move"] = 2
        state.run_meta.exhausted.add("windfall_opportunity")
        step_year(state, rng, [])
        restored = state_from_dict(json.loads(json.dumps(state_to_dict(state))))
        assert isinstance(restored.run_meta, RunMeta)
        assert isinstance(restored.run_meta.unlocked, set)
        assert restored.run_meta.cooldowns == {"career_move": 1}
        assert restored.run_meta.exhausted == {"windfall_opportunity"}
        assert restored.year == state.year
        assert restored.cash == state.cash
        assert restored.history == state.history

    def test_resumed_state_continues_identically(self, state, rng):
        step_year(state, rng, [])
        restored = state_from_dict(json.loads(json.dumps(state_to_dict(state))))
        from fdsim.rng import Mulberry32

        rng_a = Mulberry32.from_state(rng.seed, rng.state)
        rng_b = Mulberry32.from_state(rng.seed, rng.state)
        a = step_year(state, rng_a, ["do_nothing"])
        b = step_year(restored, rng_b, ["do_nothing"])
        assert a == b

    def test_missing_flags_filled(self, state):
        data = state_to_dict(state)
        data["flags"] = {"auto_invest": 2}
        restored = state_from_dict(data)
        assert restored.flags["auto_invest"] == 2
        assert restored.flags["laid_off"] is False

    def test_missing_scalar(self, state):
        data = state_to_dict(state)
        del data["cash"]
        with pytest.raises(SerializationError, match="Invalid state"):
            state_from_dict(data)


class TestRunSerialization:
    """Test run result files."""

    def test_to_dict(self, result):
        data = run_result_to_dict(result)
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["seed"] == "RUN-001"
        assert data["years_played"] == result.years_played
        assert data["final"] == data["history"][-1]

    def test_save_and_load(self, result, tmp_path):
        path = tmp_path / "nested" / "run.json"
        save_run(result, path)
        assert path.exists()
        loaded = load_run(path)
        assert loaded.seed == result.seed
        assert loaded.ending == result.ending
        assert loaded.history == result.history
        assert loaded.final == result.final

    def test_version_mismatch_warns(self, result):
        data = run_result_to_dict(result)
        data["schema_version"] = "0.0.1"
        with pytest.warns(UserWarning, match="schema version"):
            loaded = run_result_from_dict(data)
        assert loaded.years_played == result.years_played

    def test_missing_history(self):
        with pytest.raises(SerializationError):
            run_result_from_dict({"schema_version": SCHEMA_VERSION, "seed": "x"})

    def test_empty_history(self):
        loaded = run_result_from_dict({"schema_version": SCHEMA_VERSION, "seed": "x", "history": []})
        assert loaded.final is None
        assert loaded.years_played == 0

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SerializationError, match="not valid JSON"):
            load_run(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(SerializationError):
            load_run(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_run(tmp_path / "nope.json")
