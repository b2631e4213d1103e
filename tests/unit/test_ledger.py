"""
Unit tests for ledger.py module.

Tests ledger attachment, re-hydration from plain data, cooldown ticks
and unlocking.
"""

import json

import pytest

from fdsim.exceptions import ValidationError
from fdsim.ledger import RunMeta, ensure_run_meta, tick_cooldowns, unlock_cards
from fdsim.state import create_initial_state


class TestEnsureRunMeta:
    """Test ledger attachment and restore."""

    def test_attaches_when_absent(self):
        s = create_initial_state()
        meta = ensure_run_meta(s)
        assert isinstance(meta, RunMeta)
        assert s.run_meta is meta
        assert meta.unlocked == set()
        assert meta.exhausted == set()
        assert meta.cooldowns == {}

    def test_idempotent(self):
        s = create_initial_state()
        first = ensure_run_meta(s)
        first.unlocked.add("do_nothing")
        second = ensure_run_meta(s)
        assert second is first
        assert second.unlocked == {"do_nothing"}

    def test_rehydrates_plain_mapping(self):
        s = create_initial_state()
        s.run_meta = {
            "unlocked": ["do_nothing", "index_investing"],
            "exhausted": ["panic_sell"],
            "cooldowns": {"career_move": 2},
        }
        meta = ensure_run_meta(s)
        assert meta.unlocked == {"do_nothing", "index_investing"}
        assert meta.exhausted == {"panic_sell"}
        assert meta.cooldowns == {"career_move": 2}

    def test_rehydrates_pair_list_cooldowns(self):
        s = create_initial_state()
        s.run_meta = {"cooldowns": [["debt_refi", 3], ["buy_rental", 1]]}
        meta = ensure_run_meta(s)
        assert meta.cooldowns == {"debt_refi": 3, "buy_rental": 1}
        assert meta.unlocked == set()

    def test_rehydrates_list_fields_on_run_meta(self):
        s = create_initial_state()
        s.run_meta = RunMeta(unlocked=["a", "b"], exhausted=[], cooldowns=[["a", 1]])
        meta = ensure_run_meta(s)
        assert meta.unlocked == {"a", "b"}
        assert isinstance(meta.exhausted, set)
        assert meta.cooldowns == {"a": 1}

    def test_malformed_cooldowns(self):
        s = create_initial_state()
        s.run_meta = {"cooldowns": 5}
        with pytest.raises(ValidationError):
            ensure_run_meta(s)

    def test_malformed_cooldown_years(self):
        s = create_initial_state()
        s.run_meta = {"cooldowns": {"career_move": "soon"}}
        with pytest.raises(ValidationError):
            ensure_run_meta(s)

    def test_unsupported_type(self):
        s = create_initial_state()
        s.run_meta = 42
        with pytest.raises(ValidationError):
            ensure_run_meta(s)


class TestPlainForm:
    """Test RunMeta plain schema."""

    def test_to_plain_sorted_and_json_safe(self):
        meta = RunMeta(
            unlocked={"b", "a"},
            exhausted={"windfall_opportunity"},
            cooldowns={"z": 1, "c": 2},
        )
        plain = meta.to_plain()
        assert plain == {
            "unlocked": ["a", "b"],
            "exhausted": ["windfall_opportunity"],
            "cooldowns": {"c": 2, "z": 1},
        }
        json.dumps(plain)

    def test_survives_json(self):
        meta = RunMeta(unlocked={"a"}, exhausted={"b"}, cooldowns={"c": 3})
        restored = RunMeta.from_plain(json.loads(json.dumps(meta.to_plain())))
        assert restored == meta

    def test_from_plain_missing_keys(self):
        assert RunMeta.from_plain({}) == RunMeta()


class TestCooldowns:
    """Test yearly cooldown ticks."""

    def test_tick_decrements(self):
        s = create_initial_state()
        ensure_run_meta(s).cooldowns.update({"a": 3, "b": 2})
        tick_cooldowns(s)
        assert s.run_meta.cooldowns == {"a": 2, "b": 1}

    def test_tick_drops_expired(self):
        s = create_initial_state()
        ensure_run_meta(s).cooldowns.update({"a": 1, "b": 2, "c": 0})
        tick_cooldowns(s)
        assert s.run_meta.cooldowns == {"b": 1}

    def test_tick_empty(self):
        s = create_initial_state()
        tick_cooldowns(s)
        assert s.run_meta.cooldowns == {}


class TestUnlock:
    def test_unlock_idempotent(self):
        s = create_initial_state()
        unlock_cards(s, ["a", "b"])
        unlock_cards(s, ["b", "c"])
        assert s.run_meta.unlocked == {"a", "b", "c"}
