"""
Serialization module for fdsim run persistence.

Purpose
-------
Provides JSON serialization and deserialization for snapshots, player
states and run results, so a run can be saved, shared, reported on, or
resumed by a caller.

Supports serialization of:
- Snapshot (one completed year, with card results, event and log)
- PlayerState (including the run ledger in its plain form)
- RunResult (seed, ending and full history)

Design Principles
-----------------
- Plain data: only JSON-safe types leave this module
- Explicit restore: the ledger comes back through ``ensure_run_meta``
- Backward compatible: files carry ``schema_version``; a mismatch warns
- Strict: structurally invalid data raises ``SerializationError``

Example
-------
>>> from fdsim.simulation import run_simulation
>>> from fdsim.serialization import save_run, load_run
>>> from pathlib import Path
>>>
>>> result = run_simulation(seed="RUN-001", years=10)
>>> save_run(result, Path("runs/run-001.json"))
>>> loaded = load_run(Path("runs/run-001.json"))
>>> loaded.history == result.history
True
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from .cards import CardResult
from .events import EventOutcome
from .exceptions import SerializationError
from .ledger import RunMeta, ensure_run_meta
from .simulation import RunResult, Snapshot
from .state import PlayerState, default_flags

__all__ = [
    "SCHEMA_VERSION",
    "snapshot_to_dict",
    "snapshot_from_dict",
    "state_to_dict",
    "state_from_dict",
    "run_result_to_dict",
    "run_result_from_dict",
    "save_run",
    "load_run",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"

_SNAPSHOT_SCALARS = (
    "year", "cash", "invested", "debt", "income", "expenses", "stress", "burnout",
    "rental_units", "side_hustle_level", "risk", "discipline", "net_worth", "market_return",
)

_STATE_SCALARS = (
    "year", "cash", "invested", "debt", "income", "expenses", "stress", "risk",
    "discipline", "burnout", "rental_units", "side_hustle_level",
)


def _check_version(data: Mapping[str, Any], what: str) -> None:
    schema_version = data.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"{what} schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


# ---------------------------------------------------------------------------
# Snapshot Serialization
# ---------------------------------------------------------------------------

def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Convert a Snapshot to a JSON-safe dictionary.

    Parameters
    ----------
    snapshot : Snapshot
        Year record to serialize

    Returns
    -------
    dict
        Scalars, chosen ids, card results, event, flags and log
    """
    data: Dict[str, Any] = {name: getattr(snapshot, name) for name in _SNAPSHOT_SCALARS}
    data["chosen_card_ids"] = list(snapshot.chosen_card_ids)
    data["card_results"] = [
        {"card_id": r.card_id, "name": r.name, "ok": r.ok, "text": r.text, "reason": r.reason}
        for r in snapshot.card_results
    ]
    data["event"] = (
        None if snapshot.event is None
        else {"id": snapshot.event.id, "name": snapshot.event.name, "text": snapshot.event.text}
    )
    data["flags"] = dict(snapshot.flags)
    data["log"] = [dict(entry) for entry in snapshot.log]
    return data


def snapshot_from_dict(data: Mapping[str, Any]) -> Snapshot:
    """
    Create a Snapshot from its dictionary representation.

    Raises
    ------
    SerializationError
        If required fields are missing or have the wrong shape
    """
    try:
        scalars = {name: data[name] for name in _SNAPSHOT_SCALARS}
        event = data.get("event")
        return Snapshot(
            **scalars,
            chosen_card_ids=tuple(data.get("chosen_card_ids") or ()),
            card_results=tuple(CardResult(**r) for r in data.get("card_results") or ()),
            event=EventOutcome(**event) if event else None,
            flags=MappingProxyType(dict(data.get("flags") or {})),
            log=tuple(dict(entry) for entry in data.get("log") or ()),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"Invalid snapshot data: {e}") from e


# ---------------------------------------------------------------------------
# PlayerState Serialization
# ---------------------------------------------------------------------------

def _plain_run_meta(meta: Union[None, RunMeta, Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if meta is None:
        return None
    if isinstance(meta, RunMeta):
        return dict(meta.to_plain())
    return dict(RunMeta.from_plain(meta).to_plain())


def state_to_dict(state: PlayerState) -> Dict[str, Any]:
    """
    Convert a PlayerState to a JSON-safe dictionary.

    The ledger is written in its plain form (sorted lists and an object
    of cooldowns); history snapshots are serialized in full.
    """
    data: Dict[str, Any] = {name: getattr(state, name) for name in _STATE_SCALARS}
    data["flags"] = dict(state.flags)
    data["run_meta"] = _plain_run_meta(state.run_meta)
    data["history"] = [snapshot_to_dict(s) for s in state.history]
    data["log"] = [dict(entry) for entry in state.log]
    return data


def state_from_dict(data: Mapping[str, Any]) -> PlayerState:
    """
    Create a PlayerState from its dictionary representation.

    The ledger is re-hydrated into sets and a dict before returning, so
    the state is immediately playable.

    Raises
    ------
    SerializationError
        If required fields are missing or malformed
    """
    try:
        flags = default_flags()
        flags.update(data.get("flags") or {})
        state = PlayerState(
            **{name: data[name] for name in _STATE_SCALARS},
            flags=flags,
            run_meta=data.get("run_meta"),
            history=[snapshot_from_dict(s) for s in data.get("history") or ()],
            log=[dict(entry) for entry in data.get("log") or ()],
        )
        ensure_run_meta(state)
    except (KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"Invalid state data: {e}") from e
    return state


# ---------------------------------------------------------------------------
# RunResult Serialization
# ---------------------------------------------------------------------------

def run_result_to_dict(result: RunResult) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "seed": result.seed,
        "ending": result.ending,
        "years_played": result.years_played,
        "final": snapshot_to_dict(result.final) if result.final is not None else None,
        "history": [snapshot_to_dict(s) for s in result.history],
    }


def run_result_from_dict(data: Mapping[str, Any]) -> RunResult:
    """Rebuild a RunResult; ``final`` is taken from the last history entry."""
    _check_version(data, "Run")
    if "seed" not in data or not isinstance(data.get("history"), list):
        raise SerializationError("Run data must contain 'seed' and a 'history' list.")

    history: List[Snapshot] = [snapshot_from_dict(s) for s in data["history"]]
    return RunResult(
        seed=data["seed"],
        final=history[-1] if history else None,
        history=history,
        ending=data.get("ending"),
    )


def save_run(result: RunResult, path: Path) -> None:
    """
    Save a RunResult to a JSON file.

    Parameters
    ----------
    result : RunResult
        Run to save
    path : Path
        Output file path (parent directories are created)

    Examples
    --------
    >>> save_run(result, Path("runs/solo-investor.json"))
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(run_result_to_dict(result), f, indent=2)


def load_run(path: Path) -> RunResult:
    """
    Load a RunResult from a JSON file.

    Raises
    ------
    SerializationError
        If the file is not valid JSON or not a run file
    """
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SerializationError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SerializationError(f"{path} does not contain a run object.")
    return run_result_from_dict(data)
