"""
Run ledger: which cards are unlocked, spent, or cooling down.

Each state owns one ``RunMeta``:

- ``unlocked``: card ids eligible this run
- ``exhausted``: one-shot card ids already used
- ``cooldowns``: card id -> years left before the card can be played again

Cooldowns tick once per year, before cards are drawn and played. A card
with ``cooldown_years = N`` played in year y is blocked while its counter
is positive; the counter is dropped on the tick that takes it to zero.

Plain form
----------
Storage layers only keep JSON-safe data, so the ledger also exists as::

    {"unlocked": ["..."], "exhausted": ["..."], "cooldowns": {"id": 2}}

``ensure_run_meta`` restores sets and the dict from that form (or from a
``RunMeta`` whose fields arrived as lists) before any ledger read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Set

from .exceptions import ValidationError
from .state import PlayerState
from .types import RunMetaDict

__all__ = [
    "RunMeta",
    "ensure_run_meta",
    "tick_cooldowns",
    "unlock_cards",
]


@dataclass
class RunMeta:
    unlocked: Set[str] = field(default_factory=set)
    exhausted: Set[str] = field(default_factory=set)
    cooldowns: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_plain(cls, data: Mapping[str, Any]) -> "RunMeta":
        """Rebuild a ledger from its plain form; missing keys mean empty."""
        cooldowns = data.get("cooldowns") or {}
        if isinstance(cooldowns, Mapping):
            cooldown_items = cooldowns.items()
        elif isinstance(cooldowns, (list, tuple)):
            # [[id, years], ...] as produced by dumping a Map's entries
            cooldown_items = cooldowns
        else:
            raise ValidationError(
                f"run_meta.cooldowns must be a mapping of card id to years, "
                f"got {type(cooldowns).__name__}."
            )
        try:
            return cls(
                unlocked=set(data.get("unlocked") or ()),
                exhausted=set(data.get("exhausted") or ()),
                cooldowns={str(k): int(v) for k, v in cooldown_items},
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed run_meta: {e}") from e

    def to_plain(self) -> RunMetaDict:
        return {
            "unlocked": sorted(self.unlocked),
            "exhausted": sorted(self.exhausted),
            "cooldowns": dict(sorted(self.cooldowns.items())),
        }


def ensure_run_meta(state: PlayerState) -> RunMeta:
    """Attach a ledger if absent and re-hydrate a plain one; idempotent."""
    meta = state.run_meta
    if meta is None:
        meta = RunMeta()
    elif isinstance(meta, RunMeta):
        if not isinstance(meta.unlocked, set):
            meta.unlocked = set(meta.unlocked or ())
        if not isinstance(meta.exhausted, set):
            meta.exhausted = set(meta.exhausted or ())
        if not isinstance(meta.cooldowns, dict):
            meta.cooldowns = RunMeta.from_plain({"cooldowns": meta.cooldowns}).cooldowns
    elif isinstance(meta, Mapping):
        meta = RunMeta.from_plain(meta)
    else:
        raise ValidationError(f"Unsupported run_meta type: {type(meta).__name__}")
    state.run_meta = meta
    return meta


def tick_cooldowns(state: PlayerState) -> None:
    meta = ensure_run_meta(state)
    for card_id, years in list(meta.cooldowns.items()):
        remaining = years - 1
        if remaining <= 0:
            del meta.cooldowns[card_id]
        else:
            meta.cooldowns[card_id] = remaining


def unlock_cards(state: PlayerState, ids: Iterable[str]) -> None:
    ensure_run_meta(state).unlocked.update(ids)
