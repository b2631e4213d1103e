"""
Player state model for fdsim.

Purpose
-------
Holds the single mutable aggregate of a run: money, run-rates,
psychological gauges, traits, ownership counters, card-driven flags, the
run ledger, the yearly history and the current year's log.

Card effects, event effects and passive updates all mutate the same
``PlayerState`` in place during a year step. Bounded values are clamped
after every mutation:

- stress, burnout in [0, 100]
- risk, discipline in [0, 1]

Net worth
---------
    net_worth = cash + invested + rental_units * 15000 - debt - medical_debt

Example
-------
>>> state = create_initial_state({"cash": 100, "invested": 50, "debt": 30})
>>> state.rental_units = 1
>>> state.flags["medical_debt"] = 20
>>> net_worth(state)
15100.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .constants import GAUGE_BOUNDS, RENTAL_EQUITY_PER_UNIT, TRAIT_BOUNDS
from .types import LogEntry
from .utils import clamp

if TYPE_CHECKING:
    from .config import StateOverrides
    from .ledger import RunMeta
    from .simulation import Snapshot

__all__ = [
    "PlayerState",
    "DEFAULT_STATE",
    "default_flags",
    "create_initial_state",
    "net_worth",
    "get_flag",
    "add_log",
    "clamp_bounded",
]


DEFAULT_STATE: Dict[str, float] = {
    "year": 1,
    "cash": 8_000,
    "invested": 0,
    "debt": 12_000,
    "income": 52_000,
    "expenses": 36_000,
    "stress": 25,
    "risk": 0.45,
    "discipline": 0.50,
    "burnout": 0,
    "rental_units": 0,
    "side_hustle_level": 0,
}


def default_flags() -> Dict[str, Any]:
    """Fresh flag mapping for a new run.

    Card-driven flags and their ranges:
    emergency_fund_buff 0..3, auto_invest 0..5, refi_level 0..2,
    insurance_level 0..2, regret_drag 0..3, career_momentum 0..5,
    property_exposure 0..5, business_level 0..5.
    """
    return {
        "laid_off": False,
        "medical_debt": 0,
        "emergency_fund_buff": 0,
        "auto_invest": 0,
        "refi_level": 0,
        "insurance_level": 0,
        "regret_drag": 0,
        "career_momentum": 0,
        "property_exposure": 0,
        "business_level": 0,
    }


@dataclass
class PlayerState:
    """
    Mutable state of one run.

    Attributes
    ----------
    year : int
        Year about to be played (1-indexed).
    cash, invested, debt : float
        Balances. Debt may grow without bound.
    income, expenses : float
        Annual run-rates.
    stress, burnout : float
        Gauges in [0, 100].
    risk, discipline : float
        Traits in [0, 1].
    rental_units, side_hustle_level : int
        Non-negative counters.
    flags : dict
        Named modifiers accumulated by cards and events.
    run_meta : RunMeta, mapping or None
        Unlock ledger. None until ``ensure_run_meta`` attaches one; may
        hold the plain serialized form until it is re-hydrated.
    history : list of Snapshot
        One immutable snapshot per completed year.
    log : list of LogEntry
        Narration of the year in progress; cleared at each year start.
    """

    year: int = 1
    cash: float = 8_000
    invested: float = 0
    debt: float = 12_000
    income: float = 52_000
    expenses: float = 36_000
    stress: float = 25
    risk: float = 0.45
    discipline: float = 0.50
    burnout: float = 0
    rental_units: int = 0
    side_hustle_level: int = 0
    flags: Dict[str, Any] = field(default_factory=default_flags)
    run_meta: Optional[Union["RunMeta", Mapping[str, Any]]] = None
    history: List["Snapshot"] = field(default_factory=list)
    log: List[LogEntry] = field(default_factory=list)


def clamp_bounded(state: PlayerState) -> None:
    """Clamp gauges and traits into their documented ranges."""
    state.stress = clamp(state.stress, *GAUGE_BOUNDS)
    state.burnout = clamp(state.burnout, *GAUGE_BOUNDS)
    state.risk = clamp(state.risk, *TRAIT_BOUNDS)
    state.discipline = clamp(state.discipline, *TRAIT_BOUNDS)


def _normalize_overrides(config: Union[None, Mapping[str, Any], "StateOverrides"]) -> Dict[str, Any]:
    from .config import StateOverrides

    if config is None:
        return {}
    if isinstance(config, StateOverrides):
        return config.explicit()
    # Validating through the model accepts camelCase keys and rejects typos
    return StateOverrides.model_validate(dict(config)).explicit()


def create_initial_state(
    config: Union[None, Mapping[str, Any], "StateOverrides"] = None,
) -> PlayerState:
    """
    Build the starting state of a run.

    Parameters
    ----------
    config : mapping or StateOverrides, optional
        Overrides for any of year, cash, invested, debt, income, expenses,
        stress, risk, discipline, burnout, rental_units and
        side_hustle_level. Missing fields take the defaults in
        ``DEFAULT_STATE``.

    Returns
    -------
    PlayerState
        Fresh state with default flags, no ledger, empty history and log.
        Gauges and traits are clamped.
    """
    values = dict(DEFAULT_STATE)
    values.update(_normalize_overrides(config))

    state = PlayerState(
        year=int(values["year"]),
        cash=values["cash"],
        invested=values["invested"],
        debt=values["debt"],
        income=values["income"],
        expenses=values["expenses"],
        stress=values["stress"],
        risk=values["risk"],
        discipline=values["discipline"],
        burnout=values["burnout"],
        rental_units=max(0, int(values["rental_units"])),
        side_hustle_level=max(0, int(values["side_hustle_level"])),
    )
    clamp_bounded(state)
    return state


def get_flag(state: Any, key: str, fallback: Any = 0) -> Any:
    """Read a flag, returning *fallback* when the key or flags are missing."""
    flags = getattr(state, "flags", None)
    if not flags or key not in flags:
        return fallback
    return flags[key]


def net_worth(state: PlayerState) -> float:
    """Net worth of *state* (pure)."""
    rental_equity = (state.rental_units or 0) * RENTAL_EQUITY_PER_UNIT
    medical_debt = get_flag(state, "medical_debt", 0) or 0
    return state.cash + state.invested + rental_equity - state.debt - medical_debt


def add_log(state: PlayerState, entry: LogEntry) -> None:
    state.log.append(entry)
