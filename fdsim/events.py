"""
Yearly event catalog for fdsim.

Exactly one event (or none, if every weight is zero) happens each year,
after cards are played. Weights are state-dependent:

    market_crash   6 + risk * 6
    medical_bill   5 (+6 if cash < 4000) - 2 per emergency fund level
    layoff         4 (+5 if stress > 70) - 0.5 per career momentum
    boring_year    10 (+2 if cash > 8000) (+2 if discipline > 0.65)
    lucky_break    4 (+2 if discipline > 0.6)
    rental_repair  0 without rentals, else 4 + 3/unit + 1.5/exposure
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from .cards import pick_weighted
from .economy import apply_shock_buffer
from .rng import RandomSource
from .state import PlayerState, add_log, get_flag
from .utils import clamp, format_money

__all__ = [
    "Event",
    "EventOutcome",
    "EVENTS",
    "EVENTS_BY_ID",
    "pick_weighted_event",
    "apply_event_for_year",
]


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    weight: Callable[[PlayerState], float] = field(repr=False, compare=False)
    apply: Callable[[PlayerState, RandomSource], str] = field(repr=False, compare=False)


@dataclass(frozen=True)
class EventOutcome:
    """What happened this year: event id, display name and narration."""
    id: str
    name: str
    text: str


INSURANCE_BILL_MULT = (1.0, 0.75, 0.55)
INSURANCE_DEBT_PENALTY = (1.15, 1.08, 1.03)


def _market_crash(s: PlayerState, rng: RandomSource) -> str:
    drop = 0.22
    loss = s.invested * drop
    s.invested -= loss
    s.stress = clamp(s.stress + 10, 0, 100)
    return f"Investments dropped ~{round(drop * 100)}% (-{format_money(loss)})."


def _medical_bill_weight(s: PlayerState) -> float:
    ef = get_flag(s, "emergency_fund_buff", 0)
    base = 5 + (6 if s.cash < 4000 else 0)
    return max(0, base - ef * 2)


def _medical_bill(s: PlayerState, rng: RandomSource) -> str:
    insurance = int(get_flag(s, "insurance_level", 0))
    emergency_buff = get_flag(s, "emergency_fund_buff", 0)

    bill = 1800 + math.floor((s.stress / 100) * 2500)
    bill = math.floor(bill * INSURANCE_BILL_MULT[insurance])
    bill = math.floor(bill * (1.0 - 0.08 * emergency_buff))  # up to -24%
    bill = max(0, bill)

    if s.cash >= bill:
        s.cash -= bill
    else:
        remain = bill - s.cash
        s.cash = 0
        s.flags["medical_debt"] = (
            (get_flag(s, "medical_debt", 0) or 0) + remain * INSURANCE_DEBT_PENALTY[insurance]
        )

    s.stress = clamp(s.stress + 8 - insurance * 2, 0, 100)
    return f"You were hit with a {format_money(bill)} medical bill."


def _layoff(s: PlayerState, rng: RandomSource) -> str:
    s.flags["laid_off"] = True
    s.stress = clamp(s.stress + 14, 0, 100)
    return "Income shock: you lost job momentum. This year takes a hit."


def _boring_year(s: PlayerState, rng: RandomSource) -> str:
    s.stress = clamp(s.stress - 6, 0, 100)
    s.burnout = clamp(s.burnout - 6, 0, 100)
    return "No drama. Compounding had space to work."


def _lucky_break(s: PlayerState, rng: RandomSource) -> str:
    bonus = 1200 + math.floor(s.discipline * 8000)
    s.cash += bonus
    s.stress = clamp(s.stress - 4, 0, 100)
    return f"A lucky break dropped {format_money(bonus)} in your lap."


def _rental_repair_weight(s: PlayerState) -> float:
    units = s.rental_units or 0
    if units <= 0:
        return 0
    return 4 + units * 3 + get_flag(s, "property_exposure", 0) * 1.5


def _rental_repair(s: PlayerState, rng: RandomSource) -> str:
    raw = 900 + (s.rental_units or 0) * 700
    cost = apply_shock_buffer(s, raw)

    if s.cash >= cost:
        s.cash -= cost
    else:
        s.debt += (cost - s.cash) * 1.10
        s.cash = 0
    s.stress = clamp(s.stress + 6, 0, 100)
    return f"Repair costs came due: {format_money(cost)}."


EVENTS: Tuple[Event, ...] = (
    Event("market_crash", "Market Crash", lambda s: 6 + s.risk * 6, _market_crash),
    Event("medical_bill", "Medical Bill", _medical_bill_weight, _medical_bill),
    Event(
        "layoff",
        "Layoff",
        lambda s: 4 + (5 if s.stress > 70 else 0) - get_flag(s, "career_momentum", 0) * 0.5,
        _layoff,
    ),
    Event(
        "boring_year",
        "Boring Stable Year",
        lambda s: 10 + (2 if s.cash > 8000 else 0) + (2 if s.discipline > 0.65 else 0),
        _boring_year,
    ),
    Event(
        "lucky_break",
        "Lucky Break",
        lambda s: 4 + (2 if s.discipline > 0.6 else 0),
        _lucky_break,
    ),
    Event("rental_repair", "Rental Repair", _rental_repair_weight, _rental_repair),
)

EVENTS_BY_ID: Mapping[str, Event] = MappingProxyType({e.id: e for e in EVENTS})


def pick_weighted_event(state: PlayerState, rng: RandomSource) -> Optional[Event]:
    """Draw one event by weight; None (no draw consumed) if all weights are zero."""
    return pick_weighted(rng, [(e, max(0, e.weight(state))) for e in EVENTS])


def apply_event_for_year(state: PlayerState, rng: RandomSource) -> Optional[EventOutcome]:
    event = pick_weighted_event(state, rng)
    if event is None:
        return None

    text = event.apply(state, rng)
    add_log(state, {"type": "event", "title": event.name, "text": text, "meta": {"id": event.id}})
    return EventOutcome(id=event.id, name=event.name, text=text)
