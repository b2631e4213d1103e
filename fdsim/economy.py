"""
Passive yearly economy for fdsim.

Purpose
-------
The stages of a year step that run after cards and the event, in this
order:

1. resolve_layoff_flag      : pending layoff cuts income by 45% (compounding)
2. apply_yearly_cashflow    : cash += income - expenses; shortfall -> debt
3. apply_auto_invest        : 2-6% of income moved into investments
4. apply_debt_interest      : stress- and cash-aware APR, refi discount
5. apply_market_return      : 7% drift + bounded noise - behavioral drag
6. update_stress_and_burnout: workload and fragility drift

``apply_shock_buffer`` is shared with events: each emergency fund level
softens a cash shock by 7%.

Key formulas
------------
APR:
    apr = 0.10 + stress/100 * 0.06 + (0.03 if cash < 2000) - refi_discount
    refi_discount = [0, 0.03, 0.05][refi_level], apr clamped to [0.02, 0.30]

Market return:
    r = 0.07 + noise * 0.18 - stress/100 * 0.03 - regret_drag * 0.012
    noise = (u1 + u2 + u3 + u4 - 2) / 2, r clamped to [-0.45, 0.45]
"""

from __future__ import annotations

import math

from .rng import RandomSource, sum_uniform_noise
from .state import PlayerState, add_log, get_flag
from .utils import clamp, format_money, format_pct

__all__ = [
    "LAYOFF_CUT",
    "apply_shock_buffer",
    "resolve_layoff_flag",
    "apply_yearly_cashflow",
    "apply_auto_invest",
    "debt_apr",
    "apply_debt_interest",
    "apply_market_return",
    "update_stress_and_burnout",
]

LAYOFF_CUT = 0.45
SHORTFALL_PENALTY = 1.05
REFI_DISCOUNTS = (0.0, 0.03, 0.05)

MARKET_BASE = 0.07
MARKET_VOLATILITY = 0.18
MARKET_BOUND = 0.45


def apply_shock_buffer(state: PlayerState, raw_amount: float) -> float:
    """Reduce a cash shock by 7% per emergency fund level (up to 21%)."""
    buff = get_flag(state, "emergency_fund_buff", 0)
    if buff <= 0:
        return raw_amount
    reduced = math.floor(raw_amount * (1 - buff * 0.07))
    return max(0, reduced)


def resolve_layoff_flag(state: PlayerState) -> None:
    """Consume a pending layoff: income *= 0.55 (floored), flag cleared.

    The cut multiplies current income, so repeated layoffs compound.
    """
    if not get_flag(state, "laid_off", False):
        return
    state.income = math.floor(state.income * (1 - LAYOFF_CUT))
    add_log(state, {
        "type": "system",
        "title": "Income Disruption",
        "text": f"Layoff impact: income reduced by {round(LAYOFF_CUT * 100)}% this year.",
    })
    state.flags["laid_off"] = False


def apply_yearly_cashflow(state: PlayerState) -> None:
    """Add net income to cash; roll any shortfall into debt at 1.05x.

    Example
    -------
    >>> s = create_initial_state({"cash": 0, "debt": 0, "income": 0, "expenses": 1000})
    >>> apply_yearly_cashflow(s)
    >>> s.cash, s.debt
    (0, 1050.0)
    """
    state.cash += state.income - state.expenses

    if state.cash < 0:
        shortfall = abs(state.cash)
        state.cash = 0
        buffered = apply_shock_buffer(state, shortfall)
        state.debt += buffered * SHORTFALL_PENALTY
        state.stress = clamp(state.stress + 10, 0, 100)
        add_log(state, {
            "type": "system",
            "title": "Cash Shortfall",
            "text": f"Expenses exceeded income. {format_money(buffered)} rolled into debt.",
        })


def apply_auto_invest(state: PlayerState) -> None:
    level = get_flag(state, "auto_invest", 0)
    if level <= 0:
        return

    target = math.floor(state.income * (0.01 + 0.01 * level))
    amount = min(state.cash, clamp(target, 200, 2500))

    if amount > 0:
        state.cash -= amount
        state.invested += amount
        state.discipline = clamp(state.discipline + 0.01, 0, 1)
        state.stress = clamp(state.stress - 1, 0, 100)
        add_log(state, {
            "type": "system",
            "title": "Auto-Invest",
            "text": f"System invested {format_money(amount)}.",
        })


def debt_apr(state: PlayerState) -> float:
    """Effective APR for this year's debt interest."""
    refi_level = int(get_flag(state, "refi_level", 0))
    refi_discount = REFI_DISCOUNTS[min(max(refi_level, 0), len(REFI_DISCOUNTS) - 1)]
    apr = (
        0.10
        + (state.stress / 100) * 0.06
        + (0.03 if state.cash < 2000 else 0)
        - refi_discount
    )
    return clamp(apr, 0.02, 0.30)


def apply_debt_interest(state: PlayerState) -> None:
    apr = debt_apr(state)
    interest = state.debt * apr
    state.debt += interest
    add_log(state, {
        "type": "system",
        "title": "Debt Interest",
        "text": f"Debt grew by {format_money(interest)} (APR {format_pct(apr)}).",
    })


def apply_market_return(state: PlayerState, rng: RandomSource) -> float:
    """
    Apply this year's market return to investments.

    Consumes exactly four draws from *rng*.

    Returns
    -------
    float
        The (clamped) rate applied.
    """
    r = MARKET_BASE + sum_uniform_noise(rng) * MARKET_VOLATILITY

    behavior_drag = (state.stress / 100) * 0.03
    regret_drag = get_flag(state, "regret_drag", 0) * 0.012
    r -= behavior_drag + regret_drag
    r = clamp(r, -MARKET_BOUND, MARKET_BOUND)

    gain = state.invested * r
    state.invested += gain

    verb = "grew" if r >= 0 else "fell"
    add_log(state, {
        "type": "market",
        "title": "Market Return",
        "text": f"Investments {verb} by {format_pct(r)} ({format_money(gain)}).",
        "meta": {"return_rate": r},
    })
    return r


def update_stress_and_burnout(state: PlayerState) -> None:
    """Drift burnout with workload and stress with financial fragility."""
    hustle_load = (state.side_hustle_level or 0) * 2 + (state.rental_units or 0) * 2

    state.burnout = clamp(
        state.burnout
        + (4 if state.stress > 60 else 1)
        + hustle_load
        - (2 if state.stress < 30 else 0),
        0,
        100,
    )

    fragility = (
        (6 if state.cash < 3000 else 0)
        + (6 if state.debt > 25000 else 0)
        + (4 if (get_flag(state, "medical_debt", 0) or 0) > 0 else 0)
    )
    state.stress = clamp(
        state.stress + fragility - (2 if state.discipline > 0.65 else 0), 0, 100
    )

    if state.burnout > 80:
        state.expenses = math.floor(state.expenses * 1.04)
        state.discipline = clamp(state.discipline - 0.03, 0, 1)
        add_log(state, {
            "type": "system",
            "title": "Burnout Spiral",
            "text": "Burnout triggered spending creep and reduced discipline.",
        })
