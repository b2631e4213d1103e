"""
Card choice policies for headless runs.

A policy is any callable ``policy(state, hand) -> card ids``; the run
driver plays the first two ids it returns. Three are built in:

- "first":       the first two cards of the hand
- "recommended": safety, then debt pressure, then growth; topped up from
                 the hand order
- "recovery":    Do Nothing plus the first other card (the "skip year"
                 choice)

Example
-------
>>> from fdsim.simulation import run_simulation
>>> result = run_simulation(seed=7, years=10, policy=get_policy("recommended"))
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from .cards import Card
from .constants import MAX_CARDS_PER_YEAR
from .exceptions import ConfigurationError
from .simulation import Policy
from .state import PlayerState

__all__ = [
    "recommend_cards",
    "first_two_policy",
    "recommended_policy",
    "recovery_policy",
    "POLICIES",
    "get_policy",
]


def recommend_cards(state: PlayerState, hand: Sequence[Card]) -> List[str]:
    """
    Suggest up to two cards from *hand* for the current state.

    Rules, in priority order (each only if the card is in the hand):

    1. Build Emergency Fund when cash < 3000; Do Nothing when stress > 70
    2. Pay Down Debt when debt > 20000; Debt Refi when debt > 12000 and
       discipline >= 0.55
    3. While fewer than two: Automate Savings when stress < 70, then
       Index Investing when cash > 7000

    Examples
    --------
    >>> from fdsim.cards import CARDS_BY_ID
    >>> from fdsim.state import create_initial_state
    >>> s = create_initial_state({"cash": 1000, "stress": 80})
    >>> hand = [CARDS_BY_ID["do_nothing"], CARDS_BY_ID["build_emergency_fund"]]
    >>> recommend_cards(s, hand)
    ['build_emergency_fund', 'do_nothing']
    """
    ids = {c.id for c in hand}
    rec: List[str] = []

    if state.cash < 3000 and "build_emergency_fund" in ids:
        rec.append("build_emergency_fund")
    if state.stress > 70 and "do_nothing" in ids:
        rec.append("do_nothing")

    if state.debt > 20000 and "pay_down_debt" in ids:
        rec.append("pay_down_debt")
    if state.debt > 12000 and state.discipline >= 0.55 and "debt_refi" in ids:
        rec.append("debt_refi")

    if len(rec) < 2 and state.stress < 70 and "automate_savings" in ids:
        rec.append("automate_savings")
    if len(rec) < 2 and state.cash > 7000 and "index_investing" in ids:
        rec.append("index_investing")

    return list(dict.fromkeys(rec))[:MAX_CARDS_PER_YEAR]


def first_two_policy(state: PlayerState, hand: Sequence[Card]) -> List[str]:
    return [c.id for c in hand[:MAX_CARDS_PER_YEAR]]


def recommended_policy(state: PlayerState, hand: Sequence[Card]) -> List[str]:
    chosen = recommend_cards(state, hand)
    for card in hand:
        if len(chosen) >= MAX_CARDS_PER_YEAR:
            break
        if card.id not in chosen:
            chosen.append(card.id)
    return chosen


def recovery_policy(state: PlayerState, hand: Sequence[Card]) -> List[str]:
    """Do Nothing plus the first other card in the hand.

    Do Nothing is always playable, so it is played even when the hand
    did not deal it. With no other card to pair it with, Do Nothing
    fills the second pick as well and is applied twice.
    """
    other = next((c.id for c in hand if c.id != "do_nothing"), None)
    return ["do_nothing", other or "do_nothing"]


POLICIES: Dict[str, Policy] = {
    "first": first_two_policy,
    "recommended": recommended_policy,
    "recovery": recovery_policy,
}


def get_policy(name: str) -> Policy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown policy '{name}'. Available: {', '.join(POLICIES)}"
        ) from None
