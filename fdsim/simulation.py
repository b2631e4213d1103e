"""
Year-step orchestrator, run driver and interactive game for fdsim.

Purpose
-------
Ties the engine together. ``step_year`` runs one year as a fixed
pipeline:

    1. clear log, tick cooldowns
    2. apply up to 2 chosen cards (extra ids ignored)
    3. draw and apply one event (or none)
    4-9. layoff, cashflow, auto-invest, interest, market, drift
    10. snapshot appended to history, year += 1

``run_simulation`` loops that step with a policy choosing cards from a
drawn hand and stops early on an ending; ``create_game`` wraps the same
loop for a caller choosing cards one year at a time.

Every random draw of a run goes through one shared stream in the order
above, so a seed plus the sequence of choices reproduces a run exactly.

Examples
--------
>>> result = run_simulation(seed="RUN-001", years=5)
>>> len(result.history)
5
>>> game = create_game(seed="RUN-001", years=15)
>>> ids = [c.id for c in game.get_hand()[:2]]
>>> snap = game.play_year(ids)
>>> snap.year
1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .cards import CARDS_BY_ID, Card, CardResult, apply_card, draw_hand
from .config import HandConfig, StateOverrides
from .constants import (
    BANKRUPTCY_NET_WORTH,
    DEFAULT_GAME_SEED,
    DEFAULT_GAME_YEARS,
    DEFAULT_RUN_SEED,
    DEFAULT_RUN_YEARS,
    ENDING_BANKRUPTCY,
    ENDING_BURNOUT_COLLAPSE,
    MAX_CARDS_PER_YEAR,
)
from .economy import (
    apply_auto_invest,
    apply_debt_interest,
    apply_market_return,
    apply_yearly_cashflow,
    resolve_layoff_flag,
    update_stress_and_burnout,
)
from .events import EventOutcome, apply_event_for_year
from .ledger import ensure_run_meta, tick_cooldowns, unlock_cards
from .rng import Mulberry32, RandomSource, create_rng
from .state import PlayerState, add_log, create_initial_state, net_worth
from .types import LogEntry
from .utils import check_non_negative, round_half_up

logger = logging.getLogger(__name__)

__all__ = [
    "Snapshot",
    "RunResult",
    "Policy",
    "ENDING_MESSAGES",
    "step_year",
    "check_ending",
    "run_simulation",
    "Game",
    "create_game",
]

Policy = Callable[[PlayerState, List[Card]], Sequence[str]]
"""``policy(state, hand) -> card ids``; only the first two are used."""

InitialState = Union[None, Mapping[str, Any], StateOverrides]

ENDING_MESSAGES: Mapping[str, str] = MappingProxyType({
    ENDING_BANKRUPTCY: "Bankruptcy spiral. Try a more stable run.",
    ENDING_BURNOUT_COLLAPSE: "Burnout collapse. Stability is a strategy.",
})


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Snapshot:
    """
    Immutable record of one completed year.

    Money, gauges and net worth are rounded half up to whole numbers;
    risk and discipline keep 4 decimals; ``market_return`` is the raw
    rate applied this year.
    """
    year: int
    cash: int
    invested: int
    debt: int
    income: int
    expenses: int
    stress: int
    burnout: int
    rental_units: int
    side_hustle_level: int
    risk: float
    discipline: float
    net_worth: int
    market_return: float
    chosen_card_ids: Tuple[str, ...] = ()
    card_results: Tuple[CardResult, ...] = ()
    event: Optional[EventOutcome] = None
    flags: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    log: Tuple[LogEntry, ...] = ()


@dataclass
class RunResult:
    """Outcome of ``run_simulation``."""
    seed: Union[str, int]
    final: Optional[Snapshot]
    history: List[Snapshot]
    ending: Optional[str] = None

    @property
    def years_played(self) -> int:
        return len(self.history)

    @property
    def ending_message(self) -> Optional[str]:
        return ENDING_MESSAGES.get(self.ending) if self.ending else None


# ---------------------------------------------------------------------------
# Year step
# ---------------------------------------------------------------------------

def _take_snapshot(
    state: PlayerState,
    market_return: float,
    picks: Sequence[str],
    card_results: Sequence[CardResult],
    event: Optional[EventOutcome],
) -> Snapshot:
    return Snapshot(
        year=state.year,
        cash=round_half_up(state.cash),
        invested=round_half_up(state.invested),
        debt=round_half_up(state.debt),
        income=round_half_up(state.income),
        expenses=round_half_up(state.expenses),
        stress=round_half_up(state.stress),
        burnout=round_half_up(state.burnout),
        rental_units=state.rental_units or 0,
        side_hustle_level=state.side_hustle_level or 0,
        risk=round(state.risk, 4),
        discipline=round(state.discipline, 4),
        net_worth=round_half_up(net_worth(state)),
        market_return=market_return,
        chosen_card_ids=tuple(picks),
        card_results=tuple(card_results),
        event=event,
        flags=MappingProxyType(dict(state.flags)),
        log=tuple(state.log),
    )


def step_year(
    state: PlayerState,
    rng: RandomSource,
    chosen_card_ids: Sequence[str] = (),
) -> Snapshot:
    """
    Advance *state* by one year.

    Parameters
    ----------
    state : PlayerState
        Mutated in place; the snapshot is appended to ``state.history``.
    rng : callable
        The run's shared stream.
    chosen_card_ids : sequence of str
        Cards to play in order; ids past the second are ignored. Unknown
        or ineligible ids are recorded as failed plays.

    Returns
    -------
    Snapshot
        The completed year's record.
    """
    ensure_run_meta(state)
    state.log = []
    tick_cooldowns(state)

    picks = [str(card_id) for card_id in list(chosen_card_ids)[:MAX_CARDS_PER_YEAR]]
    card_results: List[CardResult] = []
    for card_id in picks:
        res = apply_card(state, rng, card_id)
        card_results.append(res)
        add_log(state, {
            "type": "card",
            "title": res.name,
            "text": res.narration,
            "meta": {"id": card_id},
        })

    event = apply_event_for_year(state, rng)

    resolve_layoff_flag(state)
    apply_yearly_cashflow(state)
    apply_auto_invest(state)
    apply_debt_interest(state)
    market_return = apply_market_return(state, rng)
    update_stress_and_burnout(state)

    snapshot = _take_snapshot(state, market_return, picks, card_results, event)
    state.history.append(snapshot)
    state.year += 1

    logger.debug(
        "Year %d: cards=%s event=%s net_worth=%d",
        snapshot.year,
        list(snapshot.chosen_card_ids),
        event.id if event else None,
        snapshot.net_worth,
    )
    return snapshot


def check_ending(state: PlayerState) -> Optional[str]:
    """Return the ending reached by *state*, or None while the run goes on."""
    if net_worth(state) < BANKRUPTCY_NET_WORTH:
        return ENDING_BANKRUPTCY
    if state.stress >= 100 or state.burnout >= 100:
        return ENDING_BURNOUT_COLLAPSE
    return None


# ---------------------------------------------------------------------------
# Run driver
# ---------------------------------------------------------------------------

def _new_run(seed: Union[str, int], initial_state: InitialState) -> Tuple[Mulberry32, PlayerState]:
    rng = create_rng(seed)
    state = create_initial_state(initial_state)
    ensure_run_meta(state)
    unlock_cards(state, CARDS_BY_ID)
    return rng, state


def _first_two(state: PlayerState, hand: List[Card]) -> List[str]:
    return [c.id for c in hand[:MAX_CARDS_PER_YEAR]]


def run_simulation(
    seed: Union[str, int] = DEFAULT_RUN_SEED,
    years: int = DEFAULT_RUN_YEARS,
    initial_state: InitialState = None,
    policy: Optional[Policy] = None,
    hand_options: Optional[HandConfig] = None,
) -> RunResult:
    """
    Play a whole run without interaction.

    Parameters
    ----------
    seed : str or int
        Run seed.
    years : int
        Horizon; the run may stop earlier on an ending.
    initial_state : mapping or StateOverrides, optional
        Initial state overrides.
    policy : callable, optional
        ``policy(state, hand) -> ids``. Defaults to the first two cards
        of each hand.
    hand_options : HandConfig, optional
        Hand composition.

    Returns
    -------
    RunResult
        ``final`` is None when no year was played.

    Raises
    ------
    ConfigurationError
        If *years* is negative.
    """
    check_non_negative("years", years)

    choose = policy or _first_two
    rng, state = _new_run(seed, initial_state)
    ending = None

    logger.debug("Starting run seed=%r years=%d", seed, years)
    for _ in range(years):
        hand = draw_hand(state, rng, hand_options)
        chosen = [cid for cid in choose(state, hand) if cid]
        step_year(state, rng, chosen)

        ending = check_ending(state)
        if ending:
            logger.info("Run %r ended in year %d: %s", seed, state.year - 1, ending)
            break

    return RunResult(
        seed=seed,
        final=state.history[-1] if state.history else None,
        history=state.history,
        ending=ending,
    )


# ---------------------------------------------------------------------------
# Interactive game
# ---------------------------------------------------------------------------

class Game:
    """
    One interactive run: the caller reads the hand, picks cards and
    advances a year at a time.

    The game does not enforce its horizon or endings: ``is_over`` tells
    the caller when to stop, and ``play_year`` keeps stepping if asked.

    Attributes
    ----------
    seed : str or int
    years : int
        Intended horizon.
    state : PlayerState
    rng : Mulberry32
    """

    def __init__(
        self,
        seed: Union[str, int] = DEFAULT_GAME_SEED,
        years: int = DEFAULT_GAME_YEARS,
        initial_state: InitialState = None,
        hand_options: Optional[HandConfig] = None,
    ):
        check_non_negative("years", years)
        self.seed = seed
        self.years = years
        self.initial_state = initial_state
        self.hand_options = hand_options
        self.rng, self.state = _new_run(seed, initial_state)
        self._hand = draw_hand(self.state, self.rng, hand_options)

    def get_hand(self) -> List[Card]:
        return list(self._hand)

    def play_year(self, chosen_card_ids: Sequence[str]) -> Snapshot:
        """Step one year with the chosen ids, then deal the next hand."""
        snapshot = step_year(self.state, self.rng, chosen_card_ids)
        self._hand = draw_hand(self.state, self.rng, self.hand_options)
        return snapshot

    def restart(self, new_seed: Optional[Union[str, int]] = None) -> "Game":
        """Return a fresh game with the same horizon and overrides."""
        seed = self.seed if new_seed is None else new_seed
        return Game(seed, self.years, self.initial_state, self.hand_options)

    @property
    def history(self) -> List[Snapshot]:
        return self.state.history

    @property
    def ending(self) -> Optional[str]:
        if not self.state.history:
            return None
        return check_ending(self.state)

    @property
    def is_over(self) -> bool:
        return len(self.state.history) >= self.years or self.ending is not None

    def __repr__(self) -> str:
        return f"Game(seed={self.seed!r}, year={self.state.year}, years={self.years})"


def create_game(
    seed: Union[str, int] = DEFAULT_GAME_SEED,
    years: int = DEFAULT_GAME_YEARS,
    initial_state: InitialState = None,
    hand_options: Optional[HandConfig] = None,
) -> Game:
    return Game(seed, years, initial_state, hand_options)
