"""
Card catalog and hand drawing for fdsim.

Purpose
-------
Defines the fixed catalog of actions ("cards") a player can take each
year, decides which cards are playable, draws a state-biased hand, and
applies a chosen card to the state.

Key components
--------------
- Card:
    Immutable catalog entry: identity, type, rarity, tags, optional
    cooldown or exhaust flag, an eligibility predicate and an effect
    function ``(state, rng) -> EffectResult``.

- CARDS / CARDS_BY_ID:
    Process-wide catalog (10 commons, 6 uncommons, 2 rares), shared by
    reference between runs and never mutated.

- draw_hand:
    4 commons + 2 uncommons drawn without replacement, weighted by
    ``situational_bias_weight``; then a 28% roll for one rare and a 30%
    roll for one wildcard; short hands are topped up from commons.

- apply_card:
    Eligibility check, effect, then exhaust/cooldown bookkeeping on
    success only.

Failures are data: an ineligible or declined card returns
``CardResult(ok=False, reason=...)`` and leaves the state untouched.

Example
-------
>>> from fdsim.rng import create_rng
>>> from fdsim.state import create_initial_state
>>> from fdsim.ledger import unlock_cards
>>> rng = create_rng("RUN-001")
>>> state = create_initial_state()
>>> unlock_cards(state, CARDS_BY_ID)
>>> hand = draw_hand(state, rng)
>>> result = apply_card(state, rng, hand[0].id)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, List, Literal, Mapping, Optional, Sequence, Tuple, TypeVar

from .config import HandConfig
from .constants import HAND_TOP_UP_TARGET
from .ledger import ensure_run_meta
from .rng import RandomSource, sum_uniform_noise
from .state import PlayerState, get_flag
from .types import CardDisplayDict
from .utils import clamp, format_money

logger = logging.getLogger(__name__)

__all__ = [
    "CardType",
    "Rarity",
    "EffectResult",
    "Card",
    "CardResult",
    "CARDS",
    "CARDS_BY_ID",
    "get_card",
    "is_card_playable",
    "situational_bias_weight",
    "pick_weighted",
    "draw_hand",
    "apply_card",
]

CardType = Literal["money", "career", "lifestyle", "ownership", "defense", "wildcard"]
Rarity = Literal["common", "uncommon", "rare", "legendary"]

T = TypeVar("T")


@dataclass(frozen=True)
class EffectResult:
    """Outcome of a card effect: narration on success, reason on decline."""
    ok: bool
    text: str = ""
    reason: str = ""


def _done(text: str) -> EffectResult:
    return EffectResult(ok=True, text=text)


def _decline(reason: str) -> EffectResult:
    return EffectResult(ok=False, reason=reason)


def _always(state: PlayerState) -> bool:
    return True


@dataclass(frozen=True)
class Card:
    """
    Immutable catalog entry.

    Parameters
    ----------
    id : str
        Stable identifier used in choices, ledgers and snapshots.
    name : str
        Display name.
    type : CardType
        One of money, career, lifestyle, ownership, defense, wildcard.
    rarity : Rarity
        Draw bucket: common, uncommon, rare or legendary.
    tags : tuple of str
        Situational weighting keys (e.g. "debt", "recovery", "leverage").
    effect : callable
        ``(state, rng) -> EffectResult``; mutates state in place on success.
    requires : callable
        Eligibility predicate over the state.
    cooldown_years : int, optional
        Years the card stays blocked after a successful play.
    exhaust : bool
        If True, the card can succeed at most once per run.
    desc : str
        One-line description for hand rendering.
    """
    id: str
    name: str
    type: CardType
    rarity: Rarity
    tags: Tuple[str, ...]
    effect: Callable[[PlayerState, RandomSource], EffectResult] = field(repr=False, compare=False)
    requires: Callable[[PlayerState], bool] = field(default=_always, repr=False, compare=False)
    cooldown_years: Optional[int] = None
    exhaust: bool = False
    desc: str = ""

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def to_display(self) -> CardDisplayDict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "rarity": self.rarity,
            "tags": list(self.tags),
            "desc": self.desc,
        }


@dataclass(frozen=True)
class CardResult:
    """Result of trying to play one card in a year."""
    card_id: str
    name: str
    ok: bool
    text: str = ""
    reason: str = ""

    @property
    def card(self) -> Optional[Card]:
        return CARDS_BY_ID.get(self.card_id)

    @property
    def narration(self) -> str:
        return self.text if self.ok else f"Failed: {self.reason}"


# ---------------------------------------------------------------------------
# Gauge helpers
# ---------------------------------------------------------------------------

def _stress(s: PlayerState, delta: float) -> None:
    s.stress = clamp(s.stress + delta, 0, 100)


def _burnout(s: PlayerState, delta: float) -> None:
    s.burnout = clamp(s.burnout + delta, 0, 100)


def _discipline(s: PlayerState, delta: float) -> None:
    s.discipline = clamp(s.discipline + delta, 0, 1)


def _risk(s: PlayerState, delta: float) -> None:
    s.risk = clamp(s.risk + delta, 0, 1)


def _bump_flag(s: PlayerState, key: str, hi: int) -> int:
    level = clamp(get_flag(s, key, 0) + 1, 0, hi)
    s.flags[key] = level
    return level


# ---------------------------------------------------------------------------
# Common effects
# ---------------------------------------------------------------------------

def _index_investing(s: PlayerState, rng: RandomSource) -> EffectResult:
    amount = min(s.cash, 6000)
    if amount <= 0:
        return _decline("No cash to invest.")
    s.cash -= amount
    s.invested += amount
    _discipline(s, 0.02)
    _stress(s, -2)
    return _done(f"Invested {format_money(amount)} into broad markets.")


def _pay_down_debt(s: PlayerState, rng: RandomSource) -> EffectResult:
    amount = min(s.cash, 5000, s.debt)
    if amount <= 0:
        return _decline("No debt (or no cash).")
    s.cash -= amount
    s.debt -= amount
    _stress(s, -6)
    _discipline(s, 0.01)
    return _done(f"Paid {format_money(amount)} toward debt.")


def _build_emergency_fund(s: PlayerState, rng: RandomSource) -> EffectResult:
    _stress(s, -4)
    _discipline(s, 0.02)
    _bump_flag(s, "emergency_fund_buff", 3)
    return _done("Liquidity prioritized. Shocks hit softer.")


def _reduce_lifestyle(s: PlayerState, rng: RandomSource) -> EffectResult:
    cut = math.floor(s.expenses * (0.03 + rng() * 0.04))  # 3-7%
    s.expenses = max(0, s.expenses - cut)
    _stress(s, -5)
    _discipline(s, 0.02)
    return _done(f"Expenses -{format_money(cut)}/yr.")


def _negotiate_bills(s: PlayerState, rng: RandomSource) -> EffectResult:
    cut = math.floor(600 + rng() * 1400)
    s.expenses = max(0, s.expenses - cut)
    _discipline(s, 0.015)
    _stress(s, -2)
    return _done(f"Bills reduced. Expenses -{format_money(cut)}/yr.")


def _skill_sprint(s: PlayerState, rng: RandomSource) -> EffectResult:
    _bump_flag(s, "career_momentum", 5)
    _discipline(s, 0.03)
    _stress(s, 5)
    _burnout(s, 6)
    if rng() < 0.25:
        bump = math.floor(1200 + rng() * 2400)
        s.income += bump
        return _done(f"Upskill payoff. Income +{format_money(bump)}/yr.")
    return _done("Upskilled hard. Momentum increased.")


def _side_hustle_cost(s: PlayerState) -> int:
    return 800 + (s.side_hustle_level or 0) * 500


def _side_hustle(s: PlayerState, rng: RandomSource) -> EffectResult:
    level = s.side_hustle_level or 0
    cost = _side_hustle_cost(s)
    if s.cash < cost:
        return _decline("Not enough cash for startup costs.")
    s.cash -= cost
    s.side_hustle_level = level + 1

    bump = math.floor((900 + rng() * 2000) * (1 + 0.35 * s.side_hustle_level))
    s.income += bump
    _stress(s, 6 + level * 2)
    _burnout(s, 8)
    return _done(f"Hustle leveled up. Income +{format_money(bump)}/yr.")


def _automate_savings(s: PlayerState, rng: RandomSource) -> EffectResult:
    _bump_flag(s, "auto_invest", 5)
    _discipline(s, 0.02)
    _stress(s, -1)
    return _done("Saving system installed. Auto-invest will trigger yearly.")


def _overtime_push(s: PlayerState, rng: RandomSource) -> EffectResult:
    bonus = math.floor(1200 + rng() * 4200)
    s.cash += bonus
    _stress(s, 7)
    _burnout(s, 9)
    return _done(f"Overtime paid. Cash +{format_money(bonus)}.")


def _do_nothing(s: PlayerState, rng: RandomSource) -> EffectResult:
    _stress(s, -3)
    _burnout(s, -5)
    return _done("You recovered. Stress eased.")


# ---------------------------------------------------------------------------
# Uncommon effects
# ---------------------------------------------------------------------------

def _career_move(s: PlayerState, rng: RandomSource) -> EffectResult:
    momentum = get_flag(s, "career_momentum", 0)
    success_p = clamp(
        0.66 + (s.discipline - 0.5) * 0.25 - (s.stress / 100) * 0.18 + momentum * 0.03,
        0.30,
        0.90,
    )
    if rng() < success_p:
        bump = math.floor(4000 + rng() * 14000)
        s.income += bump
        _stress(s, 4)
        return _done(f"You leveled up. Income +{format_money(bump)}/yr.")

    hit = math.floor(6000 + rng() * 14000)
    s.income = max(0, s.income - hit)
    _stress(s, 14)
    s.flags["laid_off"] = True
    return _done("The move backfired. Income destabilized this year.")


def _debt_refi(s: PlayerState, rng: RandomSource) -> EffectResult:
    _bump_flag(s, "refi_level", 2)
    fee = math.floor(400 + rng() * 900)
    if s.cash >= fee:
        s.cash -= fee
    else:
        s.debt += (fee - s.cash) * 1.1
        s.cash = 0
    _stress(s, -6)
    return _done(f"Refinanced debt. APR reduced (fee {format_money(fee)}).")


def _start_business(s: PlayerState, rng: RandomSource) -> EffectResult:
    seed_cost = math.floor(2000 + rng() * 4000)
    if s.cash < seed_cost:
        return _decline("Not enough cash to start.")
    s.cash -= seed_cost

    level = _bump_flag(s, "business_level", 5)
    bump = math.floor((2500 + level * 1800) * (1 + sum_uniform_noise(rng) * 0.9))
    s.income = max(0, s.income + bump)
    _stress(s, 10 + level * 2)
    _burnout(s, 14)
    sign = "+" if bump >= 0 else ""
    return _done(f"Business push. Income change: {sign}{format_money(bump)}/yr.")


def _buy_rental(s: PlayerState, rng: RandomSource) -> EffectResult:
    s.cash -= 12000  # down payment

    added_debt = math.floor(60000 + rng() * 20000)
    s.debt += added_debt
    s.rental_units = (s.rental_units or 0) + 1

    cashflow = math.floor(800 + rng() * 2800)
    s.income += cashflow
    _stress(s, 10)
    _risk(s, 0.06)
    _bump_flag(s, "property_exposure", 5)
    return _done(
        f"Rental acquired. Income +{format_money(cashflow)}/yr, "
        f"debt +{format_money(added_debt)}."
    )


def _house_hack(s: PlayerState, rng: RandomSource) -> EffectResult:
    cost = math.floor(8000 + rng() * 4000)
    if s.cash < cost:
        return _decline("Not enough cash to house hack.")
    s.cash -= cost

    added_debt = math.floor(25000 + rng() * 15000)
    s.debt += added_debt

    expense_drop = math.floor(1200 + rng() * 2400)
    s.expenses = max(0, s.expenses - expense_drop)
    _stress(s, 4)
    _risk(s, 0.03)
    return _done(
        f"House hack. Expenses -{format_money(expense_drop)}/yr, "
        f"debt +{format_money(added_debt)}."
    )


def _insurance_upgrade(s: PlayerState, rng: RandomSource) -> EffectResult:
    added = math.floor(300 + rng() * 900)
    s.expenses += added
    _bump_flag(s, "insurance_level", 2)
    _stress(s, -2)
    return _done(f"Coverage upgraded. Expenses +{format_money(added)}/yr, medical hits reduced.")


# ---------------------------------------------------------------------------
# Rare effects
# ---------------------------------------------------------------------------

def _panic_sell(s: PlayerState, rng: RandomSource) -> EffectResult:
    liquidated = math.floor(s.invested * 0.95)
    s.invested -= liquidated
    s.cash += liquidated
    _bump_flag(s, "regret_drag", 3)
    _stress(s, -6)
    _discipline(s, -0.03)
    return _done(f"You sold in fear. Cash +{format_money(liquidated)}. Regret drag increased.")


def _windfall_opportunity(s: PlayerState, rng: RandomSource) -> EffectResult:
    base = 1200 + rng() * 3000
    bonus = math.floor(base * (1 + s.discipline * 2.2))
    s.cash += bonus
    _stress(s, -4)
    return _done(f"Opportunity hit. Cash +{format_money(bonus)}.")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

CARDS: Tuple[Card, ...] = (
    # Common
    Card(
        id="index_investing", name="Index Investing", type="money", rarity="common",
        tags=("investing", "compounding"),
        requires=lambda s: s.cash >= 500,
        effect=_index_investing,
        desc="Move up to $6,000 of cash into broad index funds.",
    ),
    Card(
        id="pay_down_debt", name="Pay Down Debt", type="money", rarity="common",
        tags=("debt", "stability"),
        requires=lambda s: s.debt > 0 and s.cash >= 300,
        effect=_pay_down_debt,
        desc="Put up to $5,000 of cash toward debt.",
    ),
    Card(
        id="build_emergency_fund", name="Build Emergency Fund", type="defense", rarity="common",
        tags=("stability", "defense"),
        effect=_build_emergency_fund,
        desc="Stack a liquidity shield; shortfalls and repairs hit softer.",
    ),
    Card(
        id="reduce_lifestyle", name="Reduce Lifestyle", type="lifestyle", rarity="common",
        tags=("expenses", "discipline", "stability"),
        requires=lambda s: s.expenses > 0,
        effect=_reduce_lifestyle,
        desc="Cut yearly expenses by 3-7%.",
    ),
    Card(
        id="negotiate_bills", name="Negotiate Bills", type="lifestyle", rarity="common",
        tags=("expenses", "defense"),
        requires=lambda s: s.expenses > 0,
        effect=_negotiate_bills,
        desc="Shave $600-2,000 off yearly bills.",
    ),
    Card(
        id="skill_sprint", name="Skill Sprint", type="career", rarity="common",
        tags=("career", "growth", "stress"),
        requires=lambda s: s.burnout < 95,
        effect=_skill_sprint,
        desc="Build career momentum; sometimes pays off in a raise.",
    ),
    Card(
        id="side_hustle", name="Side Hustle", type="career", rarity="common",
        tags=("hustle", "income", "burnout"),
        requires=lambda s: s.cash >= _side_hustle_cost(s),
        effect=_side_hustle,
        desc="Pay startup costs to level up a side income. Costs more each level.",
    ),
    Card(
        id="automate_savings", name="Automate Savings", type="money", rarity="common",
        tags=("investing", "system", "discipline"),
        effect=_automate_savings,
        desc="Install a yearly auto-invest of 2-6% of income.",
    ),
    Card(
        id="overtime_push", name="Overtime Push", type="career", rarity="common",
        tags=("income", "stress", "burnout"),
        cooldown_years=1,
        requires=lambda s: s.burnout < 92,
        effect=_overtime_push,
        desc="Grind for a one-off cash bonus at a burnout cost.",
    ),
    Card(
        id="do_nothing", name="Do Nothing", type="lifestyle", rarity="common",
        tags=("recovery", "stability"),
        effect=_do_nothing,
        desc="Rest. Stress and burnout ease.",
    ),
    # Uncommon
    Card(
        id="career_move", name="Career Move", type="career", rarity="uncommon",
        tags=("income", "volatility"),
        cooldown_years=2,
        requires=lambda s: s.burnout < 95,
        effect=_career_move,
        desc="Bet on a new role: big raise, or an income shock if it backfires.",
    ),
    Card(
        id="debt_refi", name="Debt Refi", type="money", rarity="uncommon",
        tags=("debt", "stability"),
        cooldown_years=3,
        requires=lambda s: s.debt > 8000 and s.discipline >= 0.55,
        effect=_debt_refi,
        desc="Pay a fee to cut the APR on all debt.",
    ),
    Card(
        id="start_business", name="Start Business", type="career", rarity="uncommon",
        tags=("income", "high-upside", "burnout"),
        cooldown_years=2,
        requires=lambda s: s.cash >= 2500 and s.burnout < 85,
        effect=_start_business,
        desc="Seed a business; volatile income change that grows with each level.",
    ),
    Card(
        id="buy_rental", name="Buy Rental", type="ownership", rarity="uncommon",
        tags=("ownership", "leverage", "income"),
        cooldown_years=2,
        requires=lambda s: s.cash >= 12000,
        effect=_buy_rental,
        desc="Put $12,000 down on a leveraged rental unit.",
    ),
    Card(
        id="house_hack", name="House Hack", type="ownership", rarity="uncommon",
        tags=("ownership", "stability", "income"),
        cooldown_years=2,
        requires=lambda s: s.cash >= 8000 and s.stress <= 85,
        effect=_house_hack,
        desc="Buy and share a home: lower expenses, more debt.",
    ),
    Card(
        id="insurance_upgrade", name="Insurance Upgrade", type="defense", rarity="uncommon",
        tags=("defense", "medical", "stability"),
        cooldown_years=3,
        requires=lambda s: s.expenses > 0,
        effect=_insurance_upgrade,
        desc="Higher premiums, smaller medical bills and penalties.",
    ),
    # Rare
    Card(
        id="panic_sell", name="Panic Sell", type="wildcard", rarity="rare",
        tags=("investing", "fear", "cash"),
        exhaust=True,
        requires=lambda s: s.invested > 1000,
        effect=_panic_sell,
        desc="Dump 95% of investments to cash. Regret drags future returns.",
    ),
    Card(
        id="windfall_opportunity", name="Windfall Opportunity", type="wildcard", rarity="rare",
        tags=("luck", "cash", "momentum"),
        exhaust=True,
        effect=_windfall_opportunity,
        desc="One-time cash opportunity; discipline multiplies the payout.",
    ),
)

CARDS_BY_ID: Mapping[str, Card] = MappingProxyType({c.id: c for c in CARDS})


def get_card(card_id: str) -> Optional[Card]:
    return CARDS_BY_ID.get(card_id)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def is_card_playable(state: PlayerState, card: Card) -> bool:
    meta = ensure_run_meta(state)
    if card.id not in meta.unlocked:
        return False
    if card.id in meta.exhausted:
        return False
    if card.id in meta.cooldowns:
        return False
    return bool(card.requires(state))


def situational_bias_weight(state: PlayerState, card: Card) -> float:
    """
    Draw weight multiplier for *card* given the current state.

    Starts at 1.0; every matching rule multiplies in:

    - stress > 70: defense x1.7, "recovery" x1.6
    - debt > 20000: "debt" x1.8, "leverage" x0.75
    - cash < 3000: "expenses"/"stability"/defense x1.6, "ownership" x0.4
    - burnout > 75: "burnout"/"hustle" x0.55, "recovery" or Do Nothing x1.5
    - invested > 15000: Panic Sell x1.15
    """
    w = 1.0

    if state.stress > 70:
        if card.type == "defense":
            w *= 1.7
        if card.has_tag("recovery"):
            w *= 1.6
    if state.debt > 20000:
        if card.has_tag("debt"):
            w *= 1.8
        if card.has_tag("leverage"):
            w *= 0.75
    if state.cash < 3000:
        if card.has_tag("expenses") or card.has_tag("stability") or card.type == "defense":
            w *= 1.6
        if card.has_tag("ownership"):
            w *= 0.4
    if state.burnout > 75:
        if card.has_tag("burnout") or card.has_tag("hustle"):
            w *= 0.55
        if card.has_tag("recovery") or card.id == "do_nothing":
            w *= 1.5
    if state.invested > 15000 and card.id == "panic_sell":
        w *= 1.15

    return w


def pick_weighted(rng: RandomSource, items: Sequence[Tuple[T, float]]) -> Optional[T]:
    """
    Draw one item proportionally to its weight.

    Non-positive weights are dropped. One uniform draw in [0, total) is
    walked down the remaining items in order; the item that takes the
    running value to <= 0 wins (the last item on float edge cases).
    Returns None, without consuming a draw, when no weight is positive.
    """
    pool = [(item, w) for item, w in items if w > 0]
    total = sum(w for _, w in pool)
    if total <= 0:
        return None
    roll = rng() * total
    for item, w in pool:
        roll -= w
        if roll <= 0:
            return item
    return pool[-1][0]


def draw_hand(
    state: PlayerState,
    rng: RandomSource,
    options: Optional[HandConfig] = None,
) -> List[Card]:
    """
    Draw this year's hand.

    Draw order is fixed, since every pick consumes the shared stream:
    commons, uncommons, the rare roll, the wildcard roll, then the
    top-up from commons to min(max_hand, 6). The rare and wildcard rolls
    always consume a draw, even when their pool is empty.

    Parameters
    ----------
    state : PlayerState
        Current state; only playable cards are candidates.
    rng : callable
        The run's shared stream.
    options : HandConfig, optional
        Hand composition; defaults to HandConfig().

    Returns
    -------
    list of Card
        At most ``options.max_hand`` distinct cards, in draw order.
    """
    opts = options or HandConfig()

    playable = [c for c in CARDS if is_card_playable(state, c)]
    by_rarity = {
        rarity: [c for c in playable if c.rarity == rarity]
        for rarity in ("common", "uncommon", "rare", "legendary")
    }

    hand: List[Card] = []
    used = set()

    def draw_from(pool: Sequence[Card], n: int) -> None:
        for _ in range(n):
            if len(hand) >= opts.max_hand:
                return
            candidates = [c for c in pool if c.id not in used]
            if not candidates:
                return
            picked = pick_weighted(
                rng, [(c, 1.0 * situational_bias_weight(state, c)) for c in candidates]
            )
            if picked is None:
                return
            used.add(picked.id)
            hand.append(picked)

    draw_from(by_rarity["common"], opts.commons)
    draw_from(by_rarity["uncommon"], opts.uncommons)

    if rng() < opts.include_rare_chance:
        draw_from(by_rarity["rare"], 1)
    if rng() < opts.include_wild_chance:
        draw_from([c for c in playable if c.type == "wildcard" and c.id not in used], 1)

    target = min(opts.max_hand, HAND_TOP_UP_TARGET)
    if len(hand) < target:
        draw_from(by_rarity["common"], target - len(hand))

    return hand


def apply_card(state: PlayerState, rng: RandomSource, card_id: str) -> CardResult:
    """
    Play one card.

    Exhaust and cooldown bookkeeping only happens when the effect
    succeeds; a declined effect leaves the ledger as it was.
    """
    meta = ensure_run_meta(state)
    card = CARDS_BY_ID.get(card_id)
    if card is None:
        return CardResult(card_id=card_id, name="Unknown Card", ok=False, reason="Unknown card.")
    if not is_card_playable(state, card):
        return CardResult(
            card_id=card.id,
            name=card.name,
            ok=False,
            reason="Card not playable (cooldown/exhaust/requirements).",
        )

    res = card.effect(state, rng)

    if res.ok:
        if card.exhaust:
            meta.exhausted.add(card.id)
        if card.cooldown_years and card.cooldown_years > 0:
            meta.cooldowns[card.id] = card.cooldown_years
    else:
        logger.debug("Card %s declined: %s", card.id, res.reason)

    return CardResult(card_id=card.id, name=card.name, ok=res.ok, text=res.text, reason=res.reason)
