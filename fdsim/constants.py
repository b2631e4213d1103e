"""
Global constants for fdsim.

Purpose
-------
Centralizes default values and balance numbers shared by the engine,
the run driver and the CLI.

Usage
-----
>>> from fdsim.constants import DEFAULT_RUN_SEED, BANKRUPTCY_NET_WORTH
>>> result = run_simulation(seed=DEFAULT_RUN_SEED, years=DEFAULT_RUN_YEARS)

Categories
----------
- Run: seeds, horizons, cards per year, endings
- State: gauge and trait bounds, rental equity proxy
- Hand: draw composition defaults
"""

from typing import Tuple

__all__ = [
    # Run
    "DEFAULT_RUN_SEED",
    "DEFAULT_RUN_YEARS",
    "DEFAULT_GAME_SEED",
    "DEFAULT_GAME_YEARS",
    "MAX_CARDS_PER_YEAR",
    "BANKRUPTCY_NET_WORTH",
    "ENDING_BANKRUPTCY",
    "ENDING_BURNOUT_COLLAPSE",
    # State
    "GAUGE_BOUNDS",
    "TRAIT_BOUNDS",
    "RENTAL_EQUITY_PER_UNIT",
    # Hand
    "DEFAULT_COMMONS",
    "DEFAULT_UNCOMMONS",
    "DEFAULT_RARE_CHANCE",
    "DEFAULT_WILD_CHANCE",
    "DEFAULT_MAX_HAND",
    "HAND_TOP_UP_TARGET",
]


# =============================================================================
# Run Defaults
# =============================================================================

DEFAULT_RUN_SEED: str = "solo-investor"
"""Default seed for headless runs (run_simulation)."""

DEFAULT_RUN_YEARS: int = 10
"""Default horizon for headless runs."""

DEFAULT_GAME_SEED: str = "RUN-001"
"""Default seed for interactive games (create_game)."""

DEFAULT_GAME_YEARS: int = 15
"""Default horizon for interactive games."""

MAX_CARDS_PER_YEAR: int = 2
"""Cards applied per year; extra ids are ignored."""

BANKRUPTCY_NET_WORTH: float = -50_000.0
"""A run ends once net worth drops strictly below this value."""

ENDING_BANKRUPTCY: str = "bankruptcy"
ENDING_BURNOUT_COLLAPSE: str = "burnout_collapse"


# =============================================================================
# State Bounds
# =============================================================================

GAUGE_BOUNDS: Tuple[float, float] = (0.0, 100.0)
"""Range of stress and burnout."""

TRAIT_BOUNDS: Tuple[float, float] = (0.0, 1.0)
"""Range of risk and discipline."""

RENTAL_EQUITY_PER_UNIT: int = 15_000
"""Simplified equity proxy per rental unit in net worth."""


# =============================================================================
# Hand Defaults
# =============================================================================

DEFAULT_COMMONS: int = 4
DEFAULT_UNCOMMONS: int = 2

DEFAULT_RARE_CHANCE: float = 0.28
"""Probability of drawing one rare card per hand."""

DEFAULT_WILD_CHANCE: float = 0.30
"""Probability of drawing one wildcard-type card per hand."""

DEFAULT_MAX_HAND: int = 8

HAND_TOP_UP_TARGET: int = 6
"""Short hands are topped up from commons to min(max_hand, this)."""
