"""
Pytest configuration and fixtures for the fdsim test suite.

This module provides reusable fixtures for testing all fdsim components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

from typing import Callable, List, Sequence

import pytest

from fdsim.cards import CARDS_BY_ID
from fdsim.ledger import ensure_run_meta, unlock_cards
from fdsim.modes import get_mode_overrides
from fdsim.rng import create_rng
from fdsim.state import PlayerState, create_initial_state


# ---------------------------------------------------------------------------
# Random Stream Fixtures
# ---------------------------------------------------------------------------

class ScriptedRng:
    """
    Deterministic stand-in for the run stream.

    Returns the scripted values in order and then repeats the last one,
    counting calls so tests can check how many draws an operation takes.
    """

    def __init__(self, values: Sequence[float]):
        self.values: List[float] = list(values) or [0.5]
        self.calls = 0

    def __call__(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def scripted_rng() -> Callable[..., ScriptedRng]:
    """Factory: ``scripted_rng(0.5, 0.9)`` returns a ScriptedRng."""
    def _make(*values: float) -> ScriptedRng:
        return ScriptedRng(values)
    return _make


@pytest.fixture
def seed() -> str:
    """Standard run seed."""
    return "RUN-001"


@pytest.fixture
def rng(seed):
    """Fresh Mulberry32 stream for the standard seed."""
    return create_rng(seed)


# ---------------------------------------------------------------------------
# State Fixtures
# ---------------------------------------------------------------------------

def _playable(state: PlayerState) -> PlayerState:
    ensure_run_meta(state)
    unlock_cards(state, CARDS_BY_ID)
    return state


@pytest.fixture
def make_state() -> Callable[..., PlayerState]:
    """
    Factory for a state with the full catalog unlocked.

    Keyword arguments are initial state overrides, e.g.
    ``make_state(cash=1000, stress=80)``.
    """
    def _make(**overrides) -> PlayerState:
        return _playable(create_initial_state(overrides))
    return _make


@pytest.fixture
def state(make_state) -> PlayerState:
    """Default initial state with the full catalog unlocked.

    cash 8000, invested 0, debt 12000, income 52000, expenses 36000,
    stress 25, risk 0.45, discipline 0.50, burnout 0
    """
    return make_state()


@pytest.fixture
def life_state() -> PlayerState:
    """Life-mode starting state with the full catalog unlocked."""
    return _playable(create_initial_state(get_mode_overrides("life")))
