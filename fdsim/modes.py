"""
Starting modes for fdsim runs.

A mode is a named set of initial state overrides. ``life`` is the default
working-adult start (salary, expenses and some debt); the ``starter_*``
modes hand the player a lump sum with no income or expenses so that card
play alone drives the run.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from .config import StateOverrides
from .exceptions import ConfigurationError

__all__ = [
    "STARTING_MODES",
    "get_mode_overrides",
    "list_modes",
]


def _starter(cash: float) -> StateOverrides:
    return StateOverrides(
        cash=cash, invested=0, debt=0, income=0, expenses=0, stress=15, burnout=0,
    )


STARTING_MODES: Mapping[str, StateOverrides] = MappingProxyType({
    "life": StateOverrides(
        cash=9_000, debt=15_000, income=54_000, expenses=38_000, stress=25, burnout=0,
    ),
    "starter_10k": _starter(10_000),
    "starter_100k": _starter(100_000),
    "starter_1m": _starter(1_000_000),
})


def get_mode_overrides(name: str) -> StateOverrides:
    try:
        return STARTING_MODES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown starting mode '{name}'. Available: {', '.join(list_modes())}"
        ) from None


def list_modes() -> List[str]:
    return list(STARTING_MODES)
