"""General utilities for fdsim

Contents
--------
- Validation helpers
- Numeric helpers (clamp, round_half_up)
- Finance helpers (drawdown)
- Formatting helpers (format_money, format_pct)
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from .exceptions import ConfigurationError

__all__ = [
    # Validation
    "check_non_negative",
    # Numeric
    "clamp",
    "round_half_up",
    # Finance
    "drawdown",
    # Formatting
    "format_money",
    "format_pct",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise ConfigurationError if *value* is negative (strict)."""
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative (got {value}).")


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves toward +inf.

    Python's round() is banker's rounding; snapshots need floor(x + 0.5)
    so that 2.5 -> 3 and -2.5 -> -2.
    """
    return int(math.floor(x + 0.5))


# ---------------------------------------------------------------------------
# Finance helpers
# ---------------------------------------------------------------------------

def drawdown(series: pd.Series) -> pd.Series:
    """Return drawdown series: (W - cummax(W)) / cummax(W).

    Returns zeros for non-positive running maxima to avoid division by zero
    (net worth is often negative early in a run).
    """
    if series.empty:
        return series.copy()
    s = series.astype(float)
    running_max = s.cummax()
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = (s - running_max) / running_max
    dd[running_max <= 0] = 0.0
    dd.name = getattr(series, "name", None) or "drawdown"
    return dd


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_money(value: float) -> str:
    """Format a dollar amount without cents: -1234.6 -> '-$1,235'."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_pct(rate: float, decimals: int = 1) -> str:
    return f"{rate * 100:.{decimals}f}%"
