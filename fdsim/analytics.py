"""
Run analytics for fdsim.

Purpose
-------
Turns run histories into pandas tables and summary statistics, and runs
batches of seeds to see how a starting mode and policy fare across many
runs.

Key components
--------------
- history_to_frame: one row per year, indexed by year
- summarize_history: headline numbers of one run
- run_batch: one row per seed (final net worth, years played, ending)
- batch_statistics: distribution of final net worth and ending rates

Example
-------
>>> frame = run_batch([f"seed-{i}" for i in range(100)], years=15)
>>> stats = batch_statistics(frame)
>>> stats["p10"] <= stats["median"] <= stats["p90"]
True
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import HandConfig, StateOverrides
from .constants import DEFAULT_RUN_YEARS
from .modes import get_mode_overrides
from .policies import get_policy
from .simulation import Snapshot, run_simulation
from .utils import drawdown

logger = logging.getLogger(__name__)

__all__ = [
    "ENDING_COMPLETED",
    "history_to_frame",
    "drawdown",
    "summarize_history",
    "run_batch",
    "batch_statistics",
]

ENDING_COMPLETED = "completed"
"""Ending label used in batch tables for runs that reached their horizon."""

_FRAME_COLUMNS = [
    "year", "cash", "invested", "debt", "income", "expenses", "stress", "burnout",
    "rental_units", "side_hustle_level", "risk", "discipline", "net_worth",
    "market_return", "event", "cards",
]


def history_to_frame(history: Sequence[Snapshot]) -> pd.DataFrame:
    """
    Tabulate a run history.

    Returns
    -------
    pd.DataFrame
        Indexed by year. ``event`` holds the event id (None if no event)
        and ``cards`` the ids of successful plays joined by commas.
    """
    rows = []
    for snap in history:
        rows.append({
            "year": snap.year,
            "cash": snap.cash,
            "invested": snap.invested,
            "debt": snap.debt,
            "income": snap.income,
            "expenses": snap.expenses,
            "stress": snap.stress,
            "burnout": snap.burnout,
            "rental_units": snap.rental_units,
            "side_hustle_level": snap.side_hustle_level,
            "risk": snap.risk,
            "discipline": snap.discipline,
            "net_worth": snap.net_worth,
            "market_return": snap.market_return,
            "event": snap.event.id if snap.event else None,
            "cards": ",".join(r.card_id for r in snap.card_results if r.ok),
        })
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS).set_index("year")


def summarize_history(history: Sequence[Snapshot]) -> Dict[str, Any]:
    """
    Headline numbers of a run.

    Returns
    -------
    dict
        years_played, final_net_worth, peak_net_worth, max_drawdown,
        mean_market_return, event_counts and card_play_counts (successful
        plays only). Numeric entries are None for an empty history.
    """
    if not history:
        return {
            "years_played": 0,
            "final_net_worth": None,
            "peak_net_worth": None,
            "max_drawdown": None,
            "mean_market_return": None,
            "event_counts": {},
            "card_play_counts": {},
        }

    frame = history_to_frame(history)
    nw = frame["net_worth"].astype(float)

    event_counts = Counter(s.event.id for s in history if s.event is not None)
    card_counts = Counter(r.card_id for s in history for r in s.card_results if r.ok)

    return {
        "years_played": len(history),
        "final_net_worth": int(nw.iloc[-1]),
        "peak_net_worth": int(nw.max()),
        "max_drawdown": float(drawdown(nw).min()),
        "mean_market_return": float(frame["market_return"].mean()),
        "event_counts": dict(event_counts.most_common()),
        "card_play_counts": dict(card_counts.most_common()),
    }


def run_batch(
    seeds: Iterable[Union[str, int]],
    years: int = DEFAULT_RUN_YEARS,
    mode: str = "life",
    policy: str = "first",
    initial_state: Optional[StateOverrides] = None,
    hand_options: Optional[HandConfig] = None,
) -> pd.DataFrame:
    """
    Run one simulation per seed with the same setup.

    Parameters
    ----------
    seeds : iterable of str or int
        One run per seed.
    years : int
        Horizon of every run.
    mode : str
        Starting mode (see fdsim.modes).
    policy : str
        Policy name (see fdsim.policies).
    initial_state : StateOverrides, optional
        Overrides applied over the mode.
    hand_options : HandConfig, optional
        Hand composition.

    Returns
    -------
    pd.DataFrame
        Columns seed, years_played, final_net_worth, ending.

    Raises
    ------
    ConfigurationError
        On an unknown mode or policy.
    """
    overrides = get_mode_overrides(mode).merged_with(initial_state)
    choose = get_policy(policy)

    rows = []
    for seed in seeds:
        result = run_simulation(
            seed=seed,
            years=years,
            initial_state=overrides,
            policy=choose,
            hand_options=hand_options,
        )
        rows.append({
            "seed": seed,
            "years_played": result.years_played,
            "final_net_worth": result.final.net_worth if result.final else np.nan,
            "ending": result.ending or ENDING_COMPLETED,
        })

    logger.info("Batch finished: %d runs, mode=%s, policy=%s", len(rows), mode, policy)
    return pd.DataFrame(rows, columns=["seed", "years_played", "final_net_worth", "ending"])


def batch_statistics(frame: pd.DataFrame) -> Dict[str, Any]:
    """
    Distribution of final net worth and ending rates across a batch.

    Returns
    -------
    dict
        runs, mean, std, median, p10, p90 (of final net worth) and
        ending_rates (ending label -> share of runs).
    """
    final = frame["final_net_worth"].dropna().to_numpy(dtype=float)
    if final.size == 0:
        stats = dict.fromkeys(["mean", "std", "median", "p10", "p90"], float("nan"))
    else:
        stats = {
            "mean": float(np.mean(final)),
            "std": float(np.std(final)),
            "median": float(np.median(final)),
            "p10": float(np.percentile(final, 10)),
            "p90": float(np.percentile(final, 90)),
        }

    rates = frame["ending"].value_counts(normalize=True) if len(frame) else pd.Series(dtype=float)
    return {
        "runs": int(len(frame)),
        **stats,
        "ending_rates": {str(k): float(v) for k, v in rates.items()},
    }
