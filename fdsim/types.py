"""
Type definitions for fdsim.

Purpose
-------
TypedDict definitions for the plain dictionaries that cross the engine
boundary: narrated log entries, card display data and the serialized
form of the run ledger.

Type Definitions
----------------
LogEntry
    One narrated line of a year: {"type", "title", "text", "meta"?}

CardDisplayDict
    Card data for rendering a hand: {"id", "name", "type", "rarity", "tags", "desc"}

RunMetaDict
    Plain form of the ledger: {"unlocked", "exhausted", "cooldowns"}
"""

from typing import Any, Dict, List, Literal

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "LogEntryType",
    "LogEntry",
    "CardDisplayDict",
    "RunMetaDict",
]


LogEntryType = Literal["card", "event", "system", "market"]


class LogEntry(TypedDict):
    """
    One narrated effect of the current year.

    Attributes
    ----------
    type : {"card", "event", "system", "market"}
        Source of the entry.
    title : str
        Short heading (card name, event name or system stage).
    text : str
        Narration suitable for direct display.
    meta : dict, optional
        Extra machine-readable data, e.g. {"id": "layoff"} or
        {"return_rate": 0.083}.

    Examples
    --------
    >>> entry: LogEntry = {"type": "system", "title": "Auto-Invest",
    ...                    "text": "System invested $1,040."}
    """

    type: LogEntryType
    title: str
    text: str
    meta: NotRequired[Dict[str, Any]]


class CardDisplayDict(TypedDict):
    """Card fields a UI needs to render a hand."""

    id: str
    name: str
    type: str
    rarity: str
    tags: List[str]
    desc: str


class RunMetaDict(TypedDict):
    """
    Plain, JSON-safe form of the run ledger.

    Sets become sorted lists and the cooldown map becomes an object so the
    ledger survives any storage round-trip; ``ensure_run_meta`` turns it
    back into sets and a dict.

    Examples
    --------
    >>> meta: RunMetaDict = {
    ...     "unlocked": ["do_nothing", "index_investing"],
    ...     "exhausted": [],
    ...     "cooldowns": {"career_move": 1},
    ... }
    """

    unlocked: List[str]
    exhausted: List[str]
    cooldowns: Dict[str, int]
