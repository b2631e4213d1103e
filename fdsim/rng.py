"""
Seeded random stream for fdsim.

Purpose
-------
Every random draw in a run (hand composition, card effects, event
selection, event effects, market noise) comes from ONE stream created
from the run seed. Same seed and same call order give the same draws on
any platform, so a run is a pure function of its seed and the choices
made.

Algorithm
---------
- String seeds are hashed with 32-bit FNV-1a over UTF-16 code units
  (offset 2166136261, prime 16777619).
- Integer seeds are taken modulo 2**32.
- The generator is Mulberry32: the 32-bit state advances by 0x6D2B79F5
  and is mixed by two xor/shift/multiply rounds; the 32-bit output is
  divided by 2**32.

Python's ``random.Random`` is not used: its stream differs from the
reference Mulberry32 sequence and seeded runs must match it draw for
draw.

Example
-------
>>> rng = create_rng("RUN-001")
>>> x = rng()
>>> 0.0 <= x < 1.0
True
"""

from __future__ import annotations

from typing import Callable, Union

__all__ = [
    "Mulberry32",
    "RandomSource",
    "create_rng",
    "hash_string_to_int",
    "sum_uniform_noise",
]

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_TWO_POW_32 = 4294967296.0

RandomSource = Callable[[], float]
"""Anything returning a uniform float in [0, 1) when called."""


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply (unsigned representation)."""
    return (a * b) & _MASK32


def hash_string_to_int(text: str) -> int:
    """FNV-1a hash of *text* over its UTF-16 code units, as uint32."""
    h = _FNV_OFFSET
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = _imul(h, _FNV_PRIME)
    return h


def _seed_to_state(seed: Union[str, int, float]) -> int:
    if isinstance(seed, str):
        return hash_string_to_int(seed)
    # Floats truncate toward zero before wrapping, like a uint32 cast
    return int(seed) % (_MASK32 + 1)


class Mulberry32:
    """
    Mulberry32 generator; calling the instance returns the next float.

    Parameters
    ----------
    seed : str or int
        Run seed. Strings are hashed, integers wrap modulo 2**32.

    Attributes
    ----------
    state : int
        Current 32-bit state. Persisting it and passing it to
        ``Mulberry32.from_state`` resumes the stream exactly.
    calls : int
        Number of draws taken so far.
    """

    __slots__ = ("seed", "state", "calls")

    def __init__(self, seed: Union[str, int]):
        self.seed = seed
        self.state = _seed_to_state(seed)
        self.calls = 0

    @classmethod
    def from_state(cls, seed: Union[str, int], state: int, calls: int = 0) -> "Mulberry32":
        rng = cls(seed)
        rng.state = int(state) & _MASK32
        rng.calls = int(calls)
        return rng

    def next_uint32(self) -> int:
        self.state = (self.state + _INCREMENT) & _MASK32
        self.calls += 1
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return (t ^ (t >> 14)) & _MASK32

    def __call__(self) -> float:
        return self.next_uint32() / _TWO_POW_32

    def __repr__(self) -> str:
        return f"Mulberry32(seed={self.seed!r}, state={self.state}, calls={self.calls})"


def create_rng(seed: Union[str, int]) -> Mulberry32:
    """Create the shared random stream for one run."""
    return Mulberry32(seed)


def sum_uniform_noise(rng: RandomSource) -> float:
    """Bell-shaped noise in [-1, 1] from four draws: (r1+r2+r3+r4 - 2) / 2."""
    return (rng() + rng() + rng() + rng() - 2) / 2
