"""Seeded splitmix64 stream with reproducible forking.

Every random decision in a generated world is a deterministic function of the
root seed plus the history of ``fork`` labels.  The integer constants and the
64-bit wraparound below are part of the on-disk contract: changing any of them
changes every world generated from a given seed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from hashlib import sha256
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")

MASK64 = (1 << 64) - 1
GOLDEN_GAMMA = 0x9E3779B97F4A7C15
MIX_MULT_1 = 0xBF58476D1CE4E5B9
MIX_MULT_2 = 0x94D049BB133111EB
FNV_OFFSET = 2166136261
FNV_PRIME = 16777619
FLOAT_SCALE = float(1 << 53)


def label_hash(label: str) -> int:
    """FNV-style hash of ``label`` over UTF-16 code units, masked to 64 bits."""

    value = FNV_OFFSET
    encoded = label.encode("utf-16-le")
    for idx in range(0, len(encoded), 2):
        unit = encoded[idx] | (encoded[idx + 1] << 8)
        value ^= unit
        value = (value * FNV_PRIME) & MASK64
    return value


@dataclass(slots=True)
class PRNG:
    seed: int
    _state: int = field(init=False, repr=False, default=0)

    def __post_init__(self) -> None:
        state = int(self.seed) & MASK64
        if state == 0:
            state = GOLDEN_GAMMA
        self._state = state

    @property
    def state(self) -> int:
        return self._state

    def next_uint64(self) -> int:
        self._state = (self._state + GOLDEN_GAMMA) & MASK64
        z = self._state
        z = ((z ^ (z >> 30)) * MIX_MULT_1) & MASK64
        z = ((z ^ (z >> 27)) * MIX_MULT_2) & MASK64
        return z ^ (z >> 31)

    def next_float01(self) -> float:
        return (self.next_uint64() >> 11) / FLOAT_SCALE

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high]``; ``low`` when the range is empty."""

        if high <= low:
            return low
        span = high - low + 1
        return low + int(self.next_float01() * span)

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self.next_int(0, len(items) - 1)]

    def fork(self, label: str) -> "PRNG":
        mixed = self.next_uint64() ^ label_hash(label)
        return PRNG(mixed)

    def signature(self) -> str:
        return sha256(f"{self._state:016x}".encode()).hexdigest()[:16]


__all__ = ["MASK64", "PRNG", "label_hash"]
