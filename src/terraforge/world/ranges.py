"""Closed-interval encoding for sets of grid-cell ids.

A range set is a list of :class:`Range` sorted by ``start`` with no overlaps
and no adjacency (``end + 1 < next.start``).  All helpers return new lists and
leave their inputs untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import chain
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class Range:
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, cell_id: object) -> bool:
        return isinstance(cell_id, int) and self.start <= cell_id <= self.end

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Range":
        return cls(start=int(payload["start"]), end=int(payload["end"]))


def compress_ranges(ids: Iterable[int]) -> list[Range]:
    ordered = sorted(set(int(i) for i in ids))
    if not ordered:
        return []
    ranges: list[Range] = []
    start = prev = ordered[0]
    for current in ordered[1:]:
        if current == prev + 1:
            prev = current
            continue
        ranges.append(Range(start, prev))
        start = prev = current
    ranges.append(Range(start, prev))
    return ranges


def expand_ranges(ranges: Iterable[Range]) -> list[int]:
    ids: list[int] = []
    for rng in ranges:
        ids.extend(range(rng.start, rng.end + 1))
    return ids


def merge_ranges(ranges: Iterable[Range]) -> list[Range]:
    """Union of arbitrary ranges; overlapping or touching intervals coalesce."""

    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    if not ordered:
        return []
    merged: list[Range] = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end + 1:
            if current.end > last.end:
                merged[-1] = Range(last.start, current.end)
            continue
        merged.append(current)
    return merged


def union_range_sets(range_sets: Iterable[Sequence[Range]]) -> list[Range]:
    return merge_ranges(chain.from_iterable(range_sets))


def add_cells(ranges: Sequence[Range], ids: Iterable[int]) -> list[Range]:
    return merge_ranges(chain(ranges, compress_ranges(ids)))


def remove_cells(ranges: Sequence[Range], ids: Iterable[int]) -> list[Range]:
    dropped = set(ids)
    if not dropped:
        return list(ranges)
    return compress_ranges(cell for cell in expand_ranges(ranges) if cell not in dropped)


def count_cells(ranges: Iterable[Range]) -> int:
    return sum(len(rng) for rng in ranges)


def contains_cell(ranges: Sequence[Range], cell_id: int) -> bool:
    lo, hi = 0, len(ranges) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        rng = ranges[mid]
        if cell_id < rng.start:
            hi = mid - 1
        elif cell_id > rng.end:
            lo = mid + 1
        else:
            return True
    return False


def is_canonical(ranges: Sequence[Range]) -> bool:
    for idx, rng in enumerate(ranges):
        if rng.end < rng.start:
            return False
        if idx and ranges[idx - 1].end + 1 >= rng.start:
            return False
    return True


__all__ = [
    "Range",
    "add_cells",
    "compress_ranges",
    "contains_cell",
    "count_cells",
    "expand_ranges",
    "is_canonical",
    "merge_ranges",
    "remove_cells",
    "union_range_sets",
]
