"""Full-state snapshots and the owner RLE layer."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..state import OwnerLayer, PolityState, Snapshot
from ..world.ranges import compress_ranges, expand_ranges


def build_owner_rle(owner_by_cell: Sequence[str]) -> tuple[OwnerLayer, ...]:
    """Group cells by owner; layers appear in first-seen cell order."""

    owners: dict[str, list[int]] = {}
    for idx, owner in enumerate(owner_by_cell):
        if not owner:
            continue
        owners.setdefault(owner, []).append(idx)
    return tuple(OwnerLayer(owner=owner, ranges=tuple(compress_ranges(ids))) for owner, ids in owners.items())


def owner_rle_from_polities(polities: Iterable[PolityState]) -> tuple[OwnerLayer, ...]:
    """Owner layer derived from territories instead of a per-cell owner map."""

    layers: list[tuple[int, OwnerLayer]] = []
    for polity in polities:
        if not polity.territory:
            continue
        layers.append((polity.territory[0].start, OwnerLayer(owner=polity.id, ranges=tuple(polity.territory))))
    layers.sort(key=lambda item: item[0])
    return tuple(layer for _, layer in layers)


def owner_map_from_rle(layers: Iterable[OwnerLayer], cell_count: int) -> list[str]:
    owner_by_cell = [""] * cell_count
    for layer in layers:
        for cell_id in expand_ranges(layer.ranges):
            if owner_by_cell[cell_id]:
                raise ValueError(f"Cell {cell_id} owned by both {owner_by_cell[cell_id]} and {layer.owner}")
            owner_by_cell[cell_id] = layer.owner
    return owner_by_cell


def snapshot_from_state(
    year: int,
    polities: Iterable[PolityState],
    owner_by_cell: Sequence[str],
    alliances: Iterable[Iterable[str]] = (),
) -> Snapshot:
    return Snapshot(
        year=year,
        polity_states=tuple(polity.copy() for polity in polities),
        owners=build_owner_rle(owner_by_cell),
        alliances=tuple(tuple(group) for group in alliances),
    )


class SnapshotManager:
    """Decide snapshot years and collect the captured snapshots.

    A snapshot is due at ``start_year``, every ``every_years`` after it, and
    at ``end_year`` when the cadence does not land on it.  Each year is
    captured at most once.
    """

    def __init__(self, *, start_year: int, end_year: int, every_years: int) -> None:
        if every_years < 1:
            raise ValueError("every_years must be at least 1")
        self.start_year = start_year
        self.end_year = end_year
        self.every_years = every_years
        self._snapshots: List[Snapshot] = []

    def due(self, year: int) -> bool:
        if self._snapshots and self._snapshots[-1].year == year:
            return False
        return (year - self.start_year) % self.every_years == 0 or year == self.end_year

    def capture(
        self,
        year: int,
        polities: Iterable[PolityState],
        owner_by_cell: Sequence[str],
        alliances: Iterable[Iterable[str]] = (),
    ) -> Snapshot:
        snapshot = snapshot_from_state(year, polities, owner_by_cell, alliances)
        self._snapshots.append(snapshot)
        return snapshot

    @property
    def snapshots(self) -> tuple[Snapshot, ...]:
        return tuple(self._snapshots)


__all__ = [
    "SnapshotManager",
    "build_owner_rle",
    "owner_map_from_rle",
    "owner_rle_from_polities",
    "snapshot_from_state",
]
