"""Rebuild polity state at any year from snapshots plus yearly deltas."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Sequence

from ..state import Delta, OwnerLayer, PolityState, Snapshot, TerritorialChange, copy_polities
from ..world.ranges import add_cells, expand_ranges, remove_cells
from .snapshots import owner_rle_from_polities


def select_snapshot(snapshots: Sequence[Snapshot], year: int) -> Snapshot:
    """Latest snapshot at or before ``year``; the earliest one when none qualifies."""

    if not snapshots:
        raise ValueError("cannot reconstruct history without at least one snapshot")
    chosen: Snapshot | None = None
    for snapshot in snapshots:
        if snapshot.year <= year and (chosen is None or snapshot.year > chosen.year):
            chosen = snapshot
    if chosen is None:
        chosen = min(snapshots, key=lambda snap: snap.year)
    return chosen


def apply_delta(
    polities: Mapping[str, PolityState],
    delta: Delta,
    changes_by_id: Mapping[str, TerritorialChange],
) -> None:
    for update in delta.polity_updates:
        polity = polities.get(update.polity_id)
        if polity is None:
            continue
        polity.stats.apply_delta(update.stats_delta)
    for change_id in delta.territorial_change_ids:
        change = changes_by_id.get(change_id)
        if change is None:
            continue
        moved = expand_ranges(change.regions)
        winner = polities.get(change.winner_polity_id or "")
        loser = polities.get(change.loser_polity_id or "")
        if winner is not None:
            winner.territory = add_cells(winner.territory, moved)
        if loser is not None:
            loser.territory = remove_cells(loser.territory, moved)


def replay(
    start: Iterable[PolityState],
    deltas: Iterable[Delta],
    changes: Iterable[TerritorialChange],
    *,
    after_year: int | None,
    through_year: int,
) -> Iterator[tuple[int, list[PolityState]]]:
    """Apply deltas with ``after_year < year <= through_year`` in year order.

    Yields ``(year, polities)`` after each applied delta.  The yielded list is
    the live working copy, so consumers that keep it must copy it.
    """

    states = copy_polities(start)
    by_id = {polity.id: polity for polity in states}
    changes_by_id = {change.id: change for change in changes}
    for delta in sorted(deltas, key=lambda d: d.year):
        if delta.year > through_year:
            break
        if after_year is not None and delta.year <= after_year:
            continue
        apply_delta(by_id, delta, changes_by_id)
        yield delta.year, states


def reconstruct_polities(
    snapshots: Sequence[Snapshot],
    deltas: Sequence[Delta],
    changes: Sequence[TerritorialChange],
    target_year: int,
) -> list[PolityState]:
    snapshot = select_snapshot(snapshots, target_year)
    states = copy_polities(snapshot.polity_states)
    # A snapshot already includes its own year's delta.
    after = snapshot.year if snapshot.year <= target_year else None
    for _, current in replay(states, deltas, changes, after_year=after, through_year=target_year):
        states = current
    return copy_polities(states)


def reconstruct_owner_layer(
    snapshots: Sequence[Snapshot],
    deltas: Sequence[Delta],
    changes: Sequence[TerritorialChange],
    target_year: int,
) -> tuple[OwnerLayer, ...]:
    return owner_rle_from_polities(reconstruct_polities(snapshots, deltas, changes, target_year))


def replay_stat_series(
    initial: Sequence[PolityState],
    deltas: Sequence[Delta],
    *,
    start_year: int,
    end_year: int,
    keys: Sequence[str],
) -> dict[str, list[dict[str, object]]]:
    """Per-polity stats for every year in ``[start_year, end_year]``.

    Years without a recorded delta repeat the previous values.  ``keys`` are
    wire names (``powerScore``) picked from each year's stats.
    """

    series: dict[str, list[dict[str, object]]] = {polity.id: [] for polity in initial}
    by_year = {delta.year: delta for delta in deltas}
    states = copy_polities(initial)
    by_id = {polity.id: polity for polity in states}
    for year in range(start_year, end_year + 1):
        delta = by_year.get(year)
        if delta is not None:
            apply_delta(by_id, delta, {})
        for polity in states:
            wire = polity.stats.to_dict()
            series[polity.id].append({"year": year, "stats": {key: wire[key] for key in keys}})
    return series


__all__ = [
    "apply_delta",
    "reconstruct_owner_layer",
    "reconstruct_polities",
    "replay",
    "replay_stat_series",
    "select_snapshot",
]
