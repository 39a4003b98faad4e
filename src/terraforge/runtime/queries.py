"""Read-only views over a generated world, reconstructed at any year."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..simulation.reconstruction import reconstruct_owner_layer, reconstruct_polities, select_snapshot
from ..state import (
    OwnerLayer,
    PolityState,
    Snapshot,
    TerritorialChange,
    TimelineEvent,
    Treaty,
    War,
    WorldBundle,
    WorldMeta,
)
from .indexes import SearchResult, WorldIndexes, build_world_indexes, search_world_indexes


class NotFoundError(LookupError):
    """Raised when a query names a polity, war, treaty or change that does not exist."""


@dataclass(frozen=True, slots=True)
class YearSummary:
    year: int
    events: int
    changes: int
    battles: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "counts": {"events": self.events, "changes": self.changes, "battles": self.battles},
        }


@dataclass(frozen=True, slots=True)
class PolityHistory:
    polity_id: str
    events: tuple[TimelineEvent, ...]
    changes: tuple[TerritorialChange, ...]
    stats_series: tuple[dict[str, object], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "polityId": self.polity_id,
            "events": [event.to_dict() for event in self.events],
            "changes": [change.to_dict() for change in self.changes],
            "statsSeries": list(self.stats_series),
        }


class WorldQueries:
    def __init__(self, world: WorldBundle, indexes: Optional[WorldIndexes] = None) -> None:
        self.world = world
        self._indexes = indexes
        self._treaties = {treaty.id: treaty for treaty in world.treaties}

    @property
    def indexes(self) -> WorldIndexes:
        if self._indexes is None:
            self._indexes = build_world_indexes(self.world)
        return self._indexes

    def _span(self, from_year: Optional[int], to_year: Optional[int]) -> tuple[int, int]:
        meta = self.world.meta
        low = meta.start_year if from_year is None else from_year
        high = meta.end_year if to_year is None else to_year
        return low, high

    def meta(self) -> WorldMeta:
        return self.world.meta

    def snapshot_at(self, year: int) -> Snapshot:
        return select_snapshot(self.world.timeline.snapshots, year)

    def polities_at(self, year: int, sort: Optional[str] = None, limit: Optional[int] = None) -> list[PolityState]:
        timeline = self.world.timeline
        polities = reconstruct_polities(timeline.snapshots, timeline.deltas, self.world.territorial_changes, year)
        if sort == "powerScore":
            polities.sort(key=lambda p: (-p.stats.power_score, p.id))
        elif sort is not None:
            raise ValueError(f"unsupported sort key {sort!r}")
        if limit is not None:
            polities = polities[: max(0, limit)]
        return polities

    def polity_at(self, polity_id: str, year: int) -> PolityState:
        for polity in self.polities_at(year):
            if polity.id == polity_id:
                return polity
        raise NotFoundError(f"polity {polity_id!r} not found")

    def owner_layer_at(self, year: int) -> tuple[OwnerLayer, ...]:
        timeline = self.world.timeline
        return reconstruct_owner_layer(timeline.snapshots, timeline.deltas, self.world.territorial_changes, year)

    def timeline(
        self,
        from_year: Optional[int] = None,
        to_year: Optional[int] = None,
        event_type: Optional[str] = None,
    ) -> list[TimelineEvent]:
        low, high = self._span(from_year, to_year)
        return [
            event
            for event in self.world.events
            if low <= event.year <= high and (event_type is None or event.type.value == event_type)
        ]

    def war(self, war_id: str) -> War:
        war = self.indexes.wars_by_id.get(war_id)
        if war is None:
            raise NotFoundError(f"war {war_id!r} not found")
        return war

    def treaty(self, treaty_id: str) -> Treaty:
        treaty = self._treaties.get(treaty_id)
        if treaty is None:
            raise NotFoundError(f"treaty {treaty_id!r} not found")
        return treaty

    def change(self, change_id: str) -> TerritorialChange:
        change = self.indexes.changes_by_id.get(change_id)
        if change is None:
            raise NotFoundError(f"territorial change {change_id!r} not found")
        return change

    def changes(self, from_year: Optional[int] = None, to_year: Optional[int] = None) -> list[TerritorialChange]:
        low, high = self._span(from_year, to_year)
        by_id = self.indexes.changes_by_id
        return [
            by_id[change_id]
            for year in sorted(self.indexes.changes_by_year)
            if low <= year <= high
            for change_id in self.indexes.changes_by_year[year]
        ]

    def year_summaries(self, from_year: Optional[int] = None, to_year: Optional[int] = None) -> list[YearSummary]:
        low, high = self._span(from_year, to_year)
        battles: dict[int, int] = {}
        for war in self.world.wars:
            for battle in war.battles:
                battles[battle.year] = battles.get(battle.year, 0) + 1
        idx = self.indexes
        return [
            YearSummary(
                year=year,
                events=len(idx.events_by_year.get(year, [])),
                changes=len(idx.changes_by_year.get(year, [])),
                battles=battles.get(year, 0),
            )
            for year in range(low, high + 1)
        ]

    def polity_history(
        self,
        polity_id: str,
        from_year: Optional[int] = None,
        to_year: Optional[int] = None,
    ) -> PolityHistory:
        idx = self.indexes
        if polity_id not in idx.polity_stats_series:
            raise NotFoundError(f"polity {polity_id!r} not found")
        low, high = self._span(from_year, to_year)
        events = tuple(
            idx.events_by_id[event_id]
            for event_id in idx.events_by_polity.get(polity_id, [])
            if low <= idx.events_by_id[event_id].year <= high
        )
        changes = tuple(
            idx.changes_by_id[change_id]
            for change_id in idx.changes_by_polity.get(polity_id, [])
            if low <= idx.changes_by_id[change_id].year <= high
        )
        series = tuple(point for point in idx.polity_stats_series[polity_id] if low <= point["year"] <= high)
        return PolityHistory(polity_id=polity_id, events=events, changes=changes, stats_series=series)

    def search(self, query: str, limit: int = 20) -> list[SearchResult]:
        return search_world_indexes(self.indexes, query, limit)


__all__ = ["NotFoundError", "PolityHistory", "WorldQueries", "YearSummary"]
