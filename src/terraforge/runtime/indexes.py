"""Read-side indexes over a finished world: time lookups, search, stat series."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any

from ..simulation.reconstruction import replay_stat_series
from ..state import TerritorialChange, TimelineEvent, War, WorldBundle

SERIES_KEYS = ("powerScore", "population", "gdp", "techLevel", "stability", "military")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class SearchResult:
    kind: str
    id: str
    year: int | None
    title: str
    snippet: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "id": self.id, "year": self.year, "title": self.title}
        if self.snippet is not None:
            payload["snippet"] = self.snippet
        return payload


@dataclass(frozen=True, slots=True)
class SearchEntry:
    result: SearchResult
    tokens: tuple[str, ...]
    haystack: str


@dataclass(slots=True)
class WorldIndexes:
    events_by_year: dict[int, list[str]] = field(default_factory=dict)
    events_by_polity: dict[str, list[str]] = field(default_factory=dict)
    events_by_type: dict[str, list[str]] = field(default_factory=dict)
    changes_by_year: dict[int, list[str]] = field(default_factory=dict)
    changes_by_polity: dict[str, list[str]] = field(default_factory=dict)
    events_by_id: dict[str, TimelineEvent] = field(default_factory=dict)
    changes_by_id: dict[str, TerritorialChange] = field(default_factory=dict)
    wars_by_id: dict[str, War] = field(default_factory=dict)
    search_entries: list[SearchEntry] = field(default_factory=list)
    search_tokens: dict[str, list[int]] = field(default_factory=dict)
    polity_stats_series: dict[str, list[dict[str, object]]] = field(default_factory=dict)


def tokenize(value: str) -> list[str]:
    return [token for token in _NON_ALNUM.split(value.lower()) if token]


def _unique(tokens: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(tokens))


def _entry(kind: str, ident: str, year: int | None, title: str, haystack: str, snippet: str | None) -> SearchEntry:
    haystack = haystack.strip()
    return SearchEntry(
        result=SearchResult(kind=kind, id=ident, year=year, title=title, snippet=snippet),
        tokens=_unique(tokenize(haystack)),
        haystack=haystack.lower(),
    )


def build_world_indexes(world: WorldBundle) -> WorldIndexes:
    indexes = WorldIndexes(
        events_by_id={event.id: event for event in world.events},
        changes_by_id={change.id: change for change in world.territorial_changes},
        wars_by_id={war.id: war for war in world.wars},
    )
    entries = indexes.search_entries

    for event in world.events:
        indexes.events_by_year.setdefault(event.year, []).append(event.id)
        indexes.events_by_type.setdefault(event.type.value, []).append(event.id)
        for polity_id in event.actors:
            indexes.events_by_polity.setdefault(polity_id, []).append(event.id)
        haystack = f"{event.title} {' '.join(event.explanation)} {event.id}"
        snippet = event.explanation[0] if event.explanation else None
        entries.append(_entry("event", event.id, event.year, event.title, haystack, snippet))

    for polity in world.polities_initial:
        entries.append(_entry("polity", polity.id, None, polity.name, f"{polity.name} {polity.id}", polity.name))

    for war in world.wars:
        snippet = war.explanation[0] if war.explanation else None
        entries.append(_entry("war", war.id, war.start_year, war.name, f"{war.name} {war.id}", snippet))

    for change in world.territorial_changes:
        title = f"{change.type.value} {change.id}"
        entries.append(_entry("change", change.id, change.year, title, f"{title} {change.reason}", change.reason))
        indexes.changes_by_year.setdefault(change.year, []).append(change.id)
        for polity_id in (change.winner_polity_id, change.loser_polity_id):
            if polity_id:
                indexes.changes_by_polity.setdefault(polity_id, []).append(change.id)

    for position, entry in enumerate(entries):
        for token in entry.tokens:
            indexes.search_tokens.setdefault(token, []).append(position)

    indexes.polity_stats_series = replay_stat_series(
        world.polities_initial,
        world.timeline.deltas,
        start_year=world.meta.start_year,
        end_year=world.meta.end_year,
        keys=SERIES_KEYS,
    )
    return indexes


def _sort_key(result: SearchResult) -> tuple[float, str, str, str]:
    year = math.inf if result.year is None else float(result.year)
    return (year, result.kind, result.title, result.id)


def search_world_indexes(indexes: WorldIndexes, query: str, limit: int = 20) -> list[SearchResult]:
    """Entries containing every query token and the full query as a substring.

    Ordered by year (undated last), then kind, title and id.
    """

    tokens = tokenize(query)
    if not tokens:
        return []
    candidates: list[int] | None = None
    for token in tokens:
        postings = indexes.search_tokens.get(token, [])
        if candidates is None:
            candidates = list(postings)
        else:
            allowed = set(postings)
            candidates = [idx for idx in candidates if idx in allowed]
        if not candidates:
            return []
    needle = query.lower()
    matches = [
        indexes.search_entries[idx].result
        for idx in candidates or []
        if needle in indexes.search_entries[idx].haystack
    ]
    matches.sort(key=_sort_key)
    return matches[: max(0, limit)]


def serialize_world_indexes(indexes: WorldIndexes) -> dict[str, Any]:
    return {
        "eventsByYear": {str(year): list(ids) for year, ids in indexes.events_by_year.items()},
        "eventsByPolity": {pid: list(ids) for pid, ids in indexes.events_by_polity.items()},
        "eventsByType": {kind: list(ids) for kind, ids in indexes.events_by_type.items()},
        "changesByYear": {str(year): list(ids) for year, ids in indexes.changes_by_year.items()},
        "changesByPolity": {pid: list(ids) for pid, ids in indexes.changes_by_polity.items()},
        "searchEntries": [
            {"kind": e.result.kind, "id": e.result.id, "year": e.result.year, "title": e.result.title}
            for e in indexes.search_entries
        ],
        "polityStatsSeries": {pid: list(points) for pid, points in indexes.polity_stats_series.items()},
    }


__all__ = [
    "SERIES_KEYS",
    "SearchResult",
    "WorldIndexes",
    "build_world_indexes",
    "search_world_indexes",
    "serialize_world_indexes",
    "tokenize",
]
