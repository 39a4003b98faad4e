"""Record types for generated worlds and their simulated history.

Everything here is a plain dataclass.  ``to_dict`` renders the camelCase wire
layout used by ``world.json``; ``from_dict`` reads it back.  Optional fields
are omitted from the wire form when unset so that canonical serialization (and
therefore the world hash) does not depend on how absent values are spelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Iterable, Mapping

from .world.ranges import Range


class PolityType(str, Enum):
    KINGDOM = "kingdom"
    REPUBLIC = "republic"
    EMPIRE = "empire"
    CITY_STATE = "city-state"
    TRIBAL = "tribal"
    FEDERATION = "federation"


class BattleType(str, Enum):
    FIELD = "FIELD"
    SIEGE = "SIEGE"
    NAVAL = "NAVAL"


class BattleResult(str, Enum):
    A_VICTORY = "A_VICTORY"
    B_VICTORY = "B_VICTORY"
    INDECISIVE = "INDECISIVE"


class WarOutcome(str, Enum):
    A_WIN = "A_WIN"
    B_WIN = "B_WIN"
    DRAW = "DRAW"
    WHITE_PEACE = "WHITE_PEACE"


class ChangeType(str, Enum):
    ANNEXATION_PARTIAL = "ANNEXATION_PARTIAL"
    ABSORBED_FULL = "ABSORBED_FULL"
    VASSALIZED = "VASSALIZED"
    SECESSION = "SECESSION"
    COLONIZATION = "COLONIZATION"
    UNION = "UNION"


class EventType(str, Enum):
    WAR_DECLARED = "WAR_DECLARED"
    WAR_ENDED = "WAR_ENDED"


def _ranges_to_list(ranges: Iterable[Range]) -> list[dict[str, int]]:
    return [rng.to_dict() for rng in ranges]


def _ranges_from_list(payload: Iterable[Mapping[str, object]]) -> list[Range]:
    return [Range.from_dict(item) for item in payload]


# ---------------------------------------------------------------------------
# Polities
# ---------------------------------------------------------------------------


STAT_KEYS: dict[str, str] = {
    "population": "population",
    "gdp": "gdp",
    "tech_level": "techLevel",
    "industrial_capacity": "industrialCapacity",
    "resource_security": "resourceSecurity",
    "military": "military",
    "naval_projection": "navalProjection",
    "stability": "stability",
    "legitimacy": "legitimacy",
    "logistics": "logistics",
    "power_score": "powerScore",
}
WIRE_TO_STAT = {wire: attr for attr, wire in STAT_KEYS.items()}


@dataclass(slots=True)
class PolityStats:
    population: float = 0.0
    gdp: float = 0.0
    tech_level: float = 0.0
    industrial_capacity: float = 0.0
    resource_security: float = 0.0
    military: float = 0.0
    naval_projection: float = 0.0
    stability: float = 0.0
    legitimacy: float = 0.0
    logistics: float = 0.0
    power_score: float = 0.0

    def copy(self) -> "PolityStats":
        return PolityStats(**{f.name: getattr(self, f.name) for f in fields(self)})

    def apply_delta(self, delta: Mapping[str, float]) -> None:
        """Add signed increments keyed by wire name (``techLevel``) or attribute name."""

        for key, value in delta.items():
            attr = WIRE_TO_STAT.get(key, key)
            if attr not in STAT_KEYS:
                raise KeyError(f"Unknown polity stat {key!r}")
            setattr(self, attr, getattr(self, attr) + float(value))

    def diff(self, before: "PolityStats") -> dict[str, float]:
        """Signed per-field change relative to ``before``, only for changed fields."""

        changed: dict[str, float] = {}
        for attr, wire in STAT_KEYS.items():
            delta = getattr(self, attr) - getattr(before, attr)
            if delta != 0:
                changed[wire] = delta
        return changed

    def to_dict(self) -> dict[str, float]:
        return {wire: getattr(self, attr) for attr, wire in STAT_KEYS.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "PolityStats":
        return cls(**{attr: float(payload.get(wire, 0.0)) for attr, wire in STAT_KEYS.items()})


@dataclass(slots=True)
class PolityState:
    id: str
    name: str
    type: PolityType
    capital_city_id: str
    culture_group_ids: list[str]
    stats: PolityStats
    territory: list[Range] = field(default_factory=list)

    def copy(self) -> "PolityState":
        return PolityState(
            id=self.id,
            name=self.name,
            type=self.type,
            capital_city_id=self.capital_city_id,
            culture_group_ids=list(self.culture_group_ids),
            stats=self.stats.copy(),
            territory=list(self.territory),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "capitalCityId": self.capital_city_id,
            "cultureGroupIds": list(self.culture_group_ids),
            "stats": self.stats.to_dict(),
            "territory": {"cellIdsCompressed": _ranges_to_list(self.territory)},
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PolityState":
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            type=PolityType(payload["type"]),
            capital_city_id=str(payload["capitalCityId"]),
            culture_group_ids=[str(c) for c in payload.get("cultureGroupIds", [])],
            stats=PolityStats.from_dict(payload["stats"]),
            territory=_ranges_from_list(payload.get("territory", {}).get("cellIdsCompressed", [])),
        )


def copy_polities(polities: Iterable[PolityState]) -> list[PolityState]:
    return [polity.copy() for polity in polities]


# ---------------------------------------------------------------------------
# Wars, treaties, territorial changes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Battle:
    id: str
    year: int
    location_cell_id: int
    type: BattleType
    result: BattleResult
    casualties_a: int
    casualties_b: int
    factors: list[str] = field(default_factory=list)
    explanation: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "year": self.year,
            "locationCellId": self.location_cell_id,
            "type": self.type.value,
            "result": self.result.value,
            "casualtiesEstimate": {"A": self.casualties_a, "B": self.casualties_b},
            "factors": list(self.factors),
            "explanation": list(self.explanation),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Battle":
        casualties = payload.get("casualtiesEstimate", {})
        return cls(
            id=str(payload["id"]),
            year=int(payload["year"]),
            location_cell_id=int(payload["locationCellId"]),
            type=BattleType(payload["type"]),
            result=BattleResult(payload["result"]),
            casualties_a=int(casualties.get("A", 0)),
            casualties_b=int(casualties.get("B", 0)),
            factors=list(payload.get("factors", [])),
            explanation=list(payload.get("explanation", [])),
        )


@dataclass(slots=True)
class WarSides:
    a: list[str]
    b: list[str]

    def primary(self, outcome: WarOutcome) -> tuple[str, str]:
        """(winner, loser) primary polity ids for a decisive outcome."""

        if outcome is WarOutcome.A_WIN:
            return self.a[0], self.b[0]
        if outcome is WarOutcome.B_WIN:
            return self.b[0], self.a[0]
        raise ValueError(f"Outcome {outcome.value} has no winner")


@dataclass(slots=True)
class War:
    id: str
    name: str
    start_year: int
    sides: WarSides
    battles: list[Battle] = field(default_factory=list)
    outcome: WarOutcome = WarOutcome.DRAW
    end_year: int | None = None
    treaty_id: str | None = None
    territorial_changes: list[str] = field(default_factory=list)
    explanation: list[str] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.end_year is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "startYear": self.start_year,
            "sides": {"A": list(self.sides.a), "B": list(self.sides.b)},
            "battles": [battle.to_dict() for battle in self.battles],
            "outcome": self.outcome.value,
            "territorialChanges": list(self.territorial_changes),
            "explanation": list(self.explanation),
        }
        if self.end_year is not None:
            payload["endYear"] = self.end_year
        if self.treaty_id is not None:
            payload["treatyId"] = self.treaty_id
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "War":
        sides = payload.get("sides", {})
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            start_year=int(payload["startYear"]),
            sides=WarSides(a=list(sides.get("A", [])), b=list(sides.get("B", []))),
            battles=[Battle.from_dict(b) for b in payload.get("battles", [])],
            outcome=WarOutcome(payload.get("outcome", WarOutcome.DRAW.value)),
            end_year=payload.get("endYear"),
            treaty_id=payload.get("treatyId"),
            territorial_changes=list(payload.get("territorialChanges", [])),
            explanation=list(payload.get("explanation", [])),
        )


@dataclass(frozen=True, slots=True)
class Treaty:
    id: str
    name: str
    year: int
    participants: tuple[str, ...]
    terms: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "participants": list(self.participants),
            "terms": list(self.terms),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Treaty":
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            year=int(payload["year"]),
            participants=tuple(payload.get("participants", [])),
            terms=tuple(payload.get("terms", [])),
        )


@dataclass(frozen=True, slots=True)
class TerritorialChange:
    id: str
    year: int
    type: ChangeType
    regions: tuple[Range, ...]
    reason: str
    winner_polity_id: str | None = None
    loser_polity_id: str | None = None
    linked_war_id: str | None = None
    treaty_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "year": self.year,
            "type": self.type.value,
            "regionsTransferredCompressed": _ranges_to_list(self.regions),
            "reason": self.reason,
        }
        optional = {
            "winnerPolityId": self.winner_polity_id,
            "loserPolityId": self.loser_polity_id,
            "linkedWarId": self.linked_war_id,
            "treatyId": self.treaty_id,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TerritorialChange":
        return cls(
            id=str(payload["id"]),
            year=int(payload["year"]),
            type=ChangeType(payload["type"]),
            regions=tuple(_ranges_from_list(payload.get("regionsTransferredCompressed", []))),
            reason=str(payload.get("reason", "")),
            winner_polity_id=payload.get("winnerPolityId"),
            loser_polity_id=payload.get("loserPolityId"),
            linked_war_id=payload.get("linkedWarId"),
            treaty_id=payload.get("treatyId"),
        )


# ---------------------------------------------------------------------------
# Narrative events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EventCause:
    key: str
    weight: float
    ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"key": self.key, "weight": self.weight}
        if self.ref is not None:
            payload["ref"] = self.ref
        return payload


@dataclass(frozen=True, slots=True)
class EventRefs:
    war_id: str | None = None
    treaty_id: str | None = None
    change_id: str | None = None
    battle_id: str | None = None

    def to_dict(self) -> dict[str, str]:
        raw = {
            "warId": self.war_id,
            "treatyId": self.treaty_id,
            "changeId": self.change_id,
            "battleId": self.battle_id,
        }
        return {key: value for key, value in raw.items() if value is not None}


@dataclass(frozen=True, slots=True)
class TimelineEvent:
    id: str
    year: int
    type: EventType
    title: str
    primary: tuple[str, ...]
    secondary: tuple[str, ...] = ()
    causes: tuple[EventCause, ...] = ()
    effects: tuple[str, ...] = ()
    explanation: tuple[str, ...] = ()
    refs: EventRefs = EventRefs()

    @property
    def actors(self) -> tuple[str, ...]:
        return (*self.primary, *self.secondary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "year": self.year,
            "type": self.type.value,
            "title": self.title,
            "actors": {"primary": list(self.primary), "secondary": list(self.secondary)},
            "causes": [cause.to_dict() for cause in self.causes],
            "effects": list(self.effects),
            "explanation": list(self.explanation),
            "refs": self.refs.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TimelineEvent":
        actors = payload.get("actors", {})
        refs = payload.get("refs", {})
        return cls(
            id=str(payload["id"]),
            year=int(payload["year"]),
            type=EventType(payload["type"]),
            title=str(payload["title"]),
            primary=tuple(actors.get("primary", [])),
            secondary=tuple(actors.get("secondary", []) or []),
            causes=tuple(
                EventCause(key=str(c["key"]), weight=float(c["weight"]), ref=c.get("ref"))
                for c in payload.get("causes", [])
            ),
            effects=tuple(payload.get("effects", [])),
            explanation=tuple(payload.get("explanation", [])),
            refs=EventRefs(
                war_id=refs.get("warId"),
                treaty_id=refs.get("treatyId"),
                change_id=refs.get("changeId"),
                battle_id=refs.get("battleId"),
            ),
        )


# ---------------------------------------------------------------------------
# Timeline: deltas and snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PolityUpdate:
    polity_id: str
    stats_delta: Mapping[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {"polityId": self.polity_id, "statsDelta": dict(self.stats_delta)}


@dataclass(frozen=True, slots=True)
class Delta:
    year: int
    polity_updates: tuple[PolityUpdate, ...]
    territorial_change_ids: tuple[str, ...]
    event_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "polityUpdates": [update.to_dict() for update in self.polity_updates],
            "territorialChangeIds": list(self.territorial_change_ids),
            "events": list(self.event_ids),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Delta":
        return cls(
            year=int(payload["year"]),
            polity_updates=tuple(
                PolityUpdate(polity_id=str(u["polityId"]), stats_delta=dict(u.get("statsDelta", {})))
                for u in payload.get("polityUpdates", [])
            ),
            territorial_change_ids=tuple(payload.get("territorialChangeIds", [])),
            event_ids=tuple(payload.get("events", [])),
        )


@dataclass(frozen=True, slots=True)
class OwnerLayer:
    owner: str
    ranges: tuple[Range, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"owner": self.owner, "ranges": _ranges_to_list(self.ranges)}


@dataclass(frozen=True, slots=True)
class Snapshot:
    year: int
    polity_states: tuple[PolityState, ...]
    owners: tuple[OwnerLayer, ...]
    alliances: tuple[tuple[str, ...], ...] = ()

    def polity(self, polity_id: str) -> PolityState | None:
        for polity in self.polity_states:
            if polity.id == polity_id:
                return polity
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "polityStates": [polity.to_dict() for polity in self.polity_states],
            "politicalOwnersRLE": [layer.to_dict() for layer in self.owners],
            "alliances": [list(group) for group in self.alliances],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Snapshot":
        return cls(
            year=int(payload["year"]),
            polity_states=tuple(PolityState.from_dict(p) for p in payload.get("polityStates", [])),
            owners=tuple(
                OwnerLayer(owner=str(layer["owner"]), ranges=tuple(_ranges_from_list(layer.get("ranges", []))))
                for layer in payload.get("politicalOwnersRLE", [])
            ),
            alliances=tuple(tuple(group) for group in payload.get("alliances", [])),
        )


@dataclass(frozen=True, slots=True)
class TimelineIndex:
    snapshots: tuple[Snapshot, ...]
    deltas: tuple[Delta, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "snapshots": [snapshot.to_dict() for snapshot in self.snapshots],
            "deltasBetweenSnapshots": [delta.to_dict() for delta in self.deltas],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TimelineIndex":
        return cls(
            snapshots=tuple(Snapshot.from_dict(s) for s in payload.get("snapshots", [])),
            deltas=tuple(Delta.from_dict(d) for d in payload.get("deltasBetweenSnapshots", [])),
        )


# ---------------------------------------------------------------------------
# Geography and society
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Cell:
    id: int
    x: int
    y: int
    lat: float
    lon: float
    elevation: float
    is_ocean: bool
    biome_id: str
    resource_tags: tuple[str, ...] = ()
    river_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "lat": self.lat,
            "lon": self.lon,
            "elevation": self.elevation,
            "isOcean": self.is_ocean,
            "biomeId": self.biome_id,
            "resourceTags": list(self.resource_tags),
        }
        if self.river_id is not None:
            payload["riverId"] = self.river_id
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Cell":
        return cls(
            id=int(payload["id"]),
            x=int(payload["x"]),
            y=int(payload["y"]),
            lat=float(payload["lat"]),
            lon=float(payload["lon"]),
            elevation=float(payload["elevation"]),
            is_ocean=bool(payload["isOcean"]),
            biome_id=str(payload["biomeId"]),
            resource_tags=tuple(payload.get("resourceTags", [])),
            river_id=payload.get("riverId"),
        )


@dataclass(frozen=True, slots=True)
class Continent:
    id: str
    name: str
    cell_ids: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "cellIds": list(self.cell_ids)}


@dataclass(frozen=True, slots=True)
class CultureGroup:
    id: str
    name: str
    traits: Mapping[str, float]
    core_region_ids: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "traits": dict(self.traits),
            "coreRegionIds": list(self.core_region_ids),
        }


@dataclass(frozen=True, slots=True)
class City:
    id: str
    name: str
    cell_id: int
    population: int
    coastal: bool
    river: bool
    culture_group_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cellId": self.cell_id,
            "population": self.population,
            "coastal": self.coastal,
            "river": self.river,
            "cultureGroupId": self.culture_group_id,
        }


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Era:
    name: str
    start: int
    end: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "start": self.start, "end": self.end, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class WorldSummary:
    top_powers_by_decade: tuple[tuple[int, tuple[tuple[str, float], ...]], ...]
    totals: Mapping[str, int]
    eras: tuple[Era, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "topPowersByDecade": [
                {"decade": decade, "top": [{"id": pid, "powerScore": score} for pid, score in top]}
                for decade, top in self.top_powers_by_decade
            ],
            "totals": dict(self.totals),
            "eras": [era.to_dict() for era in self.eras],
        }


@dataclass(frozen=True, slots=True)
class WorldMeta:
    seed: int
    config_hash: str
    created_at_iso: str
    start_year: int
    end_year: int
    version: str
    summary: WorldSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "seed": self.seed,
            "configHash": self.config_hash,
            "createdAtIso": self.created_at_iso,
            "startYear": self.start_year,
            "endYear": self.end_year,
            "tick": "year",
            "version": self.version,
        }
        if self.summary is not None:
            payload["summary"] = self.summary.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class PlanetInfo:
    radius_km: float
    ocean_coverage: float
    map_width: int
    map_height: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "radiusKm": self.radius_km,
            "oceanCoverage": self.ocean_coverage,
            "mapWidth": self.map_width,
            "mapHeight": self.map_height,
        }


@dataclass(frozen=True, slots=True)
class WorldBundle:
    meta: WorldMeta
    planet: PlanetInfo
    cells: tuple[Cell, ...]
    continents: tuple[Continent, ...]
    culture_groups: tuple[CultureGroup, ...]
    cities: tuple[City, ...]
    polities_initial: tuple[PolityState, ...]
    timeline: TimelineIndex
    events: tuple[TimelineEvent, ...]
    wars: tuple[War, ...]
    treaties: tuple[Treaty, ...]
    territorial_changes: tuple[TerritorialChange, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "planet": self.planet.to_dict(),
            "cells": [cell.to_dict() for cell in self.cells],
            "continents": [c.to_dict() for c in self.continents],
            "cultureGroups": [c.to_dict() for c in self.culture_groups],
            "cities": [c.to_dict() for c in self.cities],
            "politiesInitial": [p.to_dict() for p in self.polities_initial],
            "timelineIndex": self.timeline.to_dict(),
            "events": [e.to_dict() for e in self.events],
            "wars": [w.to_dict() for w in self.wars],
            "treaties": [t.to_dict() for t in self.treaties],
            "territorialChanges": [c.to_dict() for c in self.territorial_changes],
        }


def world_from_dict(payload: Mapping[str, Any]) -> WorldBundle:
    """Rebuild a bundle from its ``world.json`` form."""

    meta = payload["meta"]
    summary_payload = meta.get("summary")
    summary = None
    if summary_payload:
        summary = WorldSummary(
            top_powers_by_decade=tuple(
                (
                    int(row["decade"]),
                    tuple((str(item["id"]), float(item["powerScore"])) for item in row.get("top", [])),
                )
                for row in summary_payload.get("topPowersByDecade", [])
            ),
            totals={str(k): int(v) for k, v in summary_payload.get("totals", {}).items()},
            eras=tuple(
                Era(name=str(e["name"]), start=int(e["start"]), end=int(e["end"]), reason=str(e["reason"]))
                for e in summary_payload.get("eras", [])
            ),
        )
    planet = payload["planet"]
    return WorldBundle(
        meta=WorldMeta(
            seed=int(meta["seed"]),
            config_hash=str(meta["configHash"]),
            created_at_iso=str(meta["createdAtIso"]),
            start_year=int(meta["startYear"]),
            end_year=int(meta["endYear"]),
            version=str(meta["version"]),
            summary=summary,
        ),
        planet=PlanetInfo(
            radius_km=float(planet["radiusKm"]),
            ocean_coverage=float(planet["oceanCoverage"]),
            map_width=int(planet["mapWidth"]),
            map_height=int(planet["mapHeight"]),
        ),
        cells=tuple(Cell.from_dict(c) for c in payload.get("cells", [])),
        continents=tuple(
            Continent(id=str(c["id"]), name=str(c["name"]), cell_ids=tuple(c.get("cellIds", [])))
            for c in payload.get("continents", [])
        ),
        culture_groups=tuple(
            CultureGroup(
                id=str(c["id"]),
                name=str(c["name"]),
                traits={str(k): float(v) for k, v in c.get("traits", {}).items()},
                core_region_ids=tuple(c.get("coreRegionIds", [])),
            )
            for c in payload.get("cultureGroups", [])
        ),
        cities=tuple(
            City(
                id=str(c["id"]),
                name=str(c["name"]),
                cell_id=int(c["cellId"]),
                population=int(c["population"]),
                coastal=bool(c["coastal"]),
                river=bool(c["river"]),
                culture_group_id=str(c["cultureGroupId"]),
            )
            for c in payload.get("cities", [])
        ),
        polities_initial=tuple(PolityState.from_dict(p) for p in payload.get("politiesInitial", [])),
        timeline=TimelineIndex.from_dict(payload.get("timelineIndex", {})),
        events=tuple(TimelineEvent.from_dict(e) for e in payload.get("events", [])),
        wars=tuple(War.from_dict(w) for w in payload.get("wars", [])),
        treaties=tuple(Treaty.from_dict(t) for t in payload.get("treaties", [])),
        territorial_changes=tuple(TerritorialChange.from_dict(c) for c in payload.get("territorialChanges", [])),
    )


__all__ = [
    "Battle",
    "BattleResult",
    "BattleType",
    "ChangeType",
    "City",
    "Cell",
    "Continent",
    "CultureGroup",
    "Delta",
    "Era",
    "EventCause",
    "EventRefs",
    "EventType",
    "OwnerLayer",
    "PlanetInfo",
    "PolityState",
    "PolityStats",
    "PolityType",
    "PolityUpdate",
    "STAT_KEYS",
    "Snapshot",
    "TerritorialChange",
    "TimelineEvent",
    "TimelineIndex",
    "Treaty",
    "War",
    "WarOutcome",
    "WarSides",
    "WorldBundle",
    "WorldMeta",
    "WorldSummary",
    "copy_polities",
    "world_from_dict",
]
