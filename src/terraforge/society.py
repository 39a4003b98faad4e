"""Seed culture groups, cities, polities and continents on generated terrain.

Names are built from trait-flavoured syllable sets and de-duplicated against
a per-kind registry by appending `` 2``, `` 3``...
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, MutableSet, Sequence

from .runtime.prng import PRNG
from .state import City, Continent, CultureGroup, PolityState, PolityStats, PolityType
from .world.ranges import compress_ranges
from .worldgen import Terrain


TRAIT_KEYS = ("martial", "trade", "seafaring", "agrarian", "nomadic")

SYLLABLES: Mapping[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "martial": (("kr", "dr", "gr", "th", "br"), ("a", "o", "u")),
    "trade": (("l", "m", "n", "s", "v"), ("a", "e", "i", "o")),
    "seafaring": (("s", "h", "r", "t"), ("a", "e", "o", "u")),
    "agrarian": (("b", "d", "g", "k", "p"), ("a", "e", "i")),
    "nomadic": (("q", "z", "x", "y", "n"), ("a", "u", "o")),
}

CITY_SUFFIXES = ("burg", "ford", "haven", "port", "stead", "ton", "vale", "wick", "dale", "gate")
CONTINENT_SUFFIXES = ("ia", "ica", "ara", "onia", "rea", "ica", "anda", "eria")
POLITY_TYPES = (
    PolityType.KINGDOM,
    PolityType.REPUBLIC,
    PolityType.EMPIRE,
    PolityType.CITY_STATE,
    PolityType.TRIBAL,
    PolityType.FEDERATION,
)

CITY_POP_MIN = 5_000
CITY_POP_MAX = 120_000
POP_DENSITY_MIN = 200
POP_DENSITY_MAX = 700
GDP_PER_CAPITA_MIN = 2
GDP_PER_CAPITA_MAX = 6
MINERAL_ROUGHNESS = 1.1
CONTINENT_MAX_CELLS = 1200


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def _primary_trait(traits: Mapping[str, float]) -> str:
    ordered = sorted(traits.items(), key=lambda item: -item[1])
    return ordered[0][0] if ordered else "trade"


def _base_name(prng: PRNG, key: str, min_syllables: int, max_syllables: int) -> str:
    consonants, vowels = SYLLABLES.get(key, SYLLABLES["trade"])
    parts = []
    for _ in range(prng.next_int(min_syllables, max_syllables)):
        parts.append(consonants[prng.next_int(0, len(consonants) - 1)])
        parts.append(vowels[prng.next_int(0, len(vowels) - 1)])
    name = "".join(parts)
    return name[:1].upper() + name[1:]


def _dedup(name: str, registry: MutableSet[str]) -> str:
    if name not in registry:
        registry.add(name)
        return name
    suffix = 2
    while f"{name} {suffix}" in registry:
        suffix += 1
    unique = f"{name} {suffix}"
    registry.add(unique)
    return unique


def generate_name(prng: PRNG, traits: Mapping[str, float], registry: MutableSet[str]) -> str:
    return _dedup(_base_name(prng, _primary_trait(traits), 2, 4), registry)


def generate_culture_name(prng: PRNG, traits: Mapping[str, float], registry: MutableSet[str]) -> str:
    return _dedup(_base_name(prng, _primary_trait(traits), 2, 3), registry)


def generate_city_name(prng: PRNG, traits: Mapping[str, float], registry: MutableSet[str]) -> str:
    root = _base_name(prng, _primary_trait(traits), 1, 3)
    suffix = CITY_SUFFIXES[prng.next_int(0, len(CITY_SUFFIXES) - 1)]
    return _dedup(root + suffix, registry)


def generate_continent_name(prng: PRNG, registry: MutableSet[str]) -> str:
    key = ("trade", "agrarian", "seafaring")[prng.next_int(0, 2)]
    root = _base_name(prng, key, 2, 3)
    suffix = CONTINENT_SUFFIXES[prng.next_int(0, len(CONTINENT_SUFFIXES) - 1)]
    return _dedup(root + suffix, registry)


def format_polity_name(base: str, polity_type: PolityType) -> str:
    if polity_type is PolityType.REPUBLIC:
        return f"Republic of {base}"
    if polity_type is PolityType.EMPIRE:
        return f"{base} Empire"
    if polity_type is PolityType.FEDERATION:
        return f"{base} Federation"
    if polity_type is PolityType.CITY_STATE:
        return f"{base} City-State"
    if polity_type is PolityType.TRIBAL:
        return f"{base} Confederacy"
    return f"Kingdom of {base}"


# ---------------------------------------------------------------------------
# Continents, cultures, cities
# ---------------------------------------------------------------------------


def generate_continents(count: int, habitable: Sequence[int], prng: PRNG) -> list[Continent]:
    """Split habitable cells into ``count`` contiguous-id chunks and sample each."""

    registry: set[str] = set()
    chunk = len(habitable) // count
    continents: list[Continent] = []
    for i in range(count):
        start = i * chunk
        end = len(habitable) if i == count - 1 else (i + 1) * chunk
        cells = list(habitable[start:end])
        name = generate_continent_name(prng, registry)
        prng.shuffle(cells)
        continents.append(Continent(id=f"cont-{i + 1}", name=name, cell_ids=tuple(cells[:CONTINENT_MAX_CELLS])))
    return continents


def generate_culture_groups(prng: PRNG, habitable: Sequence[int], count: int) -> list[CultureGroup]:
    if not habitable:
        return []
    registry: set[str] = set()
    used: set[int] = set()
    cultures: list[CultureGroup] = []
    for i in range(count):
        seed_cell = habitable[prng.next_int(0, len(habitable) - 1)]
        if seed_cell in used:
            continue
        used.add(seed_cell)
        raw = {key: prng.next_float01() for key in TRAIT_KEYS}
        total = sum(raw.values()) or 1.0
        traits = {key: value / total for key, value in raw.items()}
        cultures.append(
            CultureGroup(
                id=f"cult-{i + 1}",
                name=generate_culture_name(prng, traits, registry),
                traits=traits,
                core_region_ids=(seed_cell,),
            )
        )
    return cultures


def generate_cities(
    prng: PRNG,
    candidates: Sequence[int],
    count: int,
    cultures: Sequence[CultureGroup],
) -> list[City]:
    if not candidates or not cultures:
        return []
    registry: set[str] = set()
    used: set[int] = set()
    cities: list[City] = []
    for i in range(count):
        cell_id = candidates[prng.next_int(0, len(candidates) - 1)]
        if cell_id in used:
            continue
        used.add(cell_id)
        population = prng.next_int(CITY_POP_MIN, CITY_POP_MAX)
        culture = cultures[prng.next_int(0, len(cultures) - 1)]
        coastal = prng.next_float01() > 0.5
        river = prng.next_float01() > 0.4
        cities.append(
            City(
                id=f"city-{i + 1}",
                name=generate_city_name(prng, culture.traits, registry),
                cell_id=cell_id,
                population=population,
                coastal=coastal,
                river=river,
                culture_group_id=culture.id,
            )
        )
    return cities


# ---------------------------------------------------------------------------
# Polities
# ---------------------------------------------------------------------------


def compute_power_score(stats: PolityStats) -> float:
    base = math.log10(stats.population + 1) * 10 + math.log10(stats.gdp + 1) * 8
    modifiers = (
        stats.tech_level * 15
        + stats.industrial_capacity * 10
        + stats.resource_security * 8
        + stats.military * 12
        + stats.naval_projection * 4
        + stats.stability * 6
        + stats.legitimacy * 4
        + stats.logistics * 6
    )
    return min(100.0, base + modifiers)


def _nearest_capital(terrain: Terrain, cities: Sequence[City]) -> list[str]:
    width = terrain.width
    seeds = [(city.id, city.cell_id % width, city.cell_id // width) for city in cities]
    owner_by_cell = [""] * len(terrain.cells)
    for cell in terrain.cells:
        if cell.is_ocean:
            continue
        roughness = MINERAL_ROUGHNESS if "minerals" in cell.resource_tags else 1.0
        best_id, best_score = seeds[0][0], math.inf
        for city_id, sx, sy in seeds:
            score = math.hypot(cell.x - sx, cell.y - sy) * roughness
            if score < best_score:
                best_id, best_score = city_id, score
        owner_by_cell[cell.id] = best_id
    return owner_by_cell


def generate_polities(
    prng: PRNG,
    cities: Sequence[City],
    terrain: Terrain,
) -> tuple[list[PolityState], list[str]]:
    """One polity per capital city; land goes to the nearest capital.

    Returns the roster and the owner map (polity id per cell, ``""`` for ocean).
    """

    if not cities:
        return [], [""] * len(terrain.cells)
    city_owners = _nearest_capital(terrain, cities)
    territories: Dict[str, List[int]] = {}
    for idx, owner in enumerate(city_owners):
        if owner:
            territories.setdefault(owner, []).append(idx)

    registry: set[str] = set()
    polities: list[PolityState] = []
    polity_for_city: dict[str, str] = {}
    for index, city in enumerate(cities):
        polity_type = POLITY_TYPES[index % len(POLITY_TYPES)]
        name = format_polity_name(generate_name(prng, {"trade": 0.5, "agrarian": 0.5}, registry), polity_type)
        cell_ids = territories.get(city.id, [])
        population = float(len(cell_ids) * prng.next_int(POP_DENSITY_MIN, POP_DENSITY_MAX))
        gdp = population * prng.next_int(GDP_PER_CAPITA_MIN, GDP_PER_CAPITA_MAX)
        tech = prng.next_float01() * 0.6 + 0.2
        stats = PolityStats(
            population=population,
            gdp=gdp,
            tech_level=tech,
            industrial_capacity=tech * 0.8,
            resource_security=min(1.0, len(terrain.cells[city.cell_id].resource_tags) / 3 + 0.3),
            military=min(1.0, 0.3 + tech * 0.5),
            naval_projection=0.4 + tech * 0.4 if city.coastal else 0.1,
            stability=0.55 + prng.next_float01() * 0.2,
            legitimacy=0.5 + prng.next_float01() * 0.3,
            logistics=0.4 + tech * 0.5,
        )
        stats.power_score = compute_power_score(stats)
        polity_id = f"polity-{index + 1}"
        polity_for_city[city.id] = polity_id
        polities.append(
            PolityState(
                id=polity_id,
                name=name,
                type=polity_type,
                capital_city_id=city.id,
                culture_group_ids=[city.culture_group_id],
                stats=stats,
                territory=compress_ranges(cell_ids),
            )
        )
    owner_by_cell = [polity_for_city[owner] if owner else "" for owner in city_owners]
    return polities, owner_by_cell


def city_candidates(terrain: Terrain, habitable: Sequence[int]) -> list[int]:
    cells = terrain.cells
    return [idx for idx in habitable if cells[idx].river_id is not None or "fertile" in cells[idx].resource_tags]


__all__ = [
    "city_candidates",
    "compute_power_score",
    "format_polity_name",
    "generate_cities",
    "generate_city_name",
    "generate_continent_name",
    "generate_continents",
    "generate_culture_groups",
    "generate_culture_name",
    "generate_name",
    "generate_polities",
]
