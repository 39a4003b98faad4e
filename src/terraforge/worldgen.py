"""Seeded terrain generation for a rectangular planet grid.

Cells are addressed row-major (``id = y * width + x``).  Each stage takes its
own forked :class:`PRNG` so that adding draws to one stage never shifts the
others:

* value-noise elevation over four octaves,
* optional "lite" tectonics that add plate-aligned ridges,
* an ocean mask from the elevation quantile matching the ocean coverage,
* latitude/elevation climate mapped onto biomes,
* steepest-descent rivers from high ground,
* resource tags per land cell.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .runtime.prng import PRNG
from .state import Cell


# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

ELEVATION_OCTAVES = 4
PLATES_MIN = 4
PLATES_MAX = 8
RIDGE_FREQUENCY = 0.05
RIDGE_AMPLITUDE = 0.35

ELEVATION_TEMP_WEIGHT = 0.4
BASE_HUMIDITY = 0.6
LATITUDE_HUMIDITY_DIVISOR = 120.0
OCEAN_HUMIDITY_BONUS = 0.2

RIVER_MIN_ELEVATION = 0.3
RIVER_DENSITY_DIVISOR = 1500
RIVER_MIN_COUNT = 10
RIVER_MAX_STEPS = 200

MINERAL_ELEVATION_THRESHOLD = 0.5
FERTILE_ELEVATION_THRESHOLD = 0.2
ENERGY_CHANCE = 0.08
TIMBER_CHANCE = 0.10

UNINHABITABLE_BIOMES = frozenset({"desert", "tundra"})

_NEIGHBOURS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True, slots=True)
class Terrain:
    width: int
    height: int
    cells: tuple[Cell, ...]

    @property
    def ocean_cells(self) -> frozenset[int]:
        return frozenset(cell.id for cell in self.cells if cell.is_ocean)

    def habitable_cells(self) -> list[int]:
        return [
            cell.id
            for cell in self.cells
            if not cell.is_ocean and cell.biome_id not in UNINHABITABLE_BIOMES
        ]


def cell_lat_lon(x: int, y: int, width: int, height: int) -> tuple[float, float]:
    lat = (y / (height - 1)) * 180 - 90
    lon = (x / (width - 1)) * 360 - 180
    return lat, lon


# ---------------------------------------------------------------------------
# Elevation
# ---------------------------------------------------------------------------


def generate_elevation(width: int, height: int, prng: PRNG) -> list[float]:
    values = [0.0] * (width * height)
    for octave in range(ELEVATION_OCTAVES):
        frequency = 2**octave
        amplitude = 1 / (octave + 1)
        grid_w = math.ceil(width / frequency) + 1
        grid_h = math.ceil(height / frequency) + 1
        grid = [prng.next_float01() * 2 - 1 for _ in range(grid_w * grid_h)]
        for y in range(height):
            gy = y / frequency
            y0 = math.floor(gy)
            sy = gy - y0
            for x in range(width):
                gx = x / frequency
                x0 = math.floor(gx)
                sx = gx - x0
                v00 = grid[y0 * grid_w + x0]
                v10 = grid[y0 * grid_w + x0 + 1]
                v01 = grid[(y0 + 1) * grid_w + x0]
                v11 = grid[(y0 + 1) * grid_w + x0 + 1]
                top = v00 * (1 - sx) + v10 * sx
                bottom = v01 * (1 - sx) + v11 * sx
                values[y * width + x] += (top * (1 - sy) + bottom * sy) * amplitude
    return values


def apply_tectonics(width: int, height: int, elevation: List[float], prng: PRNG) -> None:
    """Raise ridges along a diagonal wave phased by the nearest plate's drift."""

    plates = prng.next_int(PLATES_MIN, PLATES_MAX)
    centers = []
    for _ in range(plates):
        cx = prng.next_int(0, width - 1)
        cy = prng.next_int(0, height - 1)
        drift = prng.next_float01() * 2 - 1
        centers.append((cx, cy, drift))
    for y in range(height):
        for x in range(width):
            best = centers[0]
            best_dist = math.inf
            for center in centers:
                dist = (x - center[0]) ** 2 + (y - center[1]) ** 2
                if dist < best_dist:
                    best_dist = dist
                    best = center
            elevation[y * width + x] += math.cos((x + y) * RIDGE_FREQUENCY + best[2]) * RIDGE_AMPLITUDE


def assign_ocean(elevation: Sequence[float], ocean_coverage: float) -> list[bool]:
    ordered = sorted(elevation)
    index = min(len(ordered) - 1, math.floor(len(ordered) * ocean_coverage))
    threshold = ordered[index]
    return [value <= threshold for value in elevation]


# ---------------------------------------------------------------------------
# Climate
# ---------------------------------------------------------------------------


def pick_biome(temperature: float, humidity: float, is_ocean: bool) -> str:
    if is_ocean:
        return "ocean"
    if temperature < 0.2:
        return "tundra" if humidity < 0.35 else "taiga"
    if temperature < 0.4:
        return "steppe" if humidity < 0.3 else "temperate"
    if temperature < 0.7:
        if humidity < 0.3:
            return "desert"
        return "mediterranean" if humidity < 0.6 else "temperate"
    if humidity < 0.35:
        return "desert"
    return "savanna" if humidity < 0.6 else "tropical"


def compute_biomes(width: int, height: int, elevation: Sequence[float], is_ocean: Sequence[bool]) -> list[str]:
    high = max(elevation)
    low = min(elevation)
    biomes: list[str] = []
    for y in range(height):
        lat, _ = cell_lat_lon(0, y, width, height)
        for x in range(width):
            idx = y * width + x
            elev_norm = (elevation[idx] - low) / (high - low + 1e-6)
            temperature = 1 - abs(lat) / 90 - elev_norm * ELEVATION_TEMP_WEIGHT
            humidity = BASE_HUMIDITY - abs(lat) / LATITUDE_HUMIDITY_DIVISOR
            if is_ocean[idx]:
                humidity += OCEAN_HUMIDITY_BONUS
            biomes.append(pick_biome(temperature, humidity, is_ocean[idx]))
    return biomes


# ---------------------------------------------------------------------------
# Hydrology and resources
# ---------------------------------------------------------------------------


def generate_rivers(
    width: int,
    height: int,
    elevation: Sequence[float],
    is_ocean: Sequence[bool],
    prng: PRNG,
) -> list[int]:
    """River id per cell, ``0`` where no river flows."""

    river_ids = [0] * (width * height)
    candidates = sorted(
        (idx for idx, value in enumerate(elevation) if not is_ocean[idx] and value > RIVER_MIN_ELEVATION),
        key=lambda idx: -elevation[idx],
    )
    river_count = max(RIVER_MIN_COUNT, (width * height) // RIVER_DENSITY_DIVISOR)
    for river in range(river_count):
        pick = prng.next_int(0, max(0, len(candidates) - 1))
        if not candidates:
            continue
        current = candidates[pick]
        for _ in range(RIVER_MAX_STEPS):
            if is_ocean[current]:
                break
            river_ids[current] = river + 1
            x, y = current % width, current // width
            nxt, nxt_elev = current, elevation[current]
            for dx, dy in _NEIGHBOURS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                n_idx = ny * width + nx
                if elevation[n_idx] < nxt_elev:
                    nxt, nxt_elev = n_idx, elevation[n_idx]
            if nxt == current:
                break
            current = nxt
    return river_ids


def assign_resources(
    elevation: Sequence[float],
    is_ocean: Sequence[bool],
    river_ids: Sequence[int],
    prng: PRNG,
) -> list[tuple[str, ...]]:
    resources: list[tuple[str, ...]] = []
    for idx, value in enumerate(elevation):
        if is_ocean[idx]:
            resources.append(())
            continue
        tags: list[str] = []
        if value > MINERAL_ELEVATION_THRESHOLD:
            tags.append("minerals")
        if river_ids[idx] > 0 or value < FERTILE_ELEVATION_THRESHOLD:
            tags.append("fertile")
        if prng.next_float01() > 1 - ENERGY_CHANCE:
            tags.append("energy")
        if prng.next_float01() > 1 - TIMBER_CHANCE:
            tags.append("timber")
        resources.append(tuple(tags))
    return resources


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def generate_terrain(
    width: int,
    height: int,
    *,
    ocean_coverage: float,
    tectonics_mode: str,
    prng: PRNG,
) -> Terrain:
    elevation = generate_elevation(width, height, prng.fork("elevation"))
    if tectonics_mode == "lite":
        apply_tectonics(width, height, elevation, prng.fork("tectonics"))
    is_ocean = assign_ocean(elevation, ocean_coverage)
    biomes = compute_biomes(width, height, elevation, is_ocean)
    river_ids = generate_rivers(width, height, elevation, is_ocean, prng.fork("rivers"))
    resources = assign_resources(elevation, is_ocean, river_ids, prng.fork("resources"))

    cells: list[Cell] = []
    for y in range(height):
        for x in range(width):
            idx = y * width + x
            lat, lon = cell_lat_lon(x, y, width, height)
            cells.append(
                Cell(
                    id=idx,
                    x=x,
                    y=y,
                    lat=lat,
                    lon=lon,
                    elevation=elevation[idx],
                    is_ocean=is_ocean[idx],
                    biome_id=biomes[idx],
                    resource_tags=resources[idx],
                    river_id=river_ids[idx] or None,
                )
            )
    return Terrain(width=width, height=height, cells=tuple(cells))


__all__ = [
    "Terrain",
    "assign_ocean",
    "assign_resources",
    "cell_lat_lon",
    "compute_biomes",
    "generate_elevation",
    "generate_rivers",
    "generate_terrain",
]
