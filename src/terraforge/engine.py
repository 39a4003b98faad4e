"""Top-level world generation: terrain, societies, then simulated history."""

from __future__ import annotations

from typing import Sequence

from .hashing import hash_object
from .runtime.config import WorldConfig
from .runtime.history import SimulationOutput, simulate_timeline
from .runtime.prng import PRNG
from .runtime.telemetry import Metrics
from .society import (
    city_candidates,
    generate_cities,
    generate_continents,
    generate_culture_groups,
    generate_polities,
)
from .state import (
    ChangeType,
    Era,
    PlanetInfo,
    Snapshot,
    TimelineIndex,
    WorldBundle,
    WorldMeta,
    WorldSummary,
)
from .worldgen import generate_terrain

VERSION = "0.1.0"
EPOCH_ISO = "1970-01-01T00:00:00.000Z"
TOP_POWERS = 10


def generate_world(config: WorldConfig, *, metrics: Metrics | None = None) -> WorldBundle:
    """Build a complete world bundle from ``config``.

    The same config always yields the same bundle, down to the byte, because
    every stage draws from a stream forked off ``config.seed`` by label.
    """

    config.validate()
    planet = config.planet
    societies = config.societies
    prng = PRNG(config.seed)

    terrain = generate_terrain(
        planet.map_width,
        planet.map_height,
        ocean_coverage=planet.ocean_coverage,
        tectonics_mode=planet.tectonics_mode,
        prng=prng,
    )
    habitable = terrain.habitable_cells()
    continents = generate_continents(planet.num_continents, habitable, prng.fork("continents"))
    cultures = generate_culture_groups(prng.fork("cultures"), habitable, societies.num_culture_groups)
    cities = generate_cities(
        prng.fork("cities"), city_candidates(terrain, habitable), societies.num_cities_target, cultures
    )
    capitals = cities[: min(societies.num_polities_target, len(cities))]
    polities, owner_by_cell = generate_polities(prng.fork("polities"), capitals, terrain)

    sim = simulate_timeline(
        prng.fork("sim"),
        polities,
        owner_by_cell,
        config.start_year,
        config.end_year,
        config.output.snapshots_every_years,
        history_cfg=config.history,
        ocean_cells=terrain.ocean_cells,
        metrics=metrics,
    )

    meta = WorldMeta(
        seed=config.seed,
        config_hash=hash_object(config),
        created_at_iso=EPOCH_ISO,
        start_year=config.start_year,
        end_year=config.end_year,
        version=VERSION,
        summary=build_summary(sim),
    )
    return WorldBundle(
        meta=meta,
        planet=PlanetInfo(
            radius_km=planet.radius_km,
            ocean_coverage=planet.ocean_coverage,
            map_width=planet.map_width,
            map_height=planet.map_height,
        ),
        cells=terrain.cells,
        continents=tuple(continents),
        culture_groups=tuple(cultures),
        cities=tuple(cities),
        polities_initial=sim.polities_initial,
        timeline=TimelineIndex(snapshots=sim.snapshots, deltas=sim.deltas),
        events=sim.events,
        wars=sim.wars,
        treaties=sim.treaties,
        territorial_changes=sim.territorial_changes,
    )


def _top_powers(snapshot: Snapshot) -> tuple[tuple[str, float], ...]:
    ranked = sorted(snapshot.polity_states, key=lambda p: (-p.stats.power_score, p.id))
    return tuple((polity.id, polity.stats.power_score) for polity in ranked[:TOP_POWERS])


def _eras(snapshots: Sequence[Snapshot]) -> tuple[Era, ...]:
    if not snapshots:
        return ()
    return (
        Era(
            name="Expansion",
            start=snapshots[0].year,
            end=snapshots[-1].year,
            reason="Rising power scores and frequent wars.",
        ),
    )


def build_summary(sim: SimulationOutput) -> WorldSummary:
    annexations = {ChangeType.ANNEXATION_PARTIAL, ChangeType.ABSORBED_FULL}
    totals = {
        "wars": len(sim.wars),
        "battles": sum(len(war.battles) for war in sim.wars),
        "annexations": sum(1 for change in sim.territorial_changes if change.type in annexations),
        "secessions": sum(1 for change in sim.territorial_changes if change.type is ChangeType.SECESSION),
    }
    return WorldSummary(
        top_powers_by_decade=tuple(
            ((snapshot.year // 10) * 10, _top_powers(snapshot)) for snapshot in sim.snapshots
        ),
        totals=totals,
        eras=_eras(sim.snapshots),
    )


__all__ = ["EPOCH_ISO", "VERSION", "build_summary", "generate_world"]
