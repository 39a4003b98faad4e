import pytest

from terraforge.engine import build_summary
from terraforge.runtime.config import HistoryConfig
from terraforge.runtime.history import simulate_timeline
from terraforge.runtime.prng import PRNG
from terraforge.runtime.queries import NotFoundError, WorldQueries
from terraforge.state import (
    PlanetInfo,
    PolityState,
    PolityStats,
    PolityType,
    TimelineIndex,
    WorldBundle,
    WorldMeta,
)
from terraforge.world.ranges import compress_ranges


def _world(end: int = 50) -> WorldBundle:
    polities, owners = [], []
    for idx in range(5):
        pid = f"polity-{idx + 1}"
        first = len(owners)
        owners.extend([pid] * 6)
        polities.append(
            PolityState(
                id=pid,
                name=f"Realm {idx + 1}",
                type=PolityType.EMPIRE,
                capital_city_id=f"city-{idx + 1}",
                culture_group_ids=["cult-1"],
                stats=PolityStats(population=1000.0 * (idx + 1), gdp=3000.0, tech_level=0.4, stability=0.5,
                                  legitimacy=0.5, logistics=0.5, military=0.5, power_score=20.0 + 5 * idx),
                territory=compress_ranges(range(first, first + 6)),
            )
        )
    cfg = HistoryConfig(war_interval_years=2, war_end_chance=0.7, war_min_duration_years=1)
    sim = simulate_timeline(PRNG(44), polities, owners, 0, end, 10, history_cfg=cfg)
    return WorldBundle(
        meta=WorldMeta(seed=44, config_hash="test", created_at_iso="1970-01-01T00:00:00.000Z",
                       start_year=0, end_year=end, version="test", summary=build_summary(sim)),
        planet=PlanetInfo(radius_km=6371.0, ocean_coverage=0.68, map_width=30, map_height=1),
        cells=(),
        continents=(),
        culture_groups=(),
        cities=(),
        polities_initial=sim.polities_initial,
        timeline=TimelineIndex(snapshots=sim.snapshots, deltas=sim.deltas),
        events=sim.events,
        wars=sim.wars,
        treaties=sim.treaties,
        territorial_changes=sim.territorial_changes,
    )


def test_lookup_misses_raise_not_found():
    queries = WorldQueries(_world())
    with pytest.raises(NotFoundError):
        queries.war("war-999")
    with pytest.raises(NotFoundError):
        queries.treaty("treaty-999")
    with pytest.raises(NotFoundError):
        queries.change("change-999")
    with pytest.raises(NotFoundError):
        queries.polity_at("polity-999", 10)
    with pytest.raises(LookupError):
        queries.polity_history("polity-999")


def test_lookups_hit_recorded_records():
    world = _world()
    queries = WorldQueries(world)
    assert world.wars and world.treaties and world.territorial_changes
    assert queries.war(world.wars[0].id) is world.wars[0]
    assert queries.treaty(world.treaties[0].id) is world.treaties[0]
    assert queries.change(world.territorial_changes[0].id) is world.territorial_changes[0]
    assert queries.meta() is world.meta
    assert queries.snapshot_at(25).year == 20


def test_polities_at_sorted_and_limited():
    queries = WorldQueries(_world())
    ranked = queries.polities_at(33, sort="powerScore", limit=3)
    assert len(ranked) == 3
    scores = [p.stats.power_score for p in ranked]
    assert scores == sorted(scores, reverse=True)
    with pytest.raises(ValueError):
        queries.polities_at(33, sort="vibes")


def test_polity_at_matches_reconstructed_roster():
    queries = WorldQueries(_world())
    roster = {p.id: p for p in queries.polities_at(37)}
    single = queries.polity_at("polity-3", 37)
    assert single.to_dict() == roster["polity-3"].to_dict()


def test_timeline_filters_by_span_and_type():
    world = _world()
    queries = WorldQueries(world)
    events = queries.timeline(10, 20)
    assert all(10 <= e.year <= 20 for e in events)
    declared = queries.timeline(event_type="WAR_DECLARED")
    assert declared and all(e.type.value == "WAR_DECLARED" for e in declared)
    assert len(queries.timeline()) == len(world.events)


def test_changes_in_range_are_chronological():
    world = _world()
    queries = WorldQueries(world)
    changes = queries.changes(0, 50)
    assert [c.id for c in changes] == [c.id for c in world.territorial_changes]
    assert queries.changes(1000, 2000) == []


def test_year_summaries_count_every_year():
    world = _world()
    summaries = WorldQueries(world).year_summaries(0, 10)
    assert [s.year for s in summaries] == list(range(0, 11))
    battles_0_10 = sum(1 for war in world.wars for b in war.battles if b.year <= 10)
    assert sum(s.battles for s in summaries) == battles_0_10
    assert summaries[0].to_dict()["counts"].keys() == {"events", "changes", "battles"}


def test_polity_history_contains_events_changes_and_series():
    world = _world()
    queries = WorldQueries(world)
    history = queries.polity_history("polity-1", 0, 20)
    assert [point["year"] for point in history.stats_series] == list(range(0, 21))
    assert all("polity-1" in event.actors for event in history.events)
    for change in history.changes:
        assert "polity-1" in (change.winner_polity_id, change.loser_polity_id)
        assert change.year <= 20
    assert set(history.to_dict()) == {"polityId", "events", "changes", "statsSeries"}


def test_owner_layer_at_snapshot_year_matches_snapshot():
    world = _world()
    queries = WorldQueries(world)
    snapshot = world.timeline.snapshots[2]
    assert queries.owner_layer_at(snapshot.year) == snapshot.owners


def test_search_delegates_to_indexes():
    world = _world()
    queries = WorldQueries(world)
    results = queries.search("realm", limit=100)
    assert {r.id for r in results if r.kind == "polity"} == {p.id for p in world.polities_initial}
