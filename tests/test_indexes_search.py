import json

from terraforge.engine import build_summary
from terraforge.runtime.config import HistoryConfig
from terraforge.runtime.history import simulate_timeline
from terraforge.runtime.indexes import (
    SERIES_KEYS,
    build_world_indexes,
    search_world_indexes,
    serialize_world_indexes,
    tokenize,
)
from terraforge.runtime.prng import PRNG
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

NAMES = ["Avalon", "Brennor", "Calder", "Dunmere"]


def _world(seed: int = 8, start: int = 0, end: int = 40) -> WorldBundle:
    polities, owners = [], []
    for idx, name in enumerate(NAMES):
        pid = f"polity-{idx + 1}"
        first = len(owners)
        owners.extend([pid] * (5 + idx))
        polities.append(
            PolityState(
                id=pid,
                name=f"Kingdom of {name}",
                type=PolityType.KINGDOM,
                capital_city_id=f"city-{idx + 1}",
                culture_group_ids=["cult-1"],
                stats=PolityStats(population=8000.0, gdp=20000.0, tech_level=0.3, stability=0.6,
                                  legitimacy=0.6, logistics=0.5, military=0.5, power_score=30.0 + idx),
                territory=compress_ranges(range(first, first + 5 + idx)),
            )
        )
    cfg = HistoryConfig(war_interval_years=1, war_end_chance=0.5, war_min_duration_years=1)
    sim = simulate_timeline(PRNG(seed), polities, owners, start, end, 10, history_cfg=cfg)
    return WorldBundle(
        meta=WorldMeta(seed=seed, config_hash="test", created_at_iso="1970-01-01T00:00:00.000Z",
                       start_year=start, end_year=end, version="test", summary=build_summary(sim)),
        planet=PlanetInfo(radius_km=6371.0, ocean_coverage=0.68, map_width=len(owners), map_height=1),
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


def test_tokenize_lowercases_and_splits_on_non_alphanumerics():
    assert tokenize("Kingdom of Foo-Bar, 2nd!") == ["kingdom", "of", "foo", "bar", "2nd"]
    assert tokenize("  --  ") == []


def test_time_and_polity_lookups_follow_insertion_order():
    world = _world()
    idx = build_world_indexes(world)
    assert world.events
    for year, ids in idx.events_by_year.items():
        assert all(idx.events_by_id[eid].year == year for eid in ids)
    for event in world.events:
        for actor in event.actors:
            assert event.id in idx.events_by_polity[actor]
    for polity_id, ids in idx.events_by_polity.items():
        years = [idx.events_by_id[eid].year for eid in ids]
        assert years == sorted(years)
    for change in world.territorial_changes:
        assert change.id in idx.changes_by_year[change.year]
        assert change.id in idx.changes_by_polity[change.winner_polity_id]
        assert change.id in idx.changes_by_polity[change.loser_polity_id]
    assert set(idx.events_by_type) <= {"WAR_DECLARED", "WAR_ENDED"}
    assert set(idx.wars_by_id) == {war.id for war in world.wars}


def test_search_entries_cover_every_record_kind():
    world = _world()
    idx = build_world_indexes(world)
    kinds = [entry.result.kind for entry in idx.search_entries]
    assert kinds.count("event") == len(world.events)
    assert kinds.count("polity") == len(world.polities_initial)
    assert kinds.count("war") == len(world.wars)
    assert kinds.count("change") == len(world.territorial_changes)


def test_search_requires_all_tokens_and_substring():
    idx = build_world_indexes(_world())
    assert [r.id for r in search_world_indexes(idx, "war-1")] == ["war-1"]
    assert search_world_indexes(idx, "war 1") == []
    assert search_world_indexes(idx, "") == []
    assert search_world_indexes(idx, "zeppelin") == []


def test_search_orders_by_year_kind_title_id_with_undated_last():
    idx = build_world_indexes(_world())
    results = search_world_indexes(idx, "avalon", limit=500)
    assert results
    assert results[-1].kind == "polity"
    dated = [r for r in results if r.year is not None]
    keys = [(r.year, r.kind, r.title, r.id) for r in dated]
    assert keys == sorted(keys)
    assert all(r.year is not None for r in results[: len(dated)])


def test_search_limit_truncates_stable_prefix():
    idx = build_world_indexes(_world())
    full = search_world_indexes(idx, "kingdom", limit=1000)
    assert len(full) > 3
    assert search_world_indexes(idx, "kingdom", limit=3) == full[:3]
    assert search_world_indexes(idx, "Kingdom") == search_world_indexes(idx, "kingdom")


def test_polity_stat_series_spans_all_years():
    world = _world(start=5, end=25)
    idx = build_world_indexes(world)
    for polity in world.polities_initial:
        series = idx.polity_stats_series[polity.id]
        assert [point["year"] for point in series] == list(range(5, 26))
        assert tuple(series[0]["stats"]) == SERIES_KEYS
        assert series[-1]["stats"]["population"] > polity.stats.population


def test_serialized_indexes_are_json_ready():
    world = _world()
    payload = serialize_world_indexes(build_world_indexes(world))
    text = json.dumps(payload, sort_keys=True)
    assert "eventsByYear" in payload
    assert json.loads(text)["searchEntries"][0].keys() == {"kind", "id", "year", "title"}


def test_index_build_is_pure():
    world = _world()
    first = serialize_world_indexes(build_world_indexes(world))
    second = serialize_world_indexes(build_world_indexes(world))
    assert first == second
