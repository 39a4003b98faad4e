"""Year-by-year geopolitical history simulation.

The engine owns one mutable world-in-progress (owner map, polity roster,
active wars, id counters) and advances it from ``start_year`` to ``end_year``
inclusive.  Each year runs, in order: growth, war declaration, battles, war
settlement, snapshot cadence, and finally the year's delta.  Every random
choice is drawn from the single engine PRNG in a fixed order, so identical
inputs always reproduce the same history.

Nothing inside the loop raises: draws with no valid outcome (a polity
declaring war on itself, a loser with no land left to cede) are skipped for
the year and counted in telemetry.  Bad inputs are rejected up front by
:func:`validate_initial_state`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..simulation.snapshots import SnapshotManager
from ..state import (
    Battle,
    BattleResult,
    BattleType,
    ChangeType,
    Delta,
    EventCause,
    EventRefs,
    EventType,
    PolityState,
    PolityUpdate,
    Snapshot,
    TerritorialChange,
    TimelineEvent,
    Treaty,
    War,
    WarOutcome,
    WarSides,
    copy_polities,
)
from ..world.ranges import add_cells, compress_ranges, remove_cells
from .config import HistoryConfig, ensure_history_config
from .prng import PRNG
from . import telemetry
from .telemetry import Metrics, ensure_metrics, record_event


class InvalidInitialStateError(ValueError):
    """Raised when upstream generators hand the engine an unusable world."""


@dataclass(frozen=True, slots=True)
class SimulationOutput:
    polities_initial: tuple[PolityState, ...]
    polities_final: tuple[PolityState, ...]
    snapshots: tuple[Snapshot, ...]
    deltas: tuple[Delta, ...]
    events: tuple[TimelineEvent, ...]
    wars: tuple[War, ...]
    treaties: tuple[Treaty, ...]
    territorial_changes: tuple[TerritorialChange, ...]
    owner_by_cell: tuple[str, ...]


def validate_initial_state(
    polities: Sequence[PolityState],
    owner_by_cell: Sequence[str],
    *,
    start_year: int,
    end_year: int,
    snapshots_every_years: int,
) -> None:
    if not polities:
        raise InvalidInitialStateError("polity roster is empty")
    if not owner_by_cell:
        raise InvalidInitialStateError("owner map is empty")
    if end_year < start_year:
        raise InvalidInitialStateError(f"end year {end_year} precedes start year {start_year}")
    if snapshots_every_years < 1:
        raise InvalidInitialStateError("snapshot cadence must be at least one year")

    ids = [polity.id for polity in polities]
    if len(set(ids)) != len(ids):
        raise InvalidInitialStateError("polity ids are not unique")

    owned: dict[str, list[int]] = {pid: [] for pid in ids}
    for cell_id, owner in enumerate(owner_by_cell):
        if not owner:
            continue
        if owner not in owned:
            raise InvalidInitialStateError(f"cell {cell_id} is owned by unknown polity {owner!r}")
        owned[owner].append(cell_id)
    for polity in polities:
        if list(polity.territory) != compress_ranges(owned[polity.id]):
            raise InvalidInitialStateError(f"territory of {polity.id} does not match the owner map")


@dataclass
class HistoryEngine:
    prng: PRNG
    polities: list[PolityState]
    owner_by_cell: list[str]
    start_year: int
    end_year: int
    snapshots_every_years: int = 10
    ocean_cells: frozenset[int] = frozenset()
    history_cfg: HistoryConfig | None = None
    metrics: Metrics | None = None
    year: int | None = None
    wars: list[War] = field(default_factory=list)
    treaties: list[Treaty] = field(default_factory=list)
    territorial_changes: list[TerritorialChange] = field(default_factory=list)
    events: list[TimelineEvent] = field(default_factory=list)
    deltas: list[Delta] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_initial_state(
            self.polities,
            self.owner_by_cell,
            start_year=self.start_year,
            end_year=self.end_year,
            snapshots_every_years=self.snapshots_every_years,
        )
        self.cfg = ensure_history_config(self)
        ensure_metrics(self)
        self.polities_initial = tuple(copy_polities(self.polities))
        self.active_wars: dict[str, War] = {}
        self.snapshot_manager = SnapshotManager(
            start_year=self.start_year,
            end_year=self.end_year,
            every_years=self.snapshots_every_years,
        )
        self._by_id = {polity.id: polity for polity in self.polities}
        self._counters = {"war": 0, "treaty": 0, "change": 0, "event": 0}

    def _next_id(self, kind: str) -> str:
        self._counters[kind] += 1
        return f"{kind}-{self._counters[kind]}"

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self) -> SimulationOutput:
        for year in range(self.start_year, self.end_year + 1):
            self.step_year(year)
        for polity in sorted(self.polities, key=lambda p: p.id):
            self.metrics.topk_add(
                telemetry.POWER_RANKING, polity.id, polity.stats.power_score, payload={"name": polity.name}
            )
        return SimulationOutput(
            polities_initial=self.polities_initial,
            polities_final=tuple(copy_polities(self.polities)),
            snapshots=self.snapshot_manager.snapshots,
            deltas=tuple(self.deltas),
            events=tuple(self.events),
            wars=tuple(self.wars),
            treaties=tuple(self.treaties),
            territorial_changes=tuple(self.territorial_changes),
            owner_by_cell=tuple(self.owner_by_cell),
        )

    def step_year(self, year: int) -> Delta:
        self.year = year
        updates = self._growth_phase()
        change_ids: list[str] = []
        event_ids: list[str] = []

        declared = self._declare_war(year)
        if declared is not None:
            event_ids.append(declared)

        for war in list(self.active_wars.values()):
            self._resolve_battles(war, year)
            settled = self._settle_war(war, year)
            if settled is not None:
                change_id, event_id = settled
                change_ids.append(change_id)
                event_ids.append(event_id)

        if self.snapshot_manager.due(year):
            self.snapshot_manager.capture(year, self.polities, self.owner_by_cell, self._alliances())
            self.metrics.inc(telemetry.SNAPSHOTS)

        delta = Delta(
            year=year,
            polity_updates=tuple(updates),
            territorial_change_ids=tuple(change_ids),
            event_ids=tuple(event_ids),
        )
        self.deltas.append(delta)
        self.metrics.inc(telemetry.YEARS)
        self.metrics.set_gauge(telemetry.WARS_ACTIVE, len(self.active_wars))
        return delta

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _growth_phase(self) -> list[PolityUpdate]:
        cfg = self.cfg
        updates: list[PolityUpdate] = []
        for polity in self.polities:
            stats = polity.stats
            before = stats.copy()
            growth = cfg.pop_growth_base + self.prng.next_float01() * cfg.pop_growth_variance
            gdp_growth = cfg.gdp_growth_base + self.prng.next_float01() * cfg.gdp_growth_variance
            tech_growth = cfg.tech_growth_base + self.prng.next_float01() * cfg.tech_growth_variance
            stability_shift = (self.prng.next_float01() - 0.5) * cfg.stability_shift_range

            stats.population *= 1 + growth
            stats.gdp *= 1 + gdp_growth
            stats.tech_level = max(stats.tech_level, min(cfg.tech_ceiling, stats.tech_level + tech_growth))
            stats.stability = _clamp(stats.stability + stability_shift, cfg.stat_floor, cfg.stat_ceiling)
            stats.legitimacy = _clamp(
                stats.legitimacy + stability_shift * cfg.legitimacy_shift_factor, cfg.stat_floor, cfg.stat_ceiling
            )
            stats.logistics = _clamp(
                stats.logistics + tech_growth * cfg.logistics_tech_factor, cfg.stat_floor, cfg.stat_ceiling
            )
            stats.military = _clamp(
                stats.military + tech_growth * cfg.military_tech_factor, cfg.stat_floor, cfg.stat_ceiling
            )
            stats.power_score = min(
                cfg.power_score_cap,
                stats.power_score + gdp_growth * cfg.power_gdp_factor + tech_growth * cfg.power_tech_factor,
            )
            # Stored as before + delta: replaying the delta must reproduce these values bit for bit.
            delta = stats.diff(before)
            before.apply_delta(delta)
            polity.stats = before
            updates.append(PolityUpdate(polity_id=polity.id, stats_delta=delta))
        return updates

    def _declare_war(self, year: int) -> str | None:
        if year % self.cfg.war_interval_years != 0:
            return None
        last = len(self.polities) - 1
        a = self.polities[self.prng.next_int(0, last)]
        b = self.polities[self.prng.next_int(0, last)]
        if a.id == b.id:
            self.metrics.inc(telemetry.SELF_DECLARATION_SKIPPED)
            return None

        war = War(
            id=self._next_id("war"),
            name=f"{a.name} - {b.name} Conflict",
            start_year=year,
            sides=WarSides(a=[a.id], b=[b.id]),
            explanation=["Border tension and resource disputes escalated into open conflict."],
        )
        self.wars.append(war)
        self.active_wars[war.id] = war

        event = TimelineEvent(
            id=self._next_id("event"),
            year=year,
            type=EventType.WAR_DECLARED,
            title=f"{a.name} declares war on {b.name}",
            primary=(a.id,),
            secondary=(b.id,),
            causes=(EventCause("resource_need", 0.4), EventCause("border_rivalry", 0.6)),
            effects=("mobilization", f"war:{war.id}"),
            explanation=("Resource pressures and historic rivalry pushed both polities into war.",),
            refs=EventRefs(war_id=war.id),
        )
        self.events.append(event)
        self.metrics.inc(telemetry.WARS_DECLARED)
        record_event(self, {"type": EventType.WAR_DECLARED.value, "year": year, "war_id": war.id})
        return event.id

    def _resolve_battles(self, war: War, year: int) -> None:
        cfg = self.cfg
        cell_count = len(self.owner_by_cell)
        count = self.prng.next_int(cfg.battles_per_year_min, cfg.battles_per_year_max)
        for _ in range(count):
            result = BattleResult.A_VICTORY if self.prng.next_float01() > 0.5 else BattleResult.B_VICTORY
            location = self.prng.next_int(0, cell_count - 1)
            if self.prng.next_float01() > cfg.siege_chance:
                battle_type = BattleType.FIELD
            else:
                battle_type = BattleType.SIEGE
            if location in self.ocean_cells:
                battle_type = BattleType.NAVAL
            casualties_a = self.prng.next_int(cfg.casualty_min, cfg.casualty_max)
            casualties_b = self.prng.next_int(cfg.casualty_min, cfg.casualty_max)
            war.battles.append(
                Battle(
                    id=f"{war.id}-battle-{len(war.battles) + 1}",
                    year=year,
                    location_cell_id=location,
                    type=battle_type,
                    result=result,
                    casualties_a=casualties_a,
                    casualties_b=casualties_b,
                    factors=["logistics", "terrain", "morale"],
                    explanation=["A clash defined by supply lines and terrain advantages."],
                )
            )
        self.metrics.inc(telemetry.BATTLES, count)

    def _settle_war(self, war: War, year: int) -> tuple[str, str] | None:
        """Try to end ``war`` this year; returns ``(change_id, event_id)`` on success.

        Wars no older than ``war_min_duration_years`` return before any draw,
        so young wars consume nothing from the stream.  Older wars draw the
        end chance, then the outcome, then the ceded cell.
        """

        cfg = self.cfg
        if year - war.start_year <= cfg.war_min_duration_years:
            return None
        if self.prng.next_float01() <= 1.0 - cfg.war_end_chance:
            return None

        outcome = WarOutcome.A_WIN if self.prng.next_float01() > 0.5 else WarOutcome.B_WIN
        winner_id, loser_id = war.sides.primary(outcome)
        loser_cells = [idx for idx, owner in enumerate(self.owner_by_cell) if owner == loser_id]
        if not loser_cells:
            self.metrics.inc(telemetry.LANDLESS_SETTLEMENT_SKIPPED)
            record_event(self, {"type": "SETTLEMENT_SKIPPED", "year": year, "war_id": war.id, "loser": loser_id})
            return None
        cell_id = loser_cells[self.prng.next_int(0, len(loser_cells) - 1)]
        self._transfer_cells(winner_id, loser_id, [cell_id])

        change_id = self._next_id("change")
        treaty_id = self._next_id("treaty")
        change = TerritorialChange(
            id=change_id,
            year=year,
            type=ChangeType.ANNEXATION_PARTIAL,
            regions=tuple(compress_ranges([cell_id])),
            reason="War settlement redrew border regions.",
            winner_polity_id=winner_id,
            loser_polity_id=loser_id,
            linked_war_id=war.id,
            treaty_id=treaty_id,
        )
        treaty = Treaty(
            id=treaty_id,
            name=f"Treaty of {year}",
            year=year,
            participants=(winner_id, loser_id),
            terms=("Border adjustments", "War reparations"),
        )
        self.territorial_changes.append(change)
        self.treaties.append(treaty)

        war.outcome = outcome
        war.end_year = year
        war.treaty_id = treaty_id
        war.territorial_changes.append(change_id)
        del self.active_wars[war.id]

        event = TimelineEvent(
            id=self._next_id("event"),
            year=year,
            type=EventType.WAR_ENDED,
            title=f"Treaty ends {war.name}",
            primary=(winner_id,),
            secondary=(loser_id,),
            causes=(EventCause("war_exhaustion", 0.5), EventCause("logistics_cost", 0.5)),
            effects=("treaty_signed", f"territory_change:{change_id}"),
            explanation=("Both sides agreed to a settlement after costly campaigns.",),
            refs=EventRefs(war_id=war.id, treaty_id=treaty_id, change_id=change_id),
        )
        self.events.append(event)
        self.metrics.inc(telemetry.WARS_ENDED)
        record_event(
            self,
            {"type": EventType.WAR_ENDED.value, "year": year, "war_id": war.id, "change_id": change_id},
        )
        return change_id, event.id

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transfer_cells(self, winner_id: str, loser_id: str, cell_ids: Iterable[int]) -> None:
        moved = list(cell_ids)
        for cell_id in moved:
            self.owner_by_cell[cell_id] = winner_id
        winner = self._by_id[winner_id]
        loser = self._by_id[loser_id]
        winner.territory = add_cells(winner.territory, moved)
        loser.territory = remove_cells(loser.territory, moved)

    def _alliances(self) -> list[list[str]]:
        # No alliance system yet; wartime sides are single polities.
        return []


def simulate_timeline(
    prng: PRNG,
    polities: Sequence[PolityState],
    owner_by_cell: Sequence[str],
    start_year: int,
    end_year: int,
    snapshots_every_years: int,
    *,
    history_cfg: HistoryConfig | None = None,
    ocean_cells: Iterable[int] = (),
    metrics: Metrics | None = None,
) -> SimulationOutput:
    """Run the history engine over copies of the given roster and owner map."""

    engine = HistoryEngine(
        prng=prng,
        polities=copy_polities(polities),
        owner_by_cell=list(owner_by_cell),
        start_year=start_year,
        end_year=end_year,
        snapshots_every_years=snapshots_every_years,
        ocean_cells=frozenset(ocean_cells),
        history_cfg=history_cfg,
        metrics=metrics,
    )
    return engine.run()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


__all__ = [
    "HistoryEngine",
    "InvalidInitialStateError",
    "SimulationOutput",
    "simulate_timeline",
    "validate_initial_state",
]
