"""Counters, gauges and a ring of recent structured records for a history run.

The engine never logs free text.  It bumps named counters (``history.years``,
``wars.declared``...) and appends small dict records to an :class:`EventRing`,
so that two runs from the same seed can be compared with
:meth:`Metrics.snapshot_signature`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

YEARS = "history.years"
WARS_DECLARED = "wars.declared"
WARS_ENDED = "wars.ended"
WARS_ACTIVE = "wars.active"
BATTLES = "battles.total"
SNAPSHOTS = "snapshots.taken"
SELF_DECLARATION_SKIPPED = "wars.self_declaration_skipped"
LANDLESS_SETTLEMENT_SKIPPED = "wars.settlement_skipped_landless"
POWER_RANKING = "polities.power"

RING_CAPACITY = {"minimal": 0, "standard": 200, "verbose": 2000}


@dataclass(slots=True)
class RankedEntry:
    key: str
    score: float
    payload: Mapping[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class Ranking:
    """Best ``k`` keys by score; re-adding a key replaces its score."""

    k: int = 10
    entries: list[RankedEntry] = field(default_factory=list)

    def add(self, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        kept = [entry for entry in self.entries if entry.key != key]
        kept.append(RankedEntry(key=key, score=float(score), payload=dict(payload or {})))
        kept.sort(key=lambda entry: (-entry.score, entry.key))
        self.entries = kept[: max(1, self.k)]

    def keys(self) -> list[str]:
        return [entry.key for entry in self.entries]

    def to_list(self) -> list[dict[str, object]]:
        return [{"key": e.key, "score": e.score, "payload": dict(e.payload)} for e in self.entries]


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)
    rankings: dict[str, Ranking] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def get(self, path: str, default: float = 0.0) -> float:
        return self.counters.get(path, default)

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def topk_add(self, path: str, key: str, score: float, payload: Mapping[str, object] | None = None) -> None:
        self.rankings.setdefault(path, Ranking()).add(key, score, payload)

    def report(self) -> dict[str, int]:
        """Whole-number view of the history counters, for run summaries."""

        return {
            "years": int(self.get(YEARS)),
            "wars_declared": int(self.get(WARS_DECLARED)),
            "wars_ended": int(self.get(WARS_ENDED)),
            "wars_active": int(self.gauges.get(WARS_ACTIVE, 0)),
            "battles": int(self.get(BATTLES)),
            "snapshots": int(self.get(SNAPSHOTS)),
            "skipped_declarations": int(self.get(SELF_DECLARATION_SKIPPED)),
            "skipped_settlements": int(self.get(LANDLESS_SETTLEMENT_SKIPPED)),
        }

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": dict(sorted(self.counters.items())),
            "gauges": {k: _plain(v) for k, v in sorted(self.gauges.items())},
            "rankings": {k: ranking.to_list() for k, ranking in sorted(self.rankings.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"))


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return str(value)


@dataclass(slots=True)
class EventRing:
    capacity: int = 200
    events: list[dict[str, object]] = field(default_factory=list)

    def append(self, event: Mapping[str, object]) -> None:
        if self.capacity <= 0:
            return
        self.events.append(dict(event))
        overflow = len(self.events) - self.capacity
        if overflow > 0:
            del self.events[:overflow]

    def tail(self, n: int = 10) -> list[dict[str, object]]:
        return list(self.events[-max(0, n) :]) if n else []

    def of_type(self, event_type: str) -> list[dict[str, object]]:
        return [event for event in self.events if event.get("type") == event_type]


@dataclass(slots=True)
class DebugConfig:
    level: str = "standard"

    @property
    def ring_capacity(self) -> int:
        return RING_CAPACITY.get(self.level, RING_CAPACITY["standard"])


def ensure_metrics(world: Any) -> Metrics:
    metrics = getattr(world, "metrics", None)
    if not isinstance(metrics, Metrics):
        metrics = Metrics()
        world.metrics = metrics
    return metrics


def ensure_event_ring(world: Any) -> EventRing:
    cfg = getattr(world, "debug_cfg", None)
    if not isinstance(cfg, DebugConfig):
        cfg = DebugConfig()
        world.debug_cfg = cfg
    ring = getattr(world, "event_ring", None)
    if not isinstance(ring, EventRing):
        ring = EventRing(capacity=cfg.ring_capacity)
        world.event_ring = ring
    return ring


def record_event(world: Any, event: Mapping[str, object]) -> None:
    payload = dict(event)
    payload.setdefault("year", getattr(world, "year", None))
    ensure_event_ring(world).append(payload)


__all__ = [
    "BATTLES",
    "DebugConfig",
    "EventRing",
    "LANDLESS_SETTLEMENT_SKIPPED",
    "Metrics",
    "POWER_RANKING",
    "Ranking",
    "SELF_DECLARATION_SKIPPED",
    "SNAPSHOTS",
    "WARS_ACTIVE",
    "WARS_DECLARED",
    "WARS_ENDED",
    "YEARS",
    "ensure_event_ring",
    "ensure_metrics",
    "record_event",
]
