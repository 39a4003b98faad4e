"""Runtime pieces: random streams, configuration, history simulation and read-side queries."""

from .config import HistoryConfig, WorldConfig
from .history import HistoryEngine, SimulationOutput, simulate_timeline
from .indexes import WorldIndexes, build_world_indexes, search_world_indexes
from .prng import PRNG
from .telemetry import Metrics, ensure_metrics

__all__ = [
    "HistoryConfig",
    "HistoryEngine",
    "Metrics",
    "PRNG",
    "SimulationOutput",
    "WorldConfig",
    "WorldIndexes",
    "build_world_indexes",
    "ensure_metrics",
    "search_world_indexes",
    "simulate_timeline",
]
