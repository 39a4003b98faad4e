"""TerraForge world generator public façade."""

from .engine import VERSION, generate_world
from .hashing import hash_object, stable_stringify
from .runtime.config import ConfigError, WorldConfig, load_config
from .runtime.history import HistoryEngine, InvalidInitialStateError, simulate_timeline
from .runtime.prng import PRNG
from .runtime.queries import NotFoundError, WorldQueries
from .state import WorldBundle

__all__ = [
    "ConfigError",
    "HistoryEngine",
    "InvalidInitialStateError",
    "NotFoundError",
    "PRNG",
    "VERSION",
    "WorldBundle",
    "WorldConfig",
    "WorldQueries",
    "generate_world",
    "hash_object",
    "load_config",
    "simulate_timeline",
    "stable_stringify",
]
