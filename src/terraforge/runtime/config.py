"""Generation configuration and named simulation tunables.

``WorldConfig.from_mapping`` reads the camelCase JSON layout that the CLI
writes to ``config.json`` and that hand-written config files use::

    {"seed": 123,
     "planet": {"mapWidth": 80, "mapHeight": 40, "numContinents": 4, ...},
     "societies": {"startingYear": 0, "endingYear": 200, ...},
     "output": {"snapshotsEveryYears": 10},
     "history": {"warIntervalYears": 7, ...}}

Missing keys fall back to defaults.  Out-of-range values are rejected with a
:class:`ConfigError` listing every problem; nothing is clamped.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping


class ConfigError(ValueError):
    """Raised when a generation config is malformed or out of range."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid configuration")


@dataclass(slots=True)
class PlanetConfig:
    radius_km: float = 6371.0
    ocean_coverage: float = 0.68
    num_continents: int = 5
    map_width: int = 240
    map_height: int = 120
    tectonics_mode: str = "lite"


@dataclass(slots=True)
class SocietiesConfig:
    num_culture_groups: int = 40
    num_cities_target: int = 180
    num_polities_target: int = 120
    starting_year: int = 0
    ending_year: int = 1500


@dataclass(slots=True)
class OutputConfig:
    detail: str = "standard"
    snapshots_every_years: int = 10


@dataclass(slots=True)
class HistoryConfig:
    # growth phase
    pop_growth_base: float = 0.01
    pop_growth_variance: float = 0.01
    gdp_growth_base: float = 0.015
    gdp_growth_variance: float = 0.02
    tech_growth_base: float = 0.001
    tech_growth_variance: float = 0.0015
    stability_shift_range: float = 0.01
    legitimacy_shift_factor: float = 0.5
    logistics_tech_factor: float = 2.0
    military_tech_factor: float = 1.5
    power_gdp_factor: float = 2.0
    power_tech_factor: float = 10.0
    stat_floor: float = 0.1
    stat_ceiling: float = 1.0
    tech_ceiling: float = 1.0
    power_score_cap: float = 100.0
    # wars
    war_interval_years: int = 7
    war_end_chance: float = 0.3
    war_min_duration_years: int = 3
    battles_per_year_min: int = 1
    battles_per_year_max: int = 3
    casualty_min: int = 200
    casualty_max: int = 2000
    siege_chance: float = 0.2


@dataclass(slots=True)
class WorldConfig:
    seed: int = 0
    planet: PlanetConfig = field(default_factory=PlanetConfig)
    societies: SocietiesConfig = field(default_factory=SocietiesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    @property
    def start_year(self) -> int:
        return self.societies.starting_year

    @property
    def end_year(self) -> int:
        return self.societies.ending_year

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "WorldConfig":
        problems: list[str] = []
        if not isinstance(payload, Mapping):
            raise ConfigError(["config must be a JSON object"])
        seed = payload.get("seed")
        if isinstance(seed, bool) or not isinstance(seed, int):
            problems.append("seed: expected an integer")
            seed = 0
        cfg = cls(
            seed=seed,
            planet=_section(PlanetConfig, payload.get("planet"), "planet", problems),
            societies=_section(SocietiesConfig, payload.get("societies"), "societies", problems),
            output=_section(OutputConfig, payload.get("output"), "output", problems),
            history=_section(HistoryConfig, payload.get("history"), "history", problems),
        )
        if problems:
            raise ConfigError(problems)
        cfg.validate()
        return cfg

    def validate(self) -> "WorldConfig":
        problems: list[str] = []
        planet = self.planet
        if not 0.6 <= planet.ocean_coverage <= 0.75:
            problems.append("planet.oceanCoverage: must be within [0.6, 0.75]")
        if not 3 <= planet.num_continents <= 8:
            problems.append("planet.numContinents: must be within [3, 8]")
        if planet.map_width < 2 or planet.map_height < 2:
            problems.append("planet.mapWidth/mapHeight: grid must be at least 2x2")
        if planet.radius_km <= 0:
            problems.append("planet.radiusKm: must be positive")
        if planet.tectonics_mode not in {"lite", "none"}:
            problems.append("planet.tectonicsMode: expected 'lite' or 'none'")

        soc = self.societies
        if not 1 <= soc.num_culture_groups <= 80:
            problems.append("societies.numCultureGroups: must be within [1, 80]")
        if soc.num_cities_target < 1:
            problems.append("societies.numCitiesTarget: must be at least 1")
        if soc.num_polities_target < 1:
            problems.append("societies.numPolitiesTarget: must be at least 1")
        if soc.ending_year < soc.starting_year:
            problems.append("societies.endingYear: must not precede startingYear")

        if self.output.snapshots_every_years < 1:
            problems.append("output.snapshotsEveryYears: must be at least 1")
        if self.output.detail not in {"summary", "standard", "full"}:
            problems.append("output.detail: expected 'summary', 'standard' or 'full'")

        problems.extend(validate_history_config(self.history))
        if problems:
            raise ConfigError(problems)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "planet": _section_to_dict(self.planet),
            "societies": _section_to_dict(self.societies),
            "output": _section_to_dict(self.output),
            "history": _section_to_dict(self.history),
        }


def validate_history_config(cfg: HistoryConfig) -> list[str]:
    problems: list[str] = []
    if cfg.war_interval_years < 1:
        problems.append("history.warIntervalYears: must be at least 1")
    if cfg.war_min_duration_years < 0:
        problems.append("history.warMinDurationYears: must not be negative")
    if not 0.0 <= cfg.war_end_chance <= 1.0:
        problems.append("history.warEndChance: must be within [0, 1]")
    if not 0.0 <= cfg.siege_chance <= 1.0:
        problems.append("history.siegeChance: must be within [0, 1]")
    if cfg.battles_per_year_min < 0 or cfg.battles_per_year_max < cfg.battles_per_year_min:
        problems.append("history.battlesPerYear: need 0 <= min <= max")
    if cfg.casualty_min < 0 or cfg.casualty_max < cfg.casualty_min:
        problems.append("history.casualty: need 0 <= min <= max")
    if not 0.0 <= cfg.stat_floor <= cfg.stat_ceiling <= 1.0:
        problems.append("history.statFloor/statCeiling: need 0 <= floor <= ceiling <= 1")
    if not 0.0 < cfg.tech_ceiling <= 1.0:
        problems.append("history.techCeiling: must be within (0, 1]")
    for name in (
        "pop_growth_base",
        "pop_growth_variance",
        "gdp_growth_base",
        "gdp_growth_variance",
        "tech_growth_base",
        "tech_growth_variance",
        "stability_shift_range",
    ):
        if getattr(cfg, name) < 0:
            problems.append(f"history.{_camel(name)}: must not be negative")
    if cfg.power_score_cap <= 0:
        problems.append("history.powerScoreCap: must be positive")
    return problems


def ensure_history_config(world: Any) -> HistoryConfig:
    cfg = getattr(world, "history_cfg", None)
    if not isinstance(cfg, HistoryConfig):
        cfg = HistoryConfig()
        world.history_cfg = cfg
    return cfg


def load_config(path: Path) -> WorldConfig:
    with open(path, "r", encoding="utf-8") as fp:
        try:
            payload = json.load(fp)
        except json.JSONDecodeError as exc:
            raise ConfigError([f"{path}: not valid JSON ({exc.msg})"]) from exc
    return WorldConfig.from_mapping(payload)


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _section(cls: type, raw: Any, prefix: str, problems: list[str]) -> Any:
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        problems.append(f"{prefix}: expected an object")
        return cls()
    known = {f.name: f for f in fields(cls)}
    defaults = cls()
    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        name = _snake(str(key))
        if name not in known:
            # Keys from the wider config schema (geopolitics knobs etc.) are ignored.
            continue
        expected = type(getattr(defaults, name))
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if isinstance(value, bool) or not isinstance(value, expected):
            problems.append(f"{prefix}.{key}: expected {expected.__name__}")
            continue
        kwargs[name] = value
    return cls(**kwargs)


def _section_to_dict(section: Any) -> dict[str, Any]:
    return {_camel(f.name): getattr(section, f.name) for f in fields(section)}


__all__ = [
    "ConfigError",
    "HistoryConfig",
    "OutputConfig",
    "PlanetConfig",
    "SocietiesConfig",
    "WorldConfig",
    "ensure_history_config",
    "load_config",
    "validate_history_config",
]
