from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..hashing import hash_object, stable_stringify, to_jsonable
from ..state import WorldBundle, world_from_dict
from .config import WorldConfig
from .indexes import build_world_indexes, serialize_world_indexes

WORLD_FILE = "world.json"
INDEX_DIR = "index"


def _write_canonical(path: Path, payload: Any) -> None:
    with open(path, "w", encoding="utf-8") as fp:
        fp.write(stable_stringify(payload))
        fp.write("\n")


def write_world(
    bundle: WorldBundle,
    out_dir: Path,
    *,
    config: WorldConfig | None = None,
    with_indexes: bool = True,
) -> str:
    """Write a generated world to ``out_dir`` and return its content hash.

    Layout::

        out_dir/world.json            full bundle, canonical JSON
        out_dir/config.json           generation config (when given)
        out_dir/index/snapshots.json  timeline snapshots
        out_dir/index/deltas.json     per-year deltas
        out_dir/index/search.json     derived lookup maps and search entries
    """

    out_dir.mkdir(parents=True, exist_ok=True)
    payload = to_jsonable(bundle)
    _write_canonical(out_dir / WORLD_FILE, payload)

    if config is not None:
        with open(out_dir / "config.json", "w", encoding="utf-8") as fp:
            json.dump(config.to_dict(), fp, indent=2, sort_keys=True)

    index_dir = out_dir / INDEX_DIR
    index_dir.mkdir(exist_ok=True)
    timeline = payload["timelineIndex"]
    _write_canonical(index_dir / "snapshots.json", timeline["snapshots"])
    _write_canonical(index_dir / "deltas.json", timeline["deltasBetweenSnapshots"])
    if with_indexes:
        _write_canonical(index_dir / "search.json", serialize_world_indexes(build_world_indexes(bundle)))

    return hash_object(payload)


def _world_path(path: Path) -> Path:
    return path / WORLD_FILE if path.is_dir() else path


def load_world_payload(path: Path) -> Mapping[str, Any]:
    with open(_world_path(path), "r", encoding="utf-8") as fp:
        return json.load(fp)


def load_world(path: Path) -> WorldBundle:
    """Read a world written by :func:`write_world` (directory or ``world.json``)."""

    return world_from_dict(load_world_payload(path))


__all__ = ["INDEX_DIR", "WORLD_FILE", "load_world", "load_world_payload", "write_world"]
