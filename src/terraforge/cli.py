"""Command-line front end: generate worlds and query their history."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from .engine import generate_world
from .hashing import to_jsonable
from .runtime.config import ConfigError, WorldConfig, load_config
from .runtime.history import InvalidInitialStateError
from .runtime.queries import NotFoundError, WorldQueries
from .runtime.run_outputs import load_world, write_world
from .runtime.telemetry import Metrics


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="terraforge", description="Generate worlds with a simulated history")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a world and write it to disk")
    gen.add_argument("--config", type=Path, help="JSON config file (camelCase keys)")
    gen.add_argument("--seed", type=int, help="Override the config seed")
    gen.add_argument("--out", type=Path, required=True, help="Output directory")
    gen.add_argument("--no-indexes", action="store_true", help="Skip index/search.json")

    query = sub.add_parser("query", help="Show polities as of a year")
    query.add_argument("--world", type=Path, required=True, help="World directory or world.json")
    query.add_argument("--year", type=int, required=True)
    query.add_argument("--polity", help="Single polity id")
    query.add_argument("--limit", type=int, default=10)

    search = sub.add_parser("search", help="Full-text search over events, polities, wars and changes")
    search.add_argument("--world", type=Path, required=True)
    search.add_argument("--q", required=True, help="Query text")
    search.add_argument("--limit", type=int, default=20)

    history = sub.add_parser("history", help="Events, changes and stats for one polity")
    history.add_argument("--world", type=Path, required=True)
    history.add_argument("--polity", required=True)
    history.add_argument("--from", dest="from_year", type=int)
    history.add_argument("--to", dest="to_year", type=int)
    return parser


def _build_config(args: argparse.Namespace) -> WorldConfig:
    cfg = load_config(args.config) if args.config else WorldConfig()
    if args.seed is not None:
        cfg.seed = args.seed
    return cfg.validate()


def _emit(payload: Any) -> None:
    print(json.dumps(to_jsonable(payload), indent=2, sort_keys=True))


def _print_summary(out_dir: Path, world_hash: str, metrics: Metrics) -> None:
    report = metrics.report()
    print(f"world: {out_dir}")
    print(f"hash: {world_hash}")
    print(f"years: {report['years']}")
    print(f"wars: declared={report['wars_declared']} ended={report['wars_ended']} active={report['wars_active']}")
    print(f"battles: {report['battles']}")
    print(f"snapshots: {report['snapshots']}")


def _cmd_generate(args: argparse.Namespace) -> int:
    cfg = _build_config(args)
    metrics = Metrics()
    bundle = generate_world(cfg, metrics=metrics)
    world_hash = write_world(bundle, args.out, config=cfg, with_indexes=not args.no_indexes)
    _print_summary(args.out, world_hash, metrics)
    return 0


def _cmd_query(args: argparse.Namespace) -> int:
    queries = WorldQueries(load_world(args.world))
    if args.polity:
        _emit(queries.polity_at(args.polity, args.year))
    else:
        _emit(queries.polities_at(args.year, sort="powerScore", limit=args.limit))
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    queries = WorldQueries(load_world(args.world))
    _emit(queries.search(args.q, args.limit))
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    queries = WorldQueries(load_world(args.world))
    _emit(queries.polity_history(args.polity, args.from_year, args.to_year))
    return 0


_COMMANDS = {
    "generate": _cmd_generate,
    "query": _cmd_query,
    "search": _cmd_search,
    "history": _cmd_history,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _COMMANDS[args.command](args)
    except ConfigError as exc:
        parser.error(str(exc))
    except NotFoundError as exc:
        print(f"not found: {exc}", file=sys.stderr)
        return 2
    except InvalidInitialStateError as exc:
        print(f"cannot simulate world: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"missing file: {exc.filename}", file=sys.stderr)
        return 2
    return 1


if __name__ == "__main__":
    sys.exit(main())
