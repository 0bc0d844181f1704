"""Command line interface: ``crawl run|parse|roll``."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Optional, Sequence

from crawl.config import InterpreterConfig
from crawl.dice import DiceEngine, RollSpecifier
from crawl.errors import CrawlError
from crawl.fact_store.backends import JsonFactBackend
from crawl.lang import Crawl
from crawl.output import ConsoleSink, ListSink
from crawl.parser.parser import parse
from crawl.tables.sources import CsvTableSource

logger = logging.getLogger("crawl")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crawl", description=__doc__)
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a script")
    run.add_argument("script", type=Path)
    run.add_argument("--tables", type=Path, default=None, help="Directory holding table CSV files")
    run.add_argument("--facts", type=Path, default=None, help="JSON file for persistent facts")
    run.add_argument("--seed", type=int, default=None)
    run.add_argument("--max-depth", type=int, default=64)
    run.add_argument("--max-steps", type=int, default=None)
    run.add_argument("--json", action="store_true", help="Print a JSON report instead of events")
    run.add_argument("--trace", action="store_true", help="Include statement records in the JSON report")

    show = sub.add_parser("parse", help="Parse a script and print its statements as JSON")
    show.add_argument("script", type=Path)

    roll = sub.add_parser("roll", help="Roll a dice specifier such as 2d6+3")
    roll.add_argument("specifier")
    roll.add_argument("--seed", type=int, default=None)
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _cmd_run(args: argparse.Namespace) -> int:
    config = InterpreterConfig(max_call_depth=args.max_depth, max_steps=args.max_steps, seed=args.seed)
    crawl = Crawl(
        table_source=CsvTableSource(args.tables) if args.tables is not None else None,
        fact_backend=JsonFactBackend(args.facts) if args.facts is not None else None,
        sink=ListSink() if args.json else ConsoleSink(),
        config=config,
    )
    result = crawl.execute_file(args.script, raise_on_error=False)
    if args.json:
        report = result.to_report(include_records=args.trace)
        print(report.model_dump_json(indent=2))
    elif result.error is not None:
        print(f"error: {result.error}", file=sys.stderr)
    return 0 if result.ok else 1


def _cmd_parse(args: argparse.Namespace) -> int:
    program = parse(args.script.read_text(encoding="utf-8"), source_name=str(args.script))
    program.procedures()
    print(json.dumps(program.to_dict(), indent=2))
    return 0


def _cmd_roll(args: argparse.Namespace) -> int:
    spec = RollSpecifier.parse(args.specifier)
    result = DiceEngine(seed=args.seed).roll(spec)
    faces = ", ".join(str(face) for face in result.faces)
    print(f"{spec} = {result.total} ({faces})")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    handlers = {"run": _cmd_run, "parse": _cmd_parse, "roll": _cmd_roll}
    try:
        return handlers[args.command](args)
    except CrawlError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
