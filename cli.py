"""Lightweight CLI for the tenant document stores.

Usage:
    docstore fetch waiting-time                              # every document
    docstore fetch waiting-time --order value --limit 1      # lowest value
    docstore fetch waiting-time --where status == open --where value ">" 3
    docstore fetch productivity --project project_two --order score:desc
    docstore get waiting-time abc123                         # one document
    docstore log-level DEBUG                                 # set log level in settings.toml
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from time import perf_counter

from settings_service import _load_settings, clear_settings_cache

SETTINGS_PATH = Path("settings.toml")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_value(raw: str):
    """Read a command-line value as a JSON literal, falling back to a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_order(raw: str) -> tuple[str, str]:
    """Split FIELD[:asc|desc] into (field, direction)."""
    field, _, direction = raw.rpartition(":")
    if not field or direction.lower() not in ("asc", "desc"):
        return raw, "asc"
    return field, direction.lower()


def _print_json(payload) -> None:
    print(json.dumps(payload, default=str, sort_keys=True))


def cmd_fetch(args: argparse.Namespace) -> int:
    """Run one query and print each document as a JSON line."""
    if not args.verbose:
        # Suppress library logs before config imports set up handlers
        logging.disable(logging.INFO)

    from domain.errors import DocumentStoreError
    from facades.document_facade import get_document_facade
    from services.query_shaper import shape_query

    t0 = perf_counter()
    try:
        facade = get_document_facade(args.project, SETTINGS_PATH)
        predicates = [(f, op, parse_value(v)) for f, op, v in (args.where or [])]
        order = parse_order(args.order) if args.order else None
        descriptor = shape_query(args.collection, predicates, order=order, limit=args.limit)
        result = facade.fetch(descriptor)
    except (DocumentStoreError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for record in result.to_records():
        _print_json(record)
    elapsed = round((perf_counter() - t0) * 1000)
    print(f"{len(result)} documents ({elapsed} ms)", file=sys.stderr)
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    """Print one document as JSON."""
    if not args.verbose:
        logging.disable(logging.INFO)

    from domain.errors import DocumentStoreError, NotFound
    from facades.document_facade import get_document_facade

    try:
        facade = get_document_facade(args.project, SETTINGS_PATH)
        document = facade.documents.get(args.collection, args.document_id)
    except NotFound:
        print(f"not found: {args.collection}/{args.document_id}", file=sys.stderr)
        return 1
    except (DocumentStoreError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    _print_json(document.to_dict())
    return 0


def cmd_log_level(args: argparse.Namespace) -> int:
    """Get or set the log level in settings.toml."""
    settings = _load_settings(SETTINGS_PATH)
    current = settings["env"]["log_level"]

    if args.level is None:
        print(current)
        return 0

    level = args.level.upper()
    if level not in VALID_LOG_LEVELS:
        print(f"invalid level: {args.level} (expected one of {', '.join(VALID_LOG_LEVELS)})")
        return 1

    if level == current:
        print(f"already {level}")
        return 0

    content = SETTINGS_PATH.read_text()
    updated = re.sub(
        r'(log_level\s*=\s*)"[^"]*"',
        rf'\1"{level}"',
        content,
    )
    SETTINGS_PATH.write_text(updated)
    clear_settings_cache()
    print(f"{current} -> {level}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    from domain.project import DEFAULT_PROJECT

    parser = argparse.ArgumentParser(prog="docstore", description="Tenant document store CLI tools")
    sub = parser.add_subparsers(dest="command")

    fetch_parser = sub.add_parser("fetch", help="Query a collection once")
    fetch_parser.add_argument("collection", help="Collection path")
    fetch_parser.add_argument("--project", default=DEFAULT_PROJECT, help="Project alias from settings.toml")
    fetch_parser.add_argument(
        "--where", nargs=3, action="append", metavar=("FIELD", "OP", "VALUE"),
        help="Filter predicate; repeat up to three times",
    )
    fetch_parser.add_argument("--order", metavar="FIELD[:asc|desc]", help="Ordering field and direction")
    fetch_parser.add_argument("--limit", type=int, help="Maximum number of documents")
    fetch_parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed logs")

    get_parser = sub.add_parser("get", help="Read one document")
    get_parser.add_argument("collection", help="Collection path")
    get_parser.add_argument("document_id", help="Document id")
    get_parser.add_argument("--project", default=DEFAULT_PROJECT, help="Project alias from settings.toml")
    get_parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed logs")

    ll_parser = sub.add_parser("log-level", help="Get or set the log level in settings.toml")
    ll_parser.add_argument("level", nargs="?", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "fetch":
        return cmd_fetch(args)
    if args.command == "get":
        return cmd_get(args)
    if args.command == "log-level":
        return cmd_log_level(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
