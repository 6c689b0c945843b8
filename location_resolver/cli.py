"""Command-line entry point.

Examples:
  location-resolver lookup Toronto
  location-resolver lookup "JFK" --airport
  location-resolver lookup torotno --no-fuzzy
  location-resolver purge-cache --older-than-days 30
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from .config import get_config
from .container import get_container, reset_container
from .domain import LocationResolverError, LookupOptions
from .logging_config import configure_logging
from .services import LocationResolverService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="location-resolver",
        description="Resolve city names and airport codes to IATA codes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    lookup = subcommands.add_parser("lookup", help="Resolve one or more queries")
    lookup.add_argument("queries", nargs="+", help="Location text, e.g. Toronto or YYZ")
    lookup.add_argument(
        "--airport",
        action="store_true",
        help="Return airports instead of grouping them under metro areas",
    )
    lookup.add_argument(
        "--no-fuzzy",
        action="store_true",
        help="Disable similarity matching",
    )
    lookup.add_argument(
        "--max-results",
        type=int,
        default=5,
        help="Cap on fuzzy candidates and alternatives (default: 5)",
    )

    purge = subcommands.add_parser(
        "purge-cache", help="Delete durable cache entries not accessed recently"
    )
    purge.add_argument(
        "--older-than-days",
        type=int,
        default=None,
        help="Age threshold in days (default: configured retention window)",
    )
    return parser


def _run_lookup(service: LocationResolverService, args: argparse.Namespace) -> int:
    options = LookupOptions(
        prefer_metro=not args.airport,
        fuzzy=not args.no_fuzzy,
        max_results=args.max_results,
    )
    status = 0
    for query in args.queries:
        try:
            result = service.lookup(query, options)
        except LocationResolverError as e:
            print(json.dumps({"query": query, "error": e.message}), file=sys.stderr)
            status = 1
            continue
        print(json.dumps({"query": query, **result.as_dict()}, ensure_ascii=False))
    return status


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_config().observability)

    service: LocationResolverService = get_container().resolve(LocationResolverService)
    try:
        if args.command == "lookup":
            return _run_lookup(service, args)

        deleted = service.clear_db_cache(args.older_than_days)
        print(json.dumps({"deleted": deleted}))
        return 0
    finally:
        reset_container()


if __name__ == "__main__":
    sys.exit(main())
