from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, List, Sequence

from padel_client.client import PadelApiClient
from padel_client.config import ClientSettings, load_settings
from padel_client.errors import PadelApiError
from padel_client.logging_setup import configure_logging

LOGGER = logging.getLogger(__name__)


def _parse_filter(value: str) -> tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"filter must look like key=value, got {value!r}")
    key, raw = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError(f"filter key is empty in {value!r}")
    return key, raw.strip()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Query the padel racket analysis API",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override PADEL_LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log cache statistics after the command",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("probe", help="Check connectivity and credentials")
    commands.add_parser("list", help="List every racket")

    top = commands.add_parser("top", help="Best rackets for one attribute")
    top.add_argument("attribute", help="Maniability, Weight, Effect, Tolerance, Power or Control")
    top.add_argument("--limit", type=int, default=3)

    search = commands.add_parser("search", help="Search rackets by name or brand")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=None)
    search.add_argument(
        "--filter",
        dest="filters",
        action="append",
        type=_parse_filter,
        default=[],
        help="Extra query filter as key=value; repeatable",
    )

    similar = commands.add_parser("similar", help="Rackets similar to a reference racket")
    similar.add_argument("racket_id")
    similar.add_argument("--limit", type=int, default=3)

    compare = commands.add_parser("compare", help="Compare several rackets")
    compare.add_argument("racket_ids", nargs="+")

    racket = commands.add_parser("racket", help="Show one racket")
    racket.add_argument("racket_id")

    return parser.parse_args(argv)


async def run_command(client: PadelApiClient, args: argparse.Namespace) -> Any:
    """Run one sub-command and return a JSON-serializable result."""
    if args.command == "probe":
        result = await client.test_connection()
        return {
            "ok": result.ok,
            "baseUrl": result.base_url,
            "status": result.status,
            "count": result.count,
            "error": result.failure.message if result.failure else None,
        }
    if args.command == "list":
        return [racket.to_dict() for racket in await client.list_rackets()]
    if args.command == "top":
        return [racket.to_dict() for racket in await client.get_top_rackets(args.attribute, args.limit)]
    if args.command == "search":
        filters: Dict[str, Any] = dict(args.filters)
        if args.limit is not None:
            filters["limit"] = args.limit
        return [racket.to_dict() for racket in await client.search_rackets(args.query, filters)]
    if args.command == "similar":
        return (await client.get_similar_rackets(args.racket_id, args.limit)).to_dict()
    if args.command == "compare":
        return [racket.to_dict() for racket in await client.compare_rackets(args.racket_ids)]
    if args.command == "racket":
        racket = await client.get_racket(args.racket_id)
        return racket.to_dict() if racket is not None else None
    raise ValueError(f"unknown command: {args.command}")


async def _run(argv: Sequence[str] | None = None, settings: ClientSettings | None = None) -> int:
    args = parse_args(argv)
    settings = settings or load_settings()
    if args.log_level:
        settings = replace(settings, log_level=args.log_level)
    configure_logging(settings.log_level)

    async with PadelApiClient(settings) as client:
        try:
            result = await run_command(client, args)
        except PadelApiError as exc:
            LOGGER.error("command %s failed kind=%s: %s", args.command, exc.kind.value, exc)
            return 1

        if args.verbose:
            stats = client.cache_stats()
            LOGGER.info(
                "cache entries=%d hits=%d misses=%d expirations=%d",
                stats.entries,
                stats.hits,
                stats.misses,
                stats.expirations,
            )

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if args.command == "probe" and not result["ok"]:
        return 1
    return 0


def main(argv: List[str] | None = None) -> None:
    sys.exit(asyncio.run(_run(argv)))


if __name__ == "__main__":
    main()
