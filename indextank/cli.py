"""
IndexTank Client - Command Line

Inspect indexes and run searches from a shell.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from indextank.config import get_settings
from indextank.errors import IndexTankError
from indextank.protocol.query import Query
from indextank.services.client import IndexTankClient


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="IndexTank command line client")
    parser.add_argument(
        "--private-url",
        type=str,
        default=None,
        help="Private API URL (default: INDEXTANK_PRIVATE_URL)",
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("indexes", help="List the indexes of the account")

    functions = commands.add_parser("functions", help="List the scoring functions of an index")
    functions.add_argument("index", help="Index name")

    search = commands.add_parser("search", help="Search an index")
    search.add_argument("index", help="Index name")
    search.add_argument("text", help="Query text")
    search.add_argument("--fetch", nargs="*", default=None, help="Fields to return in full")
    search.add_argument("--snippet", nargs="*", default=None, help="Fields to return snippets from")
    search.add_argument("--skip", type=int, default=None, help="Results to skip")
    search.add_argument("--take", type=int, default=None, help="Results to return")
    search.add_argument("--function", type=int, default=None, help="Scoring function number")
    search.add_argument("--variables", action="store_true", help="Return document variables")
    search.add_argument("--categories", action="store_true", help="Return document categories")
    search.add_argument("--timeout-ms", type=int, default=None, help="Search deadline in milliseconds")

    return parser


def build_query(args: argparse.Namespace) -> Query:
    """Translate search arguments into a Query."""
    query = Query(args.text)
    if args.skip is not None:
        query.skip(args.skip)
    if args.take is not None:
        query.take(args.take)
    if args.function is not None:
        query.with_scoring_function(args.function)
    if args.snippet is not None:
        query.with_snippet_from_fields(*args.snippet)
    if args.fetch is not None:
        query.with_fields(*args.fetch)
    if args.variables:
        query.with_variables()
    if args.categories:
        query.with_categories()
    return query


async def run(args: argparse.Namespace, client: IndexTankClient) -> dict:
    """Execute one command and return its JSON-ready output."""
    async with client:
        if args.command == "indexes":
            indexes = await client.get_indexes()
            return {
                index.name: index.info.model_dump(mode="json")
                for index in indexes
            }

        if args.command == "functions":
            index = client.index(args.index)
            functions = await index.get_functions()
            return {str(number): definition for number, definition in sorted(functions.items())}

        index = client.index(args.index)
        query = build_query(args)
        if args.timeout_ms is not None:
            result = await index.search_with_timeout(query, args.timeout_ms)
        else:
            result = await index.search(query)
        return result.model_dump(mode="json")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    settings = get_settings()
    logging.basicConfig(level=settings.log.level)

    try:
        client = IndexTankClient(args.private_url, settings)
        output = asyncio.run(run(args, client))
    except IndexTankError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
