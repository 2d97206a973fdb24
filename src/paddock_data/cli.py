#!/usr/bin/env python3
"""
Command-line interface for the Paddock Data API.

Usage:
    paddock-data serve [--host 0.0.0.0] [--port 3000]
    paddock-data ping
    paddock-data get season 42
    paddock-data tree 7
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .core.config import get_settings

logger = logging.getLogger("paddock_data.cli")

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_STORE_ERROR = 2
EXIT_INVALID_INPUT = 3


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API under uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "paddock_data.api.main:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return EXIT_OK


async def _with_store(action):
    from .core.types import InvalidIdentifierError
    from .store import RedisStore, StoreUnavailableError

    store = RedisStore.from_settings(get_settings())
    try:
        return await action(store)
    except StoreUnavailableError as e:
        logger.error(f"Store unavailable: {e}")
        return EXIT_STORE_ERROR
    except InvalidIdentifierError as e:
        logger.error(str(e))
        return EXIT_INVALID_INPUT
    finally:
        await store.close()


def cmd_ping(args: argparse.Namespace) -> int:
    """Check that the record store answers."""

    async def ping(store) -> int:
        if await store.ping():
            print("PONG")
            return EXIT_OK
        return EXIT_STORE_ERROR

    return asyncio.run(_with_store(ping))


def cmd_get(args: argparse.Namespace) -> int:
    """Print one decoded record."""
    from .aggregation import HierarchyAggregator

    async def get(store) -> int:
        record = await HierarchyAggregator(store).get_entity(args.entity_type, args.entity_id)
        if record is None:
            print("Not found")
            return EXIT_NOT_FOUND
        _print_json(record)
        return EXIT_OK

    return asyncio.run(_with_store(get))


def cmd_tree(args: argparse.Namespace) -> int:
    """Print a championship with its full season hierarchy."""
    from .aggregation import HierarchyAggregator
    from .store import round_trip_scope

    async def tree(store) -> int:
        with round_trip_scope() as tally:
            result = await HierarchyAggregator(store).get_championship_tree(args.championship_id)
        if result is None:
            print("Not found")
            return EXIT_NOT_FOUND
        _print_json(result)
        logger.info(f"Championship tree assembled in {tally.count} round trips")
        return EXIT_OK

    return asyncio.run(_with_store(tree))


def build_parser() -> argparse.ArgumentParser:
    from .core.types import EntityType

    parser = argparse.ArgumentParser(
        description="Paddock Data CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: API_HOST)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: API_PORT)")

    # ping command
    subparsers.add_parser("ping", help="Check record store connectivity")

    # get command
    get_parser = subparsers.add_parser("get", help="Print one decoded record")
    get_parser.add_argument("entity_type", choices=[t.value for t in EntityType])
    get_parser.add_argument("entity_id")

    # tree command
    tree_parser = subparsers.add_parser("tree", help="Print a championship hierarchy")
    tree_parser.add_argument("championship_id")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    configure_logging(get_settings().log_level)

    commands = {
        "serve": cmd_serve,
        "ping": cmd_ping,
        "get": cmd_get,
        "tree": cmd_tree,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
