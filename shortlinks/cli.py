#!/usr/bin/env python3
"""
Command-line interface for the shortlinks service.

Usage:
    shortlinks init-db
    shortlinks shorten <url> [--custom-code CODE] [--owner OWNER_ID]
    shortlinks resolve <short_code>
    shortlinks info <short_code>
    shortlinks list --owner OWNER_ID [--limit N] [--search TEXT]
    shortlinks health
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from .app import build_service
from .config import Config, load_config
from .lib.common.logging_config import setup_logging
from .lib.errors import ShortLinkError
from .lib.identity import identity_for


class ShortLinksCLI:
    """Command-line interface for shortlinks."""

    def __init__(self, config: Config, verbose: bool = False):
        """Initialize CLI."""
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.service = None

    async def initialize(self):
        """Initialize store, cache and service."""
        _, _, self.service = await build_service(self.config, self.logger)

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    @staticmethod
    def _emit(payload: dict, error: bool = False) -> int:
        print(json.dumps(payload, indent=2, default=str), file=sys.stderr if error else sys.stdout)
        return 1 if error else 0

    async def init_db(self):
        """Schema creation happens in initialize(); report the result."""
        healthy = await self.service.store.health_check()
        if not healthy:
            return self._emit({"success": False, "error": "Database health check failed"}, error=True)
        return self._emit({"success": True, "message": "Database initialized"})

    async def shorten(self, url: str, custom_code: Optional[str] = None, owner: Optional[str] = None):
        """Shorten a URL."""
        try:
            code = await self.service.create_short_link(url, identity_for(owner), custom_code)
        except ShortLinkError as e:
            return self._emit({"success": False, "error": str(e)}, error=True)

        return self._emit({
            "success": True,
            "short_code": code,
            "original_url": url,
            "message": f"Successfully shortened URL to: {code}",
        })

    async def resolve(self, short_code: str):
        """Look up a destination without counting a click."""
        try:
            destination_url = await self.service.resolve(short_code, count_click=False)
        except ShortLinkError as e:
            return self._emit({"success": False, "error": str(e)}, error=True)

        return self._emit({"success": True, "short_code": short_code, "original_url": destination_url})

    async def info(self, short_code: str):
        """Show a short link with its click count."""
        try:
            link = await self.service.get_link_info(short_code)
        except ShortLinkError as e:
            return self._emit({"success": False, "error": str(e)}, error=True)

        return self._emit({"success": True, **link.to_dict()})

    async def list_links(self, owner: str, limit: int, search: str):
        """List an owner's links."""
        try:
            page = await self.service.list_owner_links(owner, limit=limit, search=search)
        except ValueError as e:
            return self._emit({"success": False, "error": str(e)}, error=True)

        return self._emit({
            "success": True,
            "count": page.count,
            "total_count": page.total_count,
            "urls": [link.to_dict() for link in page.links],
        })

    async def health(self):
        """Check service health."""
        health_status = await self.service.health_check()
        self._emit({"success": health_status["overall"], "health": health_status})
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlinks",
        description="shortlinks CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s init-db
  %(prog)s shorten https://example.com/long/url
  %(prog)s shorten https://example.com/long/url --custom-code my-link --owner user-1
  %(prog)s resolve my-link
  %(prog)s info my-link
  %(prog)s list --owner user-1 --limit 10
  %(prog)s health
        """,
    )

    parser.add_argument("--db-url", help="Database URL (default: DATABASE_URL from the environment)")
    parser.add_argument(
        "--backend",
        choices=["postgres", "memory"],
        help="Mapping store backend (default: DATABASE_BACKEND from the environment)",
    )
    parser.add_argument("--redis-url", help="Redis connection URL (default: REDIS_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the short_links table")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--custom-code", help="Custom short code")
    shorten_parser.add_argument("--owner", help="Owner id for the new link")

    resolve_parser = subparsers.add_parser("resolve", help="Get destination URL")
    resolve_parser.add_argument("short_code", help="Short code to lookup")

    info_parser = subparsers.add_parser("info", help="Get short link details")
    info_parser.add_argument("short_code", help="Short code to lookup")

    list_parser = subparsers.add_parser("list", help="List an owner's links")
    list_parser.add_argument("--owner", required=True, help="Owner id")
    list_parser.add_argument("--limit", type=int, default=20, help="Maximum number to return")
    list_parser.add_argument("--search", default="", help="Filter by destination or code")

    subparsers.add_parser("health", help="Check service health")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides = {}
    if args.db_url:
        overrides["database_url"] = args.db_url
    if args.backend:
        overrides["database_backend"] = args.backend
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    if args.command == "init-db":
        overrides["database_create_tables"] = True

    cli = ShortLinksCLI(load_config().model_copy(update=overrides), verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "init-db":
            return await cli.init_db()
        if args.command == "shorten":
            return await cli.shorten(args.url, args.custom_code, args.owner)
        if args.command == "resolve":
            return await cli.resolve(args.short_code)
        if args.command == "info":
            return await cli.info(args.short_code)
        if args.command == "list":
            return await cli.list_links(args.owner, args.limit, args.search)
        if args.command == "health":
            return await cli.health()

        parser.print_help()
        return 1
    finally:
        await cli.cleanup()


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
