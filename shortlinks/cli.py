#!/usr/bin/env python3
"""
Command-line interface for shortlinks.

Usage:
    shortlinks-cli shorten <url> [--alias NAME ...]
    shortlinks-cli get <short_code>
    shortlinks-cli list [--limit N] [--start-after CODE]
    shortlinks-cli health
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional, Sequence

from .manager import LinkManager
from .database.cache import RedisCache
from .errors import LinkError, LinkNotFound
from .common.logging_config import setup_logging


class ShortLinksCLI:
    """Command-line interface for shortlinks."""

    def __init__(
        self,
        store_path: Optional[str] = None,
        redis_url: Optional[str] = None,
        verbose: bool = False,
    ):
        """Initialize CLI."""
        self.store_path = store_path
        self.redis_url = redis_url
        self.verbose = verbose
        # stdout is reserved for JSON results
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING", stream=sys.stderr)
        self.manager: Optional[LinkManager] = None

    async def initialize(self):
        """Open the store (and cache)."""
        cache = None
        if self.redis_url:
            cache = RedisCache(redis_url=self.redis_url, logger=self.logger)
            await cache.connect()

        self.manager = await LinkManager.create(
            store_path=self.store_path,
            cache=cache,
            logger=self.logger,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.manager:
            await self.manager.close()

    @staticmethod
    def _print(payload: dict, error: bool = False) -> int:
        print(json.dumps(payload, indent=2), file=sys.stderr if error else sys.stdout)
        return 1 if error else 0

    async def shorten(self, url: str, aliases: Optional[List[str]] = None) -> int:
        """Shorten a URL."""
        try:
            link = await self.manager.generate_link(url, aliases)
        except LinkError as e:
            return self._print({"success": False, "error": str(e)}, error=True)

        return self._print({
            "success": True,
            **link.to_dict(),
            "message": f"Successfully shortened URL to: {link.short_code}",
        })

    async def get(self, short_code: str) -> int:
        """Resolve a short code."""
        try:
            link = await self.manager.resolve_link(short_code)
        except LinkNotFound:
            return self._print(
                {"success": False, "error": f"Short code '{short_code}' not found"},
                error=True,
            )
        except LinkError as e:
            return self._print({"success": False, "error": f"Error: {e}"}, error=True)

        return self._print({"success": True, **link.to_dict()})

    async def list_links(self, limit: int = 100, start_after: Optional[str] = None) -> int:
        """List stored links."""
        try:
            links = await self.manager.list_links(limit=limit, start_after=start_after)
        except LinkError as e:
            return self._print({"success": False, "error": f"Error: {e}"}, error=True)

        return self._print({
            "success": True,
            "count": len(links),
            "links": [link.to_dict() for link in links],
        })

    async def health(self) -> int:
        """Check store and cache health."""
        health_status = await self.manager.health_check()
        total = await self.manager.count_links() if health_status["store"] else None

        self._print({
            "success": health_status["overall"],
            "health": health_status,
            "total_links": total,
        })
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="shortlinks-cli",
        description="shortlinks CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL
  %(prog)s shorten https://example.com/long/url

  # Shorten with aliases
  %(prog)s shorten https://example.com/long/url --alias "my link" --alias docs

  # Resolve a short code
  %(prog)s get bK3x9Qa

  # List stored links
  %(prog)s list --limit 10
        """
    )

    parser.add_argument(
        "--store-path",
        default=os.getenv("STORE_PATH"),
        help="Link store directory (default: from STORE_PATH env, else a temporary directory)"
    )

    parser.add_argument(
        "--redis-url",
        default=os.getenv("REDIS_URL"),
        help="Redis connection URL (optional, default: from REDIS_URL env)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--alias", action="append", dest="aliases", help="Alias (repeatable)")

    get_parser = subparsers.add_parser("get", help="Resolve a short code")
    get_parser.add_argument("short_code", help="Short code to lookup")

    list_parser = subparsers.add_parser("list", help="List stored links")
    list_parser.add_argument("--limit", type=int, default=100, help="Maximum number to return")
    list_parser.add_argument("--start-after", help="Only list short codes after this one")

    subparsers.add_parser("health", help="Check store health")

    return parser


async def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments and execute one command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = ShortLinksCLI(
        store_path=args.store_path,
        redis_url=args.redis_url,
        verbose=args.verbose,
    )

    try:
        await cli.initialize()
    except LinkError as e:
        return ShortLinksCLI._print({"success": False, "error": str(e)}, error=True)

    try:
        if args.command == "shorten":
            return await cli.shorten(args.url, args.aliases)
        elif args.command == "get":
            return await cli.get(args.short_code)
        elif args.command == "list":
            return await cli.list_links(args.limit, args.start_after)
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1
    finally:
        await cli.cleanup()


def main():
    """Console script entry point."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
