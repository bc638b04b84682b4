"""Maintenance CLI for the subtitle result cache.

Inspects and cleans the on-disk cache that the desktop application fills:
content digests for media files, per-kind usage, and expiry sweeps.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .cache.errors import CacheError
from .cache.hashing import digest_file
from .cache.subtitle_cache import SubtitleCache
from .config.settings import CacheSettings, ConfigurationError, load_settings
from .ui.console import ConsoleManager

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="subtitle-cache",
        description="Inspect and maintain the subtitle studio result cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Print the cache key of a media file
  subtitle-cache digest episode01.mp4

  # Show how many entries of each kind are cached
  subtitle-cache stats --cache-dir ~/.subtitle_studio/cache

  # Remove expired transcriptions, translations and project snapshots
  subtitle-cache purge

Configuration is read from SUBTITLE_CACHE_* environment variables or a .env file.
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON instead of tables",
    )
    parser.add_argument("--cache-dir", type=Path, help="Cache directory (overrides configuration)")
    parser.add_argument("--env-file", type=Path, help="Path to a .env file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    digest_parser = subparsers.add_parser("digest", help="Print content digests of media files")
    digest_parser.add_argument("files", nargs="+", type=Path, help="Media files to hash")

    subparsers.add_parser("stats", help="Show cached entry counts and sizes")
    subparsers.add_parser("purge", help="Delete expired cache entries")

    return parser


def _load(args: argparse.Namespace) -> CacheSettings:
    overrides: Dict[str, Any] = {}
    if args.cache_dir is not None:
        overrides["cache_dir"] = args.cache_dir
    return load_settings(args.env_file, **overrides)


def digest_command(args: argparse.Namespace, settings: CacheSettings, console: ConsoleManager) -> int:
    """Handle the digest subcommand."""
    rows: List[List[Any]] = []
    failed = False
    for path in args.files:
        try:
            rows.append([str(path), digest_file(path, settings.hash_chunk_size)])
        except CacheError as e:
            console.print_error(str(e))
            failed = True

    if rows:
        console.print_table("digests", ["file", "digest"], rows)
    return 1 if failed else 0


def stats_command(args: argparse.Namespace, settings: CacheSettings, console: ConsoleManager) -> int:
    """Handle the stats subcommand."""
    cache = SubtitleCache.from_settings(settings)
    usage = cache.store.usage()
    rows = [[kind, data["entries"], data["bytes"]] for kind, data in usage.items()]
    rows.append(
        ["total", sum(d["entries"] for d in usage.values()), sum(d["bytes"] for d in usage.values())]
    )
    console.print_table("cache usage", ["kind", "entries", "bytes"], rows)
    return 0


def purge_command(args: argparse.Namespace, settings: CacheSettings, console: ConsoleManager) -> int:
    """Handle the purge subcommand."""
    cache = SubtitleCache.from_settings(settings)
    removed = cache.purge_expired()
    console.print_table("purged", ["kind", "removed"], [[kind, count] for kind, count in removed.items()])
    return 0


_COMMANDS = {
    "digest": digest_command,
    "stats": stats_command,
    "purge": purge_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    console = ConsoleManager(verbose=args.verbose, json_output=args.json_output)

    try:
        settings = _load(args)
    except ConfigurationError as e:
        console.print_error(str(e))
        return 1

    # --verbose overrides the configured level
    console.setup_logging(logging.getLogger("subtitle_studio"), level=settings.log_level)

    try:
        return _COMMANDS[args.command](args, settings, console)
    except CacheError as e:
        console.print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
