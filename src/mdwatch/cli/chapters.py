"""Inspect cached chapters and record their indexing state.

Downstream indexers poll for chapters that still need indexing and report
back once they are done with them.

Usage:
    python -m mdwatch.cli.chapters not-indexed --limit 100
    python -m mdwatch.cli.chapters indexed 12 13
    python -m mdwatch.cli.chapters errored 14
    python -m mdwatch.cli.chapters manga <mangadex-id> ...
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, TextIO

from mdwatch.cache.cache_service import CacheService
from mdwatch.cache.models import ChapterState
from mdwatch.database.database import sessionmanager
from mdwatch.database.fake_upsert import row_values
from mdwatch.main.config import get_settings
from mdwatch.main.logging import get_logger

logger = get_logger(__name__)

PENDING_STATES = (ChapterState.NOT_INDEXED, ChapterState.UNKNOWN)
STATE_COMMANDS = {
    "indexed": ChapterState.INDEXED,
    "errored": ChapterState.ERROR_INDEXING,
}


def write_json(payload, out: TextIO) -> None:
    out.write(json.dumps(payload, default=str) + "\n")


async def list_not_indexed(cache: CacheService, limit: int, out: TextIO = sys.stdout) -> int:
    """Write the oldest pending chapters as JSON lines. Returns how many were written."""
    pending = await cache.by_states(limit, *PENDING_STATES)
    for cached in pending:
        write_json(cached.to_dict(), out)
    return len(pending)


async def mark_chapters(cache: CacheService, ids: list[int], state: ChapterState) -> None:
    for id in ids:
        await cache.set_state(id, state)
        logger.info(
            "Chapter state updated",
            extra={"chapter_cache_id": id, "state": state.name.lower()},
        )


async def show_manga(cache: CacheService, manga_ids: list[str], out: TextIO = sys.stdout) -> int:
    found = await cache.by_ids(manga_ids)
    for manga in found:
        write_json(row_values(manga), out)

    missing = set(manga_ids) - {manga.source_id for manga in found}
    if missing:
        logger.warning("Manga not cached", extra={"manga_ids": sorted(missing)})
    return len(found)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cached chapter indexing state.")
    commands = parser.add_subparsers(dest="command", required=True)

    pending = commands.add_parser("not-indexed", help="List chapters waiting to be indexed.")
    pending.add_argument("--limit", type=int, default=100, help="Maximum chapters to list.")

    for name in STATE_COMMANDS:
        command = commands.add_parser(name, help=f"Mark chapters as {name}.")
        command.add_argument("ids", type=int, nargs="+", help="Cache ids of the chapters.")

    manga = commands.add_parser("manga", help="Show cached manga by MangaDex id.")
    manga.add_argument("manga_ids", nargs="+", help="MangaDex manga ids.")

    return parser


async def run(args: argparse.Namespace, cache: CacheService) -> None:
    match args.command:
        case "not-indexed":
            await list_not_indexed(cache, args.limit)
        case "manga":
            await show_manga(cache, args.manga_ids)
        case command:
            await mark_chapters(cache, args.ids, STATE_COMMANDS[command])


async def chapters(args: argparse.Namespace):
    sessionmanager.init(get_settings().database_url)
    try:
        await run(args, CacheService(sessionmanager))
    finally:
        await sessionmanager.close()


def main(argv: Optional[list[str]] = None):
    """Entry point for CLI script."""
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(chapters(args))
    except Exception as e:
        logger.error(f"Chapter command failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
