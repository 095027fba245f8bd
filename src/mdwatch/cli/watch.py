"""Watch MangaDex for new chapters and publish them to redis.

Configuration is read from the environment (see ``mdwatch.main.config``).

Usage:
    python -m mdwatch.cli.watch
"""

import asyncio
import signal

from mdwatch.cache.cache_service import CacheService
from mdwatch.database.database import sessionmanager
from mdwatch.database.tables.base_class import Base
from mdwatch.latest.discovery import LatestChapters
from mdwatch.main.aiohttp_client import aiohttp_client
from mdwatch.main.config import get_settings
from mdwatch.main.logging import get_logger
from mdwatch.mangadex.client import MangaDexClient
from mdwatch.redis.bus import NotificationBus
from mdwatch.redis.connection import create_redis
from mdwatch.watcher import WatcherService

logger = get_logger(__name__)


async def log_published(bus: NotificationBus, channel: str):
    """Log every chapter published on ``channel``."""
    async for batch in bus.subscribe(channel):
        for fetched in batch:
            manga = fetched.get("cache", {}).get("manga", {})
            chapter = fetched.get("chapter", {})
            logger.info(
                f"New chapter: {manga.get('title')} - "
                f"{chapter.get('attributes', {}).get('title') or chapter.get('id')}",
                extra={"chapter_id": chapter.get("id"), "pages": len(fetched.get("pages", []))},
            )


async def watch():
    settings = get_settings()
    sessionmanager.init(settings.database_url)
    aiohttp_client.start(
        user_agent=settings.mangadex_user_agent,
        timeout_seconds=settings.mangadex_timeout_seconds,
    )
    bus = NotificationBus(create_redis(settings))

    cancelled = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, cancelled.set)

    subscriber = asyncio.create_task(log_published(bus, settings.latest_chapters_channel))

    try:
        async with sessionmanager.connect() as connection:
            await connection.run_sync(Base.metadata.create_all)

        client = MangaDexClient(aiohttp_client(), settings.mangadex_api_url)
        watcher = WatcherService(
            LatestChapters(client, CacheService(sessionmanager)),
            bus,
            channel=settings.latest_chapters_channel,
        )
        await watcher.watch(settings.watch_period_seconds, settings.fetch_settings(), cancelled)
    finally:
        subscriber.cancel()
        try:
            await subscriber
        except asyncio.CancelledError:
            pass
        await bus.close()
        await aiohttp_client.stop()
        await sessionmanager.close()


def main():
    """Entry point for CLI script."""
    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        logger.info("Watcher interrupted by user")
    except Exception as e:
        logger.error(f"Watcher failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
