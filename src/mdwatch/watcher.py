import asyncio
from typing import Optional

from mdwatch.latest.discovery import LatestChapters
from mdwatch.latest.rate_limiter import sleep_unless_cancelled
from mdwatch.latest.rollup import rollup
from mdwatch.latest.settings import LatestFetchSettings
from mdwatch.main.logging import get_logger
from mdwatch.main.pass_context import end_pass, start_pass
from mdwatch.redis.bus import LATEST_CHAPTERS_KEY, NotificationBus

logger = get_logger(__name__)


class WatcherService:
    """Periodically checks MangaDex for new chapters and publishes them."""

    def __init__(
        self,
        latest: LatestChapters,
        bus: NotificationBus,
        channel: str = LATEST_CHAPTERS_KEY,
    ):
        self.latest = latest
        self.bus = bus
        self.channel = channel

    async def publish(self, batch: list) -> None:
        await self.bus.publish(self.channel, [fetched.to_dict() for fetched in batch])
        logger.info(
            "Published new chapters",
            extra={"channel": self.channel, "count": len(batch)},
        )

    async def trigger_check(
        self, settings: LatestFetchSettings, cancelled: asyncio.Event
    ) -> int:
        """Run one discovery pass, publishing each batch as it completes.

        Returns:
            The number of chapters published.
        """
        published = 0
        events = self.latest.do(settings, cancelled)
        try:
            async for batch in rollup(events, cancelled):
                await self.publish(batch)
                published += len(batch)
        finally:
            await events.aclose()
        return published

    async def watch(
        self,
        period_seconds: float,
        settings: LatestFetchSettings,
        cancelled: Optional[asyncio.Event] = None,
    ) -> None:
        """Run discovery passes every ``period_seconds`` until ``cancelled`` is set."""
        cancelled = cancelled or asyncio.Event()
        logger.info(
            "Starting chapter watcher",
            extra={"period_seconds": period_seconds, "channel": self.channel},
        )

        while not cancelled.is_set():
            start_pass()
            try:
                published = await self.trigger_check(settings, cancelled)
                logger.info("Check finished", extra={"published": published})
            except Exception as exc:
                # Next period retries from the same watermark
                logger.exception(f"Error while checking for new chapters: {exc}")
            finally:
                end_pass()

            if cancelled.is_set():
                break

            await sleep_unless_cancelled(cancelled, period_seconds)

        logger.info("Chapter watcher stopped")
