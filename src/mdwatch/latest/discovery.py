"""One discovery pass over the MangaDex chapter feed."""

import asyncio
import logging
from typing import AsyncIterator, Optional

from mdwatch.cache.cache_service import CacheService
from mdwatch.cache.models import FetchedManga, MangaCache
from mdwatch.latest.cursor import PaginationCursor, resolve_watermark
from mdwatch.latest.errors import (
    ContentFetchError,
    MissingRelationError,
    PolicyExcludedError,
    UpstreamEmptyResult,
)
from mdwatch.latest.events import Entry, Error, Event, PageRequest, log_event
from mdwatch.latest.rate_limiter import RateLimitState
from mdwatch.latest.settings import LatestFetchSettings
from mdwatch.latest.tracking import TrackingService
from mdwatch.main.logging import get_logger
from mdwatch.main.pass_context import set_watermark
from mdwatch.mangadex.client import MangaDexClient, MangaDexError
from mdwatch.mangadex.models import Chapter

logger = get_logger(__name__)

MISSING_RELATION_MESSAGE = "missing parent relationship"
EXTERNAL_URL_MESSAGE = "external URL detected, skipping"
NO_CONTENT_MESSAGE = "no content found"


def describe_fetched(fetched: FetchedManga) -> str:
    return f"{fetched.title} - {fetched.chapter.display_title} ({fetched.chapter.id})"


class LatestChapters:
    def __init__(
        self,
        client: MangaDexClient,
        cache: CacheService,
        tracker: Optional[TrackingService] = None,
        logger: logging.Logger = logger,
    ):
        self.client = client
        self.cache = cache
        self.tracker = tracker or TrackingService(cache)
        self.logger = logger

    async def do(
        self, settings: LatestFetchSettings, cancelled: asyncio.Event
    ) -> AsyncIterator[Event]:
        """Run a pass, logging every event on the way through."""
        async for event in self.latest(settings, cancelled):
            log_event(self.logger, event)
            yield event

    async def latest(
        self, settings: LatestFetchSettings, cancelled: asyncio.Event
    ) -> AsyncIterator[Event]:
        """Every chapter updated since the last pass, newest first."""
        state = RateLimitState(settings)
        since = resolve_watermark(await self.cache.last_check())
        set_watermark(since)
        self.logger.info("Checking for new chapters", extra={"since": since.isoformat()})

        cursor = PaginationCursor(self.client, settings)
        async for event in cursor.paginate(since, cancelled):
            if cancelled.is_set():
                return

            yield event
            state.record(event)
            async for limit_event in state.check_and_wait(cancelled):
                yield limit_event

            match event:
                case Entry(item=list() as chapters) if not cancelled.is_set():
                    async for item_event in self.process_chapters(
                        chapters, settings, state, cancelled
                    ):
                        yield item_event

    async def process_chapters(
        self,
        chapters: list[Chapter],
        settings: LatestFetchSettings,
        state: RateLimitState,
        cancelled: asyncio.Event,
    ) -> AsyncIterator[Event]:
        existing = {
            cached.chapter.source_id: cached
            for cached in await self.cache.determine_existing([c.id for c in chapters])
        }

        for chapter in chapters:
            if cancelled.is_set():
                return

            async for event in self.process_chapter(chapter, existing.get(chapter.id), settings):
                yield event
                state.record(event)

            async for limit_event in state.check_and_wait(cancelled):
                yield limit_event

    async def process_chapter(
        self,
        chapter: Chapter,
        cached: Optional[MangaCache],
        settings: LatestFetchSettings,
    ) -> AsyncIterator[Event]:
        manga = chapter.manga()
        if manga is None:
            yield Error(MISSING_RELATION_MESSAGE, MissingRelationError(chapter.id), chapter)
            return

        if cached is not None and not settings.reindex:
            return

        if chapter.is_external:
            if not settings.include_external_items:
                yield Error(
                    EXTERNAL_URL_MESSAGE,
                    PolicyExcludedError(chapter.id, "external chapters are not included"),
                    chapter,
                )
                return

            fetched = await self.tracker.track(manga, chapter)
            yield Entry(fetched, formatter=describe_fetched)
            return

        try:
            pages = await self.client.fetch_pages(chapter.id)
        except MangaDexError as e:
            yield PageRequest(chapter)
            yield Error(NO_CONTENT_MESSAGE, ContentFetchError(chapter.id, e), chapter)
            return

        yield PageRequest(chapter)
        if not pages.images:
            yield Error(NO_CONTENT_MESSAGE, UpstreamEmptyResult(chapter.id), chapter)
            return

        fetched = await self.tracker.track(
            manga, chapter, pages.images, pages.data_saver_images
        )
        yield Entry(fetched, formatter=describe_fetched)
