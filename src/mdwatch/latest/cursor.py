import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional, Union

from mdwatch.latest.enricher import enrich_covers
from mdwatch.latest.events import Entry, GeneralRequest
from mdwatch.latest.settings import LatestFetchSettings
from mdwatch.main.logging import get_logger
from mdwatch.mangadex.client import MangaDexClient
from mdwatch.mangadex.models import Chapter, ChaptersFilter

logger = get_logger(__name__)

PAGE_SIZE = 100
DEFAULT_LOOKBACK = timedelta(hours=4)


def resolve_watermark(
    last_check: Optional[datetime], now: Optional[datetime] = None
) -> datetime:
    """The ``updatedAtSince`` bound for a pass, as an aware UTC datetime."""
    if last_check is None:
        return (now or datetime.now(timezone.utc)) - DEFAULT_LOOKBACK

    # SQLite hands back naive timestamps, which are stored as UTC
    if last_check.tzinfo is None:
        return last_check.replace(tzinfo=timezone.utc)
    return last_check.astimezone(timezone.utc)


def describe_chapters(chapters: list[Chapter]) -> str:
    return f"{len(chapters)} chapters: " + ", ".join(c.id for c in chapters[:5]) + (
        ", ..." if len(chapters) > 5 else ""
    )


class PaginationCursor:
    """Walks the chapter feed from a watermark to the newest chapter."""

    def __init__(
        self,
        client: MangaDexClient,
        settings: LatestFetchSettings,
        page_size: int = PAGE_SIZE,
    ):
        self.client = client
        self.settings = settings
        self.page_size = page_size

    def _filter(self, since: datetime, offset: int) -> ChaptersFilter:
        return ChaptersFilter(
            limit=self.page_size,
            offset=offset,
            updated_at_since=since,
            translated_language=list(self.settings.languages),
            include_external_url=self.settings.include_external_items,
        )

    async def paginate(
        self, since: datetime, cancelled: asyncio.Event
    ) -> AsyncIterator[Union[Entry, GeneralRequest]]:
        """Yield each enriched page of chapters, newest first.

        Yields a ``GeneralRequest`` for every request made and an
        ``Entry`` holding the list of chapters for every non-empty page.
        """
        offset = 0
        while not cancelled.is_set():
            result = await self.client.fetch_chapters(self._filter(since, offset))
            yield GeneralRequest("latest", "chapters")

            if not result.data:
                logger.debug("No more chapters", extra={"offset": offset})
                return

            if cancelled.is_set():
                return

            async for event in enrich_covers(self.client, result.data):
                yield event

            yield Entry(result.data, formatter=describe_chapters)

            limit = result.limit or self.page_size
            if result.total <= offset + limit:
                return
            offset += limit
