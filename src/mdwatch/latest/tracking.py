from typing import Optional

from mdwatch.cache.cache_service import CacheService
from mdwatch.cache.conversion import convert_chapter, convert_manga
from mdwatch.cache.models import FetchedManga, MangaCache
from mdwatch.mangadex.models import Chapter, Manga


class TrackingService:
    """Records discovered chapters (and their manga) in the cache."""

    def __init__(self, cache: CacheService):
        self.cache = cache

    async def track(
        self,
        manga: Manga,
        chapter: Chapter,
        pages: Optional[list[str]] = None,
        data_saver_pages: Optional[list[str]] = None,
    ) -> FetchedManga:
        pages = list(pages or [])
        data_saver_pages = list(data_saver_pages or [])

        manga_row = convert_manga(manga)
        manga_row.id = await self.cache.upsert_manga(manga_row)

        chapter_row = convert_chapter(chapter)
        chapter_row.manga_id = manga_row.id
        chapter_row.pages = pages
        chapter_row.id = await self.cache.upsert_chapter(chapter_row)

        return FetchedManga(
            manga=manga,
            chapter=chapter,
            cache=MangaCache(manga=manga_row, chapter=chapter_row),
            pages=pages,
            data_saver_pages=data_saver_pages,
        )
