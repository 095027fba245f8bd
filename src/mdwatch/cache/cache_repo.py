from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from mdwatch.cache.models import ChapterState, MangaCache
from mdwatch.database.fake_upsert import fake_upsert
from mdwatch.database.tables.manga_cache_table import MangaCacheRow, MangaChapterCacheRow


class CacheRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _pairs(self) -> sa.Select:
        return sa.select(MangaCacheRow, MangaChapterCacheRow).join(
            MangaChapterCacheRow, MangaChapterCacheRow.manga_id == MangaCacheRow.id
        )

    async def determine_existing(self, chapter_ids: list[str]) -> list[MangaCache]:
        """Cached manga/chapter pairs for the given MangaDex chapter ids."""
        if not chapter_ids:
            return []

        stmt = self._pairs().where(MangaChapterCacheRow.source_id.in_(chapter_ids))
        result = await self.session.execute(stmt)
        return [MangaCache(manga=manga, chapter=chapter) for manga, chapter in result.all()]

    async def by_ids(self, manga_ids: list[str]) -> list[MangaCacheRow]:
        if not manga_ids:
            return []

        stmt = sa.select(MangaCacheRow).where(MangaCacheRow.source_id.in_(manga_ids))
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def upsert_manga(self, manga: MangaCacheRow) -> int:
        return await fake_upsert(self.session, manga)

    async def upsert_chapter(self, chapter: MangaChapterCacheRow) -> int:
        return await fake_upsert(self.session, chapter)

    async def last_check(self) -> Optional[datetime]:
        """The most recent time a live chapter was written to the cache."""
        stmt = sa.select(sa.func.max(MangaChapterCacheRow.updated_at)).where(
            MangaChapterCacheRow.deleted_at.is_(None)
        )
        return await self.session.scalar(stmt)

    async def set_state(self, id: int, state: ChapterState) -> None:
        # updated_at is the discovery watermark, only tracking may move it
        stmt = (
            sa.update(MangaChapterCacheRow.__table__)
            .where(MangaChapterCacheRow.__table__.c.id == id)
            .values(state=int(state))
        )
        await self.session.execute(stmt)

    async def by_states(self, limit: int, *states: ChapterState) -> list[MangaCache]:
        """Oldest cached chapters in any of ``states``, for downstream indexers."""
        stmt = (
            self._pairs()
            .where(MangaChapterCacheRow.state.in_([int(state) for state in states]))
            .where(MangaChapterCacheRow.deleted_at.is_(None))
            .order_by(MangaChapterCacheRow.created_at.asc(), MangaChapterCacheRow.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [MangaCache(manga=manga, chapter=chapter) for manga, chapter in result.all()]
