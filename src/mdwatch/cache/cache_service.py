from datetime import datetime
from typing import Optional

from mdwatch.cache.cache_repo import CacheRepository
from mdwatch.cache.models import ChapterState, MangaCache
from mdwatch.database.database import DatabaseSessionManager, sessionmanager
from mdwatch.database.tables.manga_cache_table import MangaCacheRow, MangaChapterCacheRow


class CacheService:
    """Cache store used by the discovery pass.

    Every call runs in its own short-lived session and transaction, so rows
    written before a pass is cancelled stay committed.
    """

    def __init__(self, session_manager: Optional[DatabaseSessionManager] = None):
        self.session_manager = session_manager or sessionmanager

    async def determine_existing(self, chapter_ids: list[str]) -> list[MangaCache]:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).determine_existing(chapter_ids)

    async def by_ids(self, manga_ids: list[str]) -> list[MangaCacheRow]:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).by_ids(manga_ids)

    async def upsert_manga(self, manga: MangaCacheRow) -> int:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).upsert_manga(manga)

    async def upsert_chapter(self, chapter: MangaChapterCacheRow) -> int:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).upsert_chapter(chapter)

    async def last_check(self) -> Optional[datetime]:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).last_check()

    async def set_state(self, id: int, state: ChapterState) -> None:
        async with self.session_manager.session() as session, session.begin():
            await CacheRepository(session).set_state(id, state)

    async def by_states(self, limit: int, *states: ChapterState) -> list[MangaCache]:
        async with self.session_manager.session() as session, session.begin():
            return await CacheRepository(session).by_states(limit, *states)
