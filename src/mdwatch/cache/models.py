from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from mdwatch.database.fake_upsert import row_values
from mdwatch.database.tables.manga_cache_table import MangaCacheRow, MangaChapterCacheRow
from mdwatch.mangadex.models import Chapter, Manga


class ChapterState(IntEnum):
    """Indexing state of a cached chapter, advanced by downstream consumers."""

    NOT_INDEXED = 0
    INDEXED = 1
    ERROR_INDEXING = 2
    UNKNOWN = 3


@dataclass
class MangaCache:
    """A cached manga and one of its cached chapters."""

    manga: MangaCacheRow
    chapter: MangaChapterCacheRow

    def to_dict(self) -> dict[str, Any]:
        return {
            "manga": row_values(self.manga),
            "chapter": row_values(self.chapter),
        }


@dataclass
class FetchedManga:
    """A newly discovered chapter, its parent, its page URLs and the tracked cache rows."""

    manga: Manga
    chapter: Chapter
    cache: MangaCache
    pages: list[str] = field(default_factory=list)
    data_saver_pages: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.cache.manga.source_id or self.manga.id or "Unknown"

    @property
    def title(self) -> str:
        if self.cache.manga.title:
            return self.cache.manga.title
        titles = self.manga.attributes.title
        return titles.get("en") or next(iter(titles.values()), None) or self.manga.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "manga": self.manga.model_dump(mode="json", by_alias=True),
            "chapter": self.chapter.model_dump(mode="json", by_alias=True),
            "pages": list(self.pages),
            "dataSaverPages": list(self.data_saver_pages),
            "cache": self.cache.to_dict(),
        }
