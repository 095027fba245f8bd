"""MangaDex API client and models."""

from mdwatch.mangadex.client import MangaDexClient, MangaDexError
from mdwatch.mangadex.models import (
    Chapter,
    ChapterList,
    ChaptersFilter,
    Manga,
    MangaList,
    Pages,
    Relationship,
)

__all__ = [
    "Chapter",
    "ChapterList",
    "ChaptersFilter",
    "Manga",
    "MangaDexClient",
    "MangaDexError",
    "MangaList",
    "Pages",
    "Relationship",
]
