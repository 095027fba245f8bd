"""Conversion between MangaDex API models and cache rows."""

from __future__ import annotations

import re
from typing import Callable, Iterator, Optional

from mdwatch.cache.models import ChapterState
from mdwatch.database.tables.manga_cache_table import MangaCacheRow, MangaChapterCacheRow
from mdwatch.mangadex.models import (
    COVER_ART_RELATIONSHIP,
    PERSON_RELATIONSHIPS,
    SCANLATION_GROUP_RELATIONSHIP,
    Chapter,
    Manga,
    Relationship,
)

DEFAULT_LANGUAGE = "en"
MANGA_DEX_PROVIDER = "mangadex"
MANGA_DEX_HOME_URL = "https://mangadex.org"

# Content ratings MangaDex uses for adult content
NSFW_RATINGS = frozenset({"erotica", "suggestive", "pornographic"})

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9 ]")


def _is_default_language(key: str) -> bool:
    return key.lower() == DEFAULT_LANGUAGE


def preferred_or_first(
    values: dict[str, str],
    prefer: Callable[[str], bool] = _is_default_language,
) -> Optional[tuple[str, str]]:
    """The first ``(key, value)`` matching ``prefer``, else the first pair at all."""
    for key, value in values.items():
        if prefer(key):
            return key, value
    return next(iter(values.items()), None)


def attribute(name: str, value: str) -> dict[str, str]:
    return {"name": name, "value": value}


def hash_id(provider: str, title: str) -> str:
    """Stable slug of the provider and title, e.g. ``mangadex-one-piece``."""
    return _NON_ALPHANUMERIC.sub("", f"{provider} {title}").replace(" ", "-").lower()


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def determine_title(manga: Manga) -> str:
    title = preferred_or_first(manga.attributes.title)
    if title and title[0].lower() == DEFAULT_LANGUAGE:
        return title[1]

    for alt_title in manga.attributes.alt_titles:
        if DEFAULT_LANGUAGE in alt_title:
            return alt_title[DEFAULT_LANGUAGE]

    return title[1] if title else ""


def _person_attribute(relationship: Relationship) -> Optional[dict[str, str]]:
    name = (relationship.attributes or {}).get("name")
    if not name:
        return None
    return attribute("Author" if relationship.type == "author" else "Artist", name)


def manga_attributes(manga: Manga) -> Iterator[dict[str, str]]:
    attrs = manga.attributes
    if attrs.content_rating:
        yield attribute("Content Rating", attrs.content_rating)
    if attrs.original_language:
        yield attribute("Original Language", attrs.original_language)
    if attrs.status:
        yield attribute("Status", attrs.status)
    if attrs.state:
        yield attribute("Publication State", attrs.state)

    for rel in manga.relationships:
        if rel.type in PERSON_RELATIONSHIPS:
            person = _person_attribute(rel)
            if person:
                yield person
        elif rel.type == SCANLATION_GROUP_RELATIONSHIP:
            name = (rel.attributes or {}).get("name")
            if name:
                yield attribute("Scanlation Group", name)


def chapter_attributes(chapter: Chapter) -> Iterator[dict[str, str]]:
    yield attribute(
        "Translated Language", chapter.attributes.translated_language or DEFAULT_LANGUAGE
    )

    if chapter.attributes.uploader:
        yield attribute("Uploader", chapter.attributes.uploader)

    for rel in chapter.relationships:
        if rel.type in PERSON_RELATIONSHIPS:
            person = _person_attribute(rel)
            if person:
                yield person
        elif rel.type == SCANLATION_GROUP_RELATIONSHIP:
            group = rel.attributes or {}
            for key, name in (
                ("name", "Scanlation Group"),
                ("website", "Scanlation Link"),
                ("twitter", "Scanlation Twitter"),
                ("discord", "Scanlation Discord"),
            ):
                if group.get(key):
                    yield attribute(name, group[key])


def cover_url(manga: Manga) -> str:
    cover = next(
        (rel for rel in manga.relationships if rel.type == COVER_ART_RELATIONSHIP), None
    )
    file_name = (cover.attributes or {}).get("fileName", "") if cover else ""
    return f"{MANGA_DEX_HOME_URL}/covers/{manga.id}/{file_name}"


def convert_manga(manga: Manga) -> MangaCacheRow:
    """Convert a MangaDex manga into an (unsaved) ``manga_cache`` row."""
    title = determine_title(manga)
    description = preferred_or_first(manga.attributes.description)

    tags: list[str] = []
    for tag in manga.attributes.tags:
        name = preferred_or_first(tag.attributes.name)
        if name:
            tags.append(name[1])

    alt_titles = list(
        dict.fromkeys(value for alt in manga.attributes.alt_titles for value in alt.values())
    )

    return MangaCacheRow(
        hash_id=hash_id(MANGA_DEX_PROVIDER, title),
        title=title,
        source_id=manga.id,
        provider=MANGA_DEX_PROVIDER,
        # The title slug is optional in MangaDex URLs
        url=f"{MANGA_DEX_HOME_URL}/title/{manga.id}",
        cover=cover_url(manga),
        description=description[1] if description else "",
        alt_titles=alt_titles,
        tags=tags,
        nsfw=(manga.attributes.content_rating or "") in NSFW_RATINGS,
        attributes=list(manga_attributes(manga)),
        referer=None,
        source_created=manga.attributes.created_at,
        deleted_at=None,
    )


def convert_chapter(chapter: Chapter) -> MangaChapterCacheRow:
    """Convert a MangaDex chapter into an (unsaved) ``manga_chapter_cache`` row.

    ``manga_id`` and ``pages`` are filled in by the tracker once the parent
    manga is stored and the pages are known.
    """
    return MangaChapterCacheRow(
        title=chapter.attributes.title or "",
        url=f"{MANGA_DEX_HOME_URL}/chapter/{chapter.id}",
        source_id=chapter.id,
        ordinal=_parse_float(chapter.attributes.chapter) or 0.0,
        volume=_parse_float(chapter.attributes.volume),
        language=chapter.attributes.translated_language or DEFAULT_LANGUAGE,
        pages=[],
        external_url=chapter.attributes.external_url,
        attributes=list(chapter_attributes(chapter)),
        state=int(ChapterState.NOT_INDEXED),
        deleted_at=None,
    )
