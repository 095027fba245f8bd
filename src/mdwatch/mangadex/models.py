"""Pydantic models for the subset of the MangaDex API the watcher uses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MANGA_RELATIONSHIP = "manga"
COVER_ART_RELATIONSHIP = "cover_art"
SCANLATION_GROUP_RELATIONSHIP = "scanlation_group"
PERSON_RELATIONSHIPS = ("author", "artist")


class MangaDexModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Relationship(MangaDexModel):
    """A related entity; ``attributes`` are only present when it was included."""

    id: str
    type: str
    related: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None
    relationships: list[Relationship] = Field(default_factory=list)


class TagAttributes(MangaDexModel):
    name: dict[str, str] = Field(default_factory=dict)


class Tag(MangaDexModel):
    id: str
    attributes: TagAttributes = Field(default_factory=TagAttributes)


class MangaAttributes(MangaDexModel):
    title: dict[str, str] = Field(default_factory=dict)
    alt_titles: list[dict[str, str]] = Field(default_factory=list)
    description: dict[str, str] = Field(default_factory=dict)
    content_rating: Optional[str] = None
    original_language: Optional[str] = None
    status: Optional[str] = None
    state: Optional[str] = None
    tags: list[Tag] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Manga(MangaDexModel):
    id: str
    type: str = MANGA_RELATIONSHIP
    attributes: MangaAttributes = Field(default_factory=MangaAttributes)
    relationships: list[Relationship] = Field(default_factory=list)

    @classmethod
    def from_relationship(cls, relationship: Relationship) -> Manga:
        return cls(
            id=relationship.id,
            attributes=MangaAttributes.model_validate(relationship.attributes or {}),
            relationships=relationship.relationships,
        )


class ChapterAttributes(MangaDexModel):
    title: Optional[str] = None
    volume: Optional[str] = None
    chapter: Optional[str] = None
    pages: int = 0
    translated_language: Optional[str] = None
    uploader: Optional[str] = None
    external_url: Optional[str] = None
    publish_at: Optional[datetime] = None
    readable_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Chapter(MangaDexModel):
    id: str
    type: str = "chapter"
    attributes: ChapterAttributes = Field(default_factory=ChapterAttributes)
    relationships: list[Relationship] = Field(default_factory=list)

    @property
    def is_external(self) -> bool:
        return bool(self.attributes.external_url)

    @property
    def display_title(self) -> str:
        return self.attributes.title or self.attributes.chapter or self.id or "Unknown"

    def manga_relationship(self) -> Optional[Relationship]:
        return next(
            (rel for rel in self.relationships if rel.type == MANGA_RELATIONSHIP),
            None,
        )

    def manga(self) -> Optional[Manga]:
        """The parent manga of this chapter, if the relation is present."""
        relationship = self.manga_relationship()
        if relationship is None:
            return None
        return Manga.from_relationship(relationship)


class ChapterList(MangaDexModel):
    data: list[Chapter] = Field(default_factory=list)
    limit: int = 0
    offset: int = 0
    total: int = 0


class MangaList(MangaDexModel):
    data: list[Manga] = Field(default_factory=list)
    limit: int = 0
    offset: int = 0
    total: int = 0


class AtHomeChapter(MangaDexModel):
    hash: str
    data: list[str] = Field(default_factory=list)
    data_saver: list[str] = Field(default_factory=list)


class AtHomeServer(MangaDexModel):
    base_url: str
    chapter: AtHomeChapter


class Pages(MangaDexModel):
    images: list[str] = Field(default_factory=list)
    data_saver_images: list[str] = Field(default_factory=list)

    @classmethod
    def from_at_home(cls, server: AtHomeServer) -> Pages:
        base = server.base_url.rstrip("/")
        chapter_hash = server.chapter.hash
        return cls(
            images=[f"{base}/data/{chapter_hash}/{name}" for name in server.chapter.data],
            data_saver_images=[
                f"{base}/data-saver/{chapter_hash}/{name}"
                for name in server.chapter.data_saver
            ],
        )


class ChaptersFilter(MangaDexModel):
    """Query filter for ``GET /chapter``."""

    limit: int = 100
    offset: int = 0
    updated_at_since: Optional[datetime] = None
    translated_language: list[str] = Field(default_factory=list)
    include_external_url: bool = False
    include_empty_pages: bool = False
    include_future_publish_at: bool = False
    include_future_updates: bool = False
    includes: list[str] = Field(default_factory=lambda: [MANGA_RELATIONSHIP])
    order_updated_at: str = "desc"

    def to_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [
            ("limit", str(self.limit)),
            ("offset", str(self.offset)),
            ("includeExternalUrl", str(int(self.include_external_url))),
            ("includeEmptyPages", str(int(self.include_empty_pages))),
            ("includeFuturePublishAt", str(int(self.include_future_publish_at))),
            ("includeFutureUpdates", str(int(self.include_future_updates))),
            ("order[updatedAt]", self.order_updated_at),
        ]
        if self.updated_at_since is not None:
            # MangaDex rejects offsets and fractional seconds here
            since = self.updated_at_since
            if since.tzinfo is not None:
                since = since.astimezone(timezone.utc)
            params.append(("updatedAtSince", since.strftime("%Y-%m-%dT%H:%M:%S")))
        params.extend(("translatedLanguage[]", lang) for lang in self.translated_language)
        params.extend(("includes[]", include) for include in self.includes)
        return params
