from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from mdwatch.database.tables.base_class import BasePublic, BigIntId, JsonType


class MangaCacheRow(BasePublic):
    __tablename__ = "manga_cache"
    __table_args__ = (UniqueConstraint("source_id", "provider"),)

    hash_id: Mapped[str] = mapped_column(Text, default="")
    title: Mapped[str] = mapped_column(Text, default="")
    source_id: Mapped[str] = mapped_column(Text, index=True)
    provider: Mapped[str] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text, default="")
    cover: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    alt_titles: Mapped[list[str]] = mapped_column(JsonType, default=list)
    tags: Mapped[list[str]] = mapped_column(JsonType, default=list)
    nsfw: Mapped[bool] = mapped_column(Boolean, default=False)
    attributes: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, default=list)
    referer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_created: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class MangaChapterCacheRow(BasePublic):
    __tablename__ = "manga_chapter_cache"
    __table_args__ = (UniqueConstraint("manga_id", "source_id", "language"),)

    manga_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey(MangaCacheRow.id, ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(Text, default="")
    source_id: Mapped[str] = mapped_column(Text, index=True)
    ordinal: Mapped[float] = mapped_column(Float, default=0)
    volume: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    language: Mapped[str] = mapped_column(Text, default="en")
    pages: Mapped[list[str]] = mapped_column(JsonType, default=list)
    external_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attributes: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, default=list)
    state: Mapped[int] = mapped_column(Integer, default=0, index=True)
