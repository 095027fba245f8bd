"""Unit tests for the select-then-insert-or-update upsert."""

import pytest
import sqlalchemy as sa
from sqlalchemy import Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from mdwatch.database.fake_upsert import fake_upsert, fake_upsert_queries
from mdwatch.database.tables.manga_cache_table import MangaCacheRow, MangaChapterCacheRow


class _OtherBase(DeclarativeBase):
    pass


class NoUniqueKey(_OtherBase):
    __tablename__ = "no_unique_key"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(Text)


def manga_row(source_id: str = "manga-1", title: str = "One Piece") -> MangaCacheRow:
    return MangaCacheRow(
        hash_id=f"mangadex-{title.lower()}",
        title=title,
        source_id=source_id,
        provider="mangadex",
        url=f"https://mangadex.org/title/{source_id}",
        cover="",
        description="",
        alt_titles=[],
        tags=["Action"],
        nsfw=False,
        attributes=[],
        referer=None,
        source_created=None,
        deleted_at=None,
    )


class TestFakeUpsertQueries:
    def test_queries_are_memoized_per_table(self):
        assert fake_upsert_queries(MangaCacheRow) is fake_upsert_queries(MangaCacheRow)
        assert fake_upsert_queries(MangaCacheRow) is not fake_upsert_queries(
            MangaChapterCacheRow
        )

    def test_key_columns_follow_unique_constraint(self):
        assert fake_upsert_queries(MangaCacheRow).key_columns == ("source_id", "provider")
        assert fake_upsert_queries(MangaChapterCacheRow).key_columns == (
            "manga_id",
            "source_id",
            "language",
        )

    def test_generated_columns_are_never_written(self):
        value_columns = fake_upsert_queries(MangaCacheRow).value_columns
        assert "id" not in value_columns
        assert "created_at" not in value_columns
        assert "updated_at" not in value_columns
        assert "deleted_at" in value_columns

    def test_table_without_unique_key_raises(self):
        with pytest.raises(ValueError, match="no_unique_key"):
            fake_upsert_queries(NoUniqueKey)


class TestFakeUpsert:
    @pytest.mark.asyncio
    async def test_repeated_upsert_keeps_id(self, session_manager):
        async with session_manager.session() as session, session.begin():
            first = await fake_upsert(session, manga_row())

        async with session_manager.session() as session, session.begin():
            second = await fake_upsert(session, manga_row(title="One Piece (Updated)"))

        assert first == second

        async with session_manager.session() as session, session.begin():
            titles = (await session.scalars(sa.select(MangaCacheRow.title))).all()
        assert titles == ["One Piece (Updated)"]

    @pytest.mark.asyncio
    async def test_updates_do_not_leave_id_gaps(self, session_manager):
        async with session_manager.session() as session, session.begin():
            first = await fake_upsert(session, manga_row("manga-1"))
            await fake_upsert(session, manga_row("manga-1"))
            await fake_upsert(session, manga_row("manga-1"))
            second = await fake_upsert(session, manga_row("manga-2"))

        assert second == first + 1
