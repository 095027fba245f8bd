from typing import Any, Optional

import pytest
from sqlalchemy.pool import StaticPool

from mdwatch.cache.cache_service import CacheService
from mdwatch.database.database import DatabaseSessionManager
from mdwatch.database.tables.base_class import Base
from mdwatch.main.config import Settings
from mdwatch.mangadex.models import Chapter, Manga


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings with explicit values for unit tests.

    Provides a clean, isolated configuration that doesn't depend on .env
    file or environment variables.
    """
    return Settings(
        # Minimal database settings (not used in unit tests)
        postgres_user="unit_test_user",
        postgres_host="localhost",
        postgres_password="unit_test_password",
        postgres_port=5432,
        postgres_db="unit_test_db",

        # Redis settings (not used in unit tests)
        redis_host="localhost",
        redis_port=6379,

        # Testing mode
        testing=True,
        dev=True,
    )


@pytest.fixture
async def session_manager():
    """A session manager backed by an in-memory SQLite database.

    All sessions share a single connection so they see the same database.
    """
    manager = DatabaseSessionManager()
    manager.init("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    async with manager.connect() as connection:
        await connection.run_sync(Base.metadata.create_all)

    yield manager

    await manager.close()


@pytest.fixture
def cache(session_manager) -> CacheService:
    return CacheService(session_manager)


def manga_payload(
    manga_id: str = "manga-1",
    title: str = "One Piece",
    content_rating: str = "safe",
) -> dict[str, Any]:
    return {
        "id": manga_id,
        "type": "manga",
        "attributes": {
            "title": {"en": title},
            "altTitles": [{"ja": f"{title} (ja)"}],
            "description": {"en": f"About {title}"},
            "contentRating": content_rating,
            "originalLanguage": "ja",
            "status": "ongoing",
            "state": "published",
            "tags": [{"id": "tag-1", "attributes": {"name": {"en": "Action"}}}],
            "createdAt": "2020-01-01T00:00:00+00:00",
        },
        "relationships": [
            {"id": "cover-1", "type": "cover_art", "attributes": {"fileName": "cover.jpg"}},
            {"id": "author-1", "type": "author", "attributes": {"name": "Oda"}},
        ],
    }


@pytest.fixture
def make_manga():
    def _make(manga_id: str = "manga-1", **kwargs) -> Manga:
        return Manga.model_validate(manga_payload(manga_id, **kwargs))

    return _make


@pytest.fixture
def make_chapter():
    def _make(
        chapter_id: str,
        manga_id: Optional[str] = "manga-1",
        external_url: Optional[str] = None,
        language: str = "en",
        number: str = "1",
    ) -> Chapter:
        relationships = [{"id": "group-1", "type": "scanlation_group", "attributes": {"name": "Scans"}}]
        if manga_id is not None:
            manga = manga_payload(manga_id)
            relationships.append(
                {"id": manga_id, "type": "manga", "attributes": manga["attributes"]}
            )

        return Chapter.model_validate(
            {
                "id": chapter_id,
                "type": "chapter",
                "attributes": {
                    "title": f"Chapter {number}",
                    "volume": "1",
                    "chapter": number,
                    "pages": 3,
                    "translatedLanguage": language,
                    "externalUrl": external_url,
                    "updatedAt": "2024-05-01T12:00:00+00:00",
                },
                "relationships": relationships,
            }
        )

    return _make
