from typing import AsyncIterator

from mdwatch.latest.events import GeneralRequest
from mdwatch.mangadex.client import MangaDexClient
from mdwatch.mangadex.models import Chapter


def manga_ids(chapters: list[Chapter]) -> list[str]:
    """Distinct parent manga ids, in the order they first appear."""
    ids: dict[str, None] = {}
    for chapter in chapters:
        relationship = chapter.manga_relationship()
        if relationship is not None:
            ids.setdefault(relationship.id)
    return list(ids)


async def enrich_covers(
    client: MangaDexClient, chapters: list[Chapter]
) -> AsyncIterator[GeneralRequest]:
    """Replace the manga relationship of each chapter with the full manga.

    The chapter feed only includes the manga attributes, not the manga's own
    relationships (cover art, authors, artists), so they are looked up in one
    batched request per page.
    """
    ids = manga_ids(chapters)
    if not ids:
        return

    result = await client.fetch_manga(ids)
    yield GeneralRequest("manga-relationships", "chapters")

    by_id = {manga.id: manga for manga in result.data}
    for chapter in chapters:
        relationship = chapter.manga_relationship()
        if relationship is None:
            continue

        manga = by_id.get(relationship.id)
        if manga is None:
            continue

        relationship.attributes = manga.attributes.model_dump(mode="json", by_alias=True)
        relationship.relationships = list(manga.relationships)
