from typing import Any, Optional

import aiohttp
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

from mdwatch.main.logging import get_logger
from mdwatch.mangadex.models import (
    AtHomeServer,
    ChapterList,
    ChaptersFilter,
    MangaList,
    Pages,
)

logger = get_logger(__name__)

MANGA_INCLUDES = ("cover_art", "author", "artist")
MAX_MANGA_IDS = 100


class MangaDexError(Exception):
    """Raised when a MangaDex request fails or returns an unusable payload."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


def is_transient(exc: BaseException) -> bool:
    """Transport failures, rate limiting and server errors are worth retrying."""
    if not isinstance(exc, MangaDexError):
        return False
    return exc.status is None or exc.status == 429 or exc.status >= 500


class MangaDexClient:
    """
    Client for the MangaDex REST API.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str):
        self.session = session
        self.base_url = base_url.rstrip("/")

    @retry(
        wait=wait_random_exponential(min=1, max=20),
        stop=stop_after_attempt(3),
        retry=retry_if_exception(is_transient),
        reraise=True,
    )
    async def _get(self, path: str, params: Any = None) -> dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with self.session.get(url, params=params) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise MangaDexError(
                        f"GET {path} failed with status {response.status}: {body[:200]}",
                        status=response.status,
                    )
                status = response.status
                payload = await response.json()
        except aiohttp.ClientError as e:
            raise MangaDexError(f"GET {path} failed: {e}") from e

        if isinstance(payload, dict) and payload.get("result") == "error":
            errors = payload.get("errors") or []
            detail = "; ".join(str(err.get("detail") or err.get("title")) for err in errors)
            raise MangaDexError(
                f"GET {path} returned an error result: {detail}", status=status
            )

        return payload

    async def fetch_chapters(self, filter: ChaptersFilter) -> ChapterList:
        """Fetch one page of chapters matching ``filter``."""
        payload = await self._get("chapter", params=filter.to_params())
        return ChapterList.model_validate(payload)

    async def fetch_manga(self, ids: list[str]) -> MangaList:
        """Fetch the given manga (with cover art, authors and artists) in one request."""
        if not ids:
            return MangaList()

        if len(ids) > MAX_MANGA_IDS:
            logger.warning(
                "Too many manga ids for one request, truncating",
                extra={"requested": len(ids), "max": MAX_MANGA_IDS},
            )
            ids = ids[:MAX_MANGA_IDS]

        params: list[tuple[str, str]] = [("limit", str(len(ids)))]
        params.extend(("ids[]", manga_id) for manga_id in ids)
        params.extend(("includes[]", include) for include in MANGA_INCLUDES)

        payload = await self._get("manga", params=params)
        return MangaList.model_validate(payload)

    async def fetch_pages(self, chapter_id: str) -> Pages:
        """Resolve the page image URLs for a chapter through the at-home server."""
        payload = await self._get(f"at-home/server/{chapter_id}")
        return Pages.from_at_home(AtHomeServer.model_validate(payload))
