class WatchItemError(Exception):
    """Base class for per-chapter failures that skip the chapter but not the pass."""

    def __init__(self, chapter_id: str, message: str):
        self.chapter_id = chapter_id
        super().__init__(f"{message} (chapter {chapter_id})")


class MissingRelationError(WatchItemError):
    """Raised when a chapter has no manga relationship."""

    def __init__(self, chapter_id: str):
        super().__init__(chapter_id, "Chapter has no manga relationship")


class PolicyExcludedError(WatchItemError):
    """Raised when a chapter is excluded by the fetch settings."""

    def __init__(self, chapter_id: str, reason: str):
        self.reason = reason
        super().__init__(chapter_id, f"Chapter excluded: {reason}")


class ContentFetchError(WatchItemError):
    """Raised when the pages of a chapter could not be resolved."""

    def __init__(
        self,
        chapter_id: str,
        cause: Exception | None = None,
        message: str = "Failed to fetch chapter pages",
    ):
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(chapter_id, f"{message}{detail}")
        self.__cause__ = cause


class UpstreamEmptyResult(ContentFetchError):
    """Raised when MangaDex returned no pages for a chapter."""

    def __init__(self, chapter_id: str):
        super().__init__(chapter_id, message="MangaDex returned no pages")
