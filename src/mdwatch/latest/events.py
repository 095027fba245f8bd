"""Events produced while discovering new chapters.

A discovery pass is an async generator of these values. Every stage forwards
the events it does not understand, so new variants can be added without
touching the consumers in between.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from mdwatch.mangadex.models import Chapter


@dataclass(frozen=True)
class Entry:
    """A result: a page of chapters or one ``FetchedManga``."""

    item: Any
    formatter: Optional[Callable[[Any], str]] = None

    def describe(self) -> str:
        if self.formatter is not None:
            return self.formatter(self.item)
        return str(self.item)


@dataclass(frozen=True)
class RatelimitStart:
    delay: float


@dataclass(frozen=True)
class RatelimitStop:
    delay: float


@dataclass(frozen=True)
class PageRequest:
    """A heavy request: the pages of ``chapter`` were fetched."""

    chapter: Chapter


@dataclass(frozen=True)
class GeneralRequest:
    """A light request, e.g. ``("latest", "chapters")``."""

    source: str
    kind: str


@dataclass(frozen=True)
class Error:
    message: str
    cause: Optional[BaseException] = None
    context: Optional[Any] = None


Event = Union[Entry, RatelimitStart, RatelimitStop, PageRequest, GeneralRequest, Error]


def log_event(logger: logging.Logger, event: Any) -> None:
    match event:
        case Entry():
            logger.debug(
                "Entry: %s",
                event.describe(),
                extra={"event": "entry"},
            )
        case RatelimitStart(delay=delay):
            logger.info(
                "Rate limit reached, waiting %.1f seconds",
                delay,
                extra={"event": "ratelimit_start"},
            )
        case RatelimitStop(delay=delay):
            logger.info(
                "Rate limit wait of %.1f seconds finished",
                delay,
                extra={"event": "ratelimit_stop"},
            )
        case PageRequest(chapter=chapter):
            logger.debug(
                "Fetched pages",
                extra={"event": "page_request", "chapter_id": chapter.id},
            )
        case GeneralRequest(source=source, kind=kind):
            logger.debug(
                "Request made: %s -> %s",
                source,
                kind,
                extra={"event": "general_request"},
            )
        case Error(message=message, cause=cause, context=context):
            chapter_id = getattr(context, "id", None)
            logger.error(
                message,
                exc_info=(type(cause), cause, cause.__traceback__) if cause else None,
                extra={"event": "error", "chapter_id": chapter_id},
            )
        case _:
            logger.debug("Unknown event: %r", event, extra={"event": "unknown"})
