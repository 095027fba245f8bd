import asyncio
from typing import AsyncIterable, AsyncIterator

from mdwatch.cache.models import FetchedManga
from mdwatch.latest.events import Entry, Event, RatelimitStart


async def rollup(
    events: AsyncIterable[Event], cancelled: asyncio.Event
) -> AsyncIterator[list[FetchedManga]]:
    """Group fetched chapters into batches, split at every rate limit pause.

    A batch is handed over as soon as a pause starts, so subscribers are
    not kept waiting for the whole pass. The batch being built when the
    pass is cancelled is dropped.
    """
    batch: list[FetchedManga] = []

    async for event in events:
        if cancelled.is_set():
            return

        match event:
            case Entry(item=FetchedManga() as fetched):
                batch.append(fetched)
            case RatelimitStart() if batch:
                yield batch
                batch = []

    if batch and not cancelled.is_set():
        yield batch
