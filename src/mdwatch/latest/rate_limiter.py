import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Union

from mdwatch.latest.events import GeneralRequest, PageRequest, RatelimitStart, RatelimitStop
from mdwatch.latest.settings import LatestFetchSettings, RateLimitSettings


async def sleep_unless_cancelled(cancelled: asyncio.Event, delay: float) -> bool:
    """Sleep for ``delay`` seconds or until ``cancelled`` is set.

    Returns:
        True if the sleep was cut short by the cancellation signal.
    """
    if cancelled.is_set():
        return True
    if delay <= 0:
        return False

    try:
        await asyncio.wait_for(cancelled.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


@dataclass
class RequestCounter:
    threshold: int
    delay: float
    count: int = 0

    @classmethod
    def from_settings(cls, settings: RateLimitSettings) -> "RequestCounter":
        return cls(threshold=settings.requests, delay=settings.delay)

    @property
    def enabled(self) -> bool:
        return self.threshold > 0

    def should_wait(self) -> bool:
        return self.enabled and self.count >= self.threshold

    def reset(self) -> None:
        self.count = 0


class RateLimitState:
    """Request counters for a single discovery pass.

    Page fetches are heavy requests, everything else is a light request.
    Waiting out the heavy limit resets both counters since the light limit
    is much shorter than the heavy delay.
    """

    def __init__(self, settings: LatestFetchSettings):
        self.heavy = RequestCounter.from_settings(settings.page_requests)
        self.light = RequestCounter.from_settings(settings.general_requests)

    def record_heavy(self) -> None:
        self.heavy.count += 1

    def record_light(self) -> None:
        self.light.count += 1

    def record(self, event: object) -> None:
        match event:
            case PageRequest():
                self.record_heavy()
            case GeneralRequest():
                self.record_light()

    def should_wait_heavy(self) -> bool:
        return self.heavy.should_wait()

    def should_wait_light(self) -> bool:
        return self.light.should_wait()

    async def check_and_wait(
        self, cancelled: asyncio.Event
    ) -> AsyncIterator[Union[RatelimitStart, RatelimitStop]]:
        """Wait out any limit that has been reached, bracketed by start/stop events.

        If ``cancelled`` is set while waiting, the generator stops without
        emitting the stop event.
        """
        if self.should_wait_heavy():
            delay = self.heavy.delay
            self.heavy.reset()
            self.light.reset()

            yield RatelimitStart(delay)
            if await sleep_unless_cancelled(cancelled, delay):
                return
            yield RatelimitStop(delay)

        if self.should_wait_light():
            delay = self.light.delay
            self.light.reset()

            yield RatelimitStart(delay)
            if await sleep_unless_cancelled(cancelled, delay):
                return
            yield RatelimitStop(delay)
