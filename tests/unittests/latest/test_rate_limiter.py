"""Unit tests for the dual request counter rate limiter."""

import asyncio

import pytest

from mdwatch.latest.events import GeneralRequest, PageRequest, RatelimitStart, RatelimitStop
from mdwatch.latest.rate_limiter import RateLimitState, sleep_unless_cancelled
from mdwatch.latest.settings import LatestFetchSettings, RateLimitSettings
from mdwatch.mangadex.models import Chapter


def limiter(heavy=(2, 0.0), light=(3, 0.0)) -> RateLimitState:
    return RateLimitState(
        LatestFetchSettings(
            page_requests=RateLimitSettings(requests=heavy[0], delay=heavy[1]),
            general_requests=RateLimitSettings(requests=light[0], delay=light[1]),
        )
    )


async def collect(state: RateLimitState, cancelled: asyncio.Event) -> list:
    return [event async for event in state.check_and_wait(cancelled)]


class TestRateLimitState:
    def test_record_counts_request_events(self):
        state = limiter()

        state.record(PageRequest(Chapter(id="c")))
        state.record(GeneralRequest("latest", "chapters"))
        state.record(GeneralRequest("latest", "chapters"))
        state.record("something else")

        assert state.heavy.count == 1
        assert state.light.count == 2

    def test_should_wait_at_threshold(self):
        state = limiter(heavy=(2, 0.0))

        state.record_heavy()
        assert state.should_wait_heavy() is False

        state.record_heavy()
        assert state.should_wait_heavy() is True

    def test_zero_threshold_disables_counter(self):
        state = limiter(heavy=(0, 5.0), light=(-1, 5.0))

        for _ in range(100):
            state.record_heavy()
            state.record_light()

        assert state.should_wait_heavy() is False
        assert state.should_wait_light() is False

    @pytest.mark.asyncio
    async def test_no_events_below_thresholds(self):
        state = limiter()
        state.record_heavy()

        assert await collect(state, asyncio.Event()) == []

    @pytest.mark.asyncio
    async def test_heavy_limit_resets_both_counters(self):
        state = limiter(heavy=(1, 0.0), light=(3, 0.0))
        state.record_heavy()
        state.record_light()
        state.record_light()
        state.record_light()

        events = await collect(state, asyncio.Event())

        assert events == [RatelimitStart(0.0), RatelimitStop(0.0)]
        assert state.heavy.count == 0
        assert state.light.count == 0

    @pytest.mark.asyncio
    async def test_light_limit_resets_only_light_counter(self):
        state = limiter(heavy=(5, 0.0), light=(2, 0.0))
        state.record_heavy()
        state.record_light()
        state.record_light()

        events = await collect(state, asyncio.Event())

        assert events == [RatelimitStart(0.0), RatelimitStop(0.0)]
        assert state.heavy.count == 1
        assert state.light.count == 0

    @pytest.mark.asyncio
    async def test_cancel_during_wait_stops_without_stop_event(self):
        state = limiter(heavy=(1, 30.0))
        state.record_heavy()
        cancelled = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancelled.set)

        events = await asyncio.wait_for(collect(state, cancelled), timeout=5)

        assert events == [RatelimitStart(30.0)]


class TestSleepUnlessCancelled:
    @pytest.mark.asyncio
    async def test_already_cancelled(self):
        cancelled = asyncio.Event()
        cancelled.set()

        assert await sleep_unless_cancelled(cancelled, 30) is True

    @pytest.mark.asyncio
    async def test_sleep_runs_out(self):
        assert await sleep_unless_cancelled(asyncio.Event(), 0.01) is False
