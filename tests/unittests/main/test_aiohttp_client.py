"""Unit tests for the shared aiohttp session."""

import pytest

from mdwatch.main.aiohttp_client import AioHttpClient


@pytest.fixture
async def http_client():
    """Fixture providing configured AioHttpClient with proper cleanup."""
    client = AioHttpClient()
    client.start(user_agent="mdwatch-tests", timeout_seconds=12.0)
    yield client
    await client.stop()


@pytest.mark.asyncio
async def test_session_uses_user_agent_and_timeout(http_client):
    session = http_client()

    assert session is http_client.session
    assert session.headers["User-Agent"] == "mdwatch-tests"
    assert session.timeout.total == 12.0
    assert session.connector.use_dns_cache is True


@pytest.mark.asyncio
async def test_session_has_request_timing_trace(http_client):
    assert len(http_client.session._trace_configs) == 1


@pytest.mark.asyncio
async def test_stop_is_idempotent():
    client = AioHttpClient()
    client.start()

    await client.stop()
    await client.stop()

    assert client.session is None
