"""Unit tests for the redis notification bus (mocked redis)."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from mdwatch.redis.bus import LATEST_CHAPTERS_KEY, NotificationBus


def test_channel_key():
    assert LATEST_CHAPTERS_KEY == "mangadex:latest"


class TestPublish:
    @pytest.mark.asyncio
    async def test_publishes_json(self):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)
        bus = NotificationBus(redis)

        receivers = await bus.publish(LATEST_CHAPTERS_KEY, [{"chapter": {"id": "c1"}}])

        assert receivers == 1
        channel, message = redis.publish.await_args.args
        assert channel == LATEST_CHAPTERS_KEY
        assert json.loads(message) == [{"chapter": {"id": "c1"}}]


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_yields_decoded_messages(self):
        async def listen():
            yield {"type": "subscribe", "data": 1}
            yield {"type": "message", "data": json.dumps([{"id": "c1"}])}
            yield {"type": "message", "data": "not json"}
            yield {"type": "message", "data": json.dumps([{"id": "c2"}])}

        pubsub = MagicMock()
        pubsub.subscribe = AsyncMock()
        pubsub.unsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.listen = listen
        redis = MagicMock()
        redis.pubsub.return_value = pubsub

        batches = [batch async for batch in NotificationBus(redis).subscribe("chan")]

        assert batches == [[{"id": "c1"}], [{"id": "c2"}]]
        pubsub.subscribe.assert_awaited_once_with("chan")
        pubsub.unsubscribe.assert_awaited_once_with("chan")
        pubsub.aclose.assert_awaited_once()
