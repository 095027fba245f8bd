import json
from typing import Any, AsyncIterator

import redis.asyncio as aioredis

from mdwatch.main.logging import get_logger

logger = get_logger(__name__)

LATEST_CHAPTERS_KEY = "mangadex:latest"


class NotificationBus:
    """JSON publish/subscribe over redis channels."""

    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def publish(self, channel: str, batch: Any) -> int:
        """Publish ``batch`` as JSON; returns the number of receiving subscribers."""
        return await self.redis.publish(channel, json.dumps(batch, default=str))

    async def subscribe(self, channel: str) -> AsyncIterator[Any]:
        """Decoded messages published to ``channel`` until the iterator is closed."""
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue

                try:
                    yield json.loads(message["data"])
                except json.JSONDecodeError:
                    logger.warning(
                        "Ignoring message that is not valid JSON",
                        extra={"channel": channel},
                    )
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

    async def close(self) -> None:
        await self.redis.aclose()
