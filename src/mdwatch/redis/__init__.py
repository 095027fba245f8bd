"""Redis connection and notification utilities."""

from mdwatch.redis.bus import LATEST_CHAPTERS_KEY, NotificationBus
from mdwatch.redis.connection import build_redis_pool_kwargs, create_redis

__all__ = ["LATEST_CHAPTERS_KEY", "NotificationBus", "build_redis_pool_kwargs", "create_redis"]
