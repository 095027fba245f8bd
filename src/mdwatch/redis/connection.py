"""Redis connection helpers."""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis

from mdwatch.main.config import Settings, get_settings


def build_redis_url(settings: Settings | None = None) -> str:
    resolved_settings = settings or get_settings()
    return f"redis://{resolved_settings.redis_host}:{resolved_settings.redis_port}"


def build_redis_pool_kwargs(
    settings: Settings | None = None,
    *,
    decode_responses: bool,
) -> dict[str, Any]:
    """Build keyword arguments for redis.asyncio connection pools."""
    resolved_settings = settings or get_settings()
    kwargs: dict[str, Any] = {
        "decode_responses": decode_responses,
        "socket_connect_timeout": resolved_settings.redis_conn_timeout,
        "retry_on_timeout": resolved_settings.redis_retry_on_timeout,
        "socket_keepalive": resolved_settings.redis_socket_keepalive,
        "health_check_interval": resolved_settings.redis_health_check_interval,
    }

    if resolved_settings.redis_max_connections is not None:
        kwargs["max_connections"] = resolved_settings.redis_max_connections

    if resolved_settings.redis_db is not None:
        kwargs["db"] = resolved_settings.redis_db

    return kwargs


def create_redis(settings: Settings | None = None) -> aioredis.Redis:
    resolved_settings = settings or get_settings()
    pool = aioredis.ConnectionPool.from_url(
        build_redis_url(resolved_settings),
        **build_redis_pool_kwargs(resolved_settings, decode_responses=True),
    )
    return aioredis.Redis(connection_pool=pool)
