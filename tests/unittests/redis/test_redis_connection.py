"""Unit tests for Redis connection helpers."""

from mdwatch.redis.connection import build_redis_pool_kwargs, build_redis_url


def test_build_redis_url(test_settings):
    assert build_redis_url(test_settings) == "redis://localhost:6379"


def test_build_redis_pool_kwargs_includes_expected_options(test_settings):
    settings = test_settings.model_copy(
        update={
            "redis_db": 3,
            "redis_conn_timeout": 6,
            "redis_retry_on_timeout": True,
            "redis_socket_keepalive": True,
            "redis_health_check_interval": 15,
            "redis_max_connections": 50,
        }
    )

    kwargs = build_redis_pool_kwargs(settings, decode_responses=True)

    assert kwargs["decode_responses"] is True
    assert kwargs["socket_connect_timeout"] == 6
    assert kwargs["retry_on_timeout"] is True
    assert kwargs["socket_keepalive"] is True
    assert kwargs["health_check_interval"] == 15
    assert kwargs["db"] == 3
    assert kwargs["max_connections"] == 50


def test_build_redis_pool_kwargs_omits_unset_options(test_settings):
    kwargs = build_redis_pool_kwargs(test_settings, decode_responses=False)

    assert "db" not in kwargs
    assert "max_connections" not in kwargs
