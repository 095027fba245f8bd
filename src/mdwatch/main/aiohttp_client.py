import time

import aiohttp

from mdwatch.main.logging import get_logger

logger = get_logger(__name__)


class AioHttpClient:
    session: aiohttp.ClientSession = None

    def _create_trace_config(self) -> aiohttp.TraceConfig:
        """Create TraceConfig for request timing observability."""
        trace = aiohttp.TraceConfig()

        async def on_request_start(session, trace_config_ctx, params):
            trace_config_ctx._request_start_time = time.perf_counter()

        async def on_request_end(session, trace_config_ctx, params):
            if hasattr(trace_config_ctx, "_request_start_time"):
                duration_ms = (time.perf_counter() - trace_config_ctx._request_start_time) * 1000

                # Slow upstream responses usually precede a 429 from MangaDex
                if duration_ms > 5000:
                    logger.warning(
                        f"SLOW request to {params.url.host}",
                        extra={
                            "event": "request_slow",
                            "url": str(params.url),
                            "status": params.response.status,
                            "duration_ms": int(duration_ms),
                            "threshold_ms": 5000,
                        },
                    )
                else:
                    logger.debug(
                        f"Request completed for {params.url.host}",
                        extra={
                            "event": "request_completed",
                            "url": str(params.url),
                            "status": params.response.status,
                            "duration_ms": int(duration_ms),
                        },
                    )

        trace.on_request_start.append(on_request_start)
        trace.on_request_end.append(on_request_end)

        return trace

    def start(self, user_agent: str | None = None, timeout_seconds: float = 30.0):
        timeout = aiohttp.ClientTimeout(
            total=timeout_seconds,
            connect=10.0,
        )

        connector = aiohttp.TCPConnector(
            limit=20,
            limit_per_host=10,
            enable_cleanup_closed=True,
            use_dns_cache=True,
            ttl_dns_cache=300,
        )

        headers = {"User-Agent": user_agent} if user_agent else None

        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers=headers,
            trace_configs=[self._create_trace_config()],
        )

    async def stop(self):
        if self.session is None:
            return
        await self.session.close()
        self.session = None

    def __call__(self) -> aiohttp.ClientSession:
        assert self.session is not None
        return self.session


aiohttp_client = AioHttpClient()
