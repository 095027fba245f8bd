import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdwatch.latest.settings import LatestFetchSettings, RateLimitSettings


def parse_languages(raw: str | None) -> list[str]:
    """
    Split a comma separated language list.

    An empty or blank value yields an empty list, which disables the
    language filter (chapters in every language are fetched).

    Examples:
        >>> parse_languages("EN, es-la,")
        ['en', 'es-la']
    """
    if not raw:
        return []

    return [part.strip().lower() for part in raw.split(",") if part.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    # Infrastructure dependencies
    postgres_user: str
    postgres_host: str
    postgres_password: str
    postgres_port: int
    postgres_db: str
    redis_host: str
    redis_port: int
    redis_db: Optional[int] = None

    # Redis connection resilience
    redis_conn_timeout: int = 5
    redis_retry_on_timeout: bool = True
    redis_socket_keepalive: bool = True
    redis_health_check_interval: int = 30
    redis_max_connections: Optional[int] = None

    # MangaDex
    mangadex_api_url: str = "https://api.mangadex.org"
    mangadex_user_agent: str = "mdwatch"
    mangadex_timeout_seconds: float = 30.0

    # Watcher
    watch_period_seconds: float = 60
    watch_reindex: bool = False
    watch_include_external: bool = False
    watch_languages: str = "en"
    watch_page_requests: int = 35
    watch_page_requests_delay: float = 60  # seconds
    watch_general_requests: int = 3
    watch_general_requests_delay: float = 3  # seconds

    # Notification channel for rolled up chapter batches
    latest_chapters_channel: str = "mangadex:latest"

    # Dev
    testing: bool = False
    dev: bool = False

    @model_validator(mode="after")
    def validate_watch_settings(self):
        """Ensure watcher timing values are sane."""
        if self.watch_period_seconds < 0:
            logging.error(
                "WATCH_PERIOD_SECONDS cannot be negative. Current value: %s",
                self.watch_period_seconds,
            )
            sys.exit(1)

        for name in ("watch_page_requests_delay", "watch_general_requests_delay"):
            value = getattr(self, name)
            if value < 0:
                logging.error(
                    "%s cannot be negative. Current value: %s", name.upper(), value
                )
                sys.exit(1)

        if self.watch_page_requests <= 0:
            logging.warning(
                "WATCH_PAGE_REQUESTS is %s, page request rate limiting is disabled",
                self.watch_page_requests,
            )

        if self.watch_general_requests <= 0:
            logging.warning(
                "WATCH_GENERAL_REQUESTS is %s, general request rate limiting is disabled",
                self.watch_general_requests,
            )

        return self

    def fetch_settings(self) -> LatestFetchSettings:
        return LatestFetchSettings(
            reindex=self.watch_reindex,
            page_requests=RateLimitSettings(
                requests=self.watch_page_requests,
                delay=self.watch_page_requests_delay,
            ),
            general_requests=RateLimitSettings(
                requests=self.watch_general_requests,
                delay=self.watch_general_requests_delay,
            ),
            include_external_items=self.watch_include_external,
            languages=parse_languages(self.watch_languages),
        )

    @computed_field
    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton, creating it if needed.

    Returns:
        Settings: The application settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (primarily for testing).

    Args:
        settings: The Settings instance to use.
    """
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for test cleanup)."""
    global _settings
    _settings = None


def get_loglevel():
    loglevel = os.getenv("LOGLEVEL", "INFO")

    match loglevel:
        case "INFO":
            return logging.INFO
        case "WARNING":
            return logging.WARNING
        case "ERROR":
            return logging.ERROR
        case "CRITICAL":
            return logging.CRITICAL
        case "DEBUG":
            return logging.DEBUG
        case _:
            return logging.INFO
