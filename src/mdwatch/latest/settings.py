from pydantic import BaseModel, Field


class RateLimitSettings(BaseModel):
    """Pause for ``delay`` seconds after every ``requests`` requests.

    A ``requests`` value of zero or less disables the limit.
    """

    requests: int
    delay: float


class LatestFetchSettings(BaseModel):
    reindex: bool = False
    page_requests: RateLimitSettings = Field(
        default_factory=lambda: RateLimitSettings(requests=35, delay=60.0)
    )
    general_requests: RateLimitSettings = Field(
        default_factory=lambda: RateLimitSettings(requests=3, delay=3.0)
    )
    include_external_items: bool = False
    # Empty means every language
    languages: list[str] = Field(default_factory=lambda: ["en"])
