"""Configuration models for the job client and the job monitor.

Pydantic-based, immutable after construction so concurrent requests and
monitors can read them without coordination. Durations are float seconds.
"""

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Configuration for JobClient request behavior.

    Attributes:
        base_url: Backend host the AI endpoints live under
        timeout: Per-attempt request cutoff in seconds
        retry_attempts: Attempts per logical request (transport failures only)
        retry_delay: Base backoff unit; attempt n waits retry_delay * n before retrying
    """

    base_url: str = Field(
        default="http://localhost:8000",
        min_length=1,
        description="Base URL of the AI processing backend",
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-attempt request timeout in seconds",
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per request for transport failures",
    )

    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base delay in seconds for progressive backoff between attempts",
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")

    @classmethod
    def from_app_settings(cls, settings) -> "ClientConfig":
        return cls(
            base_url=settings.MEMOIR_BACKEND_URL,
            timeout=settings.MEMOIR_REQUEST_TIMEOUT,
            retry_attempts=settings.MEMOIR_RETRY_ATTEMPTS,
            retry_delay=settings.MEMOIR_RETRY_DELAY,
        )


class MonitorConfig(BaseModel):
    """Configuration for JobMonitor polling behavior.

    Attributes:
        poll_interval: Seconds between status polls in steady state
        max_duration: Overall wall-clock budget for a session in seconds
        max_consecutive_errors: Failed polls in a row before giving up
        error_backoff_factor: Multiplier on poll_interval after a failed poll
    """

    poll_interval: float = Field(
        default=5.0,
        gt=0,
        description="Interval in seconds between status polling requests",
    )

    max_duration: float = Field(
        default=600.0,
        gt=0,
        description="Maximum time in seconds to wait for a terminal status",
    )

    max_consecutive_errors: int = Field(
        default=5,
        ge=1,
        description="Consecutive polling failures tolerated before aborting",
    )

    error_backoff_factor: float = Field(
        default=2.0,
        ge=1,
        description="Poll interval multiplier applied after a failed poll",
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_app_settings(cls, settings) -> "MonitorConfig":
        return cls(
            poll_interval=settings.MEMOIR_POLL_INTERVAL,
            max_duration=settings.MEMOIR_MAX_DURATION,
            max_consecutive_errors=settings.MEMOIR_MAX_CONSECUTIVE_ERRORS,
        )
