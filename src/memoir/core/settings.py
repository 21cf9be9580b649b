# Logging adapter for application-wide logging
from memoir.adapters.logging_adapter import LoggingAdapter

from pydantic import field_validator
from pydantic_settings import BaseSettings
from rich import print

from memoir.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class MemoirSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    MEMOIR_LOG_LEVEL: str = "INFO"
    MEMOIR_BACKEND_URL: str = "http://localhost:8000"
    MEMOIR_REQUEST_TIMEOUT: float = 30.0  # seconds, per attempt
    MEMOIR_RETRY_ATTEMPTS: int = 3
    MEMOIR_RETRY_DELAY: float = 1.0  # seconds, multiplied by attempt number
    MEMOIR_POLL_INTERVAL: float = 5.0  # seconds
    MEMOIR_MAX_DURATION: float = 600.0  # seconds
    MEMOIR_MAX_CONSECUTIVE_ERRORS: int = 5

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("Memoir client settings:")
        print(self)

    @field_validator("MEMOIR_BACKEND_URL", mode="before")
    def strip_trailing_slash(cls, value: str) -> str:
        """Endpoint paths are appended with a leading slash."""
        if isinstance(value, str):
            return value.rstrip("/")
        return value


app_settings = MemoirSettings()

logger = LoggingAdapter("memoir", app_settings.MEMOIR_LOG_LEVEL)
