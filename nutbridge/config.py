"""
Configuration management for nutbridge.

This module uses Pydantic's BaseSettings to manage configuration
through environment variables. Values that the NUT daemon connection
depends on are kept raw (``str | int``) and interpreted at use time, so
that an unusable poll interval falls back to its default and an invalid
port is reported when a connection is attempted.
"""
import re

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POLL_INTERVAL = 60  # seconds

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


def parse_int(value: str | int | float | None) -> int | None:
    """
    Parse the leading integer of a value.

    ``"87"`` and ``"87.5"`` both give 87, ``"abc"`` and ``None`` give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


class Settings(BaseSettings):
    """
    Application settings.

    These settings are loaded from environment variables.
    """

    # NUT Server Configuration
    HOST_IP: str = "127.0.0.1"
    HOST_PORT: str | int = 3493
    UPS_NAME: str = "ups"
    USERNAME: str | None = None
    PASSWORD: str | None = None
    TIMEOUT: int = 5  # seconds, per socket operation

    # Polling configuration
    UPDATE_INTERVAL: str | int = DEFAULT_POLL_INTERVAL

    # HTTP service
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8093

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        env_prefix="NUTBRIDGE_",
        extra="ignore",
    )

    @property
    def poll_interval(self) -> int:
        """Poll interval in seconds, 60 when unset or not a positive number."""
        interval = parse_int(self.UPDATE_INTERVAL)
        if not interval or interval < 0:
            return DEFAULT_POLL_INTERVAL
        return interval

    @property
    def own_ups_name(self) -> str:
        """The ``ups@host`` name upsmon uses in its notifications."""
        return f"{self.UPS_NAME}@{self.HOST_IP}"

    @property
    def has_credentials(self) -> bool:
        return bool(self.USERNAME and self.PASSWORD)


def get_settings() -> Settings:
    """Load the settings from the environment."""
    return Settings()
