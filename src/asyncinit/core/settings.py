"""Settings for asyncinit sessions.

Arguments passed to ``bootstrap`` win; anything left as ``None`` falls back
to these settings, which read ``ASYNC_INIT_*`` environment variables and a
``.env`` file.

Fields
──────
debug              : Heartbeat and lifecycle logging for every task
defer_failure      : Surface a setup-routine exception on first wait()
                     instead of raising it from bootstrap()
heartbeat_interval : Seconds between "still in progress" heartbeats
log_level          : structlog level used by ``configure_logging``
log_json           : JSON logs (True), console logs (False), auto (None)

Examples:
    >>> settings = AsyncInitSettings(debug=True, heartbeat_interval=0.5)
    >>> settings.heartbeat_interval
    0.5
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AsyncInitSettings(BaseSettings):
    """Session defaults, overridable from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="ASYNC_INIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Session ──────────────────────────────────────────────────
    debug: bool = Field(default=False, description="Enable heartbeat logging")
    defer_failure: bool = Field(
        default=False,
        description="Defer a setup-routine exception to the first wait()",
    )
    heartbeat_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between heartbeat log lines",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> AsyncInitSettings:
    """Return the process-wide settings (cached after first load)."""
    return AsyncInitSettings()
