# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.settings",
#   "purpose": "Pydantic v2 settings for the performance investigation helpers.",
#   "sections": [
#     {
#       "id": "loglevel",
#       "name": "LogLevel",
#       "anchor": "class-loglevel",
#       "kind": "class"
#     },
#     {
#       "id": "logformat",
#       "name": "LogFormat",
#       "anchor": "class-logformat",
#       "kind": "class"
#     },
#     {
#       "id": "perfsettings",
#       "name": "PerfSettings",
#       "anchor": "class-perfsettings",
#       "kind": "class"
#     },
#     {
#       "id": "get-settings",
#       "name": "get_settings",
#       "anchor": "function-get-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pydantic v2 settings for the performance investigation helpers.

All knobs are read from ``PERF_``-prefixed environment variables so that the
same switches work for slash commands, the CLI, and benchmark scripts. The
benchmark runner consults these settings for default durations and for the
escape hatches that allow short runs (``PERF_ALLOW_SHORT=1``) or a dirty git
tree during optimization experiments (``PERF_ALLOW_DIRTY=1``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Enums for validated choices
# ============================================================================


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


# ============================================================================
# Perf configuration
# ============================================================================


class PerfSettings(BaseSettings):
    """Runtime configuration for benchmark runs and investigation state."""

    model_config = SettingsConfigDict(
        env_prefix="PERF_",
        case_sensitive=False,
        extra="ignore",
    )

    allow_short: bool = Field(
        False, description="Accept benchmark runs shorter than the requested duration"
    )
    allow_dirty: bool = Field(
        False, description="Run optimization experiments on a dirty git tree"
    )
    log_level: LogLevel = Field(LogLevel.INFO, description="Root logging level")
    log_format: LogFormat = Field(
        LogFormat.JSON, description="Pretty console or structured JSON"
    )
    min_duration_s: int = Field(60, description="Minimum duration of a full benchmark run")
    binary_search_min_duration_s: int = Field(
        30, description="Minimum duration of a binary-search probe"
    )
    duration_slack_s: float = Field(
        1.0, description="Tolerance applied to the minimum duration check", ge=0
    )
    default_warmup_s: int = Field(10, description="Warm-up seconds reported to benchmarks")

    @field_validator("min_duration_s", "binary_search_min_duration_s", "default_warmup_s")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative durations."""
        if v <= 0:
            raise ValueError(f"Duration must be positive, got {v}")
        return v


def get_settings() -> PerfSettings:
    """Return settings freshly resolved from the current environment."""

    return PerfSettings()


__all__ = ["LogFormat", "LogLevel", "PerfSettings", "get_settings"]
