"""Configuration models for vaultfs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field, field_validator

# 2007-07-18T02:19:00Z, epoch millis 1184725140000
DEFAULT_PROBE_REFERENCE_TIME = datetime(2007, 7, 18, 2, 19, tzinfo=UTC)

MILLIS_PER_DAY = 86_400_000


class ProbeConfig(BaseModel):
    """Creation-time capability probe settings."""

    reference_time: datetime = Field(
        default=DEFAULT_PROBE_REFERENCE_TIME,
        description="Creation time written to the probe file (truncated to whole seconds)",
    )

    tolerance_ms: int = Field(
        default=MILLIS_PER_DAY,
        gt=0,
        description="Largest read-back deviation still counted as supported",
    )

    temp_file_prefix: str = Field(
        default=".vaultfs-ctime-probe-",
        min_length=1,
        description="Name prefix of the temporary probe file",
    )

    @field_validator("reference_time")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("reference_time must be timezone-aware")
        return value.astimezone(UTC)

    @field_validator("temp_file_prefix")
    @classmethod
    def _single_component(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError(f"temp_file_prefix must be a single path component: {value!r}")
        return value

    @property
    def tolerance(self) -> timedelta:
        return timedelta(milliseconds=self.tolerance_ms)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")
    filename: str | None = Field(default=None, description="Log file (stdout when unset)")


class GatewayConfig(BaseModel):
    """Top-level gateway configuration."""

    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
