"""
Configuration models using Pydantic.

This module defines the configuration structure for ffjob.
"""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _default_ffmpeg_path() -> str:
    return os.environ.get("FFMPEG", "ffmpeg")


class ExecutorConfig(BaseModel):
    """Job execution configuration."""

    ffmpeg_path: str = Field(
        default_factory=_default_ffmpeg_path,
        description="FFmpeg executable (defaults to $FFMPEG, then 'ffmpeg' on PATH)",
    )
    working_dir: Optional[Path] = Field(
        default=None,
        description="Directory FFmpeg runs in and pass logs are cleaned from (None = cwd)",
    )
    passlog_prefix: str = Field(
        default="ffmpeg2pass", description="Prefix of two-pass statistics log files"
    )
    cleanup_policy: Literal["strict", "lenient"] = Field(
        default="strict",
        description="strict: pass log cleanup failure fails the job; lenient: log and finish",
    )
    terminate_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait after SIGTERM before SIGKILL"
    )
    max_parallel_jobs: int = Field(
        default=2, ge=1, le=32, description="Jobs run concurrently by the job pool"
    )

    @field_validator("passlog_prefix")
    @classmethod
    def validate_passlog_prefix(cls, v: str) -> str:
        """Validate pass log prefix."""
        if not v:
            raise ValueError("passlog_prefix must not be empty")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v.upper()


class FFJobConfig(BaseModel):
    """Main ffjob configuration."""

    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def create_default(cls) -> "FFJobConfig":
        """Create default configuration."""
        return cls()
