"""Shared utilities: errors, logging and helpers."""

from ffjob.utils.errors import (
    ConfigurationError,
    FFJobError,
    FFmpegError,
    JobFailedError,
    JobStateError,
    PassLogCleanupError,
)
from ffjob.utils.helpers import (
    format_bitrate,
    format_duration,
    format_size,
    parse_bitrate,
    parse_speed,
    parse_time_to_seconds,
)
from ffjob.utils.logger import get_logger, log_performance, setup_logger

__all__ = [
    # Errors
    "ConfigurationError",
    "FFJobError",
    "FFmpegError",
    "JobFailedError",
    "JobStateError",
    "PassLogCleanupError",
    # Helpers
    "format_bitrate",
    "format_duration",
    "format_size",
    "parse_bitrate",
    "parse_speed",
    "parse_time_to_seconds",
    # Logging
    "get_logger",
    "log_performance",
    "setup_logger",
]
