"""Configuration management for ffjob."""

from ffjob.config.manager import (
    ConfigManager,
    get_config,
    get_config_manager,
)
from ffjob.config.models import (
    ExecutorConfig,
    FFJobConfig,
    LoggingConfig,
)

__all__ = [
    # Manager
    "ConfigManager",
    "get_config",
    "get_config_manager",
    # Models
    "ExecutorConfig",
    "FFJobConfig",
    "LoggingConfig",
]
