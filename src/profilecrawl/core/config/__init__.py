"""Configuration loading and validation."""

from .models import (
    # Enums
    BrowserType,
    Stage,
    # Config models
    AppConfig,
    BrowserConfig,
    CrawlConfig,
    LoggingConfig,
    OutputConfig,
    ProxyConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file

__all__ = [
    # Enums
    "BrowserType",
    "Stage",
    # Config models
    "AppConfig",
    "BrowserConfig",
    "CrawlConfig",
    "LoggingConfig",
    "OutputConfig",
    "ProxyConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
]
