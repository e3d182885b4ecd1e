"""
Pydantic configuration models for profilecrawl.

These models provide type-safe configuration with validation for:
- Crawl run parameters (keywords, location, batching, retries)
- Proxy gateway credentials
- Browser backend preferences
- Output and logging settings

All models are frozen: a loaded configuration is an immutable value that
is passed explicitly to the pipeline and URL builder.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class BrowserType(str, Enum):
    """Supported Playwright browser engines."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class Stage(str, Enum):
    """Pipeline stages."""

    DISCOVERY = "discovery"
    ENRICHMENT = "enrichment"


# =============================================================================
# Crawl Configuration
# =============================================================================


class CrawlConfig(BaseModel):
    """Run parameters consumed by the crawl pipeline."""

    model_config = ConfigDict(frozen=True)

    keywords: list[str] = Field(
        default_factory=list,
        description="Search keywords, e.g. 'bill gates'",
    )
    location: str = Field(
        default="us",
        min_length=2,
        description="Country code passed to the proxy gateway",
    )
    batch_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Units crawled concurrently per batch",
    )
    max_attempts: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Retries per unit after the first attempt",
    )
    retry_backoff_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=60.0,
        description="Base exponential backoff between attempts (0 = retry immediately)",
    )

    @field_validator("keywords")
    @classmethod
    def strip_keywords(cls, v: list[str]) -> list[str]:
        """Drop blank keywords and surrounding whitespace."""
        return [k.strip() for k in v if k and k.strip()]


# =============================================================================
# Proxy Configuration
# =============================================================================


class ProxyConfig(BaseModel):
    """Proxy gateway settings."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = Field(
        default=None,
        description="Gateway credential; navigation goes direct when unset",
    )
    endpoint: str = Field(
        default="https://proxy.scrapeops.io/v1/",
        description="Gateway endpoint receiving api_key/url/country",
    )

    @field_validator("api_key")
    @classmethod
    def blank_key_is_none(cls, v: str | None) -> str | None:
        """Treat an empty (e.g. unexpanded env var) key as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()


# =============================================================================
# Browser Configuration
# =============================================================================


class BrowserConfig(BaseModel):
    """Playwright browser settings."""

    model_config = ConfigDict(frozen=True)

    browser: BrowserType = Field(
        default=BrowserType.CHROMIUM,
        description="Browser to use: chromium, firefox, webkit",
    )
    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    navigation_timeout_ms: int = Field(
        default=0,
        ge=0,
        le=600000,
        description="Timeout for page navigation (0 = wait indefinitely)",
    )
    viewport_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser viewport width",
    )
    viewport_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser viewport height",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom user agent string",
    )
    stealth: bool = Field(
        default=True,
        description="Enable stealth mode to avoid bot detection",
    )


# =============================================================================
# Output Configuration
# =============================================================================


class OutputConfig(BaseModel):
    """Where CSV results are written."""

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(
        default=Path("data"),
        description="Directory holding discovery and enrichment CSV files",
    )
    enrichment_suffix: str = Field(
        default="-profiles",
        min_length=1,
        description="Suffix appended to a keyword's file name for enrichment output",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/profilecrawl.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        """Ensure the level is one logging understands."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    model_config = ConfigDict(frozen=True)

    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def ensure_directories(self) -> None:
        """Create output and log directories if they don't exist."""
        self.output.directory.mkdir(parents=True, exist_ok=True)

        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)
