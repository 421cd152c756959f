"""
Pydantic configuration models for mapharvest.

These models provide type-safe configuration with validation for:
- Browser backend settings
- Retry, scroll and search timing
- Batch orchestration
- Logging
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


DEFAULT_QUERY_TEMPLATE = "restaurant near {name}, New South Wales, Australia"


# =============================================================================
# Browser Configuration
# =============================================================================


class BrowserConfig(BaseModel):
    """Playwright browser settings, one browser per harvest session."""

    browser: str = Field(
        default="chromium",
        description="Browser to use: chromium, firefox, webkit",
    )
    headless: bool = Field(
        default=True,
        description="Run the browser in headless mode",
    )
    viewport_width: int = Field(
        default=1080,
        ge=320,
        le=3840,
        description="Browser viewport width",
    )
    viewport_height: int = Field(
        default=1024,
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
    locale: str = Field(
        default="en-AU",
        description="Browser locale",
    )
    maps_url: str = Field(
        default="https://www.google.com/maps",
        description="Search surface to open for every query",
    )
    navigation_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=120000,
        description="Timeout for page navigation",
    )
    action_timeout_ms: int = Field(
        default=10000,
        ge=500,
        le=60000,
        description="Default timeout for individual actions",
    )


# =============================================================================
# Harvest Timing
# =============================================================================


class RetryPolicyConfig(BaseModel):
    """Bounded retry policy for flaky UI interactions."""

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per interaction before the item is skipped",
    )
    delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Fixed delay between attempts",
    )
    base_timeout_ms: int = Field(
        default=2000,
        ge=0,
        description="Per-attempt wait timeout, multiplied by attempt number",
    )


class ScrollConfig(BaseModel):
    """Infinite-scroll feed exhaustion settings."""

    max_attempts: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Scroll iterations before giving up (soft stop)",
    )
    ready_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="Wait for the feed to mount its first item",
    )
    growth_timeout_ms: int = Field(
        default=10000,
        ge=0,
        description="Wait for the feed to grow after each scroll",
    )
    settle_timeout_ms: int = Field(
        default=2000,
        ge=0,
        description="Wait for a trailing loading indicator before re-measuring",
    )
    end_marker_text: str = Field(
        default="reached the end of the list",
        min_length=1,
        description="Text rendered by the feed once all results are loaded",
    )
    progress_every: int = Field(
        default=5,
        ge=1,
        description="Log progress every N scroll iterations",
    )


class SearchConfig(BaseModel):
    """How queries are formatted and submitted."""

    query_template: str = Field(
        default=DEFAULT_QUERY_TEMPLATE,
        description="Search string template, {name} is the query source name",
    )
    results_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        description="Wait for the results-for-query marker after submitting",
    )

    @field_validator("query_template")
    @classmethod
    def template_has_name(cls, v: str) -> str:
        """Ensure the template references the query name."""
        if "{name}" not in v:
            raise ValueError("query_template must contain {name}")
        return v


# =============================================================================
# Batch Configuration
# =============================================================================


class BatchConfig(BaseModel):
    """Multi-query orchestration settings."""

    concurrency: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Queries harvested concurrently per chunk",
    )
    cooldown_ms: int = Field(
        default=5000,
        ge=0,
        description="Pause between chunks (never after the last)",
    )
    tmp_root: Path = Field(
        default=Path("tmp"),
        description="Parent of the per-run artifact directory",
    )
    final_output: Path = Field(
        default=Path("all_restaurants.csv"),
        description="Combined, deduplicated output path",
    )
    keep_tmp: bool = Field(
        default=False,
        description="Keep per-query artifacts after a successful merge",
    )
    monitor_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="CPU/memory logging interval (0 disables)",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/mapharvest.log"),
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
        """Normalize and validate the level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Query Source
# =============================================================================


class QueryEntry(BaseModel):
    """One query source entry; only the display name is used."""

    name: str = Field(
        ...,
        min_length=1,
        description="Place name substituted into the query template",
    )

    def format(self, template: str) -> str:
        """Build the search string for this entry."""
        return template.format(name=self.name.strip())


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    retry: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    scroll: ScrollConfig = Field(default_factory=ScrollConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    queries_file: Path | None = Field(
        default=Path("configs/queries/illawarra.yaml"),
        description="Default query source for `mapharvest run`",
    )

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """Return a copy with dotted-path overrides applied, skipping None.

        Example: ``config.with_overrides(**{"batch.concurrency": 5})``
        """
        data = self.model_dump()
        for dotted, value in overrides.items():
            if value is None:
                continue
            section, _, key = dotted.partition(".")
            if key:
                data[section][key] = value
            else:
                data[section] = value
        return AppConfig.model_validate(data)
