"""Configuration management for the UI inspector."""

from enum import Enum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReportFormat(str, Enum):
    """Supported report output formats."""
    MARKDOWN = "markdown"
    JSON = "json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="UI_INSPECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Target application
    app_url: str = Field("http://localhost:8888", description="URL of the locally running app")
    viewports: list[str] = Field(
        default_factory=lambda: ["mobile", "tablet", "desktop"],
        description="Names of viewport presets to inspect"
    )

    # Browser Settings
    headless: bool = Field(True, description="Run the browser without a window")
    slow_mo_ms: int = Field(0, description="Delay inserted between Playwright operations")
    navigation_timeout_ms: int = Field(30000, description="Timeout for page navigation")
    settle_delay_ms: int = Field(2000, description="Wait after load for client-side rendering")
    action_delay_ms: int = Field(300, description="Wait after each scripted action")
    max_elements: int = Field(5000, description="Maximum elements captured per snapshot")

    # Detector thresholds
    overflow_min_width_px: float = Field(50.0, description="Ignore overflowing elements narrower than this")
    min_font_size_px: float = Field(12.0, description="Smallest acceptable font size")
    min_touch_target_px: float = Field(44.0, description="Smallest acceptable touch target side")
    mobile_max_width_px: int = Field(375, description="Viewports this wide or narrower count as mobile")

    # Output
    output_dir: str = Field("./ui-inspection", description="Directory for reports")
    screenshot_dir: str = Field("./ui-inspection/screenshots", description="Directory for screenshots")
    report_format: ReportFormat = Field(ReportFormat.MARKDOWN, description="Report output format")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Log level")
    json_logs: bool = Field(False, description="Emit logs as JSON")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
