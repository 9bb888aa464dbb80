"""Configuration management using Pydantic Settings.

All configuration values are loaded from environment variables or a local
.env file. Nothing here is required; every setting has a working default.
"""

from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Use .env.example as a template for creating your local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Settings
    APP_NAME: str = Field(default="crbrowser", description="Application name")
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/staging/production)",
    )
    DEBUG: bool = Field(default=False, description="Force DEBUG log level")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Browser Launch Settings
    BROWSER_HEADLESS: bool = Field(default=True, description="Run Chromium without a window")
    BROWSER_EXECUTABLE_PATH: str | None = Field(
        default=None,
        description="Chromium/Chrome binary (Playwright's bundled build if unset)",
    )
    BROWSER_ARGS: list[str] = Field(
        default_factory=list,
        description="Extra command line switches passed to Chromium",
    )
    BROWSER_CDP_URL: str | None = Field(
        default=None,
        description="Attach to a running browser at this CDP endpoint instead of launching",
    )
    BROWSER_SLOW_MO_MS: int = Field(default=0, ge=0, description="Delay between driver calls")
    BROWSER_TIMEOUT: float = Field(
        default=30.0, description="Per-handle timeout for each driver call in seconds"
    )
    VIEWPORT_WIDTH: int = Field(default=1280, description="Viewport width in pixels")
    VIEWPORT_HEIGHT: int = Field(default=800, description="Viewport height in pixels")

    # Element Lookup Settings
    FIND_ATTEMPTS: int = Field(default=8, description="Element lookup attempts")
    FIND_INITIAL_WAIT: float = Field(
        default=0.1, description="Wait before the first lookup attempt; doubles per attempt"
    )
    CLICK_SETTLE_DELAY: float = Field(
        default=5.0, description="Pause before reading coordinates in click_by_xy"
    )
    CLICK_NODE_ATTEMPTS: int = Field(default=5, description="Attempts made by click_node")

    @field_validator("BROWSER_TIMEOUT", "FIND_ATTEMPTS", "CLICK_NODE_ATTEMPTS")
    @classmethod
    def require_positive(cls, v: Any) -> Any:
        """Reject zero and negative timeouts and attempt counts."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("FIND_INITIAL_WAIT", "CLICK_SETTLE_DELAY")
    @classmethod
    def require_non_negative(cls, v: float) -> float:
        """Reject negative delays."""
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
