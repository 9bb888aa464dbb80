"""Pydantic models for browser launch options."""

from pydantic import BaseModel, Field

from crbrowser.core.config import Settings, get_settings


class LaunchOptions(BaseModel):
    """How a Browser obtains its Chromium instance.

    When ``cdp_url`` is set the browser is attached over CDP and the
    launch-only fields (headless, executable_path, args) are ignored.
    """

    headless: bool = Field(default=True, description="Run without a visible window")
    executable_path: str | None = Field(
        default=None,
        description="Chromium/Chrome binary; Playwright's bundled build when None",
    )
    args: list[str] = Field(
        default_factory=list,
        description="Extra Chromium command line switches",
    )
    cdp_url: str | None = Field(
        default=None,
        description="Existing browser endpoint (http:// or ws://) to attach to",
    )
    slow_mo_ms: int = Field(default=0, ge=0, description="Delay between driver calls")
    viewport_width: int = Field(default=1280, gt=0, description="Viewport width in pixels")
    viewport_height: int = Field(default=800, gt=0, description="Viewport height in pixels")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LaunchOptions":
        """Build launch options from environment settings."""
        settings = settings or get_settings()
        return cls(
            headless=settings.BROWSER_HEADLESS,
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
            args=list(settings.BROWSER_ARGS),
            cdp_url=settings.BROWSER_CDP_URL,
            slow_mo_ms=settings.BROWSER_SLOW_MO_MS,
            viewport_width=settings.VIEWPORT_WIDTH,
            viewport_height=settings.VIEWPORT_HEIGHT,
        )

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}
