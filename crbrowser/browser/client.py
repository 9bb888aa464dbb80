"""Chromium browser handle built on Playwright.

:class:`Browser` is a thin façade over a single Playwright page. It launches a
local Chromium (or attaches to a running one over the Chrome DevTools
Protocol), and exposes XPath-based helpers for navigating, clicking, typing,
reading attributes and taking screenshots.

Every driver call is bounded by the handle's timeout. Operations that take an
XPath first wait for the element to exist (see
:class:`~crbrowser.browser.locator.ElementLocator`) and raise
:class:`~crbrowser.browser.errors.ElementNotFoundError` when it never does.

Each operation has a ``must_`` twin that logs the failure and terminates the
process instead of raising, for scripts where there is nothing sensible to do
after a failed step.
"""

import asyncio
import sys
import time
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, Literal, TypeVar

import structlog
from playwright.async_api import (
    Browser as PlaywrightBrowser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from crbrowser.core.config import Settings, get_settings
from crbrowser.models.launch import LaunchOptions

from .errors import (
    BrowserError,
    BrowserSessionError,
    BrowserTimeoutError,
    DriverError,
    ElementNotFoundError,
)
from .geometry import TOP_LEFT_JS, parse_top_left
from .locator import ElementLocator

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ATTRIBUTES_JS = "(el) => Object.fromEntries(Array.from(el.attributes, (a) => [a.name, a.value]))"


def xpath_selector(xpath: str) -> str:
    """Playwright selector for an XPath expression."""
    return f"xpath={xpath}"


class Browser:
    """A Chromium browser controlled through Playwright.

    Attributes:
        options: How Chromium is launched or attached
        timeout: Per-call timeout in seconds
        browser: Playwright browser instance
        context: Browser context holding the page
        page: The page every operation acts on
    """

    CLICK_NODE_PAUSE = 1.0

    def __init__(
        self,
        options: LaunchOptions | None = None,
        timeout: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the handle. No browser is started until :meth:`start`.

        Args:
            options: Launch options (default: built from settings)
            timeout: Per-call timeout in seconds (default: BROWSER_TIMEOUT)
            settings: Settings to read defaults from (default: get_settings())
        """
        settings = settings or get_settings()
        self.options = options or LaunchOptions.from_settings(settings)
        self.timeout = settings.BROWSER_TIMEOUT if timeout is None else timeout
        if self.timeout <= 0:
            raise ValueError("timeout must be greater than zero")

        self.click_settle_delay = settings.CLICK_SETTLE_DELAY
        self.click_node_attempts = settings.CLICK_NODE_ATTEMPTS
        self.locator = ElementLocator(
            self.get_nodes,
            attempts=settings.FIND_ATTEMPTS,
            initial_wait=settings.FIND_INITIAL_WAIT,
        )

        self.browser: PlaywrightBrowser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self._playwright: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> "Browser":
        """Launch or attach Chromium and open the working page.

        Returns:
            Browser: self, for chaining

        Raises:
            BrowserSessionError: If the browser cannot be started
        """
        if self.page is not None:
            return self

        try:
            self._playwright = await async_playwright().start()

            if self.options.cdp_url:
                await self._connect_over_cdp()
            else:
                await self._launch()

            self.page.set_default_timeout(self.timeout * 1000)

            logger.info(
                "browser_started",
                cdp_url=self.options.cdp_url,
                headless=self.options.headless,
                timeout=self.timeout,
            )
            return self

        except Exception as e:
            logger.error(
                "browser_start_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.close()
            if isinstance(e, BrowserError):
                raise
            raise BrowserSessionError(f"Failed to start browser: {e}") from e

    async def _launch(self) -> None:
        """Launch a local Chromium with a fresh context."""
        self.browser = await self._playwright.chromium.launch(
            headless=self.options.headless,
            executable_path=self.options.executable_path,
            args=self.options.args,
            slow_mo=self.options.slow_mo_ms,
            timeout=self.timeout * 1000,
        )
        self.context = await self.browser.new_context(viewport=self.options.viewport)
        self.page = await self.context.new_page()

    async def _connect_over_cdp(self) -> None:
        """Attach to a running browser, reusing its first context and page."""
        self.browser = await self._playwright.chromium.connect_over_cdp(
            self.options.cdp_url,
            slow_mo=self.options.slow_mo_ms,
            timeout=self.timeout * 1000,
        )

        contexts = self.browser.contexts
        if contexts:
            self.context = contexts[0]
        else:
            self.context = await self.browser.new_context(viewport=self.options.viewport)

        if self.context.pages:
            self.page = self.context.pages[0]
        else:
            self.page = await self.context.new_page()

    async def close(self) -> None:
        """Release the page, browser and Playwright runtime.

        Safe to call more than once. Operations on a closed handle raise
        BrowserSessionError.
        """
        try:
            if self.browser:
                try:
                    await self.browser.close()
                    logger.info("browser_closed")
                except Exception as e:
                    logger.warning("browser_cleanup_warning", step="browser", error=str(e))

            if self._playwright:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning("browser_cleanup_warning", step="playwright", error=str(e))
        finally:
            self.browser = None
            self.context = None
            self.page = None
            self._playwright = None

    async def __aenter__(self) -> "Browser":
        return await self.start()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _require_page(self) -> Page:
        if self.page is None:
            raise BrowserSessionError("No active page. Call start() first.")
        return self.page

    async def _run(self, action: str, call: Awaitable[T], **context: Any) -> T:
        """Await a driver call under the handle timeout, translating its errors."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except (asyncio.TimeoutError, PlaywrightTimeoutError) as e:
            logger.error("browser_action_timeout", action=action, timeout=self.timeout, **context)
            raise BrowserTimeoutError(f"{action} timed out after {self.timeout}s") from e
        except PlaywrightError as e:
            logger.error("browser_action_failed", action=action, error=str(e), **context)
            raise DriverError(f"{action} failed: {e}") from e

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def navigate(self, url: str) -> dict[str, Any]:
        """Send the browser to a URL.

        Args:
            url: Target URL

        Returns:
            dict: status, url, title and navigation_time_ms
        """
        page = self._require_page()
        start_time = time.time()

        response = await self._run("navigate", page.goto(url), url=url)

        result = {
            "status": response.status if response else None,
            "url": page.url,
            "title": await self._run("title", page.title()),
            "navigation_time_ms": int((time.time() - start_time) * 1000),
        }
        logger.info(
            "navigation_complete",
            url=url,
            final_url=result["url"],
            status=result["status"],
            time_ms=result["navigation_time_ms"],
        )
        return result

    async def location(self) -> str:
        """Return the current URL."""
        return self._require_page().url

    async def get_nodes(self, xpath: str) -> list[ElementHandle]:
        """Return every node matching ``xpath``; empty when nothing matches."""
        page = self._require_page()
        return await self._run(
            "get_nodes", page.query_selector_all(xpath_selector(xpath)), xpath=xpath
        )

    async def find_element(self, xpath: str) -> list[ElementHandle]:
        """Wait for at least one node to match ``xpath``.

        Returns:
            list[ElementHandle]: The matching nodes

        Raises:
            ElementNotFoundError: If nothing matched within the lookup budget
        """
        self._require_page()
        return await self.locator.find(xpath)

    async def send_keys(self, xpath: str, value: str) -> None:
        """Type ``value`` into the element at ``xpath``."""
        page = self._require_page()
        await self.find_element(xpath)
        await self._run("send_keys", page.type(xpath_selector(xpath), value), xpath=xpath)
        logger.debug("keys_sent", xpath=xpath, value=value, length=len(value))

    async def click(self, xpath: str) -> None:
        """Click the first element matching ``xpath``."""
        page = self._require_page()
        await self.find_element(xpath)
        await self._run("click", page.click(xpath_selector(xpath)), xpath=xpath)
        logger.debug("element_clicked", xpath=xpath)

    async def get_source(self) -> str:
        """Return the HTML of the current document."""
        page = self._require_page()
        return await self._run("get_source", page.content())

    async def get_attributes(self, xpath: str) -> dict[str, str]:
        """Return the HTML attributes of the element at ``xpath``."""
        page = self._require_page()
        await self.find_element(xpath)
        attrs = await self._run(
            "get_attributes",
            page.eval_on_selector(xpath_selector(xpath), ATTRIBUTES_JS),
            xpath=xpath,
        )
        return dict(attrs or {})

    async def screenshot(
        self,
        path: str | Path | None = None,
        full_page: bool = True,
        image_type: Literal["png", "jpeg"] = "png",
        xpath: str | None = None,
    ) -> bytes:
        """Capture the page, or a single element when ``xpath`` is given.

        Args:
            path: Also write the image here when set
            full_page: Capture the whole scrollable page (ignored for elements)
            image_type: png or jpeg
            xpath: Element to capture instead of the page

        Returns:
            bytes: Image data
        """
        page = self._require_page()

        if xpath is not None:
            nodes = await self.find_element(xpath)
            data = await self._run(
                "screenshot", nodes[0].screenshot(path=path, type=image_type), xpath=xpath
            )
        else:
            data = await self._run(
                "screenshot", page.screenshot(path=path, full_page=full_page, type=image_type)
            )

        logger.info(
            "screenshot_captured",
            url=page.url,
            xpath=xpath,
            path=str(path) if path else None,
            size_bytes=len(data),
        )
        return data

    async def get_top_left(self, xpath: str) -> tuple[int, int]:
        """Return the viewport position of the element at ``xpath``.

        Returns:
            tuple[int, int]: ``(top, left)`` in whole pixels, each plus one

        Raises:
            CoordinateParseError: If the page returned an unparseable position
        """
        page = self._require_page()
        try:
            await self.find_element(xpath)
        except ElementNotFoundError as e:
            logger.info("get_top_left_not_found", xpath=xpath, error=str(e))
            raise

        raw = await self._run("get_top_left", page.evaluate(TOP_LEFT_JS, xpath), xpath=xpath)
        top, left = parse_top_left(raw)
        logger.debug("get_top_left_found", xpath=xpath, raw=raw, top=top, left=left)
        return top, left

    async def click_by_xy(self, xpath: str) -> tuple[int, int]:
        """Click the window at the top-left corner of the element at ``xpath``.

        Waits ``click_settle_delay`` seconds first so late layout shifts settle.
        The click lands at x = left, y = top, the reverse of the (top, left)
        order returned by :meth:`get_top_left`.

        Returns:
            tuple[int, int]: The ``(x, y)`` point clicked
        """
        page = self._require_page()
        await self.find_element(xpath)

        logger.debug("click_by_xy_settling", xpath=xpath, delay=self.click_settle_delay)
        await asyncio.sleep(self.click_settle_delay)

        top, left = await self.get_top_left(xpath)
        await self._run("click_by_xy", page.mouse.click(left, top), xpath=xpath)
        logger.debug("clicked_by_xy", xpath=xpath, x=left, y=top)
        return left, top

    async def click_node(self, xpath: str) -> int:
        """Click every element matching ``xpath``.

        Makes up to ``click_node_attempts`` attempts, pausing one second before
        each. A failed click on one node is logged and does not stop the others.

        Returns:
            int: Number of nodes clicked successfully

        Raises:
            ElementNotFoundError: If no attempt found a matching node
        """
        self._require_page()
        last_error: ElementNotFoundError | None = None

        for attempt in range(1, self.click_node_attempts + 1):
            await asyncio.sleep(self.CLICK_NODE_PAUSE)

            try:
                nodes = await self.find_element(xpath)
            except ElementNotFoundError as e:
                logger.info("click_node_lookup_failed", xpath=xpath, attempt=attempt)
                last_error = e
                continue

            logger.info("click_node_found", xpath=xpath, count=len(nodes))
            clicked = 0
            for index, node in enumerate(nodes, start=1):
                try:
                    await self._run("click_node", node.click(), xpath=xpath, node=index)
                    clicked += 1
                except BrowserError as e:
                    logger.warning("click_node_failed", xpath=xpath, node=index, error=str(e))

            logger.info("click_node_complete", xpath=xpath, attempt=attempt, clicked=clicked)
            return clicked

        raise ElementNotFoundError(xpath, attempts=self.click_node_attempts) from last_error

    # ------------------------------------------------------------------
    # must_ variants
    # ------------------------------------------------------------------

    async def _must(self, action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except BrowserError as e:
            logger.critical(
                "must_action_failed",
                action=action,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.close()
            sys.exit(1)

    async def must_navigate(self, url: str) -> dict[str, Any]:
        return await self._must("navigate", self.navigate(url))

    async def must_location(self) -> str:
        return await self._must("location", self.location())

    async def must_send_keys(self, xpath: str, value: str) -> None:
        await self._must("send_keys", self.send_keys(xpath, value))

    async def must_click(self, xpath: str) -> None:
        await self._must("click", self.click(xpath))

    async def must_get_source(self) -> str:
        return await self._must("get_source", self.get_source())

    async def must_get_attributes(self, xpath: str) -> dict[str, str]:
        return await self._must("get_attributes", self.get_attributes(xpath))

    async def must_screenshot(self, *args: Any, **kwargs: Any) -> bytes:
        return await self._must("screenshot", self.screenshot(*args, **kwargs))

    async def must_click_by_xy(self, xpath: str) -> tuple[int, int]:
        return await self._must("click_by_xy", self.click_by_xy(xpath))

    async def must_click_node(self, xpath: str) -> int:
        return await self._must("click_node", self.click_node(xpath))

    async def must_find_element(self, xpath: str) -> list[ElementHandle]:
        return await self._must("find_element", self.find_element(xpath))
