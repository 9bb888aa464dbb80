"""Browser automation layer for crbrowser.

A thin façade over Playwright for driving Chromium by XPath: navigation,
clicks, typing, attribute reads, screenshots and element lookup with retry.

Main Components:
- Browser: The browser handle; every operation is a method on it
- ElementLocator: Polls an XPath lookup with exponential backoff
- parse_top_left: Turns an injected-JS "top:left" reading into click coordinates

Example Usage:
    ```python
    from crbrowser.browser import Browser, ElementNotFoundError
    from crbrowser.models import LaunchOptions

    async def login(url: str) -> str:
        async with Browser(LaunchOptions(headless=True), timeout=20) as browser:
            await browser.navigate(url)
            await browser.send_keys("//input[@name='user']", "alice")
            await browser.click("//button[@type='submit']")
            try:
                await browser.find_element("//div[@id='dashboard']")
            except ElementNotFoundError:
                await browser.screenshot("login-failed.png")
                raise
            return await browser.location()
    ```
"""

from crbrowser.browser.client import Browser, xpath_selector
from crbrowser.browser.errors import (
    BrowserError,
    BrowserSessionError,
    BrowserTimeoutError,
    CoordinateParseError,
    DriverError,
    ElementNotFoundError,
)
from crbrowser.browser.geometry import TOP_LEFT_JS, parse_top_left
from crbrowser.browser.locator import ElementLocator

__all__ = [
    # Client
    "Browser",
    "xpath_selector",
    # Lookup
    "ElementLocator",
    "TOP_LEFT_JS",
    "parse_top_left",
    # Errors
    "BrowserError",
    "BrowserSessionError",
    "BrowserTimeoutError",
    "CoordinateParseError",
    "DriverError",
    "ElementNotFoundError",
]
