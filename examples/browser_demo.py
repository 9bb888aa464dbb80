"""Browser automation demo script.

Loads a page, reads a link's attributes, clicks it and saves a screenshot of
where the browser lands.

Requirements:
    - playwright install chromium
    - Optional: BROWSER_CDP_URL to drive an already running Chrome
"""

import asyncio
import sys

from crbrowser.browser import Browser, ElementNotFoundError
from crbrowser.core.logging import get_logger, setup_logging

logger = get_logger(__name__)

LINK_XPATH = "//a[1]"


async def follow_first_link(url: str, screenshot_path: str = "landing.png") -> dict:
    """Open ``url``, follow its first link and capture the result.

    Args:
        url: Page to start from
        screenshot_path: Where to save the screenshot

    Returns:
        dict: The link's attributes and the final location
    """
    async with Browser() as browser:
        await browser.navigate(url)

        try:
            attrs = await browser.get_attributes(LINK_XPATH)
        except ElementNotFoundError:
            logger.warning("no_links_on_page", url=url)
            await browser.screenshot(screenshot_path)
            return {"attributes": {}, "location": await browser.location()}

        top, left = await browser.get_top_left(LINK_XPATH)
        logger.info("link_found", href=attrs.get("href"), top=top, left=left)

        await browser.click(LINK_XPATH)
        await browser.screenshot(screenshot_path, full_page=False)

        return {"attributes": attrs, "location": await browser.location()}


if __name__ == "__main__":
    setup_logging()
    target = sys.argv[1] if len(sys.argv) > 1 else "https://example.com"
    result = asyncio.run(follow_first_link(target))
    logger.info("demo_complete", **result)
