"""
Screenshot Capture Module

Captures a web page as PNG bytes using Playwright, for critiquing a URL
instead of an uploaded design.
"""

import logging
from typing import Optional

from playwright.async_api import async_playwright, TimeoutError as PlaywrightTimeout

from .errors import PayloadFetchError

logger = logging.getLogger(__name__)


class ScreenshotCapturer:
    """
    Captures screenshots of web pages using a headless Playwright browser.

    Example:
        capturer = ScreenshotCapturer(viewport={"width": 1440, "height": 900})
        png = await capturer.capture("https://example.com")
    """

    def __init__(self, viewport: Optional[dict] = None):
        """
        Initialize screenshot capturer.

        Args:
            viewport: Viewport dimensions {"width": int, "height": int}
                     Defaults to 1920x1080
        """
        self.viewport = viewport or {"width": 1920, "height": 1080}

    async def capture(
        self,
        url: str,
        wait_for: Optional[str] = None,
        full_page: bool = True,
        wait_timeout: int = 30000
    ) -> bytes:
        """
        Capture a screenshot of a web page.

        Args:
            url: Page URL to capture (file:// or http(s)://)
            wait_for: CSS selector to wait for before capture
            full_page: Capture full scrollable page (True) or viewport only (False)
            wait_timeout: Milliseconds to wait for navigation and elements

        Returns:
            PNG bytes of the screenshot

        Raises:
            PayloadFetchError: If the page cannot be loaded or captured
        """
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    page = await browser.new_page(viewport=self.viewport)
                    await page.goto(url, wait_until="networkidle", timeout=wait_timeout)

                    if wait_for:
                        await page.wait_for_selector(wait_for, timeout=wait_timeout)

                    # Small delay to ensure rendering completes
                    await page.wait_for_timeout(500)

                    png = await page.screenshot(full_page=full_page, type="png")
                finally:
                    await browser.close()
        except PlaywrightTimeout as e:
            raise PayloadFetchError(f"Timed out capturing {url}: {str(e)}") from e
        except Exception as e:
            raise PayloadFetchError(f"Screenshot capture failed: {str(e)}") from e

        logger.info("Captured %s (%dKB)", url, round(len(png) / 1024))
        return png
