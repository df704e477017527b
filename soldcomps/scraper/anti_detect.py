"""
SoldComps - Fingerprint Masking

Makes a headless Chromium session look like a regular desktop browser:
launch flags, a rotated desktop user agent, a fixed viewport, the
navigator.webdriver override and optional proxy routing. Nothing beyond that.
"""

from __future__ import annotations

import random
from typing import Any

import structlog

from soldcomps.config import settings

logger = structlog.get_logger(__name__)

# Hides navigator.webdriver, which headless Chromium sets to true
WEBDRIVER_MASK_SCRIPT = "Object.defineProperty(navigator, 'webdriver', { get: () => false });"


class AntiDetect:
    """
    Browser fingerprint settings for one scrape session.

    Usage:
        anti_detect = AntiDetect()
        browser = await playwright.chromium.launch(**anti_detect.launch_options())
        context = await browser.new_context(**anti_detect.context_options())
        await anti_detect.configure_context(context)
    """

    USER_AGENTS = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    ]

    LAUNCH_ARGS = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-blink-features=AutomationControlled",
    ]

    def __init__(self) -> None:
        self._headless: bool = settings.SCRAPE_HEADLESS
        self._launch_timeout_ms: int = settings.SCRAPE_LAUNCH_TIMEOUT_MS
        self._viewport: dict[str, int] = {
            "width": settings.SCRAPE_VIEWPORT_WIDTH,
            "height": settings.SCRAPE_VIEWPORT_HEIGHT,
        }

    def get_random_user_agent(self) -> str:
        """Return a random desktop Chrome user agent string."""
        return random.choice(self.USER_AGENTS)

    def get_proxy_config(self) -> dict[str, str] | None:
        """Return proxy configuration if PROXY_URL is set."""
        if settings.PROXY_URL:
            return {"server": settings.PROXY_URL}
        return None

    def launch_options(self) -> dict[str, Any]:
        """Keyword arguments for chromium.launch()."""
        options: dict[str, Any] = {
            "headless": self._headless,
            "args": [*self.LAUNCH_ARGS, f"--window-size={self._viewport['width']},{self._viewport['height']}"],
            "timeout": self._launch_timeout_ms,
        }
        proxy = self.get_proxy_config()
        if proxy:
            options["proxy"] = proxy
        return options

    def context_options(self) -> dict[str, Any]:
        """Keyword arguments for browser.new_context()."""
        return {
            "user_agent": self.get_random_user_agent(),
            "viewport": dict(self._viewport),
            "locale": "en-US",
        }

    async def configure_context(self, context: Any) -> None:
        """
        Apply the init-script masks to a Playwright BrowserContext.

        Runs before any page script, so every page opened from the context
        starts masked.
        """
        await context.add_init_script(WEBDRIVER_MASK_SCRIPT)
        logger.debug("anti_detect_context_configured", source="anti_detect")
