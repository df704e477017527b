"""
SoldComps - Browser Capability Layer

The page fetcher only sees the ListingSource protocol: open a search URL and
wait for listings, read the current page's fragments, advance to the next
page. PlaywrightListingSource is the real implementation; tests use fakes.

open_browser_session() owns the Playwright driver, browser and context and
closes all three on every exit path.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Protocol

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from soldcomps.config import settings
from soldcomps.exceptions import PageLoadError, ScrapeSessionError
from soldcomps.models import RawFragment
from soldcomps.scraper.anti_detect import AntiDetect

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Selectors
# eBay serves two result layouts (.s-item and the newer .su-card-container).
# Each field is read through an ordered fallback chain covering both.
# ---------------------------------------------------------------------------

LISTING_SELECTOR = ".s-item, .su-card-container"
NEXT_PAGE_SELECTOR = "a.pagination__next"

TITLE_SELECTORS = (
    ".s-item__title span",
    ".s-card__title span",
    "[data-testid='item-title']",
    ".s-item__title",
)
TITLE_ATTR_SELECTORS = (("a.su-link", "aria-label"),)
PRICE_SELECTORS = (".s-item__price", ".s-card__price")
SOLD_DATE_SELECTORS = (
    ".s-item__ended-date",
    ".s-item__title--tagblock span",
    ".su-styled-text.positive.default",
    ".s-card__caption .su-styled-text",
)
LINK_ATTR_SELECTORS = (
    (".s-item__link", "href"),
    ("a.su-link[href*='/itm/']", "href"),
)
SELLER_SELECTORS = (
    ".s-item__detail.s-item__detail--secondary .s-item__etrs-text span.PRIMARY",
    ".su-card-container__attributes__secondary .su-styled-text.primary.large",
)


class ListingSource(Protocol):
    """What the page fetcher needs from a browser."""

    async def open(self, url: str) -> None:
        """Navigate to url and block until listings are visible. Raises PageLoadError."""
        ...

    async def read_fragments(self) -> list[RawFragment]:
        """Raw fragments for every listing element on the current page."""
        ...

    async def next_page(self) -> bool:
        """Advance to the next page and wait for listings. False when there is none."""
        ...

    async def close(self) -> None:
        ...


class PlaywrightListingSource:
    """ListingSource backed by one Playwright Page."""

    def __init__(self, page: Any) -> None:
        self._page = page
        self._nav_timeout_ms: int = settings.SCRAPE_NAV_TIMEOUT_MS
        self._wait_timeout_ms: int = settings.SCRAPE_WAIT_TIMEOUT_MS

    async def open(self, url: str) -> None:
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=self._nav_timeout_ms)
        except PlaywrightError as e:
            raise PageLoadError(url, "navigation failed", e) from e
        await self._wait_ready(url)

    async def read_fragments(self) -> list[RawFragment]:
        elements = await self._page.query_selector_all(LISTING_SELECTOR)
        fragments: list[RawFragment] = []
        for element in elements:
            title = await _first_text(element, TITLE_SELECTORS)
            if not title:
                title = await _first_attr(element, TITLE_ATTR_SELECTORS)
            fragments.append(
                RawFragment(
                    title=title,
                    price_text=await _first_text(element, PRICE_SELECTORS),
                    sold_date=await _first_text(element, SOLD_DATE_SELECTORS),
                    link=await _first_attr(element, LINK_ATTR_SELECTORS),
                    seller=await _first_text(element, SELLER_SELECTORS),
                )
            )
        return fragments

    async def next_page(self) -> bool:
        next_link = await self._page.query_selector(NEXT_PAGE_SELECTOR)
        if next_link is None:
            return False

        try:
            async with self._page.expect_navigation(
                wait_until="domcontentloaded", timeout=self._nav_timeout_ms
            ):
                await next_link.click()
        except PlaywrightError as e:
            raise PageLoadError(self._page.url, "pagination failed", e) from e

        await self._wait_ready(self._page.url)
        return True

    async def close(self) -> None:
        await self._page.close()

    async def _wait_ready(self, url: str) -> None:
        try:
            await self._page.wait_for_selector(
                LISTING_SELECTOR, state="visible", timeout=self._wait_timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise PageLoadError(url, f"listings not visible after {self._wait_timeout_ms}ms", e) from e


async def _first_text(element: Any, selectors: tuple[str, ...]) -> str:
    """Trimmed text of the first selector that yields any. Empty string if none do."""
    for selector in selectors:
        try:
            child = await element.query_selector(selector)
            if child:
                text = (await child.text_content() or "").strip()
                if text:
                    return text
        except PlaywrightError as e:
            logger.debug("fragment_selector_failed", selector=selector, error=str(e), source="browser")
    return ""


async def _first_attr(element: Any, selectors: tuple[tuple[str, str], ...]) -> str:
    """Trimmed attribute value of the first (selector, attribute) pair that yields one."""
    for selector, attribute in selectors:
        try:
            child = await element.query_selector(selector)
            if child:
                value = (await child.get_attribute(attribute) or "").strip()
                if value:
                    return value
        except PlaywrightError as e:
            logger.debug("fragment_selector_failed", selector=selector, error=str(e), source="browser")
    return ""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class BrowserSession:
    """One masked browser context. Hands out a fresh page per listing source."""

    def __init__(self, context: Any) -> None:
        self._context = context

    async def new_source(self) -> PlaywrightListingSource:
        page = await self._context.new_page()
        return PlaywrightListingSource(page)


@asynccontextmanager
async def open_browser_session(anti_detect: AntiDetect | None = None) -> AsyncIterator[BrowserSession]:
    """
    Launch Chromium with fingerprint masking and yield a BrowserSession.

    Raises ScrapeSessionError when the driver, browser or context cannot be
    started. Context, browser and driver are always released.
    """
    anti_detect = anti_detect or AntiDetect()

    try:
        playwright = await async_playwright().start()
    except Exception as e:
        logger.error("browser_driver_start_failed", error=str(e), source="browser")
        raise ScrapeSessionError("playwright driver failed to start", e) from e

    try:
        try:
            browser = await playwright.chromium.launch(**anti_detect.launch_options())
        except PlaywrightError as e:
            logger.error("browser_launch_failed", error=str(e), source="browser")
            raise ScrapeSessionError("browser launch failed", e) from e

        try:
            try:
                context = await browser.new_context(**anti_detect.context_options())
                await anti_detect.configure_context(context)
            except PlaywrightError as e:
                logger.error("browser_context_failed", error=str(e), source="browser")
                raise ScrapeSessionError("browser context setup failed", e) from e

            logger.info("browser_session_started", source="browser")
            try:
                yield BrowserSession(context)
            finally:
                await context.close()
        finally:
            await browser.close()
    finally:
        await playwright.stop()
        logger.info("browser_session_closed", source="browser")
