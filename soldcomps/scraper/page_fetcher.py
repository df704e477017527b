"""
SoldComps - Page Fetcher

Bounded, strictly sequential pagination over a ListingSource. A failure part
way through keeps the pages already read and marks the result degraded.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel, Field

from soldcomps.config import settings
from soldcomps.models import RawFragment
from soldcomps.scraper.browser import ListingSource
from soldcomps.scraper.extractors import is_placeholder

logger = structlog.get_logger(__name__)


class FetchResult(BaseModel):
    """Fragments per page, in page order."""
    url: str
    pages: list[list[RawFragment]] = Field(default_factory=list)
    degraded: bool = False
    error: str | None = None

    @property
    def fragments(self) -> list[RawFragment]:
        return [fragment for page in self.pages for fragment in page]

    @property
    def pages_fetched(self) -> int:
        return len(self.pages)


class PageFetcher:
    """
    Reads up to max_pages result pages from one search URL.

    Usage:
        fetcher = PageFetcher()
        result = await fetcher.fetch(source, url, max_pages=3)
    """

    async def fetch(
        self,
        source: ListingSource,
        url: str,
        max_pages: int | None = None,
    ) -> FetchResult:
        """
        Fetch result pages in order until max_pages or the last page.

        Args:
            source: Browser capability to drive.
            url: Search results URL.
            max_pages: Page limit (defaults to settings.SCRAPE_MAX_PAGES).

        Returns:
            FetchResult. Never raises for navigation or extraction failures;
            those set degraded=True and keep the pages collected so far.
        """
        limit = max_pages if max_pages is not None else settings.SCRAPE_MAX_PAGES
        result = FetchResult(url=url)
        if limit < 1:
            return result

        try:
            await source.open(url)
            while True:
                raw = await source.read_fragments()
                page = [fragment for fragment in raw if not is_placeholder(fragment)]
                result.pages.append(page)

                logger.info(
                    "page_fetched",
                    url=url,
                    page=result.pages_fetched,
                    fragments=len(page),
                    skipped=len(raw) - len(page),
                    source="page_fetcher",
                )

                if result.pages_fetched >= limit:
                    break
                if not await source.next_page():
                    break

        except Exception as e:
            result.degraded = True
            result.error = str(e)
            logger.error(
                "page_fetch_failed",
                url=url,
                pages_fetched=result.pages_fetched,
                error=str(e),
                error_type=type(e).__name__,
                source="page_fetcher",
            )

        return result
