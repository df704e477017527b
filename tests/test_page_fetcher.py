"""Tests for the bounded page fetcher."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from soldcomps.config import settings
from soldcomps.exceptions import PageLoadError
from soldcomps.scraper.page_fetcher import PageFetcher

SEARCH_URL = "https://www.ebay.com/sch/i.html?_nkw=charizard&LH_Sold=1"


@pytest.fixture
def three_pages(make_fragment) -> list:
    return [
        [make_fragment(title=f"Charizard page {page} #{i}", link=f"https://www.ebay.com/itm/{page}{i}")
         for i in range(2)]
        for page in range(1, 4)
    ]


class TestPageFetcher:
    @pytest.mark.asyncio
    async def test_stops_at_max_pages_in_order(self, fake_source_cls, three_pages) -> None:
        """maxPages=2 against 3 available pages returns exactly pages 1 and 2."""
        source = fake_source_cls(pages=three_pages)

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=2)

        assert result.pages_fetched == 2
        assert result.degraded is False
        assert [f.title for f in result.fragments] == [
            "Charizard page 1 #0",
            "Charizard page 1 #1",
            "Charizard page 2 #0",
            "Charizard page 2 #1",
        ]
        # Page limit reached before asking for page 3
        assert source.advance_calls == 1

    @pytest.mark.asyncio
    async def test_stops_when_no_next_page(self, fake_source_cls, three_pages) -> None:
        """A higher limit than available pages ends at the last page."""
        source = fake_source_cls(pages=three_pages[:2])

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=5)

        assert result.pages_fetched == 2
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_placeholders_are_filtered(self, fake_source_cls, make_fragment) -> None:
        """Promo cards and link-less elements never leave the fetcher."""
        page = [
            make_fragment(title="Shop on eBay", link="https://www.ebay.com/itm/1"),
            make_fragment(title="Charizard PSA 10", link=""),
            make_fragment(title="Charizard PSA 10", link="https://www.ebay.com/itm/2"),
        ]
        source = fake_source_cls(pages=[page])

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=1)

        assert len(result.fragments) == 1
        assert result.fragments[0].link == "https://www.ebay.com/itm/2"

    @pytest.mark.asyncio
    async def test_first_page_timeout_is_degraded_not_raised(self, fake_source_cls) -> None:
        """A timeout on the first page yields no pages and an error, not an exception."""
        source = fake_source_cls(routes={"_nkw": PageLoadError(SEARCH_URL, "listings not visible after 15000ms")})

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=3)

        assert result.pages == []
        assert result.degraded is True
        assert "listings not visible" in result.error

    @pytest.mark.asyncio
    async def test_mid_scrape_failure_keeps_collected_pages(self, fake_source_cls, three_pages) -> None:
        """Failing to reach page 3 keeps pages 1 and 2."""
        source = fake_source_cls(pages=three_pages, fail_on_page=3)

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=3)

        assert result.pages_fetched == 2
        assert result.degraded is True
        assert "pagination failed" in result.error

    @pytest.mark.asyncio
    async def test_zero_limit_does_not_navigate(self, fake_source_cls, three_pages) -> None:
        source = fake_source_cls(pages=three_pages)

        result = await PageFetcher().fetch(source, SEARCH_URL, max_pages=0)

        assert result.pages == []
        assert source.opened_url is None

    @pytest.mark.asyncio
    async def test_default_limit_from_settings(self, fake_source_cls, three_pages) -> None:
        source = fake_source_cls(pages=three_pages)

        with patch.object(settings, "SCRAPE_MAX_PAGES", 1):
            result = await PageFetcher().fetch(source, SEARCH_URL)

        assert result.pages_fetched == 1
