"""
SoldComps - Sold Listing Collector

eBay exposes sold listings only through its web search, so sold data is
scraped in two passes (auction and Buy It Now) that run side by side on
separate pages of one browser session. Fragments are normalized into
Listings here; a fragment without an item id never becomes a Listing.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any
from urllib.parse import urlencode

import structlog
from pydantic import BaseModel, Field

from soldcomps.config import Channel, settings
from soldcomps.models import Listing, RawFragment
from soldcomps.scraper.browser import open_browser_session
from soldcomps.scraper.extractors import (
    extract_date,
    extract_item_identifier,
    extract_price,
    extract_title,
)
from soldcomps.scraper.page_fetcher import PageFetcher

logger = structlog.get_logger(__name__)

# Extra query parameters per sold variant
SOLD_VARIANT_PARAMS: dict[Channel, dict[str, str]] = {
    Channel.SOLD_AUCTION: {"LH_Auction": "1"},
    Channel.SOLD_FIXED_PRICE: {"LH_BIN": "1"},
}


class VariantCollection(BaseModel):
    """Listings gathered for one sold variant."""
    channel: Channel
    url: str
    listings: list[Listing] = Field(default_factory=list)
    pages_fetched: int = 0
    dropped: int = 0
    degraded: bool = False
    error: str | None = None


class SoldCollection(BaseModel):
    auction: VariantCollection
    fixed_price: VariantCollection

    @property
    def variants(self) -> list[VariantCollection]:
        return [self.auction, self.fixed_price]

    @property
    def merged(self) -> list[Listing]:
        """Auction listings followed by fixed-price listings, collection order kept."""
        return [*self.auction.listings, *self.fixed_price.listings]


def build_sold_search_url(query_text: str, channel: Channel | None = None) -> str:
    """Sold + completed search URL, optionally narrowed to one sold variant."""
    params = {
        "_nkw": query_text,
        "LH_Sold": "1",
        "LH_Complete": "1",
        "_sop": str(settings.SCRAPE_SORT_ORDER),
    }
    if channel is not None:
        params.update(SOLD_VARIANT_PARAMS[channel])
    return f"{settings.EBAY_SEARCH_URL}?{urlencode(params)}"


def fragment_to_listing(fragment: RawFragment, channel: Channel) -> Listing | None:
    """
    Normalize one fragment. Returns None when the link has no item id.

    Price and date failures are local: the field is left as None.
    """
    identifier = extract_item_identifier(fragment.link)
    if identifier is None:
        return None

    return Listing(
        id=identifier.id,
        title=extract_title(fragment.title),
        price=extract_price(fragment.price_text),
        date=extract_date(fragment.sold_date) if channel.is_sold else None,
        url=identifier.url,
        seller=fragment.seller.strip(),
        channel=channel,
    )


def normalize_fragments(
    fragments: list[RawFragment],
    channel: Channel,
) -> tuple[list[Listing], int]:
    """Normalize fragments in order. Returns (listings, dropped_count)."""
    listings: list[Listing] = []
    dropped = 0
    for fragment in fragments:
        listing = fragment_to_listing(fragment, channel)
        if listing is None:
            dropped += 1
            logger.debug("fragment_dropped_no_item_id", link=fragment.link, source="collector")
            continue
        listings.append(listing)
    return listings, dropped


class ListingCollector:
    """
    Collects sold listings for a keyword query.

    Usage:
        collector = ListingCollector()
        sold = await collector.collect_sold("charizard base set psa 10", max_pages=2)
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        session_factory: Callable[[], AbstractAsyncContextManager[Any]] | None = None,
    ) -> None:
        self.fetcher = fetcher or PageFetcher()
        self._session_factory = session_factory or open_browser_session

    async def collect_sold(self, query_text: str, max_pages: int | None = None) -> SoldCollection:
        """
        Scrape both sold variants and normalize their fragments.

        Raises:
            ScrapeSessionError: the browser session could not be started.
        """
        async with self._session_factory() as session:
            auction, fixed_price = await asyncio.gather(
                self._collect_variant(session, Channel.SOLD_AUCTION, query_text, max_pages),
                self._collect_variant(session, Channel.SOLD_FIXED_PRICE, query_text, max_pages),
            )

        collection = SoldCollection(auction=auction, fixed_price=fixed_price)
        logger.info(
            "sold_collection_complete",
            query=query_text,
            auction_count=len(auction.listings),
            fixed_price_count=len(fixed_price.listings),
            degraded=auction.degraded or fixed_price.degraded,
            source="collector",
        )
        return collection

    async def _collect_variant(
        self,
        session: Any,
        channel: Channel,
        query_text: str,
        max_pages: int | None,
    ) -> VariantCollection:
        url = build_sold_search_url(query_text, channel)

        try:
            source = await session.new_source()
        except Exception as e:
            logger.error(
                "variant_source_failed",
                channel=channel.value,
                error=str(e),
                source="collector",
            )
            return VariantCollection(channel=channel, url=url, degraded=True, error=str(e))

        try:
            fetched = await self.fetcher.fetch(source, url, max_pages)
        finally:
            try:
                await source.close()
            except Exception as e:
                logger.warning("variant_source_close_failed", channel=channel.value, error=str(e), source="collector")

        listings, dropped = normalize_fragments(fetched.fragments, channel)
        return VariantCollection(
            channel=channel,
            url=url,
            listings=listings,
            pages_fetched=fetched.pages_fetched,
            dropped=dropped,
            degraded=fetched.degraded,
            error=fetched.error,
        )
