"""
SoldComps - Search Orchestrator

One call per Query: active listings from the Browse API, sold listings from
the scraper, matching, then per-channel summaries plus one recent-sales
summary over both sold channels.

Upstream failures (token, Browse API, browser launch) propagate as
UpstreamError. Scrape degradation does not; it shows up as a channel status
of "partial" or "failed" so an empty channel can be told apart from a failed
one.
"""

from __future__ import annotations

import structlog

from soldcomps.config import MatchMode
from soldcomps.engine.matcher import filter_listings
from soldcomps.engine.stats import build_channel_report, recent_sales
from soldcomps.models import Query, SearchReport
from soldcomps.pipeline.ebay import BUYING_OPTIONS, AccessToken, eBayBrowseClient
from soldcomps.scraper.collector import ListingCollector

logger = structlog.get_logger(__name__)


async def run_search(
    query: Query,
    mode: MatchMode = MatchMode.STRICT,
    max_pages: int | None = None,
    include_active: bool = True,
    include_sold: bool = True,
    collector: ListingCollector | None = None,
    browse_client: eBayBrowseClient | None = None,
    token: AccessToken | None = None,
) -> SearchReport:
    """
    Run the full pipeline for one query.

    Args:
        query: Search criteria.
        mode: Strict or fuzzy title matching.
        max_pages: Sold-search page limit per variant.
        include_active: Query the Browse API for active listings.
        include_sold: Scrape sold listings.
        collector: Sold listing collector (a browser-backed one by default).
        browse_client: Browse API client (a fresh one by default).
        token: Access token to reuse while still valid. The token actually
            used (refreshed if needed) comes back on report.access_token.

    Raises:
        ValueError: the query has no search terms.
        UpstreamError: the Browse API or the browser session failed.
    """
    if query.is_empty():
        raise ValueError("query has no search terms")

    query_text = query.search_text()
    report = SearchReport(query=query, mode=mode)
    logger.info(
        "search_started",
        query=query_text,
        mode=mode.value,
        include_active=include_active,
        include_sold=include_sold,
        source="search",
    )

    if include_active:
        async with (browse_client or eBayBrowseClient()) as client:
            token = await client.ensure_token(token)
            report.access_token = token
            for channel in BUYING_OPTIONS:
                listings = await client.search_active(token, query_text, channel)
                matched = filter_listings(listings, query, mode)
                report.channels[channel] = build_channel_report(channel, matched)

    if include_sold:
        collector = collector or ListingCollector()
        sold = await collector.collect_sold(query_text, max_pages)

        for variant in sold.variants:
            report.channels[variant.channel] = build_channel_report(
                variant.channel,
                filter_listings(variant.listings, query, mode),
                degraded=variant.degraded,
                error=variant.error,
            )

        # Auction then fixed price, in matched order, before the recency sort
        report.recent_sales = recent_sales(filter_listings(sold.merged, query, mode))

    logger.info(
        "search_complete",
        query=query_text,
        channels={c.value: len(r.listings) for c, r in report.channels.items()},
        failed=[c.value for c in report.failed_channels],
        recent_sales_count=report.recent_sales.count if report.recent_sales else 0,
        source="search",
    )
    return report

