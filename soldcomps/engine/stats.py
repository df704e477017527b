"""
SoldComps - Statistics Aggregator

Reduces a filtered listing collection to summary numbers and a display-ready,
recency-sorted listing array. All money is Decimal, quantized to cents.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

import structlog

from soldcomps.config import Channel, ChannelStatus, settings
from soldcomps.models import (
    ChannelReport,
    Listing,
    PricePoint,
    RecentSalesSummary,
    StatsSummary,
)

logger = structlog.get_logger(__name__)

_TWO_DP = Decimal("0.01")
_ZERO = Decimal("0.00")


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_TWO_DP, rounding=ROUND_HALF_UP)


def priced(listings: list[Listing]) -> list[Listing]:
    """Listings that carry a valid price, in input order."""
    return [listing for listing in listings if listing.price is not None]


def summarize(listings: list[Listing]) -> StatsSummary:
    """
    Average, lowest and highest price over the priced listings.

    An empty (or entirely unpriced) collection reports 0.00 everywhere with
    zero data points.
    """
    prices = [listing.price for listing in priced(listings)]
    if not prices:
        return StatsSummary(average=_ZERO, lowest=_ZERO, highest=_ZERO, data_points=0)

    average = sum(prices, Decimal("0")) / len(prices)
    return StatsSummary(
        average=_quantize(average),
        lowest=_quantize(min(prices)),
        highest=_quantize(max(prices)),
        data_points=len(prices),
    )


def sort_by_recency(listings: list[Listing]) -> list[Listing]:
    """
    Most recent sale first.

    Dated listings are reordered among the positions they already occupy;
    undated listings stay where they were. Equal dates keep input order.
    """
    dated_slots = [i for i, listing in enumerate(listings) if listing.date is not None]
    dated = sorted(
        (listings[i] for i in dated_slots),
        key=lambda listing: listing.date,
        reverse=True,
    )

    ordered = list(listings)
    for slot, listing in zip(dated_slots, dated):
        ordered[slot] = listing
    return ordered


def recent_sales(listings: list[Listing], n: int | None = None) -> RecentSalesSummary | None:
    """
    Average of the first n listings, in the order given, that have both a
    price and a sold date.

    This is "first n encountered", not "n most recent": callers that want the
    latest sales pass a collection already sorted by recency. Returns None when
    no listing qualifies.
    """
    limit = n if n is not None else settings.RECENT_SALES_COUNT

    used: list[Decimal] = []
    for listing in listings:
        if len(used) >= limit:
            break
        if listing.price is not None and listing.date is not None:
            used.append(listing.price)

    if not used:
        return None

    average = _quantize(sum(used, Decimal("0")) / len(used))
    return RecentSalesSummary(average=str(average), count=len(used))


def price_series(listings: list[Listing]) -> list[PricePoint]:
    """Dated, priced listings as chart points, oldest first."""
    points = [
        PricePoint(date=listing.date, price=listing.price)
        for listing in listings
        if listing.price is not None and listing.date is not None
    ]
    points.sort(key=lambda point: point.date)
    return points


def channel_status(has_listings: bool, degraded: bool) -> ChannelStatus:
    if has_listings:
        return ChannelStatus.PARTIAL if degraded else ChannelStatus.OK
    return ChannelStatus.FAILED if degraded else ChannelStatus.NO_RESULTS


def build_channel_report(
    channel: Channel,
    listings: list[Listing],
    degraded: bool = False,
    error: str | None = None,
) -> ChannelReport:
    """
    Summarize one channel for presentation.

    Unpriced listings are dropped from both the stats and the listing array.
    Sold channels are sorted most recent first and get a price series.
    """
    valid = priced(listings)
    stats = summarize(valid)
    display = sort_by_recency(valid) if channel.is_sold else valid

    report = ChannelReport(
        channel=channel,
        listings=display,
        stats=stats,
        status=channel_status(bool(valid), degraded),
        error=error,
        price_series=price_series(valid) if channel.is_sold else [],
    )

    logger.info(
        "channel_summarized",
        channel=channel.value,
        data_points=stats.data_points,
        average=str(stats.average),
        lowest=str(stats.lowest),
        highest=str(stats.highest),
        status=report.status.value,
        source="stats",
    )
    return report
