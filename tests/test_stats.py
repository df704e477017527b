"""
Tests for the statistics aggregator and the Listing invariants it relies on.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from soldcomps.config import Channel, ChannelStatus
from soldcomps.engine.stats import (
    build_channel_report,
    channel_status,
    price_series,
    recent_sales,
    sort_by_recency,
    summarize,
)
from soldcomps.models import Listing


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------

class TestSummarize:
    def test_empty_collection(self) -> None:
        stats = summarize([])
        assert stats.average == Decimal("0.00")
        assert stats.lowest == Decimal("0.00")
        assert stats.highest == Decimal("0.00")
        assert stats.data_points == 0

    def test_unpriced_listings_are_excluded(self, make_listing) -> None:
        listings = [
            make_listing(price="10.00", item_id=1),
            make_listing(price=None, item_id=2),
            make_listing(price="30.00", item_id=3),
        ]
        stats = summarize(listings)
        assert stats.average == Decimal("20.00")
        assert stats.lowest == Decimal("10.00")
        assert stats.highest == Decimal("30.00")
        assert stats.data_points == 2

    def test_average_rounds_half_up_to_cents(self, make_listing) -> None:
        """10.00, 10.01, 10.01 averages to 10.01."""
        listings = [
            make_listing(price="10.00", item_id=1),
            make_listing(price="10.01", item_id=2),
            make_listing(price="10.01", item_id=3),
        ]
        assert summarize(listings).average == Decimal("10.01")

    def test_serializes_data_points_alias(self, make_listing) -> None:
        dumped = summarize([make_listing(price="5.00")]).model_dump(by_alias=True)
        assert dumped["dataPoints"] == 1


# ---------------------------------------------------------------------------
# sort_by_recency
# ---------------------------------------------------------------------------

class TestSortByRecency:
    def test_most_recent_first(self, make_listing) -> None:
        jan = make_listing(sold_on=date(2025, 1, 1), item_id=1)
        mar = make_listing(sold_on=date(2025, 3, 1), item_id=2)
        feb = make_listing(sold_on=date(2025, 2, 1), item_id=3)

        assert sort_by_recency([jan, mar, feb]) == [mar, feb, jan]

    def test_undated_listings_keep_their_slot(self, make_listing) -> None:
        jan = make_listing(sold_on=date(2025, 1, 1), item_id=1)
        undated = make_listing(sold_on=None, item_id=2)
        mar = make_listing(sold_on=date(2025, 3, 1), item_id=3)

        assert sort_by_recency([jan, undated, mar]) == [mar, undated, jan]

    def test_equal_dates_keep_input_order(self, make_listing) -> None:
        first = make_listing(sold_on=date(2025, 1, 1), item_id=1)
        second = make_listing(sold_on=date(2025, 1, 1), item_id=2)

        assert sort_by_recency([first, second]) == [first, second]

    def test_input_is_not_mutated(self, make_listing) -> None:
        listings = [
            make_listing(sold_on=date(2025, 1, 1), item_id=1),
            make_listing(sold_on=date(2025, 3, 1), item_id=2),
        ]
        original = list(listings)
        sort_by_recency(listings)
        assert listings == original


# ---------------------------------------------------------------------------
# recent_sales
# ---------------------------------------------------------------------------

class TestRecentSales:
    def test_first_five_encountered(self, make_listing) -> None:
        """Seven qualifying listings use only the first five, in given order."""
        prices = ["10.00", "20.00", "30.00", "40.00", "50.00", "1000.00", "2000.00"]
        listings = [
            make_listing(price=p, sold_on=date(2025, 1, i + 1), item_id=i)
            for i, p in enumerate(prices)
        ]

        summary = recent_sales(listings, n=5)

        assert summary is not None
        assert summary.count == 5
        assert summary.average == "30.00"

    def test_skips_listings_without_price_or_date(self, make_listing) -> None:
        listings = [
            make_listing(price=None, sold_on=date(2025, 1, 1), item_id=1),
            make_listing(price="99.00", sold_on=None, item_id=2),
            make_listing(price="10.00", sold_on=date(2025, 1, 2), item_id=3),
        ]

        summary = recent_sales(listings, n=5)

        assert summary is not None
        assert summary.count == 1
        assert summary.average == "10.00"

    def test_none_when_nothing_qualifies(self, make_listing) -> None:
        assert recent_sales([make_listing(sold_on=None)]) is None
        assert recent_sales([]) is None

    def test_average_is_two_decimal_string(self, make_listing) -> None:
        listings = [
            make_listing(price="10.00", sold_on=date(2025, 1, 1), item_id=1),
            make_listing(price="10.01", sold_on=date(2025, 1, 1), item_id=2),
            make_listing(price="10.01", sold_on=date(2025, 1, 1), item_id=3),
        ]
        assert recent_sales(listings).average == "10.01"


# ---------------------------------------------------------------------------
# price_series / channel reports
# ---------------------------------------------------------------------------

class TestPriceSeries:
    def test_oldest_first_and_dated_only(self, make_listing) -> None:
        listings = [
            make_listing(price="30.00", sold_on=date(2025, 3, 1), item_id=1),
            make_listing(price="99.00", sold_on=None, item_id=2),
            make_listing(price="10.00", sold_on=date(2025, 1, 1), item_id=3),
        ]

        series = price_series(listings)

        assert [(p.date, p.price) for p in series] == [
            (date(2025, 1, 1), Decimal("10.00")),
            (date(2025, 3, 1), Decimal("30.00")),
        ]


class TestChannelReport:
    @pytest.mark.parametrize(
        ("has_listings", "degraded", "expected"),
        [
            (True, False, ChannelStatus.OK),
            (True, True, ChannelStatus.PARTIAL),
            (False, False, ChannelStatus.NO_RESULTS),
            (False, True, ChannelStatus.FAILED),
        ],
    )
    def test_channel_status(self, has_listings: bool, degraded: bool, expected: ChannelStatus) -> None:
        assert channel_status(has_listings, degraded) == expected

    def test_sold_report_drops_unpriced_and_sorts(self, make_listing) -> None:
        jan = make_listing(price="10.00", sold_on=date(2025, 1, 1), item_id=1)
        unpriced = make_listing(price=None, sold_on=date(2025, 2, 1), item_id=2)
        mar = make_listing(price="30.00", sold_on=date(2025, 3, 1), item_id=3)

        report = build_channel_report(Channel.SOLD_AUCTION, [jan, unpriced, mar])

        assert report.listings == [mar, jan]
        assert report.stats.data_points == 2
        assert report.status == ChannelStatus.OK
        assert len(report.price_series) == 2

    def test_active_report_keeps_order_and_has_no_series(self, make_listing) -> None:
        first = make_listing(price="50.00", item_id=1, channel=Channel.ACTIVE_FIXED_PRICE)
        second = make_listing(price="40.00", item_id=2, channel=Channel.ACTIVE_FIXED_PRICE)

        report = build_channel_report(Channel.ACTIVE_FIXED_PRICE, [first, second])

        assert report.listings == [first, second]
        assert report.price_series == []

    def test_degraded_empty_report_is_failed(self) -> None:
        report = build_channel_report(Channel.SOLD_FIXED_PRICE, [], degraded=True, error="timeout")
        assert report.status == ChannelStatus.FAILED
        assert report.error == "timeout"
        assert report.stats.average == Decimal("0.00")


# ---------------------------------------------------------------------------
# Listing invariants
# ---------------------------------------------------------------------------

class TestListingInvariants:
    def test_dated_active_listing_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Listing(id="v1|1|0", date=date(2025, 1, 1), channel=Channel.ACTIVE_AUCTION)

    def test_negative_price_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Listing(id="v1|1|0", price=Decimal("-1.00"), channel=Channel.SOLD_AUCTION)

    def test_undated_sold_listing_is_allowed(self) -> None:
        listing = Listing(id="v1|1|0", price=Decimal("5.00"), channel=Channel.SOLD_AUCTION)
        assert listing.is_sold is True
        assert listing.date is None
