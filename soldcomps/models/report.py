"""
SoldComps - Derived summaries and search reports

Read-only values produced by the statistics aggregator and the search
orchestrator. None of these have an identity of their own.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from soldcomps.config import Channel, ChannelStatus, MatchMode
from soldcomps.models.listing import Listing
from soldcomps.models.query import Query
from soldcomps.models.token import AccessToken

_ZERO = Decimal("0.00")


class StatsSummary(BaseModel):
    """Average / lowest / highest price (cents) and the number of priced listings."""

    model_config = ConfigDict(populate_by_name=True)

    average: Decimal = _ZERO
    lowest: Decimal = _ZERO
    highest: Decimal = _ZERO
    data_points: int = Field(default=0, alias="dataPoints")


class RecentSalesSummary(BaseModel):
    average: str
    count: int


class PricePoint(BaseModel):
    date: Date
    price: Decimal


class ChannelReport(BaseModel):
    """Everything the presentation layer needs for one channel."""

    channel: Channel
    listings: list[Listing] = Field(default_factory=list)
    stats: StatsSummary = Field(default_factory=StatsSummary)
    status: ChannelStatus = ChannelStatus.NO_RESULTS
    error: str | None = None
    price_series: list[PricePoint] = Field(default_factory=list)


class SearchReport(BaseModel):
    query: Query
    mode: MatchMode
    channels: dict[Channel, ChannelReport] = Field(default_factory=dict)
    recent_sales: RecentSalesSummary | None = None
    # Token used for the active channels, for reuse by the next search. Never serialized.
    access_token: AccessToken | None = Field(default=None, exclude=True)

    def channel(self, channel: Channel) -> ChannelReport | None:
        return self.channels.get(channel)

    @property
    def has_results(self) -> bool:
        return any(report.listings for report in self.channels.values())

    @property
    def failed_channels(self) -> list[Channel]:
        return [c for c, report in self.channels.items() if report.status == ChannelStatus.FAILED]
