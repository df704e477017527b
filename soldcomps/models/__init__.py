"""
Models package - export all pydantic models.
"""

from soldcomps.models.fragment import RawFragment
from soldcomps.models.listing import Listing
from soldcomps.models.query import Query
from soldcomps.models.report import (
    ChannelReport,
    PricePoint,
    RecentSalesSummary,
    SearchReport,
    StatsSummary,
)
from soldcomps.models.token import AccessToken

__all__ = [
    "AccessToken",
    "ChannelReport",
    "Listing",
    "PricePoint",
    "Query",
    "RawFragment",
    "RecentSalesSummary",
    "SearchReport",
    "StatsSummary",
]
