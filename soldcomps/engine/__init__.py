from soldcomps.engine.matcher import filter_listings, fuzzy_filter, strict_filter
from soldcomps.engine.stats import (
    build_channel_report,
    price_series,
    recent_sales,
    sort_by_recency,
    summarize,
)

__all__ = [
    "build_channel_report",
    "filter_listings",
    "fuzzy_filter",
    "price_series",
    "recent_sales",
    "sort_by_recency",
    "strict_filter",
    "summarize",
]
