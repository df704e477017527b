"""SoldComps - Scraper Layer"""

from soldcomps.scraper.collector import ListingCollector, SoldCollection, VariantCollection
from soldcomps.scraper.page_fetcher import FetchResult, PageFetcher

__all__ = [
    "FetchResult",
    "ListingCollector",
    "PageFetcher",
    "SoldCollection",
    "VariantCollection",
]
