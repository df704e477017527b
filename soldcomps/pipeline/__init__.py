from soldcomps.pipeline.ebay import AccessToken, eBayBrowseClient, listing_from_item_summary
from soldcomps.pipeline.search import run_search

__all__ = ["AccessToken", "eBayBrowseClient", "listing_from_item_summary", "run_search"]
