"""
SoldComps - sold and active eBay comps for trading cards.

Scrapes sold listings, pulls active listings from the Browse API, normalizes
both into Listings, filters them against a card query and summarizes prices.
"""

__version__ = "0.1.0"
