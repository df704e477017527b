"""
SoldComps - Configuration & Constants

Every timeout, URL, threshold and default lives here. No hardcoded values in
extraction, matching or aggregation logic.

Usage:
    from soldcomps.config import settings
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Channel(str, Enum):
    """Where a listing was observed."""
    ACTIVE_AUCTION = "active_auction"
    ACTIVE_FIXED_PRICE = "active_fixed_price"
    SOLD_AUCTION = "sold_auction"
    SOLD_FIXED_PRICE = "sold_fixed_price"

    @property
    def is_sold(self) -> bool:
        return self in (Channel.SOLD_AUCTION, Channel.SOLD_FIXED_PRICE)


class MatchMode(str, Enum):
    """Title matching strategy."""
    STRICT = "strict"
    FUZZY = "fuzzy"


class ChannelStatus(str, Enum):
    """Outcome of one channel, so callers can tell empty from failed."""
    OK = "ok"
    PARTIAL = "partial"          # listings present, retrieval degraded
    NO_RESULTS = "no_results"    # legitimately empty
    FAILED = "failed"            # empty because retrieval failed


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Central configuration for SoldComps.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # -----------------------------------------------------------------------
    # eBay Browse API (active listings)
    # -----------------------------------------------------------------------
    EBAY_APP_ID: str = ""                   # eBay Developer App ID (Client ID)
    EBAY_CERT_ID: str = ""                  # eBay Developer Cert ID (Client Secret)
    EBAY_OAUTH_URL: str = "https://api.ebay.com/identity/v1/oauth2/token"
    EBAY_OAUTH_SCOPE: str = "https://api.ebay.com/oauth/api_scope"
    EBAY_BROWSE_URL: str = "https://api.ebay.com/buy/browse/v1"
    EBAY_MARKETPLACE_ID: str = "EBAY_US"
    ACTIVE_RESULT_LIMIT: int = 50
    TOKEN_EXPIRY_MARGIN_SECONDS: int = 60
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # -----------------------------------------------------------------------
    # eBay web search (sold listings, scraped)
    # -----------------------------------------------------------------------
    EBAY_SEARCH_URL: str = "https://www.ebay.com/sch/i.html"
    EBAY_ITEM_URL: str = "https://www.ebay.com/itm"
    SCRAPE_SORT_ORDER: int = 12
    SCRAPE_MAX_PAGES: int = 3

    # -----------------------------------------------------------------------
    # Browser session
    # -----------------------------------------------------------------------
    SCRAPE_HEADLESS: bool = True
    SCRAPE_LAUNCH_TIMEOUT_MS: int = 30000
    SCRAPE_NAV_TIMEOUT_MS: int = 60000
    SCRAPE_WAIT_TIMEOUT_MS: int = 15000
    SCRAPE_VIEWPORT_WIDTH: int = 1920
    SCRAPE_VIEWPORT_HEIGHT: int = 1080
    PROXY_URL: str = ""

    # -----------------------------------------------------------------------
    # Matching
    # -----------------------------------------------------------------------
    # 0.0 is a perfect match, 1.0 matches anything
    FUZZY_THRESHOLD: Decimal = Decimal("0.32")
    GRADING_SERVICES: list[str] = ["psa", "bgs", "cgc", "sgc"]

    # -----------------------------------------------------------------------
    # Aggregation
    # -----------------------------------------------------------------------
    RECENT_SALES_COUNT: int = 5
    BASE_CURRENCY: str = "USD"

    # -----------------------------------------------------------------------
    # Logging
    # -----------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"


# Singleton instance
settings = Settings()
