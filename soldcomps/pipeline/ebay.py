"""
SoldComps - eBay Browse API Client

Fetches active auction and fixed-price listings from the eBay Browse API and
normalizes them into the same Listing type as scraped sold listings.

Authentication: OAuth2 Client Credentials. The access token is an explicit
AccessToken value returned to the caller and passed back into each search;
there is no module-level token state.
"""

from __future__ import annotations

import base64
import re
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import structlog

from soldcomps.config import Channel, settings
from soldcomps.exceptions import MarketplaceAPIError
from soldcomps.models import AccessToken, Listing
from soldcomps.scraper.extractors import (
    ItemIdentifier,
    extract_item_identifier,
    extract_price,
    extract_title,
)

logger = structlog.get_logger(__name__)

BUYING_OPTIONS: dict[Channel, str] = {
    Channel.ACTIVE_AUCTION: "AUCTION",
    Channel.ACTIVE_FIXED_PRICE: "FIXED_PRICE",
}

_API_ITEM_ID_RE = re.compile(r"^v1\|(\d+)\|")


def _identifier_for(item: dict[str, Any]) -> ItemIdentifier | None:
    identifier = extract_item_identifier(item.get("itemWebUrl"))
    if identifier is not None:
        return identifier
    match = _API_ITEM_ID_RE.match(str(item.get("itemId") or ""))
    if match:
        numeric_id = match.group(1)
        return ItemIdentifier(id=f"v1|{numeric_id}|0", url=f"{settings.EBAY_ITEM_URL}/{numeric_id}")
    return None


def listing_from_item_summary(item: dict[str, Any], channel: Channel) -> Listing | None:
    """
    Normalize one Browse API itemSummary.

    Uses price, or currentBidPrice for auctions without a listed price. Non-USD
    prices come out as None. Returns None when no item id can be resolved.
    """
    identifier = _identifier_for(item)
    if identifier is None:
        return None

    seller = item.get("seller") or {}
    return Listing(
        id=str(item.get("itemId") or identifier.id),
        title=extract_title(item.get("title")),
        price=extract_price(item.get("price") or item.get("currentBidPrice")),
        url=identifier.url,
        seller=str(seller.get("username") or ""),
        channel=channel,
    )


class eBayBrowseClient:
    """
    eBay Browse API client for active listings.

    Usage:
        async with eBayBrowseClient() as client:
            token = await client.fetch_access_token()
            auctions = await client.search_active(token, "charizard psa 10", Channel.ACTIVE_AUCTION)
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "eBayBrowseClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("eBayBrowseClient must be used as an async context manager")
        return self._client

    async def fetch_access_token(self) -> AccessToken:
        """
        OAuth2 Client Credentials flow using EBAY_APP_ID + EBAY_CERT_ID.

        The returned token expires TOKEN_EXPIRY_MARGIN_SECONDS before eBay's
        stated expiry.

        Raises:
            MarketplaceAPIError: credentials missing or the token request failed.
        """
        if not settings.EBAY_APP_ID or not settings.EBAY_CERT_ID:
            raise MarketplaceAPIError("EBAY_APP_ID / EBAY_CERT_ID not configured")

        client = self._require_client()
        credentials = f"{settings.EBAY_APP_ID}:{settings.EBAY_CERT_ID}"
        encoded = base64.b64encode(credentials.encode()).decode()

        try:
            response = await client.post(
                settings.EBAY_OAUTH_URL,
                headers={
                    "Authorization": f"Basic {encoded}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={
                    "grant_type": "client_credentials",
                    "scope": settings.EBAY_OAUTH_SCOPE,
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("ebay_token_fetch_failed", status_code=e.response.status_code, source="ebay")
            raise MarketplaceAPIError("token request rejected", e.response.status_code, e) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("ebay_token_fetch_failed", error=str(e), source="ebay")
            raise MarketplaceAPIError("token request failed", original_exception=e) from e

        value = data.get("access_token")
        if not value:
            raise MarketplaceAPIError("token response missing access_token")

        expires_in = int(data.get("expires_in", 7200))
        expires_at = datetime.now(timezone.utc) + timedelta(
            seconds=max(expires_in - settings.TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        )
        logger.info("ebay_token_fetched", expires_in=expires_in, source="ebay")
        return AccessToken(value=value, expires_at=expires_at)

    async def ensure_token(self, token: AccessToken | None) -> AccessToken:
        """Return token unchanged while valid, otherwise fetch a new one."""
        if token is not None and not token.is_expired():
            return token
        return await self.fetch_access_token()

    async def search_item_summaries(
        self,
        token: AccessToken,
        query_text: str,
        buying_option: str,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        GET /buy/browse/v1/item_summary/search
            ?q={query}&filter=buyingOptions:{AUCTION|FIXED_PRICE}&limit={limit}

        Raises:
            MarketplaceAPIError: the request failed or returned a non-2xx status.
        """
        client = self._require_client()
        try:
            response = await client.get(
                f"{settings.EBAY_BROWSE_URL}/item_summary/search",
                headers={
                    "Authorization": f"Bearer {token.value}",
                    "X-EBAY-C-MARKETPLACE-ID": settings.EBAY_MARKETPLACE_ID,
                },
                params={
                    "q": query_text,
                    "filter": f"buyingOptions:{{{buying_option}}}",
                    "limit": str(limit or settings.ACTIVE_RESULT_LIMIT),
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "ebay_search_failed",
                query=query_text,
                status_code=e.response.status_code,
                source="ebay",
            )
            raise MarketplaceAPIError("search rejected", e.response.status_code, e) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("ebay_search_failed", query=query_text, error=str(e), source="ebay")
            raise MarketplaceAPIError("search failed", original_exception=e) from e

        return list(data.get("itemSummaries") or [])

    async def search_active(
        self,
        token: AccessToken,
        query_text: str,
        channel: Channel,
    ) -> list[Listing]:
        """Active listings for one active channel, normalized and id-checked."""
        if channel not in BUYING_OPTIONS:
            raise ValueError(f"{channel.value} is not an active channel")

        items = await self.search_item_summaries(token, query_text, BUYING_OPTIONS[channel])
        listings: list[Listing] = []
        for item in items:
            listing = listing_from_item_summary(item, channel)
            if listing is None:
                logger.debug("ebay_item_dropped_no_item_id", item_id=item.get("itemId"), source="ebay")
                continue
            listings.append(listing)

        logger.info(
            "ebay_search_complete",
            query=query_text,
            channel=channel.value,
            item_count=len(items),
            listing_count=len(listings),
            source="ebay",
        )
        return listings
