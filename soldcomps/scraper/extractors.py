"""
SoldComps - Text Extractors

Pure functions that turn scraped, human-formatted text into typed values.
A parse failure returns None (or an empty string for titles); nothing here
raises on bad input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, NamedTuple

import structlog
from dateutil import parser as date_parser

from soldcomps.config import settings
from soldcomps.models import RawFragment

logger = structlog.get_logger(__name__)

_CENTS = Decimal("0.01")

# First amount in the text: "$1,234.56", "US $45.00", "$10.00 to $20.00"
_AMOUNT_RE = re.compile(r"\d[\d,]*(?:\.\d+)?|\.\d+")

# "Sep 27, 2025" or "2025/9/27"
_ABSOLUTE_DATE_RE = re.compile(r"([A-Za-z]+\.? \d{1,2}, \d{4})|(\d{4}/\d{1,2}/\d{1,2})")
_RELATIVE_DATE_RE = re.compile(r"(\d+)\s*(minute|hour|day|week|month)s?\s*ago", re.IGNORECASE)
_RELATIVE_DAYS = {"minute": 0, "hour": 0, "day": 1, "week": 7, "month": 30}

_BOILERPLATE_PATTERNS = (
    re.compile(r"opens in a new window or tab", re.IGNORECASE),
    re.compile(r"opens in a new (?:window|tab)", re.IGNORECASE),
    re.compile(r"shop on ebay", re.IGNORECASE),
    re.compile(r"^\s*new listing", re.IGNORECASE),
)
_WHITESPACE_RE = re.compile(r"\s+")

_ITEM_ID_RE = re.compile(r"/itm/(?:[^/?#\s]+/)?(\d+)")


class ItemIdentifier(NamedTuple):
    id: str
    url: str


def extract_price(value: Any) -> Decimal | None:
    """
    Parse a price into a non-negative Decimal rounded to cents.

    Accepts raw text ("$1,234.56"), a number, or a currency-tagged mapping
    ({"value": "45.99", "currency": "USD"}). Mappings tagged with any currency
    other than settings.BASE_CURRENCY are rejected, never converted.

    Returns None for missing input, text without digits, and non-finite or
    negative amounts.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Mapping):
        currency = value.get("currency")
        if currency and str(currency).upper() != settings.BASE_CURRENCY:
            logger.debug("price_currency_rejected", currency=str(currency), source="extractors")
            return None
        return extract_price(value.get("value"))

    try:
        if isinstance(value, (int, float, Decimal)):
            amount = Decimal(str(value))
        else:
            match = _AMOUNT_RE.search(str(value))
            if not match:
                return None
            amount = Decimal(match.group().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None

    if not amount.is_finite() or amount < 0:
        return None
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def extract_date(text: str | None, today: date | None = None) -> date | None:
    """
    Parse the first sold date embedded in free text.

    Absolute dates win: "Sold  Sep 27, 2025" and "2025/9/27" both give
    date(2025, 9, 27). Without one, relative phrases ("3 days ago",
    "yesterday", "just ended") are resolved against `today` (UTC date by
    default).
    """
    if not text:
        return None

    match = _ABSOLUTE_DATE_RE.search(text)
    if match:
        try:
            return date_parser.parse(match.group(0)).date()
        except (ValueError, OverflowError):
            logger.debug("date_unparseable", text=text, source="extractors")
            return None

    if today is None:
        today = datetime.now(timezone.utc).date()

    relative = _RELATIVE_DATE_RE.search(text)
    if relative:
        quantity = int(relative.group(1))
        return today - timedelta(days=quantity * _RELATIVE_DAYS[relative.group(2).lower()])

    lowered = text.lower()
    if "yesterday" in lowered:
        return today - timedelta(days=1)
    if "today" in lowered or "just ended" in lowered or "just now" in lowered:
        return today
    return None


def extract_title(text: str | None) -> str:
    """Strip rendering boilerplate and collapse whitespace. Idempotent."""
    if not text:
        return ""

    title = text
    while True:
        cleaned = title
        for pattern in _BOILERPLATE_PATTERNS:
            cleaned = pattern.sub(" ", cleaned)
        cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
        # Removing one phrase can splice another together
        if cleaned == title:
            return cleaned
        title = cleaned


def extract_item_identifier(url: str | None) -> ItemIdentifier | None:
    """
    Pull the numeric item id out of an /itm/ link.

    Returns the canonical "v1|<id>|0" identifier and a tracking-free item URL,
    or None when the link carries no item id.
    """
    if not url:
        return None
    match = _ITEM_ID_RE.search(url)
    if not match:
        return None
    numeric_id = match.group(1)
    return ItemIdentifier(
        id=f"v1|{numeric_id}|0",
        url=f"{settings.EBAY_ITEM_URL}/{numeric_id}",
    )


def is_placeholder(fragment: RawFragment) -> bool:
    """
    True for elements that render like listings but are not.

    eBay injects "Shop on eBay" promo cards at the top of result pages; those
    and elements without a title or link are skipped.
    """
    if not fragment.link or not fragment.title:
        return True
    if "shop on ebay" in fragment.title.lower():
        return True
    return not extract_title(fragment.title)
