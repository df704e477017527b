"""
SoldComps - Query Matcher

Filters normalized listings against a Query.

Strict mode is substring containment on a lower-cased, whitespace-free title,
with a regex pre-filter on the grade when it names a grading service: grade
tokens must match exactly so a PSA 9 never passes for a PSA 10.

Fuzzy mode scores each title against one combined search string with
rapidfuzz's partial ratio, so a match anywhere in the title counts.
"""

from __future__ import annotations

import re

import structlog
from rapidfuzz import fuzz

from soldcomps.config import MatchMode, settings
from soldcomps.models import Listing, Query

logger = structlog.get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _squash(text: str) -> str:
    """Lower-case and drop all whitespace."""
    return _WHITESPACE_RE.sub("", text.lower())


def grade_pattern(grade: str) -> re.Pattern[str] | None:
    """
    Regex for a graded query such as "PSA 10" / "psa10" / "BGS 9.5".

    The grade number is a whole token: it may not run on into more digits or a
    decimal part, so "PSA 8" rejects "PSA 8.5" and "PSA 80". The space between
    service and number is optional. Returns None when the grade does not start
    with a known grading service.
    """
    normalized = _squash(grade)
    for service in settings.GRADING_SERVICES:
        if normalized.startswith(service):
            number = normalized[len(service):]
            return re.compile(
                rf"\b{re.escape(service)}\s*{re.escape(number)}(?!\.?\d)", re.IGNORECASE
            )
    return None


def strict_filter(listings: list[Listing], query: Query) -> list[Listing]:
    """
    Keep listings whose title contains card name, card number and set name.

    Input order is preserved.
    """
    candidates = listings
    pattern = grade_pattern(query.grade)
    if pattern is not None:
        candidates = [listing for listing in candidates if pattern.search(listing.title)]

    card_name = _squash(query.card_name)
    card_number = _squash(query.card_number)
    set_name = _squash(query.set_name)

    matched = []
    for listing in candidates:
        title = _squash(listing.title)
        if card_name in title and card_number in title and set_name in title:
            matched.append(listing)

    logger.debug(
        "strict_filter_complete",
        input_count=len(listings),
        grade_filtered=len(candidates),
        matched=len(matched),
        source="matcher",
    )
    return matched


def fuzzy_search_string(query: Query) -> str:
    """Non-empty query fields, lower-cased and stripped to [a-z0-9], space separated."""
    parts = (_NON_ALNUM_RE.sub("", value.lower()) for value in query.terms() if value)
    return " ".join(part for part in parts if part)


def fuzzy_filter(
    listings: list[Listing],
    query: Query,
    threshold: float | None = None,
) -> list[Listing]:
    """
    Keep listings whose title is similar enough to the query, best match first.

    Args:
        listings: Listings to score.
        query: Search criteria.
        threshold: Tolerance in [0, 1]; 0 demands a perfect match. Defaults to
            settings.FUZZY_THRESHOLD.
    """
    search = fuzzy_search_string(query)
    if not search:
        return list(listings)

    tolerance = float(threshold if threshold is not None else settings.FUZZY_THRESHOLD)
    cutoff = (1.0 - tolerance) * 100

    scored: list[tuple[float, Listing]] = []
    for listing in listings:
        title = _WHITESPACE_RE.sub(" ", listing.title.lower()).strip()
        score = fuzz.partial_ratio(search, title)
        if score >= cutoff:
            scored.append((score, listing))

    # sorted() is stable, equal scores keep input order
    scored.sort(key=lambda pair: pair[0], reverse=True)

    logger.debug(
        "fuzzy_filter_complete",
        search=search,
        cutoff=round(cutoff, 2),
        input_count=len(listings),
        matched=len(scored),
        source="matcher",
    )
    return [listing for _, listing in scored]


def filter_listings(
    listings: list[Listing],
    query: Query,
    mode: MatchMode = MatchMode.STRICT,
) -> list[Listing]:
    """Dispatch to the strict or fuzzy matcher."""
    if mode == MatchMode.FUZZY:
        return fuzzy_filter(listings, query)
    return strict_filter(listings, query)
