"""
SoldComps - Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- Synthetic ListingSource / browser session fakes (no real browser)
- Fragment and Listing factories
- Async test support via pytest-asyncio
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, AsyncIterator, Callable

import pytest

from soldcomps.config import Channel
from soldcomps.exceptions import PageLoadError
from soldcomps.models import Listing, RawFragment


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeListingSource:
    """
    In-memory ListingSource.

    `pages` is served in order. With `routes`, the pages are picked on open()
    by the first route key contained in the URL; a route mapped to an
    exception raises it from open(). `fail_on_page` raises when advancing to
    that (1-based) page.
    """

    def __init__(
        self,
        pages: list[list[RawFragment]] | None = None,
        routes: dict[str, Any] | None = None,
        fail_on_page: int | None = None,
    ) -> None:
        self.pages = pages or []
        self.routes = routes or {}
        self.fail_on_page = fail_on_page
        self.current = 0
        self.opened_url: str | None = None
        self.advance_calls = 0
        self.closed = False

    async def open(self, url: str) -> None:
        self.opened_url = url
        for key, value in self.routes.items():
            if key in url:
                if isinstance(value, Exception):
                    raise value
                self.pages = value
                break
        if not self.pages:
            raise PageLoadError(url, "listings not visible")

    async def read_fragments(self) -> list[RawFragment]:
        return list(self.pages[self.current])

    async def next_page(self) -> bool:
        self.advance_calls += 1
        if self.current + 1 >= len(self.pages):
            return False
        if self.fail_on_page == self.current + 2:
            raise PageLoadError("https://www.ebay.com/sch/i.html", "pagination failed")
        self.current += 1
        return True

    async def close(self) -> None:
        self.closed = True


class FakeBrowserSession:
    """Hands out FakeListingSources built by `source_factory`."""

    def __init__(self, source_factory: Callable[[], FakeListingSource]) -> None:
        self.source_factory = source_factory
        self.sources: list[FakeListingSource] = []

    async def new_source(self) -> FakeListingSource:
        source = self.source_factory()
        self.sources.append(source)
        return source


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_fragment(
    title: str = "Charizard Base Set PSA 10 #4",
    price_text: str = "$100.00",
    sold_date: str = "Sold  Jan 5, 2024",
    link: str = "https://www.ebay.com/itm/111111?hash=item19de",
    seller: str = "cardshop (1,234) 99.8%",
) -> RawFragment:
    return RawFragment(
        title=title,
        price_text=price_text,
        sold_date=sold_date,
        link=link,
        seller=seller,
    )


def _make_listing(
    title: str = "Charizard Base Set PSA 10 #4",
    price: str | None = "100.00",
    sold_on: date | None = None,
    item_id: int = 111111,
    channel: Channel = Channel.SOLD_AUCTION,
) -> Listing:
    return Listing(
        id=f"v1|{item_id}|0",
        title=title,
        price=Decimal(price) if price is not None else None,
        date=sold_on,
        url=f"https://www.ebay.com/itm/{item_id}",
        seller="cardshop",
        channel=channel,
    )


@pytest.fixture
def make_fragment() -> Callable[..., RawFragment]:
    return _make_fragment


@pytest.fixture
def make_listing() -> Callable[..., Listing]:
    return _make_listing


@pytest.fixture
def fake_source_cls() -> type[FakeListingSource]:
    return FakeListingSource


@pytest.fixture
def fake_session_factory() -> Callable[..., Any]:
    """
    Build a session_factory for ListingCollector.

    Usage:
        factory, session = fake_session_factory(lambda: FakeListingSource(routes=...))
        collector = ListingCollector(session_factory=factory)
    """

    def build(source_factory: Callable[[], FakeListingSource]) -> tuple[Callable[[], Any], FakeBrowserSession]:
        session = FakeBrowserSession(source_factory)

        @asynccontextmanager
        async def factory() -> AsyncIterator[FakeBrowserSession]:
            yield session

        return factory, session

    return build
