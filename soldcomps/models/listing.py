"""
SoldComps - Listing Model

The canonical normalized listing. Scraped sold listings and Browse API active
listings both end up as this type.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal

from pydantic import BaseModel, model_validator

from soldcomps.config import Channel


class Listing(BaseModel):
    """
    One normalized observation of a card for sale or sold.

    A dated listing is always a sold observation. Sold listings may still lack
    a date when the source text was unparseable, so the channel is carried
    explicitly rather than inferred from the date.
    """

    id: str = ""
    title: str = ""
    price: Decimal | None = None
    date: Date | None = None
    url: str = ""
    seller: str = ""
    channel: Channel

    @model_validator(mode="after")
    def _check_channel(self) -> "Listing":
        if self.date is not None and not self.channel.is_sold:
            raise ValueError(f"dated listing must belong to a sold channel, got {self.channel.value}")
        if self.price is not None and self.price < 0:
            raise ValueError("price must be non-negative")
        return self

    @property
    def is_sold(self) -> bool:
        return self.channel.is_sold

    @property
    def has_price(self) -> bool:
        return self.price is not None
