"""
SoldComps - Raw listing fragment

Unstructured text read from one rendered search-result element. Every field
defaults to an empty string; a missing sub-element is never an error.
"""

from __future__ import annotations

from pydantic import BaseModel


class RawFragment(BaseModel):
    """Text captured from one listing element before normalization."""
    title: str = ""
    price_text: str = ""
    sold_date: str = ""
    link: str = ""
    seller: str = ""
