"""
SoldComps - Search Query

Structured search criteria supplied by the caller. Immutable for the length of
one pipeline run.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Query(BaseModel):
    """Card name, set, grade and card number, all optional free text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    card_name: str = Field(default="", alias="cardName")
    set_name: str = Field(default="", alias="setName")
    grade: str = ""
    card_number: str = Field(default="", alias="cardNumber")

    @field_validator("card_name", "set_name", "grade", "card_number", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def terms(self) -> list[str]:
        """Field values in marketplace keyword order."""
        return [self.card_name, self.set_name, self.grade, self.card_number]

    def is_empty(self) -> bool:
        return not any(self.terms())

    def search_text(self) -> str:
        """Keyword string sent to the marketplace search."""
        return " ".join(value for value in self.terms() if value)
