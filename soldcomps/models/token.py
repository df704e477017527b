"""
SoldComps - Access Token

A short-lived Browse API application token. Held by the caller and handed
back into each search; nothing caches it at module level.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel


class AccessToken(BaseModel):
    value: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at
