"""Typed response and cache-entry models."""

from __future__ import annotations

import sys
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

NEVER_EXPIRES = sys.float_info.max


def calculate_expires_at(ttl: float | None, *, now: float | None = None) -> float:
    """Return the absolute expiry timestamp (epoch seconds) for ``ttl``.

    No TTL never expires; a TTL of zero or less is already in the past.
    """
    if ttl is None:
        return NEVER_EXPIRES
    current = time.time() if now is None else now
    if ttl <= 0:
        return current - 0.001
    return current + ttl


class WLRequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)


class Response(WLRequestModel):
    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any = None
    raw: Any = Field(default=None, exclude=True, repr=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class CacheEntry(WLRequestModel):
    key: str
    value: Response
    expires_at: float = NEVER_EXPIRES

    def is_expired(self, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current > self.expires_at
