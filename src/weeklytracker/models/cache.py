from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """Parsed JSON body of a successful response, keyed by request URL."""

    key: str
    data: Any
    timestamp: float  # Clock reading at store time (monotonic seconds by default)
