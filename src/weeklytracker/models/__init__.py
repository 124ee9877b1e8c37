from __future__ import annotations

from weeklytracker.models.cache import CacheEntry
from weeklytracker.models.pages import (
    UNTITLED,
    UNTITLED_DATABASE,
    KnowledgeBaseResponse,
    PageRecord,
    ParentInfo,
    ParentKind,
    ParentLookup,
    WeekReport,
    WeekResult,
)

__all__ = [
    # pages
    "UNTITLED",
    "UNTITLED_DATABASE",
    "PageRecord",
    "ParentInfo",
    "ParentKind",
    "ParentLookup",
    "WeekReport",
    "KnowledgeBaseResponse",
    "WeekResult",
    # cache
    "CacheEntry",
]
