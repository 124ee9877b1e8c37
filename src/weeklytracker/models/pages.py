from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNTITLED = "Untitled"
UNTITLED_DATABASE = "Untitled Database"


class _CamelModel(BaseModel):
    """Serialised with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParentKind(StrEnum):
    DATABASE = "database"
    PAGE = "page"


class ParentInfo(_CamelModel):
    """The database or page a Notion page lives under."""

    kind: ParentKind = Field(alias="type")
    title: str
    id: str


class PageRecord(_CamelModel):
    """A Notion page, reduced to what the weekly views display."""

    id: str
    title: str = UNTITLED
    url: str
    created_time: datetime
    link_property: str | None = None
    parent_info: ParentInfo | None = None


@dataclass(frozen=True)
class ParentLookup:
    """Outcome of resolving a page's parent.

    ``info`` and ``error`` both None means the page has no resolvable parent
    (workspace-level or block parent). ``error`` set means the lookup itself
    failed; callers currently degrade that to missing metadata.
    """

    info: ParentInfo | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class WeekReport(_CamelModel):
    """One week of pages, as written to ``week-<N>.json``."""

    week: int
    week_label: str
    date_range: str
    start: datetime
    end: datetime
    pages: list[PageRecord]
    generated_at: datetime


class KnowledgeBaseResponse(_CamelModel):
    """Payload of ``GET /knowledge-base``."""

    date_range: str
    pages: list[PageRecord] = []
    total_count: int = 0


@dataclass(frozen=True)
class WeekResult:
    """One item of a multi-week load: either a response or an error message."""

    week: int
    response: KnowledgeBaseResponse | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
