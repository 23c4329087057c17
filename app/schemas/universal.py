from __future__ import annotations

import json
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.config import settings
from app.core.errors import BadRequest

T = TypeVar("T")

# Keeps page * page_size inside a signed 64-bit OFFSET.
MAX_PAGE = 2**31 - 1


def _split_csv(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        items = [part.strip() for part in str(value).split(",")]
    return [item for item in items if item]


class QueryParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    page: int = Field(default=1, le=MAX_PAGE)
    page_size: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE, alias="pageSize")
    search: Optional[str] = None
    search_fields: Optional[List[str]] = None
    search_value: Optional[str] = None
    filter: Optional[str] = None
    include: Optional[List[str]] = None
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    sort_order: Optional[str] = Field(default=None, alias="sortOrder")

    @field_validator("page", mode="after")
    @classmethod
    def _clamp_page(cls, value: int) -> int:
        return value if value >= 1 else 1

    @field_validator("page_size", mode="after")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        return min(max(value, 1), settings.MAX_PAGE_SIZE)

    @field_validator("search_fields", "include", mode="before")
    @classmethod
    def _parse_csv(cls, value: Any) -> Optional[List[str]]:
        return _split_csv(value)

    @field_validator("filter", mode="before")
    @classmethod
    def _filter_to_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, dict):
            return json.dumps(value)
        return value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def effective_search(self) -> Optional[str]:
        term = self.search_value if self.search_value is not None else self.search
        return term or None

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "QueryParams":
        data: dict[str, Any] = {}
        for key in ("page", "search", "search_fields", "search_value", "filter", "include", "sortBy", "sortOrder"):
            value = query.get(key)
            if value is not None:
                data[key] = value
        page_size = query.get("pageSize")
        if page_size is None:
            page_size = query.get("perPage")
        if page_size is not None:
            data["pageSize"] = page_size
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
            raise BadRequest("Invalid query parameters: " + ", ".join(fields))

    def parsed_filter(self) -> Optional[dict[str, Any]]:
        """Filter object; {} when absent, None when the JSON is not a flat object."""
        if not self.filter:
            return {}
        try:
            data = json.loads(self.filter)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def with_pinned_filter(self, pinned: Mapping[str, Any]) -> "QueryParams":
        merged = self.parsed_filter() or {}
        merged.update(pinned)
        return self.model_copy(update={"filter": json.dumps(merged)})


class PageContext(BaseModel):
    page: int
    per_page: int
    total_pages: int


class PaginationLinks(BaseModel):
    first: str
    previous: Optional[str] = None
    next: Optional[str] = None
    last: str


class PaginatedResult(BaseModel, Generic[T]):
    count: int
    page_context: PageContext
    links: PaginationLinks
    results: List[T]


class DeleteResult(BaseModel):
    success: bool = True
    id: str
    message: Optional[str] = None
