from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from app.core.config import settings

ALL_COLUMNS = "*"
SYSTEM_COLUMNS = frozenset({"id", "created_by", "updated_by", "created_at", "updated_at"})

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUALIFIED_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER_RE.fullmatch(str(name or "")))


@dataclass(frozen=True)
class IncludeRelation:
    """Optional named join activated per request.

    Relations are expected to be to-one (e.g. ``created_by -> users``); the
    count query carries the same joins, so a to-many join inflates both the
    page and the total alike.
    """

    join_clause: str
    columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResourcePolicy:
    table: str
    entity: str
    select_columns: tuple[str, ...] = (ALL_COLUMNS,)
    search_columns: tuple[str, ...] = ()
    filter_columns: tuple[str, ...] = ()
    sort_columns: tuple[str, ...] = ()
    static_joins: tuple[str, ...] = ()
    include_relations: Mapping[str, IncludeRelation] = field(default_factory=dict)
    writable_columns: frozenset[str] | None = None
    soft_delete_column: str | None = None
    primary_key: str = "id"
    default_sort: str = field(default_factory=lambda: settings.DEFAULT_SORT_FIELD)

    def __post_init__(self):
        if not is_identifier(self.table):
            raise ValueError(f"Invalid table name: {self.table!r}")
        for name in (*self.search_columns, *self.filter_columns, *self.sort_columns, self.default_sort):
            if not _QUALIFIED_IDENTIFIER_RE.fullmatch(name):
                raise ValueError(f"Invalid column name in policy for {self.table}: {name!r}")
        for name in (self.primary_key, self.soft_delete_column, *(self.writable_columns or ())):
            if name is not None and not is_identifier(name):
                raise ValueError(f"Invalid column name in policy for {self.table}: {name!r}")
        object.__setattr__(self, "include_relations", MappingProxyType(dict(self.include_relations)))

    @classmethod
    def build(
        cls,
        table: str,
        entity: str,
        *,
        select: Iterable[str] = (ALL_COLUMNS,),
        searchable: Iterable[str] = (),
        filterable: Iterable[str] = (),
        sortable: Iterable[str] = (),
        joins: Iterable[str] = (),
        includes: Mapping[str, IncludeRelation] | None = None,
        writable: Iterable[str] | None = None,
        soft_delete_column: str | None = None,
    ) -> "ResourcePolicy":
        return cls(
            table=table,
            entity=entity,
            select_columns=tuple(select),
            search_columns=tuple(searchable),
            filter_columns=tuple(filterable),
            sort_columns=tuple(sortable),
            static_joins=tuple(joins),
            include_relations=dict(includes or {}),
            writable_columns=frozenset(writable) if writable is not None else None,
            soft_delete_column=soft_delete_column,
        )

    @property
    def selects_all_columns(self) -> bool:
        return ALL_COLUMNS in self.select_columns

    def qualify(self, column: str) -> str:
        return column if "." in column else f"{self.table}.{column}"

    def is_searchable(self, column: str) -> bool:
        return column in self.search_columns

    def is_filterable(self, column: str) -> bool:
        return column in self.filter_columns

    def is_sortable(self, column: str) -> bool:
        return column in self.sort_columns
