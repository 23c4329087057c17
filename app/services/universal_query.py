from __future__ import annotations

import enum
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import JSON, Date, DateTime, Numeric, bindparam, text
from sqlalchemy.sql.elements import TextClause

from app.schemas.universal import QueryParams
from app.services.resource_policy import ResourcePolicy

_LOG = logging.getLogger("app.query")

POSTGRESQL = "postgresql"
LIKE_ESCAPE = "\\"
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


def _bind_type(value: Any):
    if isinstance(value, datetime):
        return DateTime(timezone=True)
    if isinstance(value, date):
        return Date()
    if isinstance(value, Decimal):
        return Numeric()
    if isinstance(value, (dict, list)):
        return JSON()
    return None


def _normalize_bind_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class ParamBinder:
    """Accumulates bound values in emission order as :p1, :p2, ..."""

    def __init__(self, bound: Iterable[tuple[str, Any]] = ()):
        self._bound: list[tuple[str, Any]] = list(bound)

    def bind(self, value: Any) -> str:
        name = f"p{len(self._bound) + 1}"
        self._bound.append((name, _normalize_bind_value(value)))
        return f":{name}"

    @property
    def bound(self) -> tuple[tuple[str, Any], ...]:
        return tuple(self._bound)

    @property
    def values(self) -> list[Any]:
        return [value for _, value in self._bound]

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._bound)


@dataclass(frozen=True)
class Statement:
    sql: str
    bound: tuple[tuple[str, Any], ...] = ()

    @property
    def params(self) -> dict[str, Any]:
        return dict(self.bound)

    @property
    def values(self) -> list[Any]:
        return [value for _, value in self.bound]

    def clause(self) -> TextClause:
        typed = [bindparam(name, type_=_bind_type(value)) for name, value in self.bound if _bind_type(value) is not None]
        stmt = text(self.sql)
        return stmt.bindparams(*typed) if typed else stmt


@dataclass(frozen=True)
class ConditionSet:
    predicates: tuple[str, ...]
    bound: tuple[tuple[str, Any], ...]

    def where_sql(self) -> str:
        if not self.predicates:
            return ""
        return " WHERE " + " AND ".join(self.predicates)


@dataclass(frozen=True)
class ListQueries:
    select: Statement
    count: Statement
    page: int
    page_size: int


def escape_like(term: str) -> str:
    return term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%").replace("_", LIKE_ESCAPE + "_")


def _contains_match(column: str, placeholder: str, dialect: str) -> str:
    if dialect == POSTGRESQL:
        return f"{column} ILIKE {placeholder} ESCAPE '{LIKE_ESCAPE}'"
    return f"LOWER({column}) LIKE LOWER({placeholder}) ESCAPE '{LIKE_ESCAPE}'"


def _search_predicate(policy: ResourcePolicy, params: QueryParams, binder: ParamBinder, dialect: str) -> str | None:
    term = params.effective_search
    if not term:
        return None

    if params.search_fields is not None:
        requested = params.search_fields
        fields = [name for name in requested if policy.is_searchable(name)]
        invalid = [name for name in requested if not policy.is_searchable(name)]
        _LOG.debug("search fields requested=%s valid=%s", requested, fields)
        if invalid:
            _LOG.warning(
                "Invalid search fields ignored on %s: %s. Valid fields: %s",
                policy.table,
                invalid,
                list(policy.search_columns),
            )
    else:
        fields = list(policy.search_columns)

    if not fields:
        _LOG.warning("No valid search fields on %s for search term %r", policy.table, term)
        return None

    pattern = f"%{escape_like(term)}%"
    parts = []
    for name in fields:
        column = policy.qualify(name)
        parts.append(f"({column} IS NOT NULL AND {_contains_match(column, binder.bind(pattern), dialect)})")
    return "(" + " OR ".join(parts) + ")"


_UNSUPPORTED = object()


def _filter_scalar(value: Any) -> Any:
    # bool first: it is an int subclass.
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return value
        try:
            value = float(value)
        except OverflowError:
            return _UNSUPPORTED
    if isinstance(value, float) and math.isfinite(value):
        return value
    return _UNSUPPORTED


def _filter_predicates(policy: ResourcePolicy, params: QueryParams, binder: ParamBinder) -> list[str]:
    filters = params.parsed_filter()
    if filters is None:
        _LOG.warning("Failed to parse filter JSON on %s: %r", policy.table, params.filter)
        return []

    predicates: list[str] = []
    for key, value in filters.items():
        if not policy.is_filterable(key):
            _LOG.warning("Filter field %r is not allowed on %s", key, policy.table)
            continue
        value = _filter_scalar(value)
        if value is _UNSUPPORTED:
            _LOG.warning("Filter value for %r on %s is not a bindable scalar", key, policy.table)
            continue
        predicates.append(f"{policy.qualify(key)} = {binder.bind(value)}")
    return predicates


def build_conditions(policy: ResourcePolicy, params: QueryParams, dialect: str = POSTGRESQL) -> ConditionSet:
    """Single source of WHERE predicates for both the page query and the count query."""
    binder = ParamBinder()
    predicates: list[str] = []
    search = _search_predicate(policy, params, binder, dialect)
    if search:
        predicates.append(search)
    predicates.extend(_filter_predicates(policy, params, binder))
    return ConditionSet(predicates=tuple(predicates), bound=binder.bound)


def resolve_includes(policy: ResourcePolicy, params: QueryParams) -> tuple[list[str], list[str]]:
    joins: list[str] = []
    columns: list[str] = []
    for name in params.include or []:
        relation = policy.include_relations.get(name)
        if relation is None:
            _LOG.warning("Unknown include relation %r on %s", name, policy.table)
            continue
        if relation.join_clause in joins:
            continue
        joins.append(relation.join_clause)
        if not policy.selects_all_columns:
            columns.extend(relation.columns)
        _LOG.debug("Added include join for %s on %s", name, policy.table)
    return joins, columns


def _from_sql(policy: ResourcePolicy, include_joins: list[str]) -> str:
    parts = [policy.table, *policy.static_joins, *include_joins]
    return " ".join(parts)


def order_by_sql(policy: ResourcePolicy, params: QueryParams) -> str:
    sort_by = params.sort_by or policy.default_sort
    sort_order = params.sort_order or "desc"
    if policy.is_sortable(sort_by):
        direction = "ASC" if sort_order.strip().lower() == "asc" else "DESC"
        return f" ORDER BY {policy.qualify(sort_by)} {direction}"
    _LOG.warning(
        "Sort field %r is not allowed on %s, falling back to %s DESC",
        sort_by,
        policy.table,
        policy.default_sort,
    )
    return f" ORDER BY {policy.qualify(policy.default_sort)} DESC"


def build_select(policy: ResourcePolicy, params: QueryParams, conditions: ConditionSet) -> Statement:
    include_joins, include_columns = resolve_includes(policy, params)
    projection = ", ".join([*policy.select_columns, *include_columns])
    sql = f"SELECT {projection} FROM {_from_sql(policy, include_joins)}"
    sql += conditions.where_sql()
    sql += order_by_sql(policy, params)
    binder = ParamBinder(conditions.bound)
    limit = binder.bind(params.page_size)
    offset = binder.bind(params.offset)
    sql += f" LIMIT {limit} OFFSET {offset}"
    _LOG.debug("Built query: %s params=%s", sql, binder.values)
    return Statement(sql=sql, bound=binder.bound)


def build_count(policy: ResourcePolicy, params: QueryParams, conditions: ConditionSet) -> Statement:
    include_joins, _ = resolve_includes(policy, params)
    sql = f"SELECT COUNT(*) AS total FROM {_from_sql(policy, include_joins)}"
    sql += conditions.where_sql()
    _LOG.debug("Built count query: %s params=%s", sql, [value for _, value in conditions.bound])
    return Statement(sql=sql, bound=conditions.bound)


def build_list_queries(policy: ResourcePolicy, params: QueryParams, dialect: str = POSTGRESQL) -> ListQueries:
    conditions = build_conditions(policy, params, dialect)
    return ListQueries(
        select=build_select(policy, params, conditions),
        count=build_count(policy, params, conditions),
        page=params.page,
        page_size=params.page_size,
    )


def build_get_by_id(policy: ResourcePolicy, row_id: Any) -> Statement:
    binder = ParamBinder()
    projection = ", ".join(policy.select_columns)
    sql = (
        f"SELECT {projection} FROM {_from_sql(policy, [])}"
        f" WHERE {policy.qualify(policy.primary_key)} = {binder.bind(row_id)}"
    )
    return Statement(sql=sql, bound=binder.bound)
