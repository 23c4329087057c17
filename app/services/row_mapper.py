from __future__ import annotations

import enum
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterator, Mapping, TypeVar

from pydantic import ValidationError

from app.core.errors import SerializationError

T = TypeVar("T")
Decoder = Callable[[dict[str, Any]], T]

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


class ScalarKind(str, enum.Enum):
    STRING = "string"
    UUID = "uuid"
    INT32 = "int32"
    INT64 = "int64"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    FLOAT = "float"
    STRUCTURED = "structured"
    NULL = "null"


@dataclass(frozen=True)
class TaggedValue:
    kind: ScalarKind
    value: Any = None


class _NoMatch(Exception):
    pass


def _as_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise _NoMatch


def _as_uuid(value: Any) -> str:
    if isinstance(value, uuid.UUID):
        return str(value)
    raise _NoMatch


def _as_integer(low: int, high: int) -> Callable[[Any], int]:
    def _extract(value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool) and low <= value <= high:
            return value
        raise _NoMatch

    return _extract


def _as_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise _NoMatch


def _as_timestamp(value: Any) -> date:
    if isinstance(value, (datetime, date)):
        return value
    raise _NoMatch


def _as_float(value: Any) -> float:
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and math.isfinite(value):
        return value
    raise _NoMatch


def _as_structured(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return value
    raise _NoMatch


# First extractor that accepts the value wins.
_EXTRACTORS: tuple[tuple[ScalarKind, Callable[[Any], Any]], ...] = (
    (ScalarKind.STRING, _as_string),
    (ScalarKind.UUID, _as_uuid),
    (ScalarKind.INT32, _as_integer(INT32_MIN, INT32_MAX)),
    (ScalarKind.INT64, _as_integer(INT64_MIN, INT64_MAX)),
    (ScalarKind.BOOLEAN, _as_boolean),
    (ScalarKind.TIMESTAMP, _as_timestamp),
    (ScalarKind.FLOAT, _as_float),
    (ScalarKind.STRUCTURED, _as_structured),
)


def tag_value(value: Any) -> TaggedValue:
    if value is None:
        return TaggedValue(ScalarKind.NULL)
    for kind, extract in _EXTRACTORS:
        try:
            return TaggedValue(kind, extract(value))
        except _NoMatch:
            continue
    return TaggedValue(ScalarKind.NULL)


class GenericRow(Mapping[str, TaggedValue]):
    """Ordered column -> tagged scalar map between the store and typed results."""

    def __init__(self, items: Mapping[str, TaggedValue] | None = None):
        self._items: dict[str, TaggedValue] = dict(items or {})

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "GenericRow":
        return cls({str(key): tag_value(value) for key, value in mapping.items()})

    @classmethod
    def from_result_row(cls, row: Any) -> "GenericRow":
        return cls.from_mapping(row._mapping)

    def __getitem__(self, key: str) -> TaggedValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"GenericRow({self._items!r})"

    def to_dict(self) -> dict[str, Any]:
        return {key: tagged.value for key, tagged in self._items.items()}


def decoder_for(result_type: type[T]) -> Decoder:
    validate = getattr(result_type, "model_validate", None)
    if callable(validate):
        return validate
    return lambda data: result_type(**data)


def decode_row(row: GenericRow, decoder: Decoder, *, type_name: str = "result") -> T:
    try:
        return decoder(row.to_dict())
    except (ValidationError, TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to decode row into {type_name}: {exc}", cause=exc) from exc


def map_rows(rows: Any, result_type: type[T]) -> list[T]:
    decoder = decoder_for(result_type)
    return [decode_row(GenericRow.from_result_row(row), decoder, type_name=result_type.__name__) for row in rows]
