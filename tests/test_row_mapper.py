import os
import unittest
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.core.errors import SerializationError
from app.services.row_mapper import GenericRow, ScalarKind, decode_row, decoder_for, map_rows, tag_value


class _Widget(BaseModel):
    id: uuid.UUID
    name: str
    quantity: int
    price: Optional[float] = None
    is_active: bool


@dataclass
class _PlainWidget:
    name: str
    quantity: int


class _FakeRow:
    def __init__(self, **values):
        self._mapping = values


class TagValueTests(unittest.TestCase):
    def test_priority_order(self):
        self.assertEqual(tag_value("x").kind, ScalarKind.STRING)
        self.assertEqual(tag_value(uuid.uuid4()).kind, ScalarKind.UUID)
        self.assertEqual(tag_value(7).kind, ScalarKind.INT32)
        self.assertEqual(tag_value(2**40).kind, ScalarKind.INT64)
        self.assertEqual(tag_value(True).kind, ScalarKind.BOOLEAN)
        self.assertEqual(tag_value(datetime(2024, 1, 1, tzinfo=timezone.utc)).kind, ScalarKind.TIMESTAMP)
        self.assertEqual(tag_value(date(2024, 1, 1)).kind, ScalarKind.TIMESTAMP)
        self.assertEqual(tag_value(1.5).kind, ScalarKind.FLOAT)
        self.assertEqual(tag_value({"a": 1}).kind, ScalarKind.STRUCTURED)
        self.assertEqual(tag_value(None).kind, ScalarKind.NULL)

    def test_uuid_is_carried_as_text(self):
        value = uuid.uuid4()
        self.assertEqual(tag_value(value).value, str(value))

    def test_bool_is_not_treated_as_integer(self):
        self.assertIs(tag_value(False).value, False)
        self.assertEqual(tag_value(False).kind, ScalarKind.BOOLEAN)

    def test_decimal_becomes_float(self):
        tagged = tag_value(Decimal("12.50"))
        self.assertEqual(tagged.kind, ScalarKind.FLOAT)
        self.assertEqual(tagged.value, 12.5)

    def test_unrepresentable_values_become_null(self):
        self.assertEqual(tag_value(2**70).kind, ScalarKind.NULL)
        self.assertEqual(tag_value(float("nan")).kind, ScalarKind.NULL)
        self.assertEqual(tag_value(b"bytes").kind, ScalarKind.NULL)


class GenericRowTests(unittest.TestCase):
    def test_keeps_column_order(self):
        row = GenericRow.from_mapping({"b": 1, "a": "x", "c": None})
        self.assertEqual(list(row), ["b", "a", "c"])
        self.assertEqual(row.to_dict(), {"b": 1, "a": "x", "c": None})

    def test_from_result_row_uses_mapping(self):
        row = GenericRow.from_result_row(_FakeRow(name="bolt", quantity=3))
        self.assertEqual(row["quantity"].kind, ScalarKind.INT32)
        self.assertEqual(len(row), 2)


class DecodeTests(unittest.TestCase):
    def test_map_rows_decodes_pydantic_models(self):
        row_id = uuid.uuid4()
        rows = [_FakeRow(id=row_id, name="bolt", quantity=3, price=Decimal("0.25"), is_active=True)]

        widgets = map_rows(rows, _Widget)

        self.assertEqual(len(widgets), 1)
        self.assertEqual(widgets[0].id, row_id)
        self.assertEqual(widgets[0].price, 0.25)

    def test_extra_columns_are_ignored(self):
        widgets = map_rows(
            [_FakeRow(id=str(uuid.uuid4()), name="nut", quantity=1, is_active=False, owner_name="ann")],
            _Widget,
        )
        self.assertEqual(widgets[0].name, "nut")

    def test_missing_required_field_raises_serialization_error(self):
        with self.assertRaises(SerializationError) as ctx:
            map_rows([_FakeRow(name="bolt")], _Widget)
        self.assertIn("_Widget", ctx.exception.message)
        self.assertEqual(ctx.exception.status_code, 500)

    def test_plain_classes_are_built_from_keywords(self):
        decoder = decoder_for(_PlainWidget)
        widget = decode_row(GenericRow.from_mapping({"name": "gear", "quantity": 4}), decoder)
        self.assertEqual(widget, _PlainWidget(name="gear", quantity=4))

    def test_plain_class_with_unexpected_column_raises_serialization_error(self):
        decoder = decoder_for(_PlainWidget)
        with self.assertRaises(SerializationError):
            decode_row(GenericRow.from_mapping({"name": "gear", "quantity": 4, "extra": 1}), decoder)


if __name__ == "__main__":
    unittest.main()
