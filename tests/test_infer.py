"""Tests for schema inference from record samples."""

import datetime
import os
import sys
from collections import namedtuple
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from excel_export.cells import CellKind
from excel_export.errors import UnsupportedFieldType
from excel_export.infer import infer_schema, record_shape
from excel_export.schema import derive_columns, project_rows

from tests.create_sample_export import ORDER_HEADERS, ORDERS


def _kinds(fields):
    return [c.kind for c in derive_columns(fields)]


class Point(NamedTuple):
    x: float
    y: float
    label: str


class Plain:
    def __init__(self, name, size):
        self.name = name
        self.size = size
        self._cache = {}


@dataclass
class Tagged:
    name: str
    tags: List[str]


# ---------------------------------------------------------------------------
# record_shape
# ---------------------------------------------------------------------------

class TestRecordShape:
    def test_dataclass(self):
        fields = record_shape(ORDERS[0])
        assert [f.name for f in fields] == ORDER_HEADERS
        assert _kinds(fields) == [
            CellKind.NUMBER, CellKind.TEXT, CellKind.NUMBER,
            CellKind.BOOLEAN, CellKind.DATETIME, CellKind.TEXT,
        ]

    def test_typed_namedtuple(self):
        fields = record_shape(Point(1.0, 2.0, "a"))
        assert [f.name for f in fields] == ["x", "y", "label"]
        assert _kinds(fields) == [CellKind.NUMBER, CellKind.NUMBER, CellKind.TEXT]
        assert fields[2].accessor(Point(0, 0, "z")) == "z"

    def test_untyped_namedtuple(self):
        Pair = namedtuple("Pair", "left right")
        fields = record_shape(Pair(1, "x"))
        assert [f.name for f in fields] == ["left", "right"]
        assert _kinds(fields) == [None, None]

    def test_mapping_uses_key_order(self):
        fields = record_shape({"b": 1, "a": "x", "c": None})
        assert [f.name for f in fields] == ["b", "a", "c"]
        assert _kinds(fields) == [CellKind.NUMBER, CellKind.TEXT, None]

    def test_plain_object_skips_private_attributes(self):
        fields = record_shape(Plain("box", 3))
        assert [f.name for f in fields] == ["name", "size"]

    def test_container_field_rejected(self):
        fields = record_shape(Tagged("a", ["x"]))
        with pytest.raises(UnsupportedFieldType) as info:
            derive_columns(fields)
        assert info.value.field_name == "tags"

    @pytest.mark.parametrize("record", [3, "text", 1.5, None])
    def test_scalar_record_rejected(self, record):
        with pytest.raises(UnsupportedFieldType):
            record_shape(record)


# ---------------------------------------------------------------------------
# infer_schema
# ---------------------------------------------------------------------------

class TestInferSchema:
    def test_generator_records_are_not_lost(self):
        fields, records = infer_schema(o for o in ORDERS)
        rows = list(project_rows(records, derive_columns(fields)))
        assert len(rows) == 3
        assert rows[0][1].as_text() == "Ann"

    def test_empty_input(self):
        fields, records = infer_schema([])
        assert fields == []
        assert list(records) == []

    def test_dataframe(self):
        df = pd.DataFrame({
            "name": ["a", "b"],
            "count": np.array([1, 2], dtype="int64"),
            "ratio": [0.5, np.nan],
            "ok": [True, False],
            "when": pd.to_datetime(["2020-01-01", None]),
        })
        fields, records = infer_schema(df)
        assert [f.name for f in fields] == ["name", "count", "ratio", "ok", "when"]
        kinds = _kinds(fields)
        # object or string dtype, depending on the pandas version
        assert kinds[0] in (None, CellKind.TEXT)
        assert kinds[1:] == [CellKind.NUMBER, CellKind.NUMBER, CellKind.BOOLEAN, CellKind.DATETIME]

        rows = list(project_rows(records, derive_columns(fields)))
        assert rows[0][1].as_number() == 1
        assert rows[0][4].as_datetime() == datetime.datetime(2020, 1, 1)
        assert rows[1][2].is_empty
        assert rows[1][4].is_empty

    def test_dataframe_non_string_column_names(self):
        df = pd.DataFrame({0: [1], 1: [2]})
        fields, _ = infer_schema(df)
        assert [f.name for f in fields] == ["0", "1"]

    def test_unresolved_forward_reference(self):
        @dataclass
        class Row:
            value: "MissingType"

        fields = record_shape(Row(1))
        assert [f.name for f in fields] == ["value"]
        assert _kinds(fields) == [None]

    def test_optional_annotation(self):
        @dataclass
        class Row:
            value: Optional[int] = None

        assert _kinds(infer_schema([Row()])[0]) == [CellKind.NUMBER]
