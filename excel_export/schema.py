"""
Row Projector
=============
Turns a description of a record type's fields into column descriptors and
projects individual records into rows of :class:`~excel_export.cells.CellValue`.

Everything here is a pure function of its inputs; the only side effect is the
warning logged when a record is skipped under the ``"skip"`` policy.
"""

import datetime
import logging
import math
import numbers
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

import numpy as np
import pandas as pd

from .cells import CellKind, CellValue
from .errors import DuplicateColumnName, ProjectionError, UnsupportedFieldType

logger = logging.getLogger(__name__)

ON_ERROR_POLICIES = ("raise", "skip")


@dataclass(frozen=True)
class FieldSpec:
    """One field of a record shape: a name, how to read it, and its declared type.

    ``type=None`` means the type is unknown and values are checked one by one
    during projection.
    """
    name: str
    accessor: Callable[[Any], Any]
    type: Any = None


@dataclass(frozen=True)
class ColumnDescriptor:
    """A sheet column: header name, value accessor and optional declared kind."""
    name: str
    accessor: Callable[[Any], Any]
    kind: Optional[CellKind] = None


def field_accessor(name):
    """Return an accessor reading *name* as a key of mappings or an attribute otherwise."""
    def read(record):
        if isinstance(record, Mapping):
            return record[name]
        return getattr(record, name)
    read.__name__ = f"read_{name}"
    return read


# ------------------------------------------------------------------
# Type -> cell kind mapping
# ------------------------------------------------------------------

_NONE_TYPE = type(None)


def kind_for_type(tp, field_name="<field>"):
    """Return the :class:`CellKind` a declared Python type maps to.

    ``None`` is returned for types that can only be checked per value
    (``Any``, ``object``, unions of several scalar kinds).

    Raises
    ------
    UnsupportedFieldType
        If the type has no cell mapping (containers, nested records, ...).
    """
    if tp is None or tp is Any or tp is object:
        return None

    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not _NONE_TYPE]
        kinds = {kind_for_type(a, field_name) for a in args}
        if len(kinds) == 1:
            return kinds.pop()
        return None

    if isinstance(tp, type):
        if issubclass(tp, (bool, np.bool_)):
            return CellKind.BOOLEAN
        if issubclass(tp, (datetime.date, np.datetime64)):
            return CellKind.DATETIME
        if issubclass(tp, str):
            return CellKind.TEXT
        if issubclass(tp, (numbers.Real, Decimal)):
            return CellKind.NUMBER

    raise UnsupportedFieldType(field_name, tp)


# ------------------------------------------------------------------
# Column derivation
# ------------------------------------------------------------------

def derive_columns(record_shape):
    """Build one :class:`ColumnDescriptor` per field, in declaration order.

    Parameters
    ----------
    record_shape : iterable
        :class:`FieldSpec` items, or ``(name, accessor)`` /
        ``(name, accessor, type)`` tuples.

    Returns
    -------
    list[ColumnDescriptor]
    """
    columns = []
    seen = set()
    for field in record_shape:
        if not isinstance(field, FieldSpec):
            field = FieldSpec(*field)
        name = str(field.name)
        if name in seen:
            raise DuplicateColumnName(name)
        seen.add(name)
        kind = kind_for_type(field.type, name)
        columns.append(ColumnDescriptor(name, field.accessor, kind))
    return columns


def columns_from_schema(schema):
    """Normalise an explicitly supplied schema into column descriptors.

    Accepted forms:

    * a mapping ``{column name: accessor}`` where the accessor is a callable,
      a field/key name, or ``None`` for "same as the column name";
    * a sequence whose items are column names, :class:`ColumnDescriptor`,
      :class:`FieldSpec` or ``(name, accessor[, type])`` tuples.
    """
    if isinstance(schema, Mapping):
        items = list(schema.items())
    else:
        items = list(schema)

    columns = []
    seen = set()
    for item in items:
        if isinstance(item, ColumnDescriptor):
            column = item
        elif isinstance(item, FieldSpec):
            column = derive_columns([item])[0]
        elif isinstance(item, str):
            column = ColumnDescriptor(item, field_accessor(item))
        else:
            name, accessor, *rest = item
            if accessor is None:
                accessor = field_accessor(name)
            elif isinstance(accessor, str):
                accessor = field_accessor(accessor)
            column = derive_columns([FieldSpec(name, accessor, *rest)])[0]
        if column.name in seen:
            raise DuplicateColumnName(column.name)
        seen.add(column.name)
        columns.append(column)
    return columns


# ------------------------------------------------------------------
# Projection
# ------------------------------------------------------------------

def to_cell(value):
    """Convert a raw Python value into a :class:`CellValue`.

    Missing values (``None``, NaN, ``NaT``) become empty cells. numpy and
    pandas scalars are unwrapped to their Python equivalents first.
    """
    if value is None or value is pd.NaT:
        return CellValue.empty()
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            return CellValue.empty()
        value = pd.Timestamp(value)
    elif isinstance(value, np.generic):
        value = value.item()

    if isinstance(value, bool):
        return CellValue.boolean(value)
    if isinstance(value, Decimal):
        if value.is_nan():
            return CellValue.empty()
        value = float(value)
    if isinstance(value, numbers.Real) and not isinstance(value, (int, float)):
        # Fraction and other Real implementations
        value = float(value)
    if isinstance(value, float) and math.isnan(value):
        return CellValue.empty()
    if isinstance(value, (int, float)):
        return CellValue.number(value)
    if isinstance(value, str):
        return CellValue.text(value)
    if isinstance(value, pd.Timestamp):
        return CellValue.datetime(value.to_pydatetime())
    if isinstance(value, datetime.date):
        return CellValue.datetime(value)
    raise TypeError(f"no cell mapping for {type(value).__name__} values")


def project_row(record, columns, row_index=0):
    """Apply each column's accessor to *record* and return the row's cells.

    Raises
    ------
    ProjectionError
        Tagged with the column name and *row_index*; the original exception
        is chained.
    """
    cells = []
    for column in columns:
        try:
            cell = to_cell(column.accessor(record))
        except Exception as exc:
            raise ProjectionError(column.name, row_index, str(exc) or type(exc).__name__) from exc
        if column.kind is not None and cell.kind not in (column.kind, CellKind.EMPTY):
            raise ProjectionError(
                column.name, row_index,
                f"expected a {column.kind.value} value, got {cell.kind.value}",
            )
        cells.append(cell)
    return cells


def project_rows(records, columns, on_error="raise"):
    """Yield the projected row of every record in *records*.

    With ``on_error="skip"`` records that fail to project are dropped and
    logged; with ``"raise"`` the first :class:`ProjectionError` propagates.
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")
    for row_index, record in enumerate(records):
        try:
            yield project_row(record, columns, row_index)
        except ProjectionError as exc:
            if on_error == "raise":
                raise
            logger.warning(f"Skipping record {row_index}: {exc}")
