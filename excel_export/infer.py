"""
Schema inference.

Builds a record shape (a list of :class:`~excel_export.schema.FieldSpec`) by
looking at the records themselves, for callers that do not pass an explicit
schema. Supported record kinds, checked in this order:

* pandas ``DataFrame`` (the whole input, not a row) - one field per column,
  typed from the column dtype;
* dataclass instances - fields in declaration order, typed from annotations;
* named tuples - ``_fields`` order, typed from annotations when present;
* mappings - keys of the first record, typed from its values;
* plain objects - public instance attributes of the first record.

Only the first record is inspected; later records must share its shape.
"""

import dataclasses
import datetime
import itertools
import logging
import operator
import typing
from collections.abc import Mapping

import pandas as pd
from pandas.api import types as ptypes

from .errors import UnsupportedFieldType
from .schema import FieldSpec, field_accessor

logger = logging.getLogger(__name__)

_MISSING = object()


def _dtype_to_type(dtype):
    """Map a pandas dtype onto the Python type its values convert to."""
    if ptypes.is_bool_dtype(dtype):
        return bool
    if ptypes.is_datetime64_any_dtype(dtype):
        return datetime.datetime
    if ptypes.is_numeric_dtype(dtype) and not ptypes.is_complex_dtype(dtype):
        return float
    if ptypes.is_string_dtype(dtype) and not ptypes.is_object_dtype(dtype):
        return str
    return None


def _dataframe_shape(df):
    fields = [
        FieldSpec(str(name), operator.itemgetter(i), _dtype_to_type(dtype))
        for i, (name, dtype) in enumerate(df.dtypes.items())
    ]
    return fields, df.itertuples(index=False, name=None)


def _annotations(cls):
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # unresolved forward references: fall back to per-value checks
        return {}


def _value_type(value):
    return None if value is None else type(value)


def record_shape(record):
    """Return the fields describing *record* (see the module docstring)."""
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        hints = _annotations(type(record))
        return [
            FieldSpec(f.name, operator.attrgetter(f.name), hints.get(f.name))
            for f in dataclasses.fields(record)
        ]
    if isinstance(record, tuple) and hasattr(record, "_fields"):
        hints = _annotations(type(record))
        return [
            FieldSpec(name, operator.itemgetter(i), hints.get(name))
            for i, name in enumerate(record._fields)
        ]
    if isinstance(record, Mapping):
        return [
            FieldSpec(str(key), field_accessor(key), _value_type(value))
            for key, value in record.items()
        ]
    if hasattr(record, "__dict__") and not isinstance(record, type):
        return [
            FieldSpec(name, operator.attrgetter(name), _value_type(value))
            for name, value in vars(record).items()
            if not name.startswith("_")
        ]
    raise UnsupportedFieldType("<record>", type(record))


def infer_schema(records):
    """Infer the record shape of *records*.

    Returns
    -------
    tuple[list[FieldSpec], iterable]
        The fields, and an iterable yielding the records again (the first
        record has been consumed from one-shot iterators for inspection).
    """
    if isinstance(records, pd.DataFrame):
        return _dataframe_shape(records)

    iterator = iter(records)
    first = next(iterator, _MISSING)
    if first is _MISSING:
        logger.debug("No records to infer a schema from")
        return [], iter(())
    fields = record_shape(first)
    logger.debug(f"Inferred {len(fields)} fields from {type(first).__name__} records")
    return fields, itertools.chain([first], iterator)
