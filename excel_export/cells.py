"""
Cell Value Model
================
A :class:`CellValue` is one typed scalar occupying one row/column position.
Exactly one kind is active per cell; converting arbitrary Python values into
cells is the row projector's job (see :mod:`excel_export.schema`).
"""

import datetime as _dt
import enum
import math
import re
import sys
from dataclasses import dataclass
from typing import Any

from .errors import TypeMismatch

# Excel refuses longer cell text
MAX_TEXT_LENGTH = 32767

# Control characters that cannot appear in SpreadsheetML
_ILLEGAL_CHARACTERS_RE = re.compile(r"[\000-\010]|[\013-\014]|[\016-\037]")


class CellKind(enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    EMPTY = "empty"


@dataclass(frozen=True)
class CellValue:
    """Stores a single typed cell value.

    Build instances through the ``text``/``number``/``boolean``/``datetime``/
    ``empty`` constructors rather than directly.
    """
    kind: CellKind
    value: Any = None

    # ---- constructors ----

    @classmethod
    def text(cls, value: str) -> "CellValue":
        if not isinstance(value, str):
            raise TypeError(f"text cell needs a str, got {type(value).__name__}")
        if len(value) > MAX_TEXT_LENGTH:
            raise ValueError(
                f"text of {len(value)} characters exceeds {MAX_TEXT_LENGTH}"
            )
        if _ILLEGAL_CHARACTERS_RE.search(value):
            raise ValueError("text contains control characters")
        return cls(CellKind.TEXT, value)

    @classmethod
    def number(cls, value) -> "CellValue":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(
                f"number cell needs an int or float, got {type(value).__name__}"
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"number {value!r} is not finite")
        if isinstance(value, int) and abs(value) > sys.float_info.max:
            raise ValueError("integer is too large to store as a number cell")
        return cls(CellKind.NUMBER, value)

    @classmethod
    def boolean(cls, value: bool) -> "CellValue":
        if not isinstance(value, bool):
            raise TypeError(f"boolean cell needs a bool, got {type(value).__name__}")
        return cls(CellKind.BOOLEAN, value)

    @classmethod
    def datetime(cls, value) -> "CellValue":
        if isinstance(value, _dt.datetime):
            if value.tzinfo is not None and value.utcoffset() is not None:
                raise ValueError("timezone-aware datetimes cannot be stored")
        elif isinstance(value, _dt.date):
            value = _dt.datetime.combine(value, _dt.time())
        else:
            raise TypeError(
                f"datetime cell needs a date or datetime, got {type(value).__name__}"
            )
        return cls(CellKind.DATETIME, value)

    @classmethod
    def empty(cls) -> "CellValue":
        return cls(CellKind.EMPTY)

    # ---- typed inspection ----

    def _expect(self, kind):
        if self.kind is not kind:
            raise TypeMismatch(kind, self.kind)
        return self.value

    def as_text(self) -> str:
        return self._expect(CellKind.TEXT)

    def as_number(self):
        return self._expect(CellKind.NUMBER)

    def as_boolean(self) -> bool:
        return self._expect(CellKind.BOOLEAN)

    def as_datetime(self) -> _dt.datetime:
        return self._expect(CellKind.DATETIME)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY
