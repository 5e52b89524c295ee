"""
Sheet Builder
=============
In-memory workbook model. A :class:`Sheet` accepts rows while it is open;
:meth:`Workbook.finalize` seals every sheet, after which the writers read
them without further changes.
"""

import enum
import logging
import re
from dataclasses import dataclass, field

from .cells import CellValue
from .errors import (
    ColumnCountMismatch,
    DuplicateSheetName,
    EmptyColumnSet,
    InvalidSheetName,
    SheetSealed,
)

logger = logging.getLogger(__name__)

MAX_SHEET_NAME_LENGTH = 31
_INVALID_SHEET_CHARS_RE = re.compile(r"[\[\]:*?/\\]")


class SheetState(enum.Enum):
    OPEN = "open"
    SEALED = "sealed"


def validate_sheet_name(name):
    """Raise :class:`InvalidSheetName` unless Excel accepts *name* as a tab name."""
    if not isinstance(name, str) or not name:
        raise InvalidSheetName(name, "must be a non-empty string")
    if len(name) > MAX_SHEET_NAME_LENGTH:
        raise InvalidSheetName(name, f"longer than {MAX_SHEET_NAME_LENGTH} characters")
    m = _INVALID_SHEET_CHARS_RE.search(name)
    if m:
        raise InvalidSheetName(name, f"contains {m.group(0)!r}")
    if name.startswith("'") or name.endswith("'"):
        raise InvalidSheetName(name, "starts or ends with an apostrophe")


@dataclass
class Sheet:
    """One named tab: ordered columns and rows of cells."""
    name: str
    columns: tuple
    rows: list = field(default_factory=list)
    state: SheetState = SheetState.OPEN

    @property
    def headers(self):
        return [column.name for column in self.columns]

    @property
    def sealed(self):
        return self.state is SheetState.SEALED

    def append_row(self, cells):
        """Append one row; it must hold exactly one :class:`CellValue` per column."""
        if self.sealed:
            raise SheetSealed(self.name)
        cells = tuple(cells)
        if len(cells) != len(self.columns):
            raise ColumnCountMismatch(self.name, len(self.columns), len(cells))
        for cell in cells:
            if not isinstance(cell, CellValue):
                raise TypeError(f"rows hold CellValue items, got {type(cell).__name__}")
        self.rows.append(cells)

    def seal(self):
        self.state = SheetState.SEALED


@dataclass
class Workbook:
    """Ordered collection of sheets; insertion order is tab order."""
    sheets: list = field(default_factory=list)

    def __len__(self):
        return len(self.sheets)

    def __iter__(self):
        return iter(self.sheets)

    def sheet_names(self):
        return [sheet.name for sheet in self.sheets]

    def new_sheet(self, name, columns):
        """Register an empty sheet called *name* with the given columns.

        Sheet names are compared case-insensitively, like Excel does.
        """
        validate_sheet_name(name)
        if any(s.name.casefold() == name.casefold() for s in self.sheets):
            raise DuplicateSheetName(name)
        columns = tuple(columns)
        if not columns:
            raise EmptyColumnSet(name)
        sheet = Sheet(name=name, columns=columns)
        self.sheets.append(sheet)
        logger.debug(f"Registered sheet '{name}' with {len(columns)} columns")
        return sheet

    def finalize(self):
        """Seal every sheet. Calling it again is harmless."""
        for sheet in self.sheets:
            sheet.seal()

    def discard_sheet(self, sheet):
        """Drop a sheet whose registration could not be completed."""
        self.sheets.remove(sheet)
        logger.debug(f"Discarded sheet '{sheet.name}'")
