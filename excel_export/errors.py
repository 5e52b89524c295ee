"""
Exception hierarchy for excel_export.

Every failure raised by the library derives from :class:`ExportError`, so a
caller can catch the whole family at once or pick out individual members.
Shape and schema problems are raised while sheets are being registered;
only :class:`UnrecognizedExtension`, :class:`CapacityExceeded`,
:class:`EmptyWorkbook` and :class:`ExportIOError` can come out of a write.
"""


class ExportError(Exception):
    """Base exception for excel_export."""


class ConfigError(ExportError):
    """Raised when a configuration file or override is invalid."""


# ------------------------------------------------------------------
# Cell / projection errors
# ------------------------------------------------------------------

class TypeMismatch(ExportError):
    """Raised when a cell is inspected as a kind other than its own.

    Attributes:
        expected: The kind that was asked for.
        actual: The kind the cell holds.
    """

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Cell holds {actual.name}, not {expected.name}")


class UnsupportedFieldType(ExportError):
    """Raised when a record field's type has no cell mapping."""

    def __init__(self, field_name, field_type):
        self.field_name = field_name
        self.field_type = field_type
        super().__init__(
            f"Field '{field_name}' has unsupported type {field_type!r}"
        )


class DuplicateColumnName(ExportError):
    """Raised when two columns of one sheet share a name."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Duplicate column name: {name}")


class ProjectionError(ExportError):
    """Raised when a record cannot be turned into a row of cells.

    The original exception is chained as ``__cause__``.

    Attributes:
        column: Name of the column whose accessor or value failed.
        row_index: 0-based position of the record in its input sequence.
    """

    def __init__(self, column, row_index, reason):
        self.column = column
        self.row_index = row_index
        self.reason = reason
        super().__init__(
            f"Cannot project column '{column}' of row {row_index}: {reason}"
        )


# ------------------------------------------------------------------
# Sheet / workbook shape errors
# ------------------------------------------------------------------

class DuplicateSheetName(ExportError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Sheet name already used: {name}")


class InvalidSheetName(ExportError):
    def __init__(self, name, reason):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid sheet name {name!r}: {reason}")


class EmptyColumnSet(ExportError):
    def __init__(self, sheet_name):
        self.sheet_name = sheet_name
        super().__init__(f"Sheet '{sheet_name}' has no columns")


class ColumnCountMismatch(ExportError):
    def __init__(self, sheet_name, expected, actual):
        self.sheet_name = sheet_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Sheet '{sheet_name}' has {expected} columns, row has {actual} cells"
        )


class SheetSealed(ExportError):
    def __init__(self, sheet_name):
        self.sheet_name = sheet_name
        super().__init__(f"Sheet '{sheet_name}' is sealed and accepts no rows")


class EmptyWorkbook(ExportError):
    def __init__(self):
        super().__init__("A workbook needs at least one sheet")


# ------------------------------------------------------------------
# Write errors
# ------------------------------------------------------------------

class UnrecognizedExtension(ExportError):
    def __init__(self, extension):
        self.extension = extension
        super().__init__(f"Unrecognized extension: {extension!r}")


class CapacityExceeded(ExportError):
    """Raised when a sheet does not fit the limits of the target format."""

    def __init__(self, sheet_name, fmt, rows, columns):
        self.sheet_name = sheet_name
        self.format = fmt
        self.rows = rows
        self.columns = columns
        super().__init__(
            f"Sheet '{sheet_name}' ({rows} rows x {columns} columns) exceeds "
            f"the {fmt.extension} limit of {fmt.max_rows} rows x "
            f"{fmt.max_columns} columns"
        )


class ExportIOError(ExportError):
    """Raised when writing the output file fails.

    The underlying :class:`OSError` is chained as ``__cause__``.
    """

    def __init__(self, path, message):
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
