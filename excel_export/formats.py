"""
Excel output formats and the extension table that selects between them.
"""

import enum
import os

from .errors import UnrecognizedExtension

XLS_MAX_ROWS = 65536
XLS_MAX_COLUMNS = 256
OOXML_MAX_ROWS = 1048576
OOXML_MAX_COLUMNS = 16384


class ExcelFormat(enum.Enum):
    """A spreadsheet file format, keyed by its file extension."""

    #: An Excel 97-2003 .xls file (BIFF8 in an OLE2 compound document).
    EXCEL_2003 = ".xls"
    #: An Excel 2007 .xlsx file.
    EXCEL_2007 = ".xlsx"
    #: An Excel 2007 .xlsb binary file.
    EXCEL_2007_BINARY = ".xlsb"
    #: An Excel 2007 .xlsm file with macros enabled.
    EXCEL_2007_MACRO = ".xlsm"

    @property
    def extension(self):
        return self.value

    @property
    def max_rows(self):
        if self is ExcelFormat.EXCEL_2003:
            return XLS_MAX_ROWS
        return OOXML_MAX_ROWS

    @property
    def max_columns(self):
        if self is ExcelFormat.EXCEL_2003:
            return XLS_MAX_COLUMNS
        return OOXML_MAX_COLUMNS


def format_for_extension(extension):
    """Return the :class:`ExcelFormat` that uses *extension* (case-insensitive).

    Raises
    ------
    UnrecognizedExtension
        If no format uses the extension.
    """
    key = (extension or "").lower()
    for fmt in ExcelFormat:
        if fmt.value == key:
            return fmt
    raise UnrecognizedExtension(extension)


def format_for_path(path):
    """Infer the output format from the suffix of *path*."""
    return format_for_extension(os.path.splitext(os.fspath(path))[1])


def get_extension(fmt):
    """Return the file extension (with leading dot) for *fmt*."""
    return ExcelFormat(fmt).value
