"""Excel Export.

Writes in-memory tabular data (sequences of homogeneous records) to Excel
workbooks without any external driver:

  * **.xlsx** / **.xlsm** - Office Open XML, built with openpyxl.
  * **.xlsb** - Office Open XML package of BIFF12 binary records.
  * **.xls** - BIFF8 records inside an OLE2 compound document.

Each sheet is a name, an ordered set of columns (header name + accessor) and
the rows projected from the caller's records. The output format follows the
destination's extension, and files are committed atomically.
"""

from .cells import CellKind, CellValue
from .config import load_config
from .errors import (
    CapacityExceeded,
    ColumnCountMismatch,
    ConfigError,
    DuplicateColumnName,
    DuplicateSheetName,
    EmptyColumnSet,
    EmptyWorkbook,
    ExportError,
    ExportIOError,
    InvalidSheetName,
    ProjectionError,
    SheetSealed,
    TypeMismatch,
    UnrecognizedExtension,
    UnsupportedFieldType,
)
from .exporter import ExcelExport, create_export
from .formats import ExcelFormat, format_for_extension, get_extension
from .schema import ColumnDescriptor, FieldSpec, derive_columns, project_row
from .sheet import Sheet, SheetState, Workbook
from .writers import write_workbook

__all__ = [
    "CellKind",
    "CellValue",
    "ColumnDescriptor",
    "ExcelExport",
    "ExcelFormat",
    "FieldSpec",
    "Sheet",
    "SheetState",
    "Workbook",
    "create_export",
    "derive_columns",
    "format_for_extension",
    "get_extension",
    "load_config",
    "project_row",
    "write_workbook",
    "CapacityExceeded",
    "ColumnCountMismatch",
    "ConfigError",
    "DuplicateColumnName",
    "DuplicateSheetName",
    "EmptyColumnSet",
    "EmptyWorkbook",
    "ExportError",
    "ExportIOError",
    "InvalidSheetName",
    "ProjectionError",
    "SheetSealed",
    "TypeMismatch",
    "UnrecognizedExtension",
    "UnsupportedFieldType",
]
