"""
Workbook Writer: picks the serialization strategy for the output format and
commits the result atomically.
"""

import logging
import os

from ..config import load_config
from ..errors import CapacityExceeded, EmptyWorkbook, UnrecognizedExtension
from ..formats import ExcelFormat, format_for_extension, format_for_path
from ..storage import atomic_write
from .biff8 import write_xls
from .openxml import write_xlsm, write_xlsx
from .xlsb import write_xlsb

logger = logging.getLogger(__name__)

SERIALIZERS = {
    ExcelFormat.EXCEL_2003: write_xls,
    ExcelFormat.EXCEL_2007: write_xlsx,
    ExcelFormat.EXCEL_2007_BINARY: write_xlsb,
    ExcelFormat.EXCEL_2007_MACRO: write_xlsm,
}


def resolve_format(destination, fmt=None):
    """Return the :class:`ExcelFormat` for *destination*.

    *fmt* wins when given; it may be an :class:`ExcelFormat` or an extension
    string such as ``".xlsb"``.
    """
    if fmt is None:
        return format_for_path(destination)
    if isinstance(fmt, ExcelFormat):
        return fmt
    if isinstance(fmt, str):
        return format_for_extension(fmt)
    raise UnrecognizedExtension(fmt)


def check_capacity(workbook, fmt):
    for sheet in workbook:
        rows = len(sheet.rows) + 1
        columns = len(sheet.columns)
        if rows > fmt.max_rows or columns > fmt.max_columns:
            raise CapacityExceeded(sheet.name, fmt, rows, columns)


def write_workbook(workbook, destination, fmt=None, config=None):
    """Serialize every sheet of *workbook* into *destination*.

    The workbook is sealed first. Nothing is created at *destination* unless
    the whole file was written successfully.

    Args:
        workbook: The :class:`~excel_export.sheet.Workbook` to write.
        destination: Output path.
        fmt: Optional explicit format; otherwise inferred from the extension.
        config: Settings dict from :func:`~excel_export.config.load_config`.

    Returns:
        The absolute path of the written file.
    """
    config = config or load_config()
    fmt = resolve_format(destination, fmt)
    if not workbook.sheets:
        raise EmptyWorkbook()
    workbook.finalize()
    check_capacity(workbook, fmt)

    serialize = SERIALIZERS[fmt]
    date_format = config["date_format"]
    path = atomic_write(
        destination,
        lambda handle: serialize(workbook, handle, date_format),
        temp_dir=config["temp_dir"],
        fsync=config["fsync"],
    )
    logger.info(
        f"Wrote {len(workbook.sheets)} sheet(s) to {path} as {fmt.name} "
        f"({os.path.getsize(path)} bytes)"
    )
    return path
