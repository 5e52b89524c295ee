"""
Office Open XML writer (.xlsx / .xlsm).

Sheets are built with openpyxl, then the saved package is repacked with
pinned member timestamps and document properties so the same workbook always
produces the same bytes. The .xlsm flavour differs only in the workbook
part's content type.
"""

import datetime
import io
import logging
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.xml.constants import ARC_CONTENT_TYPES, ARC_CORE, XLSM, XLSX
from openpyxl.xml.functions import tostring

from ..cells import CellKind
from .base import sheet_rows

logger = logging.getLogger(__name__)

# Pinned creation/modification time of every package
FIXED_TIMESTAMP = datetime.datetime(2000, 1, 1)
ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def build_workbook(workbook, date_format):
    """Translate the sealed *workbook* into an openpyxl ``Workbook``."""
    wb = Workbook()
    wb.remove(wb.active)

    for sheet in workbook:
        ws = wb.create_sheet(title=sheet.name)
        for r, row in enumerate(sheet_rows(sheet), start=1):
            for c, cell in enumerate(row, start=1):
                if cell.is_empty:
                    continue
                out = ws.cell(row=r, column=c, value=cell.value)
                if cell.kind is CellKind.TEXT:
                    # keep "=..." and "#N/A" style text from becoming formulas/errors
                    out.data_type = "s"
                elif cell.kind is CellKind.DATETIME:
                    out.number_format = date_format
        logger.debug(f"Built worksheet '{sheet.name}' ({len(sheet.rows)} rows)")

    wb.properties.created = FIXED_TIMESTAMP
    wb.properties.modified = FIXED_TIMESTAMP
    return wb


def _repack(source, handle, properties, content_type):
    """Copy the package in *source* to *handle* with pinned metadata."""
    with ZipFile(source) as src, ZipFile(handle, "w", ZIP_DEFLATED) as dst:
        for info in src.infolist():
            data = src.read(info.filename)
            if info.filename == ARC_CORE:
                data = tostring(properties.to_tree())
            elif info.filename == ARC_CONTENT_TYPES and content_type != XLSX:
                data = data.replace(
                    f'"{XLSX}"'.encode("utf-8"), f'"{content_type}"'.encode("utf-8")
                )
            member = ZipInfo(info.filename, date_time=ZIP_DATE_TIME)
            member.compress_type = ZIP_DEFLATED
            dst.writestr(member, data)


def _write_package(workbook, handle, date_format, content_type):
    wb = build_workbook(workbook, date_format)
    buffer = io.BytesIO()
    wb.save(buffer)
    # save() stamps the current time; put the pinned one back
    wb.properties.modified = FIXED_TIMESTAMP
    buffer.seek(0)
    _repack(buffer, handle, wb.properties, content_type)


def write_xlsx(workbook, handle, date_format):
    _write_package(workbook, handle, date_format, XLSX)


def write_xlsm(workbook, handle, date_format):
    _write_package(workbook, handle, date_format, XLSM)
