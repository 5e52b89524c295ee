"""
Excel binary workbook writer (.xlsb).

The package layout matches .xlsx, but every part under ``xl/`` is a BIFF12
record stream instead of XML. Each record is::

    record type (1-2 byte varint) | data size (1-4 byte varint) | data

Text cells point into a shared string part; datetimes are stored as serial
numbers with a cell XF carrying the configured date format.
"""

import logging
import struct
import xml.etree.ElementTree as ET
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from ..cells import CellKind
from .base import SharedStrings, excel_serial, sheet_rows

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Record identifiers
# ------------------------------------------------------------------

BRT_ROW_HDR = 0
BRT_CELL_BOOL = 4
BRT_CELL_REAL = 5
BRT_CELL_ISST = 7
BRT_SST_ITEM = 19
BRT_FONT = 43
BRT_FMT = 44
BRT_FILL = 45
BRT_BORDER = 46
BRT_XF = 47
BRT_STYLE = 48
BRT_BEGIN_SHEET = 129
BRT_END_SHEET = 130
BRT_BEGIN_BOOK = 131
BRT_END_BOOK = 132
BRT_BEGIN_BUNDLE_SHS = 143
BRT_END_BUNDLE_SHS = 144
BRT_BEGIN_SHEET_DATA = 145
BRT_END_SHEET_DATA = 146
BRT_WS_DIM = 148
BRT_WB_PROP = 153
BRT_BUNDLE_SH = 156
BRT_BEGIN_SST = 159
BRT_END_SST = 160
BRT_BEGIN_FILLS = 603
BRT_END_FILLS = 604
BRT_BEGIN_FONTS = 611
BRT_END_FONTS = 612
BRT_BEGIN_BORDERS = 613
BRT_END_BORDERS = 614
BRT_BEGIN_FMTS = 615
BRT_END_FMTS = 616
BRT_BEGIN_CELL_XFS = 617
BRT_END_CELL_XFS = 618
BRT_BEGIN_STYLES = 619
BRT_END_STYLES = 620
BRT_BEGIN_STYLE_SHEET = 662
BRT_END_STYLE_SHEET = 663
BRT_BEGIN_CELL_STYLE_XFS = 626
BRT_END_CELL_STYLE_XFS = 627

DEFAULT_XF = 0
DATE_XF = 1
DATE_FORMAT_INDEX = 164
DEFAULT_ROW_HEIGHT = 300  # twips
FILL_NONE = 0
FILL_GRAY125 = 17

ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)

# ------------------------------------------------------------------
# Package parts
# ------------------------------------------------------------------

CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

CT_WORKBOOK = "application/vnd.ms-excel.sheet.binary.macroEnabled.main"
CT_WORKSHEET = "application/vnd.ms-excel.worksheet"
CT_STYLES = "application/vnd.ms-excel.styles"
CT_SHARED_STRINGS = "application/vnd.ms-excel.sharedStrings"
CT_RELS = "application/vnd.openxmlformats-package.relationships+xml"

ARC_WORKBOOK = "xl/workbook.bin"
ARC_WORKBOOK_RELS = "xl/_rels/workbook.bin.rels"
ARC_STYLES = "xl/styles.bin"
ARC_SHARED_STRINGS = "xl/sharedStrings.bin"
ARC_ROOT_RELS = "_rels/.rels"
ARC_CONTENT_TYPES = "[Content_Types].xml"


def _varint(value):
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _record(rtype, data=b""):
    return _varint(rtype) + _varint(len(data)) + data


def _wide_string(text):
    """XLWideString: 32-bit character count followed by UTF-16 text."""
    encoded = text.encode("utf-16-le")
    return struct.pack("<I", len(encoded) // 2) + encoded


def _color(color_type=0, index=0):
    # fValidRGB=0, xColorType in the upper 7 bits
    return struct.pack("<BBhBBBB", color_type << 1, index, 0, 0, 0, 0, 0xFF)


# ------------------------------------------------------------------
# Workbook, worksheets, strings, styles
# ------------------------------------------------------------------

def workbook_part(sheets):
    parts = [
        _record(BRT_BEGIN_BOOK),
        _record(BRT_WB_PROP, struct.pack("<II", 0, 0) + _wide_string("")),
        _record(BRT_BEGIN_BUNDLE_SHS),
    ]
    for i, sheet in enumerate(sheets, start=1):
        parts.append(_record(
            BRT_BUNDLE_SH,
            struct.pack("<II", 0, i) + _wide_string(f"rId{i}") + _wide_string(sheet.name),
        ))
    parts += [_record(BRT_END_BUNDLE_SHS), _record(BRT_END_BOOK)]
    return b"".join(parts)


def _cell_record(col, cell, table):
    if cell.kind is CellKind.TEXT:
        return _record(BRT_CELL_ISST, struct.pack("<III", col, DEFAULT_XF, table.index(cell.value)))
    if cell.kind is CellKind.NUMBER:
        return _record(BRT_CELL_REAL, struct.pack("<IId", col, DEFAULT_XF, float(cell.value)))
    if cell.kind is CellKind.BOOLEAN:
        return _record(BRT_CELL_BOOL, struct.pack("<IIB", col, DEFAULT_XF, int(cell.value)))
    if cell.kind is CellKind.DATETIME:
        return _record(BRT_CELL_REAL, struct.pack("<IId", col, DATE_XF, excel_serial(cell.value)))
    return b""


def worksheet_part(sheet, table):
    last_col = len(sheet.columns) - 1
    parts = [
        _record(BRT_BEGIN_SHEET),
        _record(BRT_WS_DIM, struct.pack("<IIII", 0, len(sheet.rows), 0, last_col)),
        _record(BRT_BEGIN_SHEET_DATA),
    ]
    for r, row in enumerate(sheet_rows(sheet)):
        parts.append(_record(
            BRT_ROW_HDR,
            struct.pack("<IIHHBI", r, 0, DEFAULT_ROW_HEIGHT, 0, 0, 1) + struct.pack("<II", 0, last_col),
        ))
        for c, cell in enumerate(row):
            parts.append(_cell_record(c, cell, table))
    parts += [_record(BRT_END_SHEET_DATA), _record(BRT_END_SHEET)]
    return b"".join(parts)


def shared_strings_part(table):
    parts = [_record(BRT_BEGIN_SST, struct.pack("<II", table.total, len(table)))]
    for text in table.strings:
        parts.append(_record(BRT_SST_ITEM, b"\x00" + _wide_string(text)))
    parts.append(_record(BRT_END_SST))
    return b"".join(parts)


def _fill(pattern):
    return _record(BRT_FILL, (
        struct.pack("<I", pattern)
        + _color(1, 64) + _color(1, 65)
        + struct.pack("<I", 0)
        + struct.pack("<ddddd", 0, 0, 0, 0, 0)
        + struct.pack("<I", 0)
    ))


def _xf(parent, fmt):
    # bottom vertical alignment, locked
    flags = (2 << 3) | (1 << 12)
    return _record(BRT_XF, struct.pack("<HHHHHBBHBB", parent, fmt, 0, 0, 0, 0, 0, flags, 0, 0))


def styles_part(date_format):
    border_line = struct.pack("<BB", 0, 0) + _color()
    parts = [
        _record(BRT_BEGIN_STYLE_SHEET),
        _record(BRT_BEGIN_FMTS, struct.pack("<I", 1)),
        _record(BRT_FMT, struct.pack("<H", DATE_FORMAT_INDEX) + _wide_string(date_format)),
        _record(BRT_END_FMTS),
        _record(BRT_BEGIN_FONTS, struct.pack("<I", 1)),
        _record(BRT_FONT, (
            struct.pack("<HHHHBBBB", 220, 0, 400, 0, 0, 2, 0, 0)
            + _color(3, 1) + struct.pack("<B", 2) + _wide_string("Calibri")
        )),
        _record(BRT_END_FONTS),
        _record(BRT_BEGIN_FILLS, struct.pack("<I", 2)),
        _fill(FILL_NONE),
        _fill(FILL_GRAY125),
        _record(BRT_END_FILLS),
        _record(BRT_BEGIN_BORDERS, struct.pack("<I", 1)),
        _record(BRT_BORDER, b"\x00" + border_line * 5),
        _record(BRT_END_BORDERS),
        _record(BRT_BEGIN_CELL_STYLE_XFS, struct.pack("<I", 1)),
        _xf(0xFFFF, 0),
        _record(BRT_END_CELL_STYLE_XFS),
        _record(BRT_BEGIN_CELL_XFS, struct.pack("<I", 2)),
        _xf(0, 0),
        _xf(0, DATE_FORMAT_INDEX),
        _record(BRT_END_CELL_XFS),
        _record(BRT_BEGIN_STYLES, struct.pack("<I", 1)),
        _record(BRT_STYLE, struct.pack("<IHBB", 0, 1, 0, 0xFF) + _wide_string("Normal")),
        _record(BRT_END_STYLES),
        _record(BRT_END_STYLE_SHEET),
    ]
    return b"".join(parts)


# ------------------------------------------------------------------
# XML package plumbing
# ------------------------------------------------------------------

def _xml(root):
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def content_types(sheet_count):
    root = ET.Element("Types", xmlns=CT_NS)
    ET.SubElement(root, "Default", Extension="bin", ContentType=CT_WORKBOOK)
    ET.SubElement(root, "Default", Extension="rels", ContentType=CT_RELS)
    ET.SubElement(root, "Default", Extension="xml", ContentType="application/xml")
    for i in range(1, sheet_count + 1):
        ET.SubElement(root, "Override", PartName=f"/xl/worksheets/sheet{i}.bin",
                      ContentType=CT_WORKSHEET)
    ET.SubElement(root, "Override", PartName=f"/{ARC_STYLES}", ContentType=CT_STYLES)
    ET.SubElement(root, "Override", PartName=f"/{ARC_SHARED_STRINGS}",
                  ContentType=CT_SHARED_STRINGS)
    return _xml(root)


def _relationships(targets):
    root = ET.Element("Relationships", xmlns=PKG_REL_NS)
    for i, (rel_type, target) in enumerate(targets, start=1):
        ET.SubElement(root, "Relationship", Id=f"rId{i}",
                      Type=f"{REL_NS}/{rel_type}", Target=target)
    return _xml(root)


def root_relationships():
    return _relationships([("officeDocument", ARC_WORKBOOK)])


def workbook_relationships(sheet_count):
    # worksheets come first so sheet i is rId{i}
    targets = [("worksheet", f"worksheets/sheet{i}.bin") for i in range(1, sheet_count + 1)]
    targets += [("styles", "styles.bin"), ("sharedStrings", "sharedStrings.bin")]
    return _relationships(targets)


def _writestr(archive, name, data):
    member = ZipInfo(name, date_time=ZIP_DATE_TIME)
    member.compress_type = ZIP_DEFLATED
    archive.writestr(member, data)


def write_xlsb(workbook, handle, date_format):
    sheets = list(workbook)
    table = SharedStrings.collect(workbook)
    with ZipFile(handle, "w", ZIP_DEFLATED) as archive:
        _writestr(archive, ARC_CONTENT_TYPES, content_types(len(sheets)))
        _writestr(archive, ARC_ROOT_RELS, root_relationships())
        _writestr(archive, ARC_WORKBOOK, workbook_part(sheets))
        _writestr(archive, ARC_WORKBOOK_RELS, workbook_relationships(len(sheets)))
        for i, sheet in enumerate(sheets, start=1):
            _writestr(archive, f"xl/worksheets/sheet{i}.bin", worksheet_part(sheet, table))
        _writestr(archive, ARC_STYLES, styles_part(date_format))
        _writestr(archive, ARC_SHARED_STRINGS, shared_strings_part(table))
    logger.debug(f"XLSB package: {len(sheets)} sheets, {len(table)} unique strings")
