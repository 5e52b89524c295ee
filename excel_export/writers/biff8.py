"""
Excel 97-2003 writer (.xls).

Produces a BIFF8 ``Workbook`` stream: a workbook-globals substream (fonts,
number formats, XF records, sheet directory and the shared string table)
followed by one worksheet substream per sheet, wrapped in an OLE2 compound
document.
"""

import logging
import struct

from ..cells import CellKind
from .base import SharedStrings, excel_serial, sheet_rows
from .cfb import compound_document

logger = logging.getLogger(__name__)

# Record identifiers
BOF = 0x0809
EOF = 0x000A
CODEPAGE = 0x0042
WINDOW1 = 0x003D
DATEMODE = 0x0022
FONT = 0x0031
FORMAT = 0x041E
XF = 0x00E0
STYLE = 0x0293
BOUNDSHEET = 0x0085
SST = 0x00FC
EXTSST = 0x00FF
CONTINUE = 0x003C
DIMENSIONS = 0x0200
WINDOW2 = 0x023E
NUMBER = 0x0203
BOOLERR = 0x0205
LABELSST = 0x00FD

BIFF8_VERSION = 0x0600
SUBSTREAM_GLOBALS = 0x0005
SUBSTREAM_WORKSHEET = 0x0010
CODEPAGE_UTF16 = 1200

MAX_RECORD_DATA = 8224
FONT_COUNT = 4
STYLE_XF_COUNT = 15
DEFAULT_XF = 15
DATE_XF = 16
DATE_FORMAT_INDEX = 164

# icvFore=64 (window text), icvBack=65 (window background)
_DEFAULT_FILL = 0x20C0


def _record(rtype, data=b""):
    return struct.pack("<HH", rtype, len(data)) + data


def _short_string(text):
    """ShortXLUnicodeString: 8-bit length, uncompressed UTF-16."""
    encoded = text.encode("utf-16-le")
    return struct.pack("<BB", len(encoded) // 2, 1) + encoded


def _string(text):
    """XLUnicodeString: 16-bit length, uncompressed UTF-16."""
    encoded = text.encode("utf-16-le")
    return struct.pack("<HB", len(encoded) // 2, 1) + encoded


def _bof(substream):
    return _record(BOF, struct.pack("<HHHHII", BIFF8_VERSION, substream, 0x0DBB, 0x07CC, 0, 0x06))


def _xf(font, fmt, style, used_attributes=0):
    if style:
        type_and_parent = 0xFFF5  # locked, style XF, no parent
    else:
        type_and_parent = 0x0001  # locked, parent is style XF 0
    return _record(XF, struct.pack(
        "<HHHBBBBIIH",
        font, fmt, type_and_parent,
        0x20,  # bottom aligned
        0, 0, used_attributes,
        0, 0, _DEFAULT_FILL,
    ))


# ------------------------------------------------------------------
# Shared string table
# ------------------------------------------------------------------

def _sst_records(table):
    """Split the shared string table into SST + CONTINUE record bodies.

    Returns
    -------
    tuple[list[bytearray], list[tuple[int, int]]]
        Record bodies, and for each string the ``(record index, offset in
        body)`` where it starts.
    """
    bodies = []
    starts = []
    current = bytearray(struct.pack("<II", table.total, len(table)))
    for text in table.strings:
        encoded = text.encode("utf-16-le")
        header = struct.pack("<HB", len(encoded) // 2, 1)
        # string header and first character may not be split
        if len(current) + len(header) + min(len(encoded), 2) > MAX_RECORD_DATA:
            bodies.append(current)
            current = bytearray()
        starts.append((len(bodies), len(current)))
        current += header
        pos = 0
        while True:
            room = (MAX_RECORD_DATA - len(current)) & ~1
            chunk = encoded[pos:pos + room]
            current += chunk
            pos += len(chunk)
            if pos >= len(encoded):
                break
            bodies.append(current)
            # continued character data restates its encoding
            current = bytearray(b"\x01")
    bodies.append(current)
    return bodies, starts


def _sst_block(table, stream_offset):
    """Return SST, CONTINUE and EXTSST records for a table placed at *stream_offset*."""
    bodies, starts = _sst_records(table)
    records = [_record(SST, bytes(bodies[0]))]
    records += [_record(CONTINUE, bytes(body)) for body in bodies[1:]]

    positions = []
    pos = stream_offset
    for record in records:
        positions.append(pos)
        pos += len(record)

    bucket = max(8, -(-len(table) // 128))
    extsst = bytearray(struct.pack("<H", bucket))
    for i in range(0, len(starts), bucket):
        rec_idx, offset = starts[i]
        extsst += struct.pack("<IHH", positions[rec_idx] + 4 + offset, 4 + offset, 0)
    return b"".join(records) + _record(EXTSST, bytes(extsst))


# ------------------------------------------------------------------
# Substreams
# ------------------------------------------------------------------

def _globals_head(date_format):
    parts = [
        _bof(SUBSTREAM_GLOBALS),
        _record(CODEPAGE, struct.pack("<H", CODEPAGE_UTF16)),
        _record(WINDOW1, struct.pack("<HHHHHHHHH", 0, 0, 0x4000, 0x2000, 0x0038, 0, 0, 1, 600)),
        _record(DATEMODE, struct.pack("<H", 0)),
    ]
    for _ in range(FONT_COUNT):
        parts.append(_record(FONT, struct.pack(
            "<HHHHHBBBB", 200, 0, 0x7FFF, 400, 0, 0, 0, 0, 0) + _short_string("Arial")))
    parts.append(_record(FORMAT, struct.pack("<H", DATE_FORMAT_INDEX) + _string(date_format)))
    parts.append(_xf(0, 0, style=True))
    for i in range(1, STYLE_XF_COUNT):
        parts.append(_xf(1 if i < 3 else 0, 0, style=True, used_attributes=0xF4))
    parts.append(_xf(0, 0, style=False))
    parts.append(_xf(0, DATE_FORMAT_INDEX, style=False, used_attributes=0x04))
    parts.append(_record(STYLE, struct.pack("<HBB", 0x8000, 0, 0xFF)))
    return b"".join(parts)


def _boundsheets(sheets, offsets):
    return b"".join(
        _record(BOUNDSHEET, struct.pack("<IBB", offset, 0, 0) + _short_string(sheet.name))
        for sheet, offset in zip(sheets, offsets)
    )


def _cell_record(row, col, cell, table):
    if cell.kind is CellKind.TEXT:
        return _record(LABELSST, struct.pack("<HHHI", row, col, DEFAULT_XF, table.index(cell.value)))
    if cell.kind is CellKind.NUMBER:
        return _record(NUMBER, struct.pack("<HHHd", row, col, DEFAULT_XF, float(cell.value)))
    if cell.kind is CellKind.BOOLEAN:
        return _record(BOOLERR, struct.pack("<HHHBB", row, col, DEFAULT_XF, int(cell.value), 0))
    if cell.kind is CellKind.DATETIME:
        return _record(NUMBER, struct.pack("<HHHd", row, col, DATE_XF, excel_serial(cell.value)))
    return b""


def _worksheet(sheet, table, selected):
    n_rows = len(sheet.rows) + 1
    n_cols = len(sheet.columns)
    options = 0x06B6 if selected else 0x00B6
    parts = [
        _bof(SUBSTREAM_WORKSHEET),
        _record(DIMENSIONS, struct.pack("<IIHHH", 0, n_rows, 0, n_cols, 0)),
        _record(WINDOW2, struct.pack("<HHHHHHHI", options, 0, 0, 64, 0, 0, 0, 0)),
    ]
    for r, row in enumerate(sheet_rows(sheet)):
        for c, cell in enumerate(row):
            parts.append(_cell_record(r, c, cell, table))
    parts.append(_record(EOF))
    return b"".join(parts)


def workbook_stream(workbook, date_format):
    """Return the complete BIFF8 ``Workbook`` stream for *workbook*."""
    table = SharedStrings.collect(workbook)
    sheets = list(workbook)

    sheet_streams = [_worksheet(sheet, table, i == 0) for i, sheet in enumerate(sheets)]

    head = _globals_head(date_format)
    boundsheet_size = len(_boundsheets(sheets, [0] * len(sheets)))
    sst = _sst_block(table, len(head) + boundsheet_size)
    globals_size = len(head) + boundsheet_size + len(sst) + len(_record(EOF))

    offsets = []
    pos = globals_size
    for stream in sheet_streams:
        offsets.append(pos)
        pos += len(stream)

    stream = b"".join([head, _boundsheets(sheets, offsets), sst, _record(EOF), *sheet_streams])
    logger.debug(f"BIFF8 stream: {len(sheets)} sheets, {len(table)} unique strings, {len(stream)} bytes")
    return stream


def write_xls(workbook, handle, date_format):
    handle.write(compound_document("Workbook", workbook_stream(workbook, date_format)))
