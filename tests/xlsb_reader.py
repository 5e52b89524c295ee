"""
Minimal BIFF12 reader used to check .xlsb output.

Understands exactly the records the writer emits: sheet directory, shared
strings, row headers and bool/real/shared-string cells.
"""

import struct
import xml.etree.ElementTree as ET
from zipfile import ZipFile

from openpyxl.utils.datetime import from_excel

DATE_XF = 1


def _varint(data, pos, max_bytes):
    value = 0
    for i in range(max_bytes):
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            break
    return value, pos


def iter_records(data):
    """Yield ``(record type, body)`` pairs from a BIFF12 part."""
    pos = 0
    while pos < len(data):
        rtype, pos = _varint(data, pos, 2)
        size, pos = _varint(data, pos, 4)
        yield rtype, data[pos:pos + size]
        pos += size


def _wide_string(data, pos):
    (count,) = struct.unpack_from("<I", data, pos)
    pos += 4
    return data[pos:pos + 2 * count].decode("utf-16-le"), pos + 2 * count


def read_xlsb(path):
    """Return ``{sheet name: rows}`` in tab order; rows are lists padded with None."""
    with ZipFile(path) as zf:
        rels = ET.fromstring(zf.read("xl/_rels/workbook.bin.rels"))
        targets = {rel.get("Id"): rel.get("Target") for rel in rels}

        strings = [
            _wide_string(body, 1)[0]
            for rtype, body in iter_records(zf.read("xl/sharedStrings.bin"))
            if rtype == 19
        ]

        sheets = []
        for rtype, body in iter_records(zf.read("xl/workbook.bin")):
            if rtype == 156:
                rel_id, pos = _wide_string(body, 8)
                name, _ = _wide_string(body, pos)
                sheets.append((name, "xl/" + targets[rel_id]))

        result = {}
        for name, part in sheets:
            cells = {}
            row = None
            for rtype, body in iter_records(zf.read(part)):
                if rtype == 0:
                    (row,) = struct.unpack_from("<I", body)
                    cells[row] = {}
                elif rtype in (4, 5, 7):
                    col, style = struct.unpack_from("<II", body)
                    if rtype == 7:
                        value = strings[struct.unpack_from("<I", body, 8)[0]]
                    elif rtype == 5:
                        (value,) = struct.unpack_from("<d", body, 8)
                        if style & 0xFFFFFF == DATE_XF:
                            value = from_excel(value)
                    else:
                        value = bool(body[8])
                    cells[row][col] = value
            width = 1 + max((max(r) for r in cells.values() if r), default=-1)
            result[name] = [
                [cells[r].get(c) for c in range(width)] for r in sorted(cells)
            ]
        return result
