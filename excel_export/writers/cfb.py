"""
OLE2 compound document container (version 3, 512-byte sectors).

Only what a BIFF8 workbook needs: a root storage holding one stream. The
stream is padded to the mini-stream cutoff so no mini FAT is required.

Sector layout::

    [header][stream sectors][directory sector][FAT sectors][DIFAT sectors]
"""

import math
import struct

SIGNATURE = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
SECTOR_SIZE = 512
MINI_STREAM_CUTOFF = 4096
DIR_ENTRY_SIZE = 128
IDS_PER_SECTOR = SECTOR_SIZE // 4
HEADER_DIFAT_ENTRIES = 109

FREESECT = 0xFFFFFFFF
ENDOFCHAIN = 0xFFFFFFFE
FATSECT = 0xFFFFFFFD
DIFSECT = 0xFFFFFFFC
NOSTREAM = 0xFFFFFFFF

OBJ_EMPTY = 0
OBJ_STREAM = 2
OBJ_ROOT = 5
COLOR_BLACK = 1


def _fat_layout(other_sectors):
    """Return ``(fat_sectors, difat_sectors)`` able to map the whole file."""
    n_fat = 1
    while True:
        n_difat = math.ceil(max(0, n_fat - HEADER_DIFAT_ENTRIES) / (IDS_PER_SECTOR - 1))
        needed = math.ceil((other_sectors + n_fat + n_difat) / IDS_PER_SECTOR)
        if needed <= n_fat:
            return n_fat, n_difat
        n_fat = needed


def _dir_entry(name="", obj_type=OBJ_EMPTY, color=0, child=NOSTREAM,
               start=0, size=0):
    encoded = name.encode("utf-16-le") + b"\0\0" if name else b""
    return struct.pack(
        "<64sHBBIII16sIQQIQ",
        encoded, len(encoded), obj_type, color,
        NOSTREAM, NOSTREAM, child,
        b"\0" * 16, 0, 0, 0,
        start, size,
    )


def compound_document(stream_name, data):
    """Return the bytes of a compound file holding *data* as *stream_name*."""
    if len(data) < MINI_STREAM_CUTOFF:
        data = data + b"\0" * (MINI_STREAM_CUTOFF - len(data))
    stream_size = len(data)
    if stream_size % SECTOR_SIZE:
        data = data + b"\0" * (SECTOR_SIZE - stream_size % SECTOR_SIZE)

    n_stream = len(data) // SECTOR_SIZE
    dir_start = n_stream
    n_fat, n_difat = _fat_layout(n_stream + 1)
    fat_start = dir_start + 1
    difat_start = fat_start + n_fat

    # ---- FAT ----
    fat = [FREESECT] * (n_fat * IDS_PER_SECTOR)
    for i in range(n_stream - 1):
        fat[i] = i + 1
    fat[n_stream - 1] = ENDOFCHAIN
    fat[dir_start] = ENDOFCHAIN
    for i in range(n_fat):
        fat[fat_start + i] = FATSECT
    for i in range(n_difat):
        fat[difat_start + i] = DIFSECT

    # ---- DIFAT ----
    fat_ids = list(range(fat_start, fat_start + n_fat))
    header_difat = fat_ids[:HEADER_DIFAT_ENTRIES]
    header_difat += [FREESECT] * (HEADER_DIFAT_ENTRIES - len(header_difat))
    difat_sectors = []
    remaining = fat_ids[HEADER_DIFAT_ENTRIES:]
    for i in range(n_difat):
        chunk = remaining[: IDS_PER_SECTOR - 1]
        remaining = remaining[IDS_PER_SECTOR - 1:]
        chunk += [FREESECT] * (IDS_PER_SECTOR - 1 - len(chunk))
        next_sector = difat_start + i + 1 if i + 1 < n_difat else ENDOFCHAIN
        difat_sectors.append(struct.pack(f"<{IDS_PER_SECTOR}I", *chunk, next_sector))

    # ---- directory ----
    directory = (
        _dir_entry("Root Entry", OBJ_ROOT, COLOR_BLACK, child=1, start=ENDOFCHAIN)
        + _dir_entry(stream_name, OBJ_STREAM, COLOR_BLACK, start=0, size=stream_size)
        + _dir_entry() * (SECTOR_SIZE // DIR_ENTRY_SIZE - 2)
    )

    header = struct.pack(
        "<8s16sHHHHH6sIIIIIIIII",
        SIGNATURE, b"\0" * 16,
        0x003E, 0x0003, 0xFFFE, 9, 6, b"\0" * 6,
        0, n_fat, dir_start, 0, MINI_STREAM_CUTOFF,
        ENDOFCHAIN, 0,
        difat_start if n_difat else ENDOFCHAIN, n_difat,
    ) + struct.pack(f"<{HEADER_DIFAT_ENTRIES}I", *header_difat)

    return b"".join([
        header,
        data,
        directory,
        struct.pack(f"<{len(fat)}I", *fat),
        *difat_sectors,
    ])
