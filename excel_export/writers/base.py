"""
Helpers shared by the serialization strategies.
"""

from openpyxl.utils.datetime import to_excel

from ..cells import CellKind, CellValue


def sheet_rows(sheet):
    """Yield every row of *sheet* as written: the header row first, then data."""
    yield tuple(CellValue.text(name) for name in sheet.headers)
    yield from sheet.rows


def excel_serial(value):
    """Return the 1900-system serial number Excel stores for a datetime."""
    return to_excel(value)


class SharedStrings:
    """Workbook-wide table of unique strings, indexed in first-seen order.

    Both binary formats reference text cells by position in this table.
    """

    def __init__(self):
        self._index = {}
        self.strings = []
        self.total = 0

    def __len__(self):
        return len(self.strings)

    def index(self, text):
        """Position of an already collected string."""
        return self._index[text]

    def add(self, text):
        self.total += 1
        idx = self._index.get(text)
        if idx is None:
            idx = len(self.strings)
            self._index[text] = idx
            self.strings.append(text)
        return idx

    @classmethod
    def collect(cls, workbook):
        """Build the table from every header and text cell of *workbook*."""
        table = cls()
        for sheet in workbook:
            for row in sheet_rows(sheet):
                for cell in row:
                    if cell.kind is CellKind.TEXT:
                        table.add(cell.value)
        return table
