"""
Caller-facing export builder.

Usage::

    from excel_export import create_export

    (create_export()
        .add_sheet("People", [{"Name": "Ann", "Age": 30}, {"Name": "Bo", "Age": 41}])
        .add_sheet("Orders", orders, schema=["Id", "Total"])
        .write_to("out.xlsx"))
"""

import logging

import pandas as pd

from .config import load_config
from .formats import format_for_extension, get_extension
from .infer import infer_schema
from .schema import columns_from_schema, derive_columns, project_rows
from .sheet import Workbook
from .writers import write_workbook

logger = logging.getLogger(__name__)


class ExcelExport:
    """Collects sheets of strongly-typed rows and exports them to an Excel file."""

    def __init__(self, config=None):
        self.config = config or load_config()
        self.workbook = Workbook()

    @property
    def sheet_names(self):
        return self.workbook.sheet_names()

    def add_sheet(self, name, records, schema=None, on_error=None):
        """Add a collection of records to be exported as sheet *name*.

        Parameters
        ----------
        name : str
            Tab name; unique (case-insensitively) within the export.
        records : iterable or pandas.DataFrame
            The rows to export.
        schema : optional
            Explicit columns (see :func:`~excel_export.schema.columns_from_schema`).
            Inferred from the records when omitted.
        on_error : {"raise", "skip"}, optional
            What to do with a record that cannot be projected. Defaults to
            the ``on_projection_error`` setting.

        Returns
        -------
        ExcelExport
            This instance, to allow chaining.
        """
        on_error = on_error or self.config["on_projection_error"]
        if schema is None:
            fields, records = infer_schema(records)
            columns = derive_columns(fields)
        else:
            columns = columns_from_schema(schema)
            if isinstance(records, pd.DataFrame):
                # name-based accessors read the rows as mappings
                records = records.to_dict(orient="records")

        sheet = self.workbook.new_sheet(name, columns)
        try:
            for cells in project_rows(records, sheet.columns, on_error=on_error):
                sheet.append_row(cells)
        except BaseException:
            self.workbook.discard_sheet(sheet)
            raise
        logger.info(f"Added sheet '{name}' with {len(sheet.columns)} columns and {len(sheet.rows)} rows")
        return self

    def write_to(self, path, fmt=None):
        """Export all added sheets to *path*.

        The file type is inferred from the extension unless *fmt* is given.
        """
        return write_workbook(self.workbook, path, fmt, self.config)

    export_to = write_to

    # extension table lookups
    get_format = staticmethod(format_for_extension)
    get_extension = staticmethod(get_extension)


def create_export(config_path=None, **overrides):
    """Return a new :class:`ExcelExport` configured from *config_path* and *overrides*."""
    return ExcelExport(load_config(config_path, **overrides))
