"""End-to-end tests for the ExcelExport builder."""

import logging
import os
import sys

import pandas as pd
import pytest
from openpyxl import load_workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from excel_export import (
    DuplicateSheetName,
    ExcelExport,
    ExcelFormat,
    ExportError,
    InvalidSheetName,
    ProjectionError,
    UnrecognizedExtension,
    UnsupportedFieldType,
    create_export,
)

from tests.create_sample_export import PEOPLE, create_sample_export
from tests.xlsb_reader import read_xlsb


def _rows(path, sheet):
    # file object: openpyxl refuses unknown extensions by name
    with open(path, "rb") as f:
        ws = load_workbook(f)[sheet]
    return [list(row) for row in ws.iter_rows(values_only=True)]


# ---------------------------------------------------------------------------
# Basic usage
# ---------------------------------------------------------------------------

class TestExport:
    def test_people_sheet(self, tmp_path):
        path = create_export().add_sheet("People", PEOPLE).write_to(str(tmp_path / "out.xlsx"))
        assert _rows(path, "People") == [["Name", "Age"], ["Ann", 30], ["Bo", 41]]

    def test_returns_absolute_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = create_export().add_sheet("People", PEOPLE).write_to("out.xlsx")
        assert os.path.isabs(path)
        assert os.path.samefile(path, tmp_path / "out.xlsx")

    def test_chaining(self):
        export = create_export()
        assert export.add_sheet("a", PEOPLE) is export
        assert export.add_sheet("b", PEOPLE).sheet_names == ["a", "b"]

    def test_export_to_alias(self, tmp_path):
        path = create_sample_export().export_to(str(tmp_path / "out.xlsb"))
        assert list(read_xlsb(path)) == ["People", "Orders"]

    def test_explicit_format(self, tmp_path):
        target = tmp_path / "report.dat"
        path = create_sample_export().write_to(str(target), ExcelFormat.EXCEL_2007)
        assert _rows(path, "People")[1] == ["Ann", 30]

    def test_explicit_schema(self, tmp_path):
        path = (
            create_export()
            .add_sheet("People", PEOPLE, schema={"Who": "Name", "Next year": lambda r: r["Age"] + 1})
            .write_to(str(tmp_path / "out.xlsx"))
        )
        assert _rows(path, "People") == [["Who", "Next year"], ["Ann", 31], ["Bo", 42]]

    def test_dataframe(self, tmp_path):
        df = pd.DataFrame({"Name": ["Ann", "Bo"], "Age": [30, 41]})
        path = create_export().add_sheet("People", df).write_to(str(tmp_path / "out.xlsx"))
        assert _rows(path, "People") == [["Name", "Age"], ["Ann", 30], ["Bo", 41]]

    def test_dataframe_with_schema(self, tmp_path):
        df = pd.DataFrame({"Name": ["Ann", "Bo"], "Age": [30, 41]})
        path = (
            create_export()
            .add_sheet("People", df, schema=["Name", "Age"])
            .add_sheet("Renamed", df, schema={"Who": "Name", "Next year": lambda r: r["Age"] + 1})
            .write_to(str(tmp_path / "out.xlsx"))
        )
        assert _rows(path, "People") == [["Name", "Age"], ["Ann", 30], ["Bo", 41]]
        assert _rows(path, "Renamed") == [["Who", "Next year"], ["Ann", 31], ["Bo", 42]]

    def test_dataframe_with_schema_skips_nothing(self):
        df = pd.DataFrame({"Name": ["Ann", "Bo"], "Age": [30, 41]})
        export = create_export().add_sheet("People", df, schema=["Name", "Age"], on_error="skip")
        assert len(export.workbook.sheets[0].rows) == 2

    def test_oversized_integer_fails_at_registration(self, tmp_path):
        export = create_export()
        with pytest.raises(ProjectionError):
            export.add_sheet("S", [{"n": 10 ** 400}])
        assert export.sheet_names == []

    def test_empty_records_write_header_only(self, tmp_path):
        path = (
            create_export()
            .add_sheet("Nobody", [], schema=["Name", "Age"])
            .write_to(str(tmp_path / "out.xlsx"))
        )
        assert _rows(path, "Nobody") == [["Name", "Age"]]

    def test_logs_write(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="excel_export"):
            create_sample_export().write_to(str(tmp_path / "out.xls"))
        assert "Wrote 2 sheet(s)" in caplog.text

    def test_static_lookups(self):
        assert ExcelExport.get_format(".xlsm") is ExcelFormat.EXCEL_2007_MACRO
        assert ExcelExport.get_extension(ExcelFormat.EXCEL_2003) == ".xls"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures:
    def test_unrecognized_extension(self, tmp_path):
        target = tmp_path / "out.csvx"
        export = create_export().add_sheet("People", PEOPLE)
        with pytest.raises(UnrecognizedExtension):
            export.write_to(str(target))
        assert not target.exists()

    def test_duplicate_sheet(self):
        export = create_export().add_sheet("People", PEOPLE)
        with pytest.raises(DuplicateSheetName):
            export.add_sheet("People", PEOPLE)
        assert export.sheet_names == ["People"]

    def test_invalid_sheet_name(self):
        with pytest.raises(InvalidSheetName):
            create_export().add_sheet("a/b", PEOPLE)

    def test_unsupported_record(self):
        with pytest.raises(UnsupportedFieldType):
            create_export().add_sheet("Numbers", [1, 2, 3])

    def test_projection_error_discards_sheet(self):
        export = create_export().add_sheet("People", PEOPLE)
        with pytest.raises(ProjectionError) as info:
            export.add_sheet("Broken", PEOPLE + [{"Name": "Cy"}])
        assert info.value.column == "Age"
        assert info.value.row_index == 2
        assert export.sheet_names == ["People"]
        export.add_sheet("Broken", PEOPLE)

    def test_every_failure_is_an_export_error(self, tmp_path):
        with pytest.raises(ExportError):
            create_export().write_to(str(tmp_path / "out.xlsx"))


# ---------------------------------------------------------------------------
# Projection policy and configuration
# ---------------------------------------------------------------------------

class TestPolicy:
    records = PEOPLE + [{"Name": "Cy"}, {"Name": "Di", "Age": 7}]

    def test_skip_per_sheet(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            path = (
                create_export()
                .add_sheet("People", self.records, on_error="skip")
                .write_to(str(tmp_path / "out.xlsx"))
            )
        assert _rows(path, "People")[1:] == [["Ann", 30], ["Bo", 41], ["Di", 7]]
        assert "Skipping record 2" in caplog.text

    def test_skip_from_overrides(self):
        export = create_export(on_projection_error="skip").add_sheet("People", self.records)
        assert len(export.workbook.sheets[0].rows) == 3

    def test_per_sheet_policy_wins(self):
        export = create_export(on_projection_error="skip")
        with pytest.raises(ProjectionError):
            export.add_sheet("People", self.records, on_error="raise")

    def test_config_file(self, tmp_path):
        config = tmp_path / "export.yaml"
        config.write_text("on_projection_error: skip\nfsync: false\n", encoding="utf-8")
        export = create_export(str(config))
        assert export.config["fsync"] is False
        export.add_sheet("People", self.records)
        assert len(export.workbook.sheets[0].rows) == 3
