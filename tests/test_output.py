"""
Tests for CSV, Excel and JSON output.
"""

import csv
import io
import json

import pytest
from openpyxl import load_workbook

from invoice_pipeline.extraction import BatchResult, ExtractionResult, LineItem
from invoice_pipeline.output_handler import CSV_HEADER, CSVExporter, ExcelExporter, OutputHandler, build_rows
from invoice_pipeline.utils.exceptions import ExportError


def sample_batch() -> BatchResult:
    results = [
        ExtractionResult(
            filename="a.pdf",
            invoice_number="INV-1",
            vendor="Acme Ltd",
            total="80.00",
            line_items=[
                LineItem("Widget A", 30.0, 3.0, 10.0),
                LineItem("Gadget Pro", 50.0, 2.0, 25.0),
            ],
            acquisition_method="native-text",
        ),
        ExtractionResult(filename="b.pdf", total="12.50", acquisition_method="pdf-ocr-fallback"),
        ExtractionResult.failure("c.pdf", "PDF file is empty"),
    ]
    return BatchResult.from_results(results, plan="premium", mode="ocr")


class TestBuildRows:
    """Tests for row flattening."""

    def setup_method(self):
        self.rows = build_rows(sample_batch())

    def test_one_row_per_line_item(self):
        assert len(self.rows) == 4
        assert [row[0] for row in self.rows] == ["a.pdf", "a.pdf", "b.pdf", "c.pdf"]

    def test_header_fields_repeated(self):
        assert self.rows[0][1] == self.rows[1][1] == "INV-1"
        assert self.rows[0][7] == self.rows[1][7] == "80.00"

    def test_line_item_cells(self):
        assert self.rows[0][8:12] == ["Widget A", "3", "10", "30"]

    def test_summary_row(self):
        assert self.rows[2][7] == "12.50"
        assert self.rows[2][8] == "No line items extracted"

    def test_error_row(self):
        assert self.rows[3][-1] == "PDF file is empty"
        assert all(cell == "" for cell in self.rows[3][1:-1])

    def test_rows_match_header_width(self):
        assert all(len(row) == len(CSV_HEADER) for row in self.rows)


class TestCSVExporter:
    """Tests for CSV files."""

    def test_to_string_header(self):
        text = CSVExporter().to_string(sample_batch())
        rows = list(csv.reader(io.StringIO(text)))

        assert rows[0] == CSV_HEADER
        assert len(rows) == 5

    def test_export_writes_file(self, tmp_path):
        path = CSVExporter().export(sample_batch(), "out", output_dir=str(tmp_path))

        assert path.endswith("out.csv")
        with open(path, newline="", encoding="utf-8") as f:
            assert next(csv.reader(f))[0] == "Filename"


class TestExcelExporter:
    """Tests for Excel workbooks."""

    def test_sheets(self, tmp_path):
        path = ExcelExporter().export(sample_batch(), "out.xlsx", output_dir=str(tmp_path))
        workbook = load_workbook(path)

        assert workbook.sheetnames == ["Extracted Data", "Metadata"]
        data = workbook["Extracted Data"]
        assert [cell.value for cell in data[1]] == CSV_HEADER
        assert data.max_row == 5
        assert data.freeze_panes == "A2"

    def test_metadata_sheet(self, tmp_path):
        path = ExcelExporter().export(sample_batch(), "out.xlsx", output_dir=str(tmp_path))
        sheet = load_workbook(path)["Metadata"]

        assert sheet.cell(row=2, column=1).value == "a.pdf"
        assert sheet.cell(row=4, column=7).value == "Failed"
        labels = [sheet.cell(row=r, column=1).value for r in range(6, sheet.max_row + 1)]
        assert "Total Files" in labels
        assert "Ocr Processed" in labels


class TestOutputHandler:
    """Tests for format dispatch."""

    def setup_method(self):
        self.batch = sample_batch()

    def test_json(self, tmp_path):
        path = OutputHandler(str(tmp_path)).save(self.batch, fmt="json")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        assert data["metadata"]["total_files"] == 3
        assert data["metadata"]["ocr_processed"] == 1
        assert data["extractions"][2] == {"filename": "c.pdf", "error": "PDF file is empty"}

    def test_format_from_suffix(self, tmp_path):
        path = OutputHandler().save(self.batch, path=str(tmp_path / "report.xlsx"))
        assert path.endswith("report.xlsx")
        load_workbook(path)

    def test_default_is_csv(self, tmp_path):
        path = OutputHandler(str(tmp_path)).save(self.batch)
        assert path.endswith(".csv")

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ExportError):
            OutputHandler(str(tmp_path)).save(self.batch, fmt="pdf")
