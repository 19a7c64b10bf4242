"""
Tests for file loading and the command-line entry point.
"""

import json

import pytest

from conftest import INVOICE_TEXT, build_pdf
from invoice_pipeline.input_handler import InputHandler
from main import EXIT_BATCH_REJECTED, EXIT_INPUT_ERROR, EXIT_OK, main, run_extraction


@pytest.fixture
def invoice_dir(tmp_path):
    folder = tmp_path / "invoices"
    folder.mkdir()
    (folder / "b_invoice.pdf").write_bytes(build_pdf(INVOICE_TEXT))
    (folder / "a_invoice.pdf").write_bytes(build_pdf(INVOICE_TEXT.replace("INV-2024-001", "INV-2024-002")))
    (folder / "notes.txt").write_text("not an invoice")
    return folder


class TestInputHandler:
    """Tests for InputHandler."""

    def setup_method(self):
        self.handler = InputHandler()

    def test_load_batch_sorted_and_filtered(self, invoice_dir):
        inputs = self.handler.load_batch(invoice_dir)

        assert [raw.name for raw in inputs] == ["a_invoice.pdf", "b_invoice.pdf"]
        assert all(raw.is_pdf for raw in inputs)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            self.handler.load(tmp_path / "missing.pdf")

    def test_collect_keeps_argument_order(self, invoice_dir):
        inputs = self.handler.collect([invoice_dir / "b_invoice.pdf", invoice_dir / "a_invoice.pdf"])
        assert [raw.name for raw in inputs] == ["b_invoice.pdf", "a_invoice.pdf"]


class TestRunExtraction:

    def test_directory(self, invoice_dir):
        batch = run_extraction([str(invoice_dir)], plan="free")

        assert batch.total_files == 2
        assert [r.invoice_number for r in batch.results] == ["INV-2024-002", "INV-2024-001"]


class TestMain:
    """Tests for exit codes and output files."""

    def test_success_writes_json(self, invoice_dir, tmp_path):
        output = tmp_path / "results.json"
        code = main(["--input", str(invoice_dir), "--output", str(output), "--quiet"])

        assert code == EXIT_OK
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["metadata"]["successful_extractions"] == 2

    def test_batch_rejected(self, tmp_path):
        folder = tmp_path / "many"
        folder.mkdir()
        for i in range(6):
            (folder / f"invoice_{i}.pdf").write_bytes(build_pdf(INVOICE_TEXT))

        code = main(["--input", str(folder), "--output", str(tmp_path / "out.csv"), "--quiet"])

        assert code == EXIT_BATCH_REJECTED
        assert not (tmp_path / "out.csv").exists()

    def test_missing_input(self, tmp_path):
        code = main(["--input", str(tmp_path / "nope.pdf"), "--quiet"])
        assert code == EXIT_INPUT_ERROR

    def test_csv_format_flag(self, invoice_dir, tmp_path):
        output = tmp_path / "export.dat"
        code = main(["--input", str(invoice_dir), "--output", str(output), "--format", "csv", "--quiet"])

        assert code == EXIT_OK
        # The exporter appends the format's extension
        assert (tmp_path / "export.dat.csv").exists()

    def test_unreadable_config(self, invoice_dir, tmp_path):
        code = main(["--input", str(invoice_dir), "--config", str(tmp_path / "missing.yaml"), "--quiet"])
        assert code == EXIT_INPUT_ERROR
