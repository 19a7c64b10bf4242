"""
Tests for the batch coordinator: request gate, ordering, per-file error
isolation and end-to-end extraction.
"""

import threading

import pytest

from conftest import INVOICE_TEXT, ScriptedOCREngine, pdf_input
from invoice_pipeline.acquisition import AcquisitionOrchestrator
from invoice_pipeline.extraction import DocumentType
from invoice_pipeline.input_handler import RawInput
from invoice_pipeline.pipeline import ExtractionMode, PipelineCoordinator, TierPolicy
from invoice_pipeline.pipeline.coordinator import GENERIC_FAILURE_MESSAGE, ocr_confidence_note
from invoice_pipeline.utils.exceptions import BatchValidationError


class RepeatingOCREngine(ScriptedOCREngine):
    """Returns the same text for every call."""

    def __init__(self, text):
        super().__init__()
        self.text = text

    def recognize(self, image, source="image", deadline=None):
        self.texts = [self.text]
        return super().recognize(image, source, deadline)


class ExplodingOrchestrator:
    def acquire(self, raw, policy, use_ocr=False):
        raise RuntimeError("internal path /var/lib/secret leaked")


class HoldFirstOrchestrator:
    """Holds the first file until the last one has been acquired."""

    def __init__(self, release: threading.Event, finished: list) -> None:
        self.inner = AcquisitionOrchestrator(ocr_engine=ScriptedOCREngine())
        self.release = release
        self.finished = finished

    def acquire(self, raw, policy, use_ocr=False):
        if raw.name == "a.pdf":
            self.release.wait(timeout=10)
        acquired = self.inner.acquire(raw, policy, use_ocr)
        self.finished.append(raw.name)
        if raw.name == "d.pdf":
            self.release.set()
        return acquired


class TestBatchValidation:
    """Tests for the batch-level gate."""

    def setup_method(self):
        self.coordinator = PipelineCoordinator()

    def test_too_many_files(self, free_policy):
        inputs = [pdf_input(f"invoice_{i}.pdf", INVOICE_TEXT) for i in range(6)]

        with pytest.raises(BatchValidationError) as exc_info:
            self.coordinator.process_batch(inputs, free_policy)
        assert exc_info.value.details["limit"] == 5
        assert exc_info.value.details["received"] == 6

    def test_empty_batch(self, free_policy):
        with pytest.raises(BatchValidationError, match="No files provided"):
            self.coordinator.process_batch([], free_policy)

    def test_ocr_batch_limit(self, premium_policy):
        inputs = [pdf_input(f"scan_{i}.pdf", "") for i in range(4)]

        with pytest.raises(BatchValidationError, match="Maximum 3 files allowed for OCR processing"):
            self.coordinator.process_batch(inputs, premium_policy, ExtractionMode.OCR)


class TestPipelineCoordinator:
    """Tests for per-file processing."""

    def setup_method(self):
        self.coordinator = PipelineCoordinator(
            orchestrator_factory=lambda: AcquisitionOrchestrator(ocr_engine=RepeatingOCREngine(INVOICE_TEXT))
        )

    def test_extracts_invoice(self, invoice_pdf, free_policy):
        batch = self.coordinator.process_batch([invoice_pdf], free_policy)
        result = batch.results[0]

        assert result.error is None
        assert result.invoice_number == "INV-2024-001"
        assert result.date == "03/15/2024"
        assert result.vendor == "Acme Supplies Ltd"
        assert result.subtotal == "80.00"
        assert result.tax_rate == "8%"
        assert result.tax is None
        assert result.total == "86.40"
        assert [item.description for item in result.line_items] == ["Widget A", "Gadget Pro"]
        assert result.document_type is DocumentType.STANDARD_INVOICE
        assert result.acquisition_method == "native-text"
        assert result.notes is None

    def test_results_follow_input_order(self, free_policy):
        inputs = [
            pdf_input("a.pdf", INVOICE_TEXT),
            RawInput.from_bytes("b.pdf", b""),
            pdf_input("c.pdf", "p. 1"),
            RawInput.from_bytes("d.docx", b"PK\x03\x04"),
            pdf_input("e.pdf", INVOICE_TEXT.replace("INV-2024-001", "INV-2024-005")),
        ]
        batch = self.coordinator.process_batch(inputs, free_policy)

        assert [r.filename for r in batch.results] == ["a.pdf", "b.pdf", "c.pdf", "d.docx", "e.pdf"]
        assert batch.total_files == 5
        assert batch.succeeded == 2
        assert batch.failed == 3
        assert batch.results[1].error == "PDF file is empty"
        assert batch.results[3].error == "File is not a PDF"
        assert batch.results[4].invoice_number == "INV-2024-005"

    def test_order_kept_when_first_file_finishes_last(self, free_policy):
        release = threading.Event()
        finished = []
        coordinator = PipelineCoordinator(
            orchestrator_factory=lambda: HoldFirstOrchestrator(release, finished), max_workers=2
        )
        inputs = [
            pdf_input(name, INVOICE_TEXT.replace("INV-2024-001", number))
            for name, number in [("a.pdf", "INV-1"), ("b.pdf", "INV-2"), ("c.pdf", "INV-3"), ("d.pdf", "INV-4")]
        ]

        batch = coordinator.process_batch(inputs, free_policy)

        assert finished[-1] == "a.pdf"
        assert [r.filename for r in batch.results] == ["a.pdf", "b.pdf", "c.pdf", "d.pdf"]
        assert [r.invoice_number for r in batch.results] == ["INV-1", "INV-2", "INV-3", "INV-4"]

    def test_error_result_carries_only_filename_and_error(self, free_policy):
        batch = self.coordinator.process_batch([RawInput.from_bytes("empty.pdf", b"")], free_policy)

        assert batch.results[0].to_dict() == {"filename": "empty.pdf", "error": "PDF file is empty"}

    def test_file_too_large(self, free_policy):
        raw = RawInput.from_bytes("huge.pdf", b"%PDF" + b"0" * (3 * 1024 * 1024))
        batch = self.coordinator.process_batch([raw], free_policy)

        assert batch.results[0].error == "File is too large (max 2MB for free plan)"

    def test_image_on_free_plan(self, free_policy):
        raw = RawInput.from_bytes("receipt.jpg", b"\xff\xd8\xff")
        batch = self.coordinator.process_batch([raw], free_policy, ExtractionMode.OCR)

        assert "not available on the free plan" in batch.results[0].error

    def test_unexpected_error_is_generic(self, invoice_pdf, free_policy):
        coordinator = PipelineCoordinator(orchestrator_factory=ExplodingOrchestrator)
        batch = coordinator.process_batch([invoice_pdf], free_policy)

        assert batch.results[0].error == GENERIC_FAILURE_MESSAGE

    def test_ocr_fallback_adds_note(self, scanned_pdf, premium_policy):
        batch = self.coordinator.process_batch([scanned_pdf], premium_policy, ExtractionMode.OCR)
        result = batch.results[0]

        assert result.acquisition_method == "pdf-ocr-fallback"
        assert result.total == "86.40"
        assert result.notes == "[OCR: Medium confidence]"
        assert batch.ocr_processed == 1

    def test_no_markers_is_partial_success(self, free_policy):
        text = "Dear customer, thank you for visiting our store last week. We hope to see you again soon."
        batch = self.coordinator.process_batch([pdf_input("letter.pdf", text)], free_policy)
        result = batch.results[0]

        assert result.error is None
        assert result.extracted_fields == {}
        assert result.line_items is None

    def test_enhanced_mode_purchase_order(self, premium_policy):
        text = (
            "PURCHASE ORDER\n"
            "PO Number: PO-7781\n"
            "Supplier: Northwind Traders\n"
            "Delivery Date: 04/01/2024\n"
            "Total: 900.00"
        )
        batch = self.coordinator.process_batch([pdf_input("po.pdf", text)], premium_policy, ExtractionMode.ENHANCED)
        result = batch.results[0]

        assert result.document_type is DocumentType.PURCHASE_ORDER
        assert result.extra_fields["po_number"] == "PO-7781"
        assert result.extra_fields["delivery_date"] == "04/01/2024"
        assert result.vendor == "Northwind Traders"

    def test_idempotent(self, invoice_pdf, free_policy):
        first = self.coordinator.process_batch([invoice_pdf], free_policy)
        second = self.coordinator.process_batch([invoice_pdf], free_policy)

        assert first.results[0].to_dict() == second.results[0].to_dict()

    def test_one_orchestrator_per_worker(self, free_policy):
        created = []

        def factory():
            orchestrator = AcquisitionOrchestrator(ocr_engine=ScriptedOCREngine())
            created.append(orchestrator)
            return orchestrator

        coordinator = PipelineCoordinator(orchestrator_factory=factory, max_workers=2)
        inputs = [pdf_input(f"invoice_{i}.pdf", INVOICE_TEXT) for i in range(5)]
        coordinator.process_batch(inputs, free_policy)

        assert 1 <= len(created) <= 2

    def test_batch_to_dict(self, invoice_pdf, free_policy):
        data = self.coordinator.process_batch([invoice_pdf], free_policy).to_dict()

        assert data["metadata"]["total_files"] == 1
        assert data["metadata"]["successful_extractions"] == 1
        assert data["metadata"]["plan"] == "free"
        assert data["extractions"][0]["line_items"][0] == {
            "description": "Widget A", "quantity": 3.0, "unit_price": 10.0, "amount": 30.0
        }


class TestConfidenceNote:

    def test_thresholds(self):
        assert ocr_confidence_note("x" * 1001) == "[OCR: High confidence]"
        assert ocr_confidence_note("x" * 101) == "[OCR: Medium confidence]"
        assert ocr_confidence_note("x" * 20) == "[OCR: Low confidence]"
