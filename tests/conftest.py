"""
Shared fixtures for the pipeline tests.

PDFs are built in memory with PyMuPDF and OCR goes through scripted
recognizers, so the suite needs neither sample files nor a Tesseract
binary.
"""

from typing import List, Optional

import fitz  # PyMuPDF
import pytest

from config import ConfigurationManager
from invoice_pipeline.input_handler import RawInput
from invoice_pipeline.ocr_engine import OCRResult
from invoice_pipeline.pipeline import TierPolicy
from invoice_pipeline.utils.exceptions import OCRProcessingError


def build_pdf(*pages: str) -> bytes:
    """Build a PDF with one page per argument; an empty string makes a blank page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((50, 72), text, fontsize=11)
    content = doc.tobytes()
    doc.close()
    return content


def pdf_input(name: str, *pages: str) -> RawInput:
    return RawInput.from_bytes(name, build_pdf(*pages))


class ScriptedOCREngine:
    """
    Stand-in for OCREngine that returns canned text, one entry per call.

    An entry that is an exception instance is raised instead.
    """

    def __init__(self, texts: Optional[List] = None) -> None:
        self.texts = list(texts or [])
        self.calls = []

    def recognize(self, image, source="image", deadline=None):
        self.calls.append((source, image.size))
        entry = self.texts.pop(0) if self.texts else ""
        if isinstance(entry, Exception):
            raise entry
        return OCRResult.from_text(entry, engine="scripted")


INVOICE_TEXT = (
    "ACME SUPPLIES\n"
    "Invoice #INV-2024-001\n"
    "Date: 03/15/2024\n"
    "Vendor: Acme Supplies Ltd\n"
    "Description Qty Price Amount\n"
    "Widget A 3 10.00 30.00\n"
    "Gadget Pro 2 25.00 50.00\n"
    "Subtotal: 80.00\n"
    "Tax (8%): 6.40\n"
    "Total: $86.40"
)


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from the bundled settings.yaml."""
    monkeypatch.delenv("INVOICE_PIPELINE_CONFIG", raising=False)
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def free_policy() -> TierPolicy:
    return TierPolicy.from_plan("free")


@pytest.fixture
def premium_policy() -> TierPolicy:
    return TierPolicy.from_plan("premium")


@pytest.fixture
def invoice_pdf() -> RawInput:
    return pdf_input("invoice.pdf", INVOICE_TEXT)


@pytest.fixture
def scanned_pdf() -> RawInput:
    """A PDF whose text layer is far below the sufficiency threshold."""
    return pdf_input("scan.pdf", "p. 1")


@pytest.fixture
def ocr_failure() -> OCRProcessingError:
    return OCRProcessingError("scan.pdf", "engine crashed")
