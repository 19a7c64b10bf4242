"""
Text Acquisition Orchestrator.

Decides how the text of one uploaded file is obtained:

    PDF:    native text layer -> (insufficient or undecodable) -> PDF OCR -> error
    Image:  direct image OCR -> error

The cheap text-layer read always goes first; OCR only runs when the
caller asked for OCR mode and the tier enables it. Every OCR attempt runs
against its own Deadline built from the tier's ``ocr_timeout_ms``.

Usage:
    orchestrator = AcquisitionOrchestrator()
    acquired = orchestrator.acquire(raw_input, policy, use_ocr=True)
    print(acquired.method, acquired.char_count)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config import get_config
from invoice_pipeline.input_handler import (
    ImageProcessor,
    PageRasterizer,
    RawInput,
    TextLayerExtractor,
)
from invoice_pipeline.ocr_engine import Deadline, OCREngine
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import (
    CorruptedFileError,
    EmptyFileError,
    NoReadableTextError,
    OCRProcessingError,
    UnsupportedFileTypeError,
)

logger = get_logger(__name__)


class AcquisitionMethod(str, Enum):
    """How the text of a document was obtained."""

    NATIVE_TEXT = "native-text"
    PDF_OCR_FALLBACK = "pdf-ocr-fallback"
    DIRECT_IMAGE_OCR = "direct-image-ocr"

    @property
    def is_ocr(self) -> bool:
        return self is not AcquisitionMethod.NATIVE_TEXT


@dataclass(frozen=True)
class AcquiredText:
    """
    Text obtained from one input.

    Attributes:
        source_name: Filename of the input
        text: Acquired text, trimmed
        method: Strategy that produced the text
        char_count: len(text)
        page_count: Pages (or images) that contributed text
    """
    source_name: str
    text: str
    method: AcquisitionMethod
    char_count: int
    page_count: int = 1


class AcquisitionOrchestrator:
    """
    Runs the acquisition strategies for one input at a time.

    An orchestrator holds its own OCR engine and is meant to be used by a
    single worker thread. All collaborators can be injected, which is how
    the tests swap Tesseract for a scripted recognizer.

    Attributes:
        sufficiency_threshold: Minimum trimmed native text length
        ocr_max_pages: Leading pages rasterized for OCR
        ocr_char_budget: OCR stops once this many characters are collected
        ocr_min_chars: Shorter OCR output counts as unreadable
    """

    def __init__(
        self,
        text_extractor: Optional[TextLayerExtractor] = None,
        rasterizer: Optional[PageRasterizer] = None,
        image_processor: Optional[ImageProcessor] = None,
        ocr_engine: Optional[OCREngine] = None,
    ) -> None:
        self.text_extractor = text_extractor or TextLayerExtractor()
        self.rasterizer = rasterizer or PageRasterizer()
        self.image_processor = image_processor or ImageProcessor()
        self.ocr_engine = ocr_engine or OCREngine()

        self.sufficiency_threshold = get_config("acquisition.sufficiency_threshold", 50)
        self.ocr_max_pages = get_config("acquisition.ocr.max_pages", 3)
        self.ocr_char_budget = get_config("acquisition.ocr.char_budget", 5000)
        self.ocr_min_chars = get_config("acquisition.ocr.min_chars", 20)

    def acquire(self, raw: RawInput, policy, use_ocr: bool = False) -> AcquiredText:
        """
        Obtain the text of one input.

        Args:
            raw: The uploaded file.
            policy: TierPolicy of the caller.
            use_ocr: True when the request runs in OCR mode.

        Returns:
            AcquiredText describing the text and the strategy used.

        Raises:
            EmptyFileError: If the content is zero bytes.
            CorruptedFileError: If the document cannot be decoded.
            NoReadableTextError: If no strategy produced usable text.
            OCRTimeoutError: If the OCR attempt exceeded its deadline.
            OCREngineNotAvailableError: If OCR is needed but not installed.
        """
        if not raw.content:
            raise EmptyFileError(raw.name, kind="Image" if raw.is_image else "PDF")

        ocr_allowed = use_ocr and policy.ocr_enabled

        if raw.is_image:
            if not ocr_allowed:
                raise UnsupportedFileTypeError(
                    raw.name, raw.media_type, ["application/pdf"],
                    hint="Image files require OCR mode"
                )
            return self._direct_image_ocr(raw, policy)

        native_error = None
        native_text = ""
        try:
            layer = self.text_extractor.extract(raw.content, raw.name, max_pages=policy.max_pdf_pages)
            native_text = layer.text
            if len(native_text) >= self.sufficiency_threshold:
                logger.info(f"{raw.name}: using native text layer ({len(native_text)} chars)")
                return AcquiredText(
                    source_name=raw.name,
                    text=native_text,
                    method=AcquisitionMethod.NATIVE_TEXT,
                    char_count=len(native_text),
                    page_count=layer.page_count,
                )
        except CorruptedFileError as e:
            native_error = e

        if not ocr_allowed:
            if native_error is not None:
                raise native_error
            raise NoReadableTextError(
                raw.name,
                self._insufficient_text_message(policy),
                char_count=len(native_text),
            )

        if native_error is not None:
            logger.warning(f"{raw.name}: native text extraction failed, falling back to OCR")
        else:
            logger.info(
                f"{raw.name}: native text insufficient ({len(native_text)} chars < "
                f"{self.sufficiency_threshold}), falling back to OCR"
            )

        return self._pdf_ocr(raw, policy)

    def _insufficient_text_message(self, policy) -> str:
        if policy.ocr_enabled:
            return "No readable text found in PDF. For scanned documents, enable OCR mode."
        return "No readable text found in PDF. Scanned documents require OCR mode on the premium plan."

    def _pdf_ocr(self, raw: RawInput, policy) -> AcquiredText:
        deadline = Deadline(policy.ocr_timeout_ms)
        images = self.rasterizer.rasterize(
            raw.content, raw.name, max_pages=self.ocr_max_pages, deadline=deadline
        )
        logger.debug(f"{raw.name}: rasterized {len(images)} page(s) for OCR")

        page_texts = []
        collected = 0
        for page_num, image in enumerate(images, 1):
            deadline.check(raw.name)
            try:
                result = self.ocr_engine.recognize(image, raw.name, deadline=deadline)
            except OCRProcessingError as e:
                logger.warning(f"{raw.name}: OCR failed on page {page_num}, skipping: {e}")
                continue

            page_text = result.text.strip()
            if page_text:
                page_texts.append(page_text)
                collected += len(page_text)
                logger.debug(f"{raw.name}: OCR page {page_num} gave {len(page_text)} chars")

            if collected >= self.ocr_char_budget:
                logger.debug(f"{raw.name}: OCR character budget reached after page {page_num}")
                break

        text = "\n".join(page_texts).strip()
        self._require_readable(raw.name, text)

        logger.info(f"{raw.name}: OCR fallback extracted {len(text)} chars from {len(page_texts)} page(s)")
        return AcquiredText(
            source_name=raw.name,
            text=text,
            method=AcquisitionMethod.PDF_OCR_FALLBACK,
            char_count=len(text),
            page_count=len(page_texts),
        )

    def _direct_image_ocr(self, raw: RawInput, policy) -> AcquiredText:
        deadline = Deadline(policy.ocr_timeout_ms)
        image = self.image_processor.load(raw.content, raw.name)

        result = self.ocr_engine.recognize(image, raw.name, deadline=deadline)
        text = result.text.strip()
        self._require_readable(raw.name, text)

        logger.info(
            f"{raw.name}: image OCR extracted {len(text)} chars "
            f"(avg confidence {result.average_confidence:.1f}%)"
        )
        return AcquiredText(
            source_name=raw.name,
            text=text,
            method=AcquisitionMethod.DIRECT_IMAGE_OCR,
            char_count=len(text),
            page_count=1,
        )

    def _require_readable(self, source_name: str, text: str) -> None:
        if len(text) < self.ocr_min_chars:
            raise NoReadableTextError(
                source_name,
                "OCR could not extract any readable text",
                char_count=len(text),
            )
