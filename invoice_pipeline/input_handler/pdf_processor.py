"""
PDF Processor Module.

This module handles the two things the pipeline needs from a PDF:
    - Native text-layer extraction (TextLayerExtractor)
    - Rasterizing leading pages into images for OCR (PageRasterizer)

Both work on the in-memory bytes of an upload. PyMuPDF is the primary
decoder; pdfplumber is the alternate text decoder and pdf2image (Poppler)
the alternate rasterizer, so a document one library chokes on still has a
second chance before it is reported as corrupted.
"""

import io
from dataclasses import dataclass
from typing import List, Optional

import fitz  # PyMuPDF
import pdfplumber
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFPopplerTimeoutError
from PIL import Image

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import CorruptedFileError, OCRTimeoutError

# Initialize module logger
logger = get_logger(__name__)

OCR_CONVERSION_MESSAGE = (
    "PDF file format not supported for OCR image conversion. "
    "Try re-exporting the PDF or converting it to an image (PNG/JPEG)."
)


@dataclass(frozen=True)
class TextLayer:
    """Text decoded from a PDF's embedded text layer."""

    text: str
    page_count: int
    decoder: str


class TextLayerExtractor:
    """
    Extracts the embedded text layer of a digital PDF.

    Per-page text runs are concatenated in page order with newline
    separators. Pages that fail to decode are skipped; if the document
    itself cannot be opened by either decoder a CorruptedFileError is
    raised.

    Example:
        >>> extractor = TextLayerExtractor()
        >>> layer = extractor.extract(pdf_bytes, "invoice.pdf", max_pages=10)
        >>> print(layer.text[:80])
    """

    def extract(self, content: bytes, source_name: str, max_pages: int = 10) -> TextLayer:
        """
        Extract text from up to ``max_pages`` leading pages.

        Args:
            content: Raw PDF bytes.
            source_name: Filename used in log lines and errors.
            max_pages: Page cap from the caller's tier.

        Returns:
            TextLayer with the trimmed text and the number of pages that
            contributed text. The text may be empty.

        Raises:
            CorruptedFileError: If no decoder could open the document or it
                has no pages.
        """
        try:
            return self._extract_with_pymupdf(content, source_name, max_pages)
        except CorruptedFileError as primary_error:
            logger.warning(
                f"PyMuPDF could not read {source_name}, trying pdfplumber: "
                f"{primary_error.details.get('reason')}"
            )

        return self._extract_with_pdfplumber(content, source_name, max_pages)

    def _extract_with_pymupdf(self, content: bytes, source_name: str, max_pages: int) -> TextLayer:
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise CorruptedFileError(source_name, str(e))

        try:
            if doc.page_count == 0:
                raise CorruptedFileError(source_name, "PDF has no pages")

            page_texts = []
            for page_num in range(min(doc.page_count, max_pages)):
                try:
                    page_text = doc.load_page(page_num).get_text("text")
                except Exception as e:
                    logger.warning(f"Failed to read page {page_num + 1} of {source_name}: {e}")
                    continue
                if page_text and page_text.strip():
                    page_texts.append(page_text.strip())
        finally:
            doc.close()

        return TextLayer(text="\n".join(page_texts).strip(), page_count=len(page_texts), decoder="pymupdf")

    def _extract_with_pdfplumber(self, content: bytes, source_name: str, max_pages: int) -> TextLayer:
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                if not pdf.pages:
                    raise CorruptedFileError(source_name, "PDF has no pages")

                page_texts = []
                for index, page in enumerate(pdf.pages[:max_pages]):
                    try:
                        page_text = page.extract_text() or ""
                    except Exception as e:
                        logger.warning(f"pdfplumber failed on page {index + 1} of {source_name}: {e}")
                        continue
                    if page_text.strip():
                        page_texts.append(page_text.strip())
        except CorruptedFileError:
            raise
        except Exception as e:
            logger.error(f"All PDF decoders failed for {source_name}: {e}")
            raise CorruptedFileError(source_name, str(e))

        return TextLayer(text="\n".join(page_texts).strip(), page_count=len(page_texts), decoder="pdfplumber")


class PageRasterizer:
    """
    Renders the leading pages of a PDF into RGB images for OCR.

    The primary configuration renders with PyMuPDF at a zoom factor
    (``acquisition.ocr.render_scale``); if that produces nothing, the
    alternate configuration renders with pdf2image at
    ``acquisition.ocr.fallback_dpi``.

    Attributes:
        render_scale: Zoom factor for the PyMuPDF renderer.
        fallback_dpi: Resolution for the pdf2image renderer.
    """

    def __init__(self, render_scale: Optional[float] = None, fallback_dpi: Optional[int] = None) -> None:
        self.render_scale = render_scale or get_config("acquisition.ocr.render_scale", 2.0)
        self.fallback_dpi = fallback_dpi or get_config("acquisition.ocr.fallback_dpi", 150)

    def rasterize(self, content: bytes, source_name: str, max_pages: int = 3, deadline=None) -> List[Image.Image]:
        """
        Render up to ``max_pages`` leading pages.

        Args:
            content: Raw PDF bytes.
            source_name: Filename used in log lines and errors.
            max_pages: Number of leading pages to render.
            deadline: Optional Deadline checked between pages.

        Returns:
            Non-empty list of RGB PIL images in page order.

        Raises:
            CorruptedFileError: If both configurations fail.
            OCRTimeoutError: If the deadline expires while rendering.
        """
        try:
            images = self._render_with_pymupdf(content, source_name, max_pages, deadline)
            if images:
                return images
            reason = "no pages could be rendered"
        except CorruptedFileError as e:
            reason = e.details.get("reason")

        logger.warning(f"PyMuPDF rendering failed for {source_name} ({reason}), trying pdf2image")

        timeout = None
        if deadline is not None:
            deadline.check(source_name)
            timeout = deadline.remaining()

        try:
            images = convert_from_bytes(
                content,
                dpi=self.fallback_dpi,
                first_page=1,
                last_page=max_pages,
                fmt='png',
                timeout=timeout
            )
        except PDFPopplerTimeoutError:
            raise OCRTimeoutError(source_name, deadline.timeout_seconds)
        except Exception as e:
            logger.error(f"pdf2image rendering failed for {source_name}: {e}")
            raise CorruptedFileError(source_name, str(e), message=OCR_CONVERSION_MESSAGE)

        if not images:
            raise CorruptedFileError(source_name, "no pages rendered", message=OCR_CONVERSION_MESSAGE)

        return [img.convert('RGB') if img.mode != 'RGB' else img for img in images[:max_pages]]

    def _render_with_pymupdf(self, content: bytes, source_name: str, max_pages: int, deadline) -> List[Image.Image]:
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise CorruptedFileError(source_name, str(e))

        images = []
        try:
            matrix = fitz.Matrix(self.render_scale, self.render_scale)
            for page_num in range(min(doc.page_count, max_pages)):
                if deadline is not None:
                    deadline.check(source_name)
                try:
                    pix = doc.load_page(page_num).get_pixmap(matrix=matrix)
                    image = Image.open(io.BytesIO(pix.tobytes("png")))
                except Exception as e:
                    logger.warning(f"Failed to render page {page_num + 1} of {source_name}: {e}")
                    continue

                if image.mode != 'RGB':
                    image = image.convert('RGB')
                images.append(image)
        finally:
            doc.close()

        logger.debug(f"Rendered {len(images)} page(s) of {source_name} at scale {self.render_scale}")
        return images
