"""
Tesseract OCR Backend.

This module provides OCR functionality using Tesseract (pytesseract).

Features:
    - Word-level confidence scores
    - Line grouping by Tesseract's block/paragraph/line numbering
    - Per-call timeouts that kill the Tesseract subprocess
    - Configurable Tesseract parameters

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package
"""

import time
from typing import Dict, List, Tuple

import pytesseract
from PIL import Image

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import (
    OCREngineNotAvailableError,
    OCRProcessingError,
    OCRTimeoutError,
)
from .ocr_result import OCRResult, OCRWord, OCRLine

# Initialize module logger
logger = get_logger(__name__)

# Message pytesseract raises when its subprocess is killed on timeout
TESSERACT_TIMEOUT_MESSAGE = "Tesseract process timeout"


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Tesseract must be installed on the system; construction fails with
    OCREngineNotAvailableError otherwise.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract command line options

    Example:
        >>> backend = TesseractBackend()
        >>> result = backend.extract(image, timeout=12.5)
        >>> print(f"Found {result.word_count} words")
    """

    def __init__(self) -> None:
        self.language = get_config("ocr.tesseract.lang", "eng")
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")

        self.version = self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (version={self.version}, lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> str:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            return str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            logger.error(f"Tesseract OCR not installed or not in PATH: {e}")
            raise OCREngineNotAvailableError("tesseract")

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def extract(self, image: Image.Image, timeout: float = 0, source: str = "image") -> OCRResult:
        """
        Recognize the text of an image.

        Args:
            image: PIL Image to process.
            timeout: Seconds before the Tesseract subprocess is killed;
                     0 disables the limit.
            source: Label used in errors and log lines.

        Returns:
            OCRResult with lines in reading order.

        Raises:
            OCRTimeoutError: If Tesseract is killed on timeout.
            OCRProcessingError: If Tesseract fails.
        """
        start_time = time.time()

        if image.mode != 'RGB':
            image = image.convert('RGB')

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=self._build_config(),
                output_type=pytesseract.Output.DICT,
                timeout=timeout
            )
        except RuntimeError as e:
            if TESSERACT_TIMEOUT_MESSAGE in str(e):
                raise OCRTimeoutError(source, timeout)
            logger.error(f"OCR processing failed for {source}: {e}")
            raise OCRProcessingError(source, str(e))
        except pytesseract.TesseractError as e:
            logger.error(f"OCR processing failed for {source}: {e}")
            raise OCRProcessingError(source, str(e))

        words = self._parse_tesseract_output(data)
        lines = self._group_into_lines(words)

        result = OCRResult(
            lines=lines,
            engine="tesseract",
            processing_time=time.time() - start_time
        )

        logger.debug(
            f"OCR completed for {source}: {result.word_count} words, "
            f"{result.line_count} lines, avg confidence {result.average_confidence:.1f}% "
            f"({result.processing_time:.2f}s)"
        )
        return result

    def _parse_tesseract_output(self, data: Dict[str, List]) -> List[OCRWord]:
        """
        Parse image_to_data output into OCRWord objects, skipping blanks.
        """
        words = []

        for i in range(len(data['text'])):
            text = data['text'][i]
            if not text or not text.strip():
                continue

            if data['width'][i] <= 0 or data['height'][i] <= 0:
                continue

            # Tesseract reports -1 for non-word elements
            conf = max(float(data['conf'][i]), 0.0)

            words.append(OCRWord(
                text=text.strip(),
                confidence=conf,
                left=data['left'][i],
                line_key=(data['block_num'][i], data['par_num'][i], data['line_num'][i])
            ))

        return words

    def _group_into_lines(self, words: List[OCRWord]) -> List[OCRLine]:
        """
        Group words into lines using Tesseract's own line numbering.

        Line numbers restart inside every block and paragraph, so the full
        (block, paragraph, line) triple is the grouping key.
        """
        line_groups: Dict[Tuple[int, int, int], List[OCRWord]] = {}

        for word in words:
            line_groups.setdefault(word.line_key, []).append(word)

        lines = []
        for key in sorted(line_groups):
            line_words = sorted(line_groups[key], key=lambda w: w.left)
            lines.append(OCRLine(words=line_words))

        return lines
