"""
Main OCR Engine Module.

This module provides the OCREngine class, the single entry point the
acquisition stage uses for optical recognition. It owns one backend
instance, created lazily on first use, and applies the caller's deadline
to every recognition call.

Usage:
    from invoice_pipeline.ocr_engine import OCREngine, Deadline

    engine = OCREngine()
    result = engine.recognize(image, "scan.png", deadline=Deadline(30000))
    print(result.text)

An OCREngine is not shared between threads; each pipeline worker builds
its own.
"""

from typing import Optional

from PIL import Image

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import OCREngineNotAvailableError, OCRTimeoutError
from .deadline import Deadline
from .ocr_result import OCRResult
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    Unified interface for text recognition.

    Supported Backends:
        - tesseract: Tesseract OCR via pytesseract (default)

    Any object with an ``extract(image, timeout=..., source=...)`` method
    returning an OCRResult can be injected as ``backend``.

    Attributes:
        backend_name: Name of the configured OCR backend

    Example:
        >>> engine = OCREngine()
        >>> result = engine.recognize(image, "invoice.pdf")
        >>> print(f"Average confidence: {result.average_confidence:.1f}%")
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(self, backend=None, backend_name: Optional[str] = None) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: Optional ready-made backend instance.
            backend_name: Backend to build on first use. If None, uses
                          ``ocr.engine`` from configuration.
        """
        self.backend_name = backend_name or get_config("ocr.engine", "tesseract")
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"
        self._backend = backend

    @property
    def backend(self):
        """
        The active backend, initialized on first access.

        Raises:
            OCREngineNotAvailableError: If the backend cannot be initialized.
        """
        if self._backend is None:
            self._backend = self._initialize_backend()
            logger.info(f"OCR engine initialized with backend: {self.backend_name}")
        return self._backend

    def _initialize_backend(self):
        if self.backend_name == "tesseract":
            return TesseractBackend()

        raise OCREngineNotAvailableError(self.backend_name)

    def is_available(self) -> bool:
        """Return True if the backend can be initialized."""
        try:
            return self.backend is not None
        except OCREngineNotAvailableError:
            return False

    def recognize(self, image: Image.Image, source: str = "image", deadline: Optional[Deadline] = None) -> OCRResult:
        """
        Recognize the text of one image within the caller's deadline.

        Args:
            image: PIL Image to recognize.
            source: Label used in errors and log lines.
            deadline: Optional Deadline; the remaining budget is handed to
                      the backend as its timeout.

        Returns:
            OCRResult for the image.

        Raises:
            OCRTimeoutError: If the deadline expires before or during the call.
            OCRProcessingError: If the backend fails.
            OCREngineNotAvailableError: If no backend is installed.
        """
        backend = self.backend

        if deadline is None:
            return backend.extract(image, timeout=0, source=source)

        deadline.check(source)
        try:
            # pytesseract treats 0 as "no limit"
            return backend.extract(image, timeout=max(deadline.remaining(), 0.01), source=source)
        except OCRTimeoutError:
            raise OCRTimeoutError(source, deadline.timeout_seconds)
