"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the extraction
pipeline. The ``message`` of every exception is written for end users and
is what ends up in a failed ExtractionResult; internal context (decoder
errors, limits, paths) goes into ``details`` and is only logged.

Exception Hierarchy:
    InvoicePipelineError (base)
    ├── ConfigurationError
    ├── ValidationError
    │   ├── FileTooLargeError
    │   ├── UnsupportedFileTypeError
    │   └── BatchValidationError
    ├── AcquisitionError
    │   ├── EmptyFileError
    │   ├── CorruptedFileError
    │   └── NoReadableTextError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   ├── OCRProcessingError
    │   └── OCRTimeoutError
    └── OutputError
        └── ExportError
"""


class InvoicePipelineError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message, safe to show to end users.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Message suitable for display, without internal details."""
        return self.message

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoicePipelineError):
    """Raised when configuration is missing or invalid."""
    pass


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(InvoicePipelineError):
    """Base exception for tier-policy violations."""
    pass


class FileTooLargeError(ValidationError):
    """
    Raised when a file exceeds the size ceiling of the caller's plan.

    Example:
        >>> raise FileTooLargeError("scan.pdf", 3_000_000, 2_097_152, "free")
    """

    def __init__(self, filename: str, size: int, limit: int, plan: str, ocr: bool = False):
        limit_mb = limit / 1024 / 1024
        scope = "OCR processing" if ocr else f"{plan} plan"
        message = f"File is too large (max {limit_mb:g}MB for {scope})"
        details = {"filename": filename, "size": size, "limit": limit, "plan": plan}
        super().__init__(message, details)


class UnsupportedFileTypeError(ValidationError):
    """
    Raised when an unsupported media type is provided.

    Example:
        >>> raise UnsupportedFileTypeError("notes.docx", "application/msword", ["application/pdf"])
    """

    def __init__(self, filename: str, media_type: str, supported_types: list, hint: str = None):
        message = hint or "File is not a PDF"
        details = {"filename": filename, "media_type": media_type, "supported_types": supported_types}
        super().__init__(message, details)


class BatchValidationError(ValidationError):
    """
    Raised when the batch as a whole violates the tier policy.

    This is the only error that aborts a batch; per-file problems are
    reported inside the BatchResult instead.
    """

    def __init__(self, message: str, limit: int = None, received: int = None, plan: str = None):
        details = {"limit": limit, "received": received, "plan": plan}
        super().__init__(message, {k: v for k, v in details.items() if v is not None})


# =============================================================================
# ACQUISITION ERRORS
# =============================================================================

class AcquisitionError(InvoicePipelineError):
    """Base exception for text acquisition failures."""
    pass


class EmptyFileError(AcquisitionError):
    """Raised when the uploaded content is zero bytes."""

    def __init__(self, filename: str, kind: str = "PDF"):
        super().__init__(f"{kind} file is empty", {"filename": filename})


class CorruptedFileError(AcquisitionError):
    """Raised when a document cannot be decoded by any available decoder."""

    def __init__(self, filename: str, reason: str = None, message: str = None):
        message = message or (
            "PDF file format not supported or file is corrupted. "
            "Try re-exporting the PDF or converting it to an image."
        )
        super().__init__(message, {"filename": filename, "reason": reason})


class NoReadableTextError(AcquisitionError):
    """Raised when no usable text could be acquired from a document."""

    def __init__(self, filename: str, message: str = None, char_count: int = 0):
        message = message or "No readable text found in PDF"
        super().__init__(message, {"filename": filename, "char_count": char_count})


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(InvoicePipelineError):
    """Base exception for OCR-related errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not available."""

    def __init__(self, engine_name: str):
        message = "OCR engine is not available on this server"
        details = {"engine": engine_name}
        super().__init__(message, details)


class OCRProcessingError(OCRError):
    """Raised when OCR processing fails."""

    def __init__(self, source: str, reason: str = None):
        message = "OCR processing failed"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class OCRTimeoutError(OCRError):
    """Raised when an OCR attempt exceeds its deadline."""

    def __init__(self, source: str, timeout_seconds: float):
        message = (
            f"OCR processing timed out after {timeout_seconds:g}s. "
            "Please try again with fewer or smaller files."
        )
        details = {"source": source, "timeout_seconds": timeout_seconds}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(InvoicePipelineError):
    """Base exception for output handling errors."""
    pass


class ExportError(OutputError):
    """Raised when writing an export file fails."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to export results to: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'InvoicePipelineError',
    'ConfigurationError',
    'ValidationError',
    'FileTooLargeError',
    'UnsupportedFileTypeError',
    'BatchValidationError',
    'AcquisitionError',
    'EmptyFileError',
    'CorruptedFileError',
    'NoReadableTextError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'OCRTimeoutError',
    'OutputError',
    'ExportError',
]
