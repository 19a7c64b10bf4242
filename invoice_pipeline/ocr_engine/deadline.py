"""
Per-attempt OCR deadline.

An OCR attempt (all rasterized pages of one PDF, or one image) gets a
single time budget from the caller's tier. The Deadline is consulted
between steps and hands the remaining budget to every Tesseract call, so
an expired attempt stops its own subprocess without touching sibling
files in the batch.
"""

import time
from typing import Optional

from invoice_pipeline.utils.exceptions import OCRTimeoutError


class Deadline:
    """
    Monotonic countdown for one OCR attempt.

    Example:
        >>> deadline = Deadline(30000)
        >>> deadline.check("scan.pdf")
        >>> backend.extract(image, timeout=deadline.remaining())
    """

    def __init__(self, timeout_ms: int, clock=time.monotonic) -> None:
        self.timeout_ms = timeout_ms
        self._clock = clock
        self._expires_at = clock() + timeout_ms / 1000.0

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self, source: Optional[str] = None) -> None:
        """
        Raise if the budget is spent.

        Raises:
            OCRTimeoutError: If the deadline has passed.
        """
        if self.expired:
            raise OCRTimeoutError(source or "unknown", self.timeout_seconds)

    def __repr__(self) -> str:
        return f"Deadline(timeout_ms={self.timeout_ms}, remaining={self.remaining():.2f}s)"
