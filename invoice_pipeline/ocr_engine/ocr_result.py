"""
OCR Result Data Classes.

This module defines data structures for OCR output, providing a
standardized format regardless of the backend that produced it.

Classes:
    OCRWord: Individual recognized word
    OCRLine: Line of text containing multiple words
    OCRResult: Complete OCR output for one image
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class OCRWord:
    """
    Represents a single word/token extracted by OCR.

    Attributes:
        text: The recognized text content
        confidence: OCR confidence score (0-100)
        left: Horizontal position in pixels, used for ordering within a line
        line_key: (block, paragraph, line) numbers assigned by the engine

    Example:
        >>> word = OCRWord(text="Invoice", confidence=95.5)
    """
    text: str
    confidence: float = 0.0
    left: int = 0
    line_key: Tuple[int, int, int] = (0, 0, 0)

    def __repr__(self) -> str:
        return f"OCRWord('{self.text}', conf={self.confidence:.1f})"


@dataclass
class OCRLine:
    """
    Represents a line of text containing multiple words.

    Example:
        >>> line = OCRLine(words=[word1, word2, word3])
        >>> print(line.text)
        "Invoice Number: 12345"
    """
    words: List[OCRWord] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Get the full text of the line."""
        return ' '.join(word.text for word in self.words)

    @property
    def average_confidence(self) -> float:
        if not self.words:
            return 0.0
        return sum(word.confidence for word in self.words) / len(self.words)


@dataclass
class OCRResult:
    """
    Complete OCR output for an image.

    Lines are kept in reading order so that ``text`` reproduces the
    layout the field patterns and the line-item parser expect: one
    physical line per text line.

    Attributes:
        lines: Recognized lines in reading order
        engine: Name of the backend that produced the result
        processing_time: Seconds spent in the backend

    Example:
        >>> result = engine.recognize(image, "scan.png")
        >>> print(result.text)
        >>> print(f"{result.average_confidence:.1f}%")
    """
    lines: List[OCRLine] = field(default_factory=list)
    engine: str = "tesseract"
    processing_time: float = 0.0

    @classmethod
    def from_text(cls, text: str, engine: str = "text", confidence: float = 100.0) -> 'OCRResult':
        """Build a result from plain text, one OCRLine per non-blank line."""
        lines = []
        for line_text in text.splitlines():
            if line_text.strip():
                lines.append(OCRLine(words=[OCRWord(token, confidence) for token in line_text.split()]))
        return cls(lines=lines, engine=engine)

    @property
    def text(self) -> str:
        """Full recognized text, newline separated."""
        return '\n'.join(line.text for line in self.lines if line.words)

    @property
    def word_count(self) -> int:
        return sum(len(line.words) for line in self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def average_confidence(self) -> float:
        """Mean word confidence across the whole image (0-100)."""
        words = [word for line in self.lines for word in line.words]
        if not words:
            return 0.0
        return sum(word.confidence for word in words) / len(words)

    def __repr__(self) -> str:
        return (
            f"OCRResult(words={self.word_count}, lines={self.line_count}, "
            f"avg_conf={self.average_confidence:.1f}%)"
        )
