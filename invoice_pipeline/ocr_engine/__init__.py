"""
OCR Engine Module for the Invoice Extraction Pipeline.

This module provides OCR functionality including:
    - Text extraction from rasterized pages and uploaded images
    - Line reconstruction in reading order
    - Per-attempt deadlines with subprocess cancellation

Backends:
    - Tesseract (pytesseract)
"""

from .engine import OCREngine
from .tesseract_backend import TesseractBackend
from .ocr_result import OCRResult, OCRWord, OCRLine
from .deadline import Deadline

__all__ = ['OCREngine', 'TesseractBackend', 'OCRResult', 'OCRWord', 'OCRLine', 'Deadline']
