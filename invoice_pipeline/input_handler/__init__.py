"""
Input Handler Module for the Invoice Extraction Pipeline.

This module provides functionality for:
    - Representing uploads as immutable RawInput objects
    - Loading files and directories from disk
    - Extracting the native text layer of digital PDFs
    - Rasterizing PDF pages for OCR
    - Normalizing raster images for OCR

Supported formats:
    - PDF (digital and scanned)
    - Images: PNG, JPEG, TIFF, BMP, WEBP, GIF
"""

from .handler import InputHandler, RawInput, PDF_MEDIA_TYPE, IMAGE_MEDIA_TYPES
from .pdf_processor import TextLayerExtractor, PageRasterizer, TextLayer
from .image_processor import ImageProcessor

__all__ = [
    'InputHandler',
    'RawInput',
    'PDF_MEDIA_TYPE',
    'IMAGE_MEDIA_TYPES',
    'TextLayerExtractor',
    'PageRasterizer',
    'TextLayer',
    'ImageProcessor',
]
