"""
Acquisition Module for the Invoice Extraction Pipeline.

Turns an uploaded file into text, choosing between the native PDF text
layer, OCR of rasterized PDF pages and direct OCR of images.
"""

from .orchestrator import AcquisitionOrchestrator, AcquiredText, AcquisitionMethod

__all__ = ['AcquisitionOrchestrator', 'AcquiredText', 'AcquisitionMethod']
