"""
Extraction Module for the Invoice Extraction Pipeline.

This module turns acquired text into structured data:
    - Document type classification
    - Pattern-based header field extraction
    - Line item table parsing
    - Result data classes (ExtractionResult, BatchResult, LineItem)
"""

from .extraction_result import BatchResult, DocumentType, ExtractionResult, LineItem
from .classifier import DocumentClassifier
from .patterns import FieldRule, RULES_BY_TYPE, STANDARD_INVOICE_RULES
from .field_extractor import FieldExtractor
from .line_items import LineItemParser

__all__ = [
    'BatchResult',
    'DocumentType',
    'ExtractionResult',
    'LineItem',
    'DocumentClassifier',
    'FieldRule',
    'RULES_BY_TYPE',
    'STANDARD_INVOICE_RULES',
    'FieldExtractor',
    'LineItemParser',
]
