"""
Post-Processing Module for the Invoice Extraction Pipeline.

This module provides functionality for:
    - Amount normalization (currency symbols, thousands separators)
    - Date parsing
    - Field validity checks applied to every pattern capture
    - Line item row validation
"""

from .validators import (
    AmountValidator,
    DateValidator,
    FieldKind,
    FieldValidator,
    IdentifierValidator,
    LineItemValidator,
    NameValidator,
)
from .normalizers import AmountNormalizer, DateNormalizer, TextNormalizer

__all__ = [
    'FieldKind',
    'FieldValidator',
    'AmountValidator',
    'NameValidator',
    'IdentifierValidator',
    'DateValidator',
    'LineItemValidator',
    'AmountNormalizer',
    'DateNormalizer',
    'TextNormalizer'
]
