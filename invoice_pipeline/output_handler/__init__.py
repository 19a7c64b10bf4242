"""
Output Handler Module for the Invoice Extraction Pipeline.

This module provides functionality for:
    - Flattening results into one row per line item
    - CSV and Excel file generation
    - JSON output of a whole batch
"""

from .handler import OutputHandler, SUPPORTED_FORMATS
from .csv_exporter import CSVExporter, CSV_HEADER, build_rows
from .excel_exporter import ExcelExporter

__all__ = ['OutputHandler', 'SUPPORTED_FORMATS', 'CSVExporter', 'CSV_HEADER', 'build_rows', 'ExcelExporter']
