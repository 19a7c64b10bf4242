"""
CSV Export Module.

Flattens extraction results into rows, one per line item with the header
fields repeated on each. A file without line items contributes a single
summary row and a failed file a single error row. The same rows feed the
Excel exporter.
"""

import csv
import io
from pathlib import Path
from typing import Iterable, List, Optional, Union

from config import get_config
from invoice_pipeline.extraction.extraction_result import BatchResult, ExtractionResult
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.helpers import ensure_directory, generate_timestamp
from invoice_pipeline.utils.exceptions import ExportError

logger = get_logger(__name__)


CSV_HEADER = [
    "Filename",
    "Invoice Number",
    "Vendor",
    "Date",
    "Subtotal",
    "Tax",
    "Tax Rate",
    "Total",
    "Line Item Description",
    "Line Item Quantity",
    "Line Item Unit Price",
    "Line Item Amount",
    "Error",
]

NO_LINE_ITEMS = "No line items extracted"

Results = Union[BatchResult, ExtractionResult, Iterable[ExtractionResult]]


def _results_list(results: Results) -> List[ExtractionResult]:
    if isinstance(results, BatchResult):
        return list(results.results)
    if isinstance(results, ExtractionResult):
        return [results]
    return list(results)


def format_number(value: Optional[float]) -> str:
    """Render a quantity or amount; whole numbers lose the trailing .0"""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_rows(results: Results) -> List[List[str]]:
    """
    Flatten results into export rows (without the header row).

    Args:
        results: A BatchResult, a single result, or an iterable of results.

    Returns:
        Rows whose cells line up with CSV_HEADER.
    """
    rows = []
    for result in _results_list(results):
        if result.error is not None:
            rows.append([result.filename] + [""] * 11 + [result.error])
            continue

        header = [
            result.filename,
            result.invoice_number or "",
            result.vendor or "",
            result.date or "",
            result.subtotal or "",
            result.tax or "",
            result.tax_rate or "",
            result.total or "",
        ]

        if not result.line_items:
            rows.append(header + [NO_LINE_ITEMS, "", "", "", ""])
            continue

        for item in result.line_items:
            rows.append(header + [
                item.description,
                format_number(item.quantity),
                format_number(item.unit_price),
                format_number(item.amount),
                "",
            ])
    return rows


class CSVExporter:
    """
    Writes extraction results to CSV.

    Example:
        >>> exporter = CSVExporter()
        >>> path = exporter.export(batch, "march.csv")
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir or get_config("paths.output_dir", "outputs"))
        self.filename_pattern = get_config(
            "output.csv.filename_pattern", "invoice_extractions_{timestamp}.csv"
        )

    def to_string(self, results: Results) -> str:
        """Render results as CSV text."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        writer.writerows(build_rows(results))
        return buffer.getvalue()

    def export(
        self,
        results: Results,
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Write results to a CSV file.

        Args:
            results: Results to export.
            filename: Output filename (default: timestamped).
            output_dir: Output directory (default: ``paths.output_dir``).

        Returns:
            Path to the created file.

        Raises:
            ExportError: If the file cannot be written.
        """
        results = _results_list(results)
        target_dir = ensure_directory(output_dir or self.output_dir)
        filename = filename or self.filename_pattern.format(timestamp=generate_timestamp())
        if not filename.endswith(".csv"):
            filename += ".csv"
        filepath = target_dir / filename

        try:
            with open(filepath, "w", newline="", encoding="utf-8") as f:
                f.write(self.to_string(results))
        except OSError as e:
            raise ExportError(str(filepath), str(e))

        logger.info(f"Exported {len(results)} result(s) to {filepath}")
        return str(filepath)
