"""
Main Output Handler Module.

This module provides the OutputHandler class that writes a BatchResult in
one of the supported formats (CSV, Excel, JSON).
"""

from pathlib import Path
from typing import Optional

from config import get_config
from invoice_pipeline.extraction.extraction_result import BatchResult
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.helpers import ensure_directory, generate_timestamp
from invoice_pipeline.utils.exceptions import ExportError
from .csv_exporter import CSVExporter
from .excel_exporter import ExcelExporter

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("csv", "xlsx", "json")


class OutputHandler:
    """
    Unified output handler for batch results.

    Exporters are created on first use.

    Example:
        >>> handler = OutputHandler()
        >>> handler.save(batch, fmt="xlsx")
        'outputs/invoice_extractions_20260121_143022.xlsx'
        >>> handler.save(batch, path="march.json")
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir or get_config("paths.output_dir", "outputs"))
        self.json_indent = get_config("output.json.indent", 2)

        self._csv_exporter = None
        self._excel_exporter = None

    @property
    def csv_exporter(self) -> CSVExporter:
        if self._csv_exporter is None:
            self._csv_exporter = CSVExporter(str(self.output_dir))
        return self._csv_exporter

    @property
    def excel_exporter(self) -> ExcelExporter:
        if self._excel_exporter is None:
            self._excel_exporter = ExcelExporter(str(self.output_dir))
        return self._excel_exporter

    def save(self, batch: BatchResult, path: Optional[str] = None, fmt: Optional[str] = None) -> str:
        """
        Write a batch to disk.

        Args:
            batch: Results to write.
            path: Output file. Its suffix picks the format when ``fmt`` is None.
            fmt: One of ``csv``, ``xlsx`` or ``json`` (default ``csv``).

        Returns:
            Path of the written file.

        Raises:
            ExportError: If the format is unknown or the file cannot be written.
        """
        if fmt is None:
            suffix = Path(path).suffix.lower().lstrip(".") if path else ""
            fmt = suffix if suffix in SUPPORTED_FORMATS else "csv"
        fmt = fmt.lower()

        filename = output_dir = None
        if path:
            filename = Path(path).name
            output_dir = str(Path(path).parent)

        if fmt == "csv":
            return self.csv_exporter.export(batch, filename, output_dir)
        if fmt == "xlsx":
            return self.excel_exporter.export(batch, filename, output_dir)
        if fmt == "json":
            return self.to_json(batch, filename, output_dir)

        raise ExportError(str(path or self.output_dir), f"Unsupported output format: {fmt}")

    def to_json(
        self,
        batch: BatchResult,
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """Write ``batch.to_dict()`` as JSON and return the file path."""
        out_dir = ensure_directory(output_dir or self.output_dir)
        filepath = out_dir / (filename or f"invoice_extractions_{generate_timestamp()}.json")

        try:
            filepath.write_text(batch.to_json(indent=self.json_indent), encoding="utf-8")
        except OSError as e:
            raise ExportError(str(filepath), str(e))

        logger.info(f"JSON saved: {filepath}")
        return str(filepath)
