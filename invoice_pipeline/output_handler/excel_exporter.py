"""
Excel Exporter Module.

Writes extraction results to an .xlsx workbook with openpyxl. The data
sheet carries the same rows as the CSV export; an optional metadata
sheet lists per-file processing details followed by the batch summary.
"""

from pathlib import Path
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config import get_config
from invoice_pipeline.extraction.extraction_result import BatchResult, ExtractionResult
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.helpers import ensure_directory, generate_timestamp
from invoice_pipeline.utils.exceptions import ExportError
from .csv_exporter import CSV_HEADER, Results, build_rows

logger = get_logger(__name__)


HEADER_FONT = Font(bold=True, color="FFFFFF")
DATA_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
METADATA_FILL = PatternFill(start_color="548235", end_color="548235", fill_type="solid")
ERROR_FONT = Font(color="C00000")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

METADATA_COLUMNS = [
    'Filename',
    'Document Type',
    'Acquisition Method',
    'Fields Extracted',
    'Line Items',
    'Notes',
    'Status',
]


class ExcelExporter:
    """
    Exports extraction results to Excel format.

    Attributes:
        output_dir: Default directory for output files
        include_metadata: Whether to add the metadata sheet
        sheet_name: Title of the data sheet

    Example:
        >>> exporter = ExcelExporter()
        >>> filepath = exporter.export(batch, "extractions.xlsx")
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir or get_config("paths.output_dir", "outputs"))
        self.include_metadata = get_config("output.excel.include_metadata", True)
        self.sheet_name = get_config("output.excel.sheet_name", "Extracted Data")

        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def build_workbook(self, results: Results) -> Workbook:
        """
        Build the workbook in memory.

        Args:
            results: A BatchResult, a single result, or an iterable of results.
        """
        batch = results if isinstance(results, BatchResult) else None
        if isinstance(results, ExtractionResult):
            results = [results]
        result_list = list(batch.results if batch else results)

        workbook = Workbook()
        self._create_data_sheet(workbook, result_list)
        if self.include_metadata:
            self._create_metadata_sheet(workbook, result_list, batch)
        return workbook

    def export(
        self,
        results: Results,
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Export extraction results to an Excel file.

        Args:
            results: Results to export.
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses the configured dir.

        Returns:
            Path to the created Excel file.

        Raises:
            ExportError: If the workbook cannot be written.
        """
        out_dir = ensure_directory(output_dir or self.output_dir)
        filename = filename or self.get_default_filename()
        if not filename.endswith(".xlsx"):
            filename += ".xlsx"
        filepath = out_dir / filename

        workbook = self.build_workbook(results)
        try:
            workbook.save(filepath)
        except OSError as e:
            logger.error(f"Excel export failed: {e}")
            raise ExportError(str(filepath), str(e))

        logger.info(f"Excel file saved: {filepath}")
        return str(filepath)

    def _create_data_sheet(self, workbook: Workbook, results: List[ExtractionResult]) -> None:
        sheet = workbook.active
        sheet.title = self.sheet_name

        for col, header_name in enumerate(CSV_HEADER, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = HEADER_FONT
            cell.fill = DATA_FILL
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = THIN_BORDER

        error_col = len(CSV_HEADER)
        for row_num, row in enumerate(build_rows(results), 2):
            for col, value in enumerate(row, 1):
                cell = sheet.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
            if row[error_col - 1]:
                sheet.cell(row=row_num, column=error_col).font = ERROR_FONT

        _fit_columns(sheet)
        sheet.freeze_panes = 'A2'

    def _create_metadata_sheet(
        self,
        workbook: Workbook,
        results: List[ExtractionResult],
        batch: Optional[BatchResult]
    ) -> None:
        sheet = workbook.create_sheet(title="Metadata")

        for col, header_name in enumerate(METADATA_COLUMNS, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = HEADER_FONT
            cell.fill = METADATA_FILL
            cell.alignment = Alignment(horizontal="center")

        for row_num, result in enumerate(results, 2):
            values = [
                result.filename,
                result.document_type.value if result.document_type else '',
                result.acquisition_method or '',
                len(result.extracted_fields) + len(result.extra_fields),
                len(result.line_items or []),
                result.notes or '',
                'Failed' if result.error else 'OK',
            ]
            for col, value in enumerate(values, 1):
                sheet.cell(row=row_num, column=col, value=value)

        if batch is not None:
            row_num = len(results) + 3
            summary = batch.to_dict()['metadata']
            for key, value in summary.items():
                sheet.cell(row=row_num, column=1, value=key.replace('_', ' ').title()).font = Font(bold=True)
                sheet.cell(row=row_num, column=2, value=value)
                row_num += 1

        _fit_columns(sheet)

    def get_default_filename(self) -> str:
        pattern = get_config(
            "output.excel.filename_pattern",
            "invoice_extractions_{timestamp}.xlsx"
        )
        return pattern.format(timestamp=generate_timestamp())


def _fit_columns(sheet) -> None:
    widths = {}
    for row in sheet.iter_rows():
        for cell in row:
            if cell.value is not None:
                widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for col, width in widths.items():
        sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 50)
