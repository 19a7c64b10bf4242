"""
Invoice Extraction Pipeline - Source Package.

Turns uploaded invoice PDFs and images into structured records under
per-plan resource limits.

Modules:
    - input_handler: File loading, PDF text layer and page rasterization
    - ocr_engine: Tesseract recognition under a deadline
    - acquisition: Native text vs OCR decision per file
    - extraction: Classification, field patterns, line item parsing
    - postprocessor: Value normalization and validation
    - pipeline: Tier policies and the batch coordinator
    - output_handler: CSV, Excel and JSON output

Architecture:
    Input -> Acquisition (native text | OCR) -> Classify -> Fields + Line Items -> Output
"""

__version__ = "1.0.0"

__all__ = [
    'input_handler',
    'ocr_engine',
    'acquisition',
    'extraction',
    'postprocessor',
    'pipeline',
    'output_handler',
    'utils'
]
