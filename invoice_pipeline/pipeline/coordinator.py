"""
Pipeline Coordinator.

Entry point of the extraction core. For one request it:

    1. Validates the batch against the caller's TierPolicy
    2. Runs acquire -> classify -> extract fields -> parse line items for
       every file in a bounded thread pool
    3. Returns a BatchResult in input order

Per-file failures become error results and never abort the batch; only a
structural violation (empty batch, too many files) raises, as a
BatchValidationError, before any file is opened.

Usage:
    coordinator = PipelineCoordinator()
    batch = coordinator.process_batch(inputs, TierPolicy.from_plan("premium"), ExtractionMode.OCR)
    for result in batch.results:
        print(result.filename, result.total or result.error)
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Union

from config import get_config
from invoice_pipeline.acquisition import AcquiredText, AcquisitionOrchestrator
from invoice_pipeline.extraction import (
    BatchResult,
    DocumentClassifier,
    ExtractionResult,
    FieldExtractor,
    LineItemParser,
)
from invoice_pipeline.input_handler import RawInput
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import (
    BatchValidationError,
    FileTooLargeError,
    InvoicePipelineError,
    UnsupportedFileTypeError,
)
from .tier_policy import ExtractionMode, TierPolicy

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Processing failed"


def ocr_confidence_note(text: str) -> str:
    """Rough confidence hint for OCR text, based on how much was read."""
    if len(text) > 1000:
        return "[OCR: High confidence]"
    if len(text) > 100:
        return "[OCR: Medium confidence]"
    return "[OCR: Low confidence]"


class PipelineCoordinator:
    """
    Runs batches of files through the extraction pipeline.

    Every worker thread lazily builds its own AcquisitionOrchestrator (and
    with it its own OCR engine) from ``orchestrator_factory``; the
    classifier, field extractor and line item parser hold no per-file
    state and are shared.

    Attributes:
        max_workers: Pool size for native-text batches
        ocr_max_workers: Pool size for OCR-mode batches

    Example:
        >>> coordinator = PipelineCoordinator()
        >>> batch = coordinator.process_batch([raw], TierPolicy.from_plan("free"))
        >>> print(f"{batch.succeeded}/{batch.total_files} succeeded")
    """

    def __init__(
        self,
        orchestrator_factory: Optional[Callable[[], AcquisitionOrchestrator]] = None,
        max_workers: Optional[int] = None,
        ocr_max_workers: Optional[int] = None,
    ) -> None:
        self.orchestrator_factory = orchestrator_factory or AcquisitionOrchestrator
        self.max_workers = max_workers or get_config("pipeline.max_workers", 4)
        self.ocr_max_workers = ocr_max_workers or get_config("pipeline.ocr_max_workers", 2)

        self.classifier = DocumentClassifier()
        self.field_extractor = FieldExtractor()
        self.line_item_parser = LineItemParser()

        self._local = threading.local()

    # =========================================================================
    # REQUEST GATE
    # =========================================================================

    def validate_batch(self, inputs: Sequence[RawInput], policy: TierPolicy, mode: ExtractionMode) -> None:
        """
        Check the batch as a whole.

        Raises:
            BatchValidationError: If the batch is empty or too large.
        """
        if not inputs:
            raise BatchValidationError("No files provided", plan=policy.name)

        limit = policy.batch_limit(mode)
        if len(inputs) > limit:
            if mode.uses_ocr and limit < policy.max_files_per_batch:
                message = f"Maximum {limit} files allowed for OCR processing"
            else:
                message = f"Maximum {limit} files allowed per batch on the {policy.name} plan"
            raise BatchValidationError(message, limit=limit, received=len(inputs), plan=policy.name)

    def validate_file(self, raw: RawInput, policy: TierPolicy, mode: ExtractionMode) -> None:
        """
        Check one file's media type and declared size.

        Raises:
            UnsupportedFileTypeError: If the media type is not accepted.
            FileTooLargeError: If the declared size exceeds the limit.
        """
        images_allowed = mode.uses_ocr and policy.ocr_enabled
        if not (raw.is_pdf or (raw.is_image and images_allowed)):
            supported = ["application/pdf"]
            if raw.is_image and not policy.ocr_enabled:
                hint = f"Image files require OCR, which is not available on the {policy.name} plan"
            elif raw.is_image:
                hint = "Image files require OCR mode"
            else:
                hint = "File is not a PDF"
            raise UnsupportedFileTypeError(raw.name, raw.media_type, supported, hint=hint)

        limit = policy.file_size_limit(mode)
        if raw.size > limit:
            raise FileTooLargeError(
                raw.name, raw.size, limit, policy.name,
                ocr=mode.uses_ocr and limit < policy.max_file_size_bytes
            )

    # =========================================================================
    # PROCESSING
    # =========================================================================

    def process_batch(
        self,
        inputs: Sequence[RawInput],
        policy: TierPolicy,
        mode: Union[ExtractionMode, str] = ExtractionMode.STANDARD,
    ) -> BatchResult:
        """
        Process a batch of files.

        Args:
            inputs: Uploaded files, in the order results should come back.
            policy: Limits of the caller's plan.
            mode: Extraction mode of the request.

        Returns:
            BatchResult with one ExtractionResult per input, in input order.

        Raises:
            BatchValidationError: If the batch violates the tier policy.
        """
        mode = ExtractionMode(mode)
        inputs = list(inputs)
        self.validate_batch(inputs, policy, mode)

        pool_size = min(len(inputs), self.ocr_max_workers if mode.uses_ocr else self.max_workers)
        logger.info(
            f"Processing {len(inputs)} file(s) on the {policy.name} plan "
            f"(mode={mode.value}, workers={pool_size})"
        )
        start_time = time.time()

        results: List[Optional[ExtractionResult]] = [None] * len(inputs)
        with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="invoice-worker") as executor:
            futures = {
                executor.submit(self.process_file, raw, policy, mode): index
                for index, raw in enumerate(inputs)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        batch = BatchResult.from_results(results, plan=policy.name, mode=mode.value)
        logger.info(
            f"Batch complete: {batch.succeeded}/{batch.total_files} succeeded, "
            f"{batch.ocr_processed} via OCR ({time.time() - start_time:.2f}s)"
        )
        return batch

    def process_file(self, raw: RawInput, policy: TierPolicy, mode: ExtractionMode) -> ExtractionResult:
        """
        Run one file through the pipeline. Never raises.
        """
        try:
            self.validate_file(raw, policy, mode)
            acquired = self._orchestrator().acquire(raw, policy, use_ocr=mode.uses_ocr)
            return self.extract(acquired, policy, mode)
        except InvoicePipelineError as e:
            logger.warning(f"{raw.name}: {e}")
            return ExtractionResult.failure(raw.name, e.user_message)
        except Exception:
            logger.exception(f"Unexpected error processing {raw.name}")
            return ExtractionResult.failure(raw.name, GENERIC_FAILURE_MESSAGE)

    def extract(self, acquired: AcquiredText, policy: TierPolicy, mode: ExtractionMode) -> ExtractionResult:
        """
        Classify acquired text and extract fields and line items from it.
        """
        document_type = self.classifier.classify(acquired.text)
        rules = self.field_extractor.select_rules(
            document_type,
            enhanced=mode.uses_type_patterns,
            policy=policy,
        )
        fields = self.field_extractor.extract(acquired.text, rules)

        header = {name: fields.pop(name) for name in ExtractionResult.HEADER_FIELDS if name in fields}
        line_items = self.line_item_parser.parse(acquired.text)

        result = ExtractionResult(
            filename=acquired.source_name,
            line_items=line_items or None,
            document_type=document_type,
            acquisition_method=acquired.method.value,
            extra_fields=fields,
            notes=ocr_confidence_note(acquired.text) if acquired.method.is_ocr else None,
            **header
        )

        logger.debug(
            f"{acquired.source_name}: {document_type.value}, "
            f"{len(result.extracted_fields)} field(s), {len(line_items)} line item(s)"
        )
        return result

    def _orchestrator(self) -> AcquisitionOrchestrator:
        orchestrator = getattr(self._local, "orchestrator", None)
        if orchestrator is None:
            orchestrator = self.orchestrator_factory()
            self._local.orchestrator = orchestrator
            logger.debug(f"Created acquisition orchestrator for {threading.current_thread().name}")
        return orchestrator
