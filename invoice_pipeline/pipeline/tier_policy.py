"""
Tier Policy Module.

A TierPolicy is the immutable set of resource limits the caller's plan
grants for one request: batch size, per-file size, pages, licensed
document types and the OCR budget. Plans are defined in the ``tiers:``
section of settings.yaml; callers with their own subscription data can
build a policy with ``TierPolicy.from_dict``.

Usage:
    policy = TierPolicy.from_plan("premium")
    if policy.allows(DocumentType.RECEIPT):
        ...
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable

from config import get_config
from invoice_pipeline.extraction.extraction_result import DocumentType
from invoice_pipeline.utils.exceptions import ConfigurationError
from invoice_pipeline.utils.logger import get_logger

logger = get_logger(__name__)


class ExtractionMode(str, Enum):
    """
    Request mode chosen by the caller.

    STANDARD runs the Standard Invoice patterns on native text, ENHANCED
    adds the patterns of licensed premium document types, and OCR allows
    the OCR fallback and image inputs.
    """

    STANDARD = "standard"
    ENHANCED = "enhanced"
    OCR = "ocr"

    @property
    def uses_ocr(self) -> bool:
        return self is ExtractionMode.OCR

    @property
    def uses_type_patterns(self) -> bool:
        return self is ExtractionMode.ENHANCED


@dataclass(frozen=True)
class TierPolicy:
    """
    Resource limits for one request.

    Attributes:
        name: Plan name, used in user-facing limit messages
        max_files_per_batch: Largest accepted batch
        max_file_size_bytes: Per-file size ceiling
        max_pdf_pages: Pages read from the native text layer
        allowed_document_types: Types whose dedicated patterns may run
        ocr_enabled: Whether the OCR fallback and image inputs are allowed
        ocr_max_file_size_bytes: Per-file size ceiling in OCR mode
        ocr_timeout_ms: Deadline of one OCR attempt
        ocr_max_files_per_batch: Largest accepted batch in OCR mode
    """
    name: str
    max_files_per_batch: int
    max_file_size_bytes: int
    max_pdf_pages: int
    allowed_document_types: FrozenSet[DocumentType]
    ocr_enabled: bool
    ocr_max_file_size_bytes: int
    ocr_timeout_ms: int
    ocr_max_files_per_batch: int = 3

    def allows(self, document_type: DocumentType) -> bool:
        return document_type in self.allowed_document_types

    def file_size_limit(self, mode: ExtractionMode) -> int:
        """Per-file size ceiling that applies in the given mode."""
        if mode.uses_ocr:
            return min(self.max_file_size_bytes, self.ocr_max_file_size_bytes)
        return self.max_file_size_bytes

    def batch_limit(self, mode: ExtractionMode) -> int:
        """Largest batch accepted in the given mode."""
        if mode.uses_ocr:
            return min(self.max_files_per_batch, self.ocr_max_files_per_batch)
        return self.max_files_per_batch

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'TierPolicy':
        """
        Build a policy from plain data.

        Raises:
            ConfigurationError: If a required limit is missing or invalid.
        """
        required = [f.name for f in fields(cls) if f.name not in ("name", "ocr_max_files_per_batch")]
        missing = [key for key in required if key not in data]
        if missing:
            raise ConfigurationError(
                f"Tier '{name}' is missing required settings: {', '.join(missing)}",
                {"tier": name, "missing": missing}
            )

        try:
            return cls(
                name=name,
                max_files_per_batch=int(data["max_files_per_batch"]),
                max_file_size_bytes=int(data["max_file_size_bytes"]),
                max_pdf_pages=int(data["max_pdf_pages"]),
                allowed_document_types=_parse_document_types(data["allowed_document_types"]),
                ocr_enabled=bool(data["ocr_enabled"]),
                ocr_max_file_size_bytes=int(data["ocr_max_file_size_bytes"]),
                ocr_timeout_ms=int(data["ocr_timeout_ms"]),
                ocr_max_files_per_batch=int(data.get("ocr_max_files_per_batch", 3)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Tier '{name}' has an invalid setting: {e}", {"tier": name})

    @classmethod
    def from_plan(cls, plan: str) -> 'TierPolicy':
        """
        Build the policy of a plan defined under ``tiers:`` in settings.yaml.

        Raises:
            ConfigurationError: If the plan is not configured.
        """
        data = get_config(f"tiers.{plan}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Unknown plan: {plan}", {"plan": plan})

        policy = cls.from_dict(plan, data)
        logger.debug(f"Loaded tier policy: {policy}")
        return policy


def _parse_document_types(labels: Iterable[str]) -> FrozenSet[DocumentType]:
    return frozenset(
        label if isinstance(label, DocumentType) else DocumentType.from_label(label)
        for label in labels
    )
