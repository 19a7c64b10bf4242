"""
Extraction Result Data Classes.

This module defines the data structures the pipeline returns: one
ExtractionResult per input file (with its LineItems) and the BatchResult
that wraps a whole request.

An ExtractionResult is either a data result (any subset of the optional
fields, possibly none) or an error result carrying only the filename and
a user-safe message. ``failure()`` is the only way the pipeline builds
the latter.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class DocumentType(str, Enum):
    """Document families recognized by the classifier."""

    STANDARD_INVOICE = "Standard Invoice"
    RECEIPT = "Receipt"
    PURCHASE_ORDER = "Purchase Order"
    CONTRACT = "Contract"
    BANK_STATEMENT = "Bank Statement"

    @classmethod
    def from_label(cls, label: str) -> 'DocumentType':
        """
        Look up a type by its display label or enum name.

        Raises:
            ValueError: If the label names no known type.
        """
        for member in cls:
            if label in (member.value, member.name):
                return member
        raise ValueError(f"Unknown document type: {label}")


@dataclass(frozen=True)
class LineItem:
    """
    One row of an itemized table.

    Attributes:
        description: Item text (always longer than 5 characters)
        amount: Line amount (always > 0)
        quantity: Quantity, when the row shape carries one (> 0)
        unit_price: Unit price, when the row shape carries one (>= 0)
    """
    description: str
    amount: float
    quantity: Optional[float] = None
    unit_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'description': self.description}
        if self.quantity is not None:
            data['quantity'] = self.quantity
        if self.unit_price is not None:
            data['unit_price'] = self.unit_price
        data['amount'] = self.amount
        return data


@dataclass
class ExtractionResult:
    """
    Represents the outcome of processing one file.

    Attributes:
        filename: Name of the source file
        invoice_number: Invoice identifier
        date: Invoice date, as written in the document
        vendor: Seller / merchant name
        subtotal: Subtotal amount as a cleaned numeric string
        tax: Tax amount as a cleaned numeric string
        tax_rate: Tax rate including the percent sign (e.g. "8.5%")
        total: Total amount as a cleaned numeric string
        line_items: Itemized rows; None rather than an empty list
        document_type: Classifier output
        acquisition_method: How the text was acquired (set iff acquisition succeeded)
        extra_fields: Type-specific fields such as po_number or statement_date
        notes: Free-form notes (OCR confidence hint)
        error: User-safe message; set only on failed files

    Example:
        >>> result = ExtractionResult(filename="a.pdf", invoice_number="INV-1", total="99.00")
        >>> print(result.to_json())
    """
    filename: str
    invoice_number: Optional[str] = None
    date: Optional[str] = None
    vendor: Optional[str] = None
    subtotal: Optional[str] = None
    tax: Optional[str] = None
    tax_rate: Optional[str] = None
    total: Optional[str] = None
    line_items: Optional[List[LineItem]] = None
    document_type: Optional[DocumentType] = None
    acquisition_method: Optional[str] = None
    extra_fields: Dict[str, str] = field(default_factory=dict)
    notes: Optional[str] = None
    error: Optional[str] = None

    HEADER_FIELDS = ('invoice_number', 'date', 'vendor', 'subtotal', 'tax', 'tax_rate', 'total')

    def __post_init__(self):
        # An empty item list is represented as absent
        if self.line_items is not None and len(self.line_items) == 0:
            self.line_items = None

    @classmethod
    def failure(cls, filename: str, message: str) -> 'ExtractionResult':
        """Build an error result carrying only the filename and message."""
        return cls(filename=filename, error=message)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def fields(self) -> Dict[str, Optional[str]]:
        """Header fields by name, including absent ones."""
        return {name: getattr(self, name) for name in self.HEADER_FIELDS}

    @property
    def extracted_fields(self) -> Dict[str, str]:
        """Only the header fields that have values."""
        return {k: v for k, v in self.fields.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a dictionary, omitting absent fields.

        Returns:
            Dictionary representation suitable for JSON transport.
        """
        data: Dict[str, Any] = {'filename': self.filename}

        if self.error is not None:
            data['error'] = self.error
            return data

        data.update(self.extracted_fields)
        if self.line_items:
            data['line_items'] = [item.to_dict() for item in self.line_items]
        if self.document_type is not None:
            data['document_type'] = self.document_type.value
        if self.acquisition_method is not None:
            data['acquisition_method'] = self.acquisition_method
        if self.extra_fields:
            data['extra_fields'] = dict(self.extra_fields)
        if self.notes:
            data['notes'] = self.notes
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        if self.error is not None:
            return f"ExtractionResult(file={self.filename}, error={self.error!r})"
        return (
            f"ExtractionResult("
            f"file={self.filename}, "
            f"invoice={self.invoice_number}, "
            f"vendor={self.vendor}, "
            f"total={self.total}, "
            f"items={len(self.line_items or [])})"
        )


@dataclass
class BatchResult:
    """
    Results of one request, in input order.

    Attributes:
        results: One ExtractionResult per input file, same order as the input
        total_files: Number of input files
        succeeded: Number of results without an error
        timestamp: ISO-8601 UTC time the batch finished
        plan: Name of the tier the batch ran under
        mode: Extraction mode of the request
        ocr_processed: Number of results whose text came from OCR
    """
    results: List[ExtractionResult]
    total_files: int
    succeeded: int
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    plan: Optional[str] = None
    mode: Optional[str] = None
    ocr_processed: int = 0

    @classmethod
    def from_results(cls, results: List[ExtractionResult], plan: str = None, mode: str = None) -> 'BatchResult':
        """Build a BatchResult, computing the aggregate counts."""
        return cls(
            results=list(results),
            total_files=len(results),
            succeeded=sum(1 for r in results if r.error is None),
            plan=plan,
            mode=mode,
            ocr_processed=sum(
                1 for r in results
                if r.acquisition_method is not None and r.acquisition_method != "native-text"
            ),
        )

    @property
    def failed(self) -> int:
        return self.total_files - self.succeeded

    def to_dict(self) -> Dict[str, Any]:
        return {
            'extractions': [result.to_dict() for result in self.results],
            'metadata': {
                'total_files': self.total_files,
                'successful_extractions': self.succeeded,
                'ocr_processed': self.ocr_processed,
                'plan': self.plan,
                'mode': self.mode,
                'timestamp': self.timestamp,
            }
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
