"""
Document Type Classifier.

Keyword classifier over the lower-cased acquired text. Tests run in a
fixed priority order and the first hit wins; text without any marker is
a Standard Invoice. The classifier never raises.
"""

from typing import Callable, List, Tuple

from invoice_pipeline.utils.logger import get_logger
from .extraction_result import DocumentType

logger = get_logger(__name__)


def _contains_any(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(keyword in text for keyword in keywords)


def _is_receipt(text: str) -> bool:
    return "receipt" in text and "invoice" not in text


class DocumentClassifier:
    """
    Classifies acquired text into a DocumentType.

    Example:
        >>> DocumentClassifier().classify("PURCHASE ORDER\\nPO Number: 4521")
        <DocumentType.PURCHASE_ORDER: 'Purchase Order'>
    """

    RULES: List[Tuple[Callable[[str], bool], DocumentType]] = [
        (_contains_any("purchase order", "po number"), DocumentType.PURCHASE_ORDER),
        (_contains_any("contract", "agreement"), DocumentType.CONTRACT),
        (_contains_any("bank statement", "account balance"), DocumentType.BANK_STATEMENT),
        (_is_receipt, DocumentType.RECEIPT),
    ]

    def classify(self, text: str) -> DocumentType:
        lowered = (text or "").lower()

        for matches, document_type in self.RULES:
            if matches(lowered):
                logger.debug(f"Classified document as {document_type.value}")
                return document_type

        return DocumentType.STANDARD_INVOICE
