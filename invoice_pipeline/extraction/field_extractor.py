"""
Pattern-Based Field Extractor.

Runs the FieldRules of the selected pattern sets over acquired text. For
every field the first capture that passes its validity check wins; all
matches of a rule are scanned in document order before moving to the
next, less specific rule. Fields are independent of each other, and text
without any recognizable marker simply yields no fields.

Tax is a single slot: a capture with a percent sign fills ``tax_rate``,
otherwise ``tax``, and the first accepted tax capture closes the slot.

Usage:
    extractor = FieldExtractor()
    rules = extractor.select_rules(DocumentType.RECEIPT, enhanced=True, policy=policy)
    fields = extractor.extract(text, rules)
"""

from typing import Dict, Iterable, Tuple

from invoice_pipeline.postprocessor.validators import FieldKind, FieldValidator
from invoice_pipeline.utils.logger import get_logger
from .extraction_result import DocumentType
from .patterns import STANDARD_INVOICE_RULES, FieldRule, rules_for

logger = get_logger(__name__)

TAX_FIELDS = ("tax", "tax_rate")


class FieldExtractor:
    """
    Extracts header fields from text using ordered regex rules.

    Example:
        >>> extractor = FieldExtractor()
        >>> extractor.extract("Invoice #INV-2024-001\\nTotal: $1,250.00")
        {'invoice_number': 'INV-2024-001', 'total': '1250.00'}
    """

    def __init__(self) -> None:
        self.validator = FieldValidator()

    def select_rules(self, document_type: DocumentType, enhanced: bool = False, policy=None) -> Tuple[FieldRule, ...]:
        """
        Pick the rules for a document.

        In enhanced mode a licensed non-standard type runs its own rules
        first and the Standard Invoice rules after them. Everything else
        uses the Standard Invoice rules only.

        Args:
            document_type: Type assigned by the classifier.
            enhanced: Whether the mode runs type-specific patterns.
            policy: TierPolicy whose ``allows`` licenses the type.
        """
        if not enhanced or document_type is DocumentType.STANDARD_INVOICE:
            return STANDARD_INVOICE_RULES

        if policy is None or not policy.allows(document_type):
            logger.debug(f"{document_type.value} patterns not licensed, using Standard Invoice patterns")
            return STANDARD_INVOICE_RULES

        return rules_for(document_type) + STANDARD_INVOICE_RULES

    def extract(self, text: str, rules: Iterable[FieldRule] = STANDARD_INVOICE_RULES) -> Dict[str, str]:
        """
        Apply the rules to the text.

        Args:
            text: Acquired document text.
            rules: Ordered FieldRules; earlier rules win per field.

        Returns:
            Dictionary of field name to accepted value. Absent fields are
            not included.
        """
        fields: Dict[str, str] = {}
        if not text:
            return fields

        for rule in rules:
            if self._is_filled(rule, fields):
                continue

            for match in rule.pattern.finditer(text):
                captured = match.group(1)
                if captured is None:
                    continue

                if rule.kind is FieldKind.TAX:
                    cleaned = self.validator.clean_tax(captured)
                    if cleaned is not None:
                        target, value = cleaned
                        fields[target] = value
                        break
                    continue

                value = self.validator.clean(rule.kind, captured)
                if value is not None:
                    fields[rule.field] = value
                    break

        return fields

    @staticmethod
    def _is_filled(rule: FieldRule, fields: Dict[str, str]) -> bool:
        if rule.kind is FieldKind.TAX:
            return any(name in fields for name in TAX_FIELDS)
        return rule.field in fields
