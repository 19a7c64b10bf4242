"""
Field Pattern Tables.

Static mapping from DocumentType to an ordered tuple of FieldRules. For
each field the rules are listed from most to least specific; the field
extractor takes the first capture that also passes the field's validity
check.

Label separators use ``[ \\t]`` instead of ``\\s`` where a capture must not
run onto the next line.
"""

import re
from dataclasses import dataclass
from typing import Dict, Pattern, Tuple

from invoice_pipeline.postprocessor.validators import FieldKind
from .extraction_result import DocumentType


@dataclass(frozen=True)
class FieldRule:
    """
    One candidate pattern for one field.

    Attributes:
        field: Result attribute (or extra_fields key) the capture fills
        pattern: Compiled regex whose group 1 is the value
        kind: Validity check applied to the capture
    """
    field: str
    pattern: Pattern
    kind: FieldKind


def _rule(field: str, kind: FieldKind, regex: str, flags: int = re.IGNORECASE) -> FieldRule:
    return FieldRule(field=field, pattern=re.compile(regex, flags), kind=kind)


AMOUNT = r'\$?[ \t]*([\d,]+(?:\.\d+)?)'
NUMERIC_DATE = r'(\d{1,2}[/\-]\d{1,2}[/\-]\d{4})'
ISO_DATE = r'(\d{4}[/\-]\d{1,2}[/\-]\d{1,2})'
WORD_DATE = r'([A-Za-z]{3,9}\.?[ \t]+\d{1,2}(?:st|nd|rd|th)?,?[ \t]+\d{4})'
NAME = r"([A-Za-z][A-Za-z0-9 &,.\-'()]*?)"
NAME_END = r'[ \t]*(?:$| {2,}|\t)'
IDENTIFIER = r'([A-Z0-9][A-Z0-9\-_/]*)'
# Rejects the "total" of "Sub Total" / "Sub-total", where \b alone does not
NOT_SUBTOTAL = r"(?<!sub)(?<!sub )(?<!sub\t)(?<!sub-)"


# =============================================================================
# STANDARD INVOICE
# =============================================================================

STANDARD_INVOICE_RULES: Tuple[FieldRule, ...] = (
    # Invoice number
    _rule("invoice_number", FieldKind.IDENTIFIER,
          r'\b(?:invoice|inv|bill)[ \t]*(?:number|num|no\.?|#)?[ \t]*[:#]?[ \t]*' + IDENTIFIER),
    _rule("invoice_number", FieldKind.IDENTIFIER,
          r'(?:^|\s)([A-Z]{2,3}-?\d{4,})', re.MULTILINE),
    _rule("invoice_number", FieldKind.IDENTIFIER,
          r'#[ \t]*([A-Z0-9\-_]{3,})'),

    # Date
    _rule("date", FieldKind.DATE,
          r'\b(?:invoice[ \t]*date|bill[ \t]*date|date|issued)[ \t]*:?[ \t]*' + NUMERIC_DATE),
    _rule("date", FieldKind.DATE,
          r'\b(?:invoice[ \t]*date|bill[ \t]*date|date|issued)[ \t]*:?[ \t]*' + ISO_DATE),
    _rule("date", FieldKind.DATE,
          r'\b(?:invoice[ \t]*date|bill[ \t]*date|date|issued)[ \t]*:?[ \t]*' + WORD_DATE),
    _rule("date", FieldKind.DATE,
          r'\b' + NUMERIC_DATE + r'\b', 0),

    # Vendor
    _rule("vendor", FieldKind.NAME,
          r'\b(?:from|vendor|company|bill[ \t]*to|sold[ \t]*by)[ \t]*:?[ \t]*' + NAME + NAME_END,
          re.IGNORECASE | re.MULTILINE),

    # Subtotal
    _rule("subtotal", FieldKind.AMOUNT,
          r'\b(?:sub[ \t\-]*total)[ \t]*:?[ \t]*' + AMOUNT),

    # Tax amount or rate
    _rule("tax", FieldKind.TAX,
          r'\b(?:tax|vat)(?:[ \t]*rate)?[ \t]*:[ \t]*\$?[ \t]*(\d[\d,]*(?:\.\d+)?[ \t]*%?)'),
    _rule("tax", FieldKind.TAX,
          r'\b(?:sales[ \t]*)?(?:tax|vat)[ \t]*\([ \t]*(\d+(?:\.\d+)?[ \t]*%)[ \t]*\)'),
    _rule("tax", FieldKind.TAX,
          r'\b(?:tax|vat)(?:[ \t]*rate)?[ \t]+\$?[ \t]*(\d[\d,]*(?:\.\d+)?[ \t]*%?)'),

    # Total
    _rule("total", FieldKind.AMOUNT,
          r'\b' + NOT_SUBTOTAL +
          r'(?:grand[ \t]*total|total[ \t]*due|total|amount[ \t]*due|balance[ \t]*due|final[ \t]*amount)'
          r'[ \t]*:?[ \t]*' + AMOUNT),
    _rule("total", FieldKind.AMOUNT,
          r'\$[ \t]*([\d,]+\.\d{2})(?!\d)', 0),
)


# =============================================================================
# PREMIUM DOCUMENT TYPES
# =============================================================================

RECEIPT_RULES: Tuple[FieldRule, ...] = (
    _rule("vendor", FieldKind.NAME,
          r'\b(?:merchant|store|retailer)[ \t]*:?[ \t]*' + NAME + NAME_END,
          re.IGNORECASE | re.MULTILINE),
    # All-caps store banner line
    _rule("vendor", FieldKind.NAME,
          r'^(?!(?:SALES |CUSTOMER )?RECEIPT$)([A-Z][A-Z &]{2,})$', re.MULTILINE),
    _rule("total", FieldKind.AMOUNT,
          r'\b' + NOT_SUBTOTAL + r'(?:total|amount|sum)[ \t]*:?[ \t]*' + AMOUNT),
    _rule("date", FieldKind.DATE,
          r'\b' + NUMERIC_DATE + r'\b', 0),
    _rule("date", FieldKind.DATE,
          r'\b' + ISO_DATE + r'\b', 0),
)

PURCHASE_ORDER_RULES: Tuple[FieldRule, ...] = (
    _rule("po_number", FieldKind.IDENTIFIER,
          r'\b(?:purchase[ \t]*order|p\.?o\.?)[ \t]*(?:number|num|no\.?|#)?[ \t]*[:#]?[ \t]*' + IDENTIFIER),
    _rule("po_number", FieldKind.IDENTIFIER,
          r'(?:^|\s)(PO-?[A-Z0-9\-_]+)', re.MULTILINE),
    _rule("vendor", FieldKind.NAME,
          r'\b(?:vendor|supplier|from)[ \t]*:?[ \t]*' + NAME + NAME_END,
          re.IGNORECASE | re.MULTILINE),
    _rule("total", FieldKind.AMOUNT,
          r'\b' + NOT_SUBTOTAL + r'(?:grand[ \t]*total|total|amount)[ \t]*:?[ \t]*' + AMOUNT),
    _rule("delivery_date", FieldKind.DATE,
          r'\b(?:delivery[ \t]*date|ship[ \t]*date|expected(?:[ \t]*delivery)?)[ \t]*:?[ \t]*' + NUMERIC_DATE),
)

CONTRACT_RULES: Tuple[FieldRule, ...] = (
    _rule("contract_number", FieldKind.IDENTIFIER,
          r'\b(?:contract|agreement)[ \t]*(?:number|num|no\.?|#)[ \t]*[:#]?[ \t]*' + IDENTIFIER),
    _rule("parties", FieldKind.NAME,
          r'\b(?:between|party[ \t]*a|first[ \t]*party)[ \t]*:?[ \t]*' + NAME + r'[ \t]*(?:$|\band\b)',
          re.IGNORECASE | re.MULTILINE),
    _rule("effective_date", FieldKind.DATE,
          r'\b(?:effective[ \t]*date|start[ \t]*date|commenced)[ \t]*:?[ \t]*' + NUMERIC_DATE),
    _rule("total", FieldKind.AMOUNT,
          r'\b(?:contract[ \t]*amount|amount|value|consideration)[ \t]*:?[ \t]*' + AMOUNT),
)

BANK_STATEMENT_RULES: Tuple[FieldRule, ...] = (
    _rule("account_number", FieldKind.IDENTIFIER,
          r'\baccount[ \t]*(?:number|num|no\.?|#)[ \t]*[:#]?[ \t]*' + IDENTIFIER),
    _rule("balance", FieldKind.AMOUNT,
          r'\b(?:closing[ \t]*balance|available[ \t]*balance|ending[ \t]*balance|balance)[ \t]*:?[ \t]*' + AMOUNT),
    _rule("statement_date", FieldKind.DATE,
          r'\b(?:statement[ \t]*date|as[ \t]*of)[ \t]*:?[ \t]*' + NUMERIC_DATE),
)


RULES_BY_TYPE: Dict[DocumentType, Tuple[FieldRule, ...]] = {
    DocumentType.STANDARD_INVOICE: STANDARD_INVOICE_RULES,
    DocumentType.RECEIPT: RECEIPT_RULES,
    DocumentType.PURCHASE_ORDER: PURCHASE_ORDER_RULES,
    DocumentType.CONTRACT: CONTRACT_RULES,
    DocumentType.BANK_STATEMENT: BANK_STATEMENT_RULES,
}


def rules_for(document_type: DocumentType) -> Tuple[FieldRule, ...]:
    """Rules for a document type, defaulting to the Standard Invoice set."""
    return RULES_BY_TYPE.get(document_type, STANDARD_INVOICE_RULES)
