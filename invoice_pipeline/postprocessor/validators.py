"""
Data Validators Module.

Validity checks applied to every value a pattern captures before it is
accepted into a result:
    - amounts must be positive numbers
    - names must fall inside a plausible length window
    - identifiers must contain a digit
    - dates must parse
    - line items must have sane numbers and a real description

Each ``clean`` method returns the value to store, or None to reject the
capture so the next candidate gets a chance.
"""

import re
from enum import Enum
from typing import Optional, Tuple

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from .normalizers import AmountNormalizer, DateNormalizer, TextNormalizer

# Initialize module logger
logger = get_logger(__name__)


class FieldKind(str, Enum):
    """Validation family of an extracted field."""

    AMOUNT = "amount"
    NAME = "name"
    IDENTIFIER = "identifier"
    DATE = "date"
    TAX = "tax"


class AmountValidator:
    """
    Validates amount fields.

    Example:
        >>> validator = AmountValidator()
        >>> validator.clean("$1,250.00")
        "1250.00"
        >>> validator.clean("0.00") is None
        True
    """

    def __init__(self) -> None:
        self.normalizer = AmountNormalizer()

    def clean(self, value: str) -> Optional[str]:
        normalized = self.normalizer.normalize(value)
        if normalized is None or float(normalized) <= 0:
            return None
        return normalized


class NameValidator:
    """
    Validates vendor, merchant and party names.

    Attributes:
        min_length: Shortest accepted name after trimming
        max_length: Longest accepted name after trimming
    """

    def __init__(self) -> None:
        self.min_length = get_config("extraction.vendor.min_length", 3)
        self.max_length = get_config("extraction.vendor.max_length", 100)
        self.normalizer = TextNormalizer()

    def clean(self, value: str) -> Optional[str]:
        name = self.normalizer.clean_name(value)
        if not (self.min_length <= len(name) <= self.max_length):
            return None
        return name


class IdentifierValidator:
    """
    Validates document identifiers (invoice, PO, contract, account numbers).

    A real identifier carries at least one digit; this rejects label words
    such as "Date" captured from "Invoice Date:".
    """

    TRAILING_JUNK = re.compile(r'[.:;,\-_/]+$')

    def clean(self, value: str) -> Optional[str]:
        identifier = self.TRAILING_JUNK.sub('', value.strip())
        if not identifier or not re.search(r'\d', identifier):
            return None
        return identifier


class DateValidator:
    """
    Validates date fields. The stored value keeps its original spelling.

    Example:
        >>> DateValidator().clean("03/15/2024")
        "03/15/2024"
        >>> DateValidator().clean("13/45/2024") is None
        True
    """

    def __init__(self) -> None:
        self.normalizer = DateNormalizer()

    def clean(self, value: str) -> Optional[str]:
        value = ' '.join(value.split())
        if self.normalizer.parse(value) is None:
            return None
        return value


class FieldValidator:
    """
    Dispatches a captured value to the validator of its field kind.

    Example:
        >>> validator = FieldValidator()
        >>> validator.clean(FieldKind.IDENTIFIER, "Date") is None
        True
        >>> validator.clean_tax("8.25%")
        ("tax_rate", "8.25%")
    """

    def __init__(self) -> None:
        self.amount_validator = AmountValidator()
        self.name_validator = NameValidator()
        self.identifier_validator = IdentifierValidator()
        self.date_validator = DateValidator()

    def clean(self, kind: FieldKind, value: str) -> Optional[str]:
        if value is None:
            return None

        if kind is FieldKind.AMOUNT:
            return self.amount_validator.clean(value)
        if kind is FieldKind.NAME:
            return self.name_validator.clean(value)
        if kind is FieldKind.IDENTIFIER:
            return self.identifier_validator.clean(value)
        if kind is FieldKind.DATE:
            return self.date_validator.clean(value)
        if kind is FieldKind.TAX:
            cleaned = self.clean_tax(value)
            return cleaned[1] if cleaned else None

        raise ValueError(f"Unknown field kind: {kind}")

    def clean_tax(self, value: str) -> Optional[Tuple[str, str]]:
        """
        Decide whether a tax capture is a rate or an amount.

        Returns:
            ("tax_rate", "8.5%") when the capture contains a percent sign,
            ("tax", "45.00") for a positive amount, or None.
        """
        if value is None:
            return None

        if '%' in value:
            rate = re.sub(r'\s+', '', value)
            number = rate.replace('%', '')
            if not AmountNormalizer.NUMBER_PATTERN.match(number):
                return None
            return "tax_rate", f"{number}%"

        amount = self.amount_validator.clean(value)
        if amount is None:
            return None
        return "tax", amount


class LineItemValidator:
    """
    Numeric and description checks for a candidate table row.

    A row is accepted only if quantity > 0 and unit price >= 0 (when the
    row shape has them), amount > 0 and the description is longer than
    ``min_description_length`` characters.
    """

    def __init__(self) -> None:
        self.min_description_length = get_config("extraction.line_items.min_description_length", 5)

    def is_valid(
        self,
        description: str,
        amount: Optional[float],
        quantity: Optional[float] = None,
        unit_price: Optional[float] = None
    ) -> bool:
        if not description or len(description.strip()) <= self.min_description_length:
            return False
        if amount is None or amount <= 0:
            return False
        if quantity is not None and quantity <= 0:
            return False
        if unit_price is not None and unit_price < 0:
            return False
        return True
