"""
Line Item Parser.

Finds itemized tables in plain text with a small state machine:

    Seeking header -> In table -> Done

A line matching any column-header regex opens the table (the header line
itself is dropped). Inside the table each line is tried against the row
shapes in order; the first shape whose numbers and description pass
validation becomes a LineItem, and lines matching no shape are skipped.
A line starting with summary vocabulary (subtotal, tax, total, notes,
payment, due, thank) closes the table. Parsing stops after ``max_items``.
"""

import re
from enum import Enum
from typing import List, Optional

from config import get_config
from invoice_pipeline.postprocessor.normalizers import AmountNormalizer
from invoice_pipeline.postprocessor.validators import LineItemValidator
from invoice_pipeline.utils.logger import get_logger
from .extraction_result import LineItem

logger = get_logger(__name__)


class ParserState(Enum):
    SEEKING_HEADER = "seeking_header"
    IN_TABLE = "in_table"
    DONE = "done"


HEADER_PATTERNS = [
    re.compile(r'\b(?:description|item|service|product)s?\b', re.IGNORECASE),
    re.compile(r'\b(?:qty|quantity|amount)\b', re.IGNORECASE),
    re.compile(r'\b(?:price|rate|cost)\b', re.IGNORECASE),
    re.compile(r'\b(?:total|subtotal)\b', re.IGNORECASE),
]

STOP_PATTERN = re.compile(r'^(?:sub[ \t\-]*total|tax|total|notes?|payment|due|thank)', re.IGNORECASE)

QTY = r'(\d+(?:\.\d+)?)'
MONEY = r'\$?([\d,]+(?:\.\d+)?)'

# (description, quantity, unit price, amount)
DESC_QTY_PRICE_AMOUNT = re.compile(r'^(.+?)\s+' + QTY + r'\s+' + MONEY + r'\s+' + MONEY + r'$')
# (quantity, description, unit price, amount)
QTY_DESC_PRICE_AMOUNT = re.compile(r'^' + QTY + r'\s+(.+?)\s+' + MONEY + r'\s+' + MONEY + r'$')
# (description, amount) with cents
DESC_AMOUNT = re.compile(r'^(.+?)\s+\$?([\d,]+\.\d{2})$')


class LineItemParser:
    """
    Extracts LineItems from document text.

    Attributes:
        max_items: Hard cap on the number of items returned

    Example:
        >>> parser = LineItemParser()
        >>> parser.parse("Description Qty Price Amount\\nWidget A 3 10.00 30.00\\nSubtotal: 30.00")
        [LineItem(description='Widget A', amount=30.0, quantity=3.0, unit_price=10.0)]
    """

    def __init__(self, max_items: Optional[int] = None) -> None:
        self.max_items = max_items or get_config("extraction.line_items.max_items", 20)
        self.amounts = AmountNormalizer()
        self.validator = LineItemValidator()

    def parse(self, text: str) -> List[LineItem]:
        """
        Parse the itemized table of a document.

        Returns:
            LineItems in document order; empty when no table header is found.
        """
        items: List[LineItem] = []
        state = ParserState.SEEKING_HEADER

        lines = [line.strip() for line in (text or "").splitlines()]

        for line in lines:
            if not line:
                continue

            if state is ParserState.SEEKING_HEADER:
                if any(pattern.search(line) for pattern in HEADER_PATTERNS):
                    state = ParserState.IN_TABLE
                continue

            if STOP_PATTERN.match(line):
                state = ParserState.DONE
                break

            item = self._parse_row(line)
            if item is not None:
                items.append(item)
                if len(items) >= self.max_items:
                    logger.debug(f"Line item cap of {self.max_items} reached")
                    break

        if state is ParserState.SEEKING_HEADER:
            logger.debug("No line item table header found")

        return items

    def _parse_row(self, line: str) -> Optional[LineItem]:
        match = DESC_QTY_PRICE_AMOUNT.match(line)
        if match:
            item = self._build(match.group(1), match.group(4), match.group(2), match.group(3))
            if item is not None:
                return item

        match = QTY_DESC_PRICE_AMOUNT.match(line)
        if match:
            item = self._build(match.group(2), match.group(4), match.group(1), match.group(3))
            if item is not None:
                return item

        match = DESC_AMOUNT.match(line)
        if match:
            return self._build(match.group(1), match.group(2))

        return None

    def _build(
        self,
        description: str,
        amount: str,
        quantity: Optional[str] = None,
        unit_price: Optional[str] = None
    ) -> Optional[LineItem]:
        description = ' '.join(description.split())
        amount_value = self.amounts.to_float(amount)
        quantity_value = self.amounts.to_float(quantity) if quantity is not None else None
        price_value = self.amounts.to_float(unit_price) if unit_price is not None else None

        # A shape that captured a number which does not parse is not a match
        if quantity is not None and quantity_value is None:
            return None
        if unit_price is not None and price_value is None:
            return None

        if not self.validator.is_valid(description, amount_value, quantity_value, price_value):
            return None

        return LineItem(
            description=description,
            amount=amount_value,
            quantity=quantity_value,
            unit_price=price_value,
        )
