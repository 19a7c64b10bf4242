"""
Data Normalizers Module.

This module provides normalization functions for:
    - Currency/amount values
    - Date strings
    - Names captured from free text
"""

import re
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

from invoice_pipeline.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class AmountNormalizer:
    """
    Normalizes currency/amount strings to a plain numeric string.

    Currency symbols, currency codes, whitespace and thousands separators
    are removed; the digits and decimal part are kept exactly as written.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("$1,250.00")
        "1250.00"
        >>> normalizer.normalize("USD 75")
        "75"
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD']

    NUMBER_PATTERN = re.compile(r'^\d+(?:\.\d+)?$')

    def normalize(self, amount_str: str) -> Optional[str]:
        """
        Normalize an amount string.

        Args:
            amount_str: Input amount string (e.g., "$1,234.56").

        Returns:
            Cleaned numeric string (e.g., "1234.56"), or None if the
            input is not a plain number once cleaned.
        """
        if not amount_str:
            return None

        cleaned = amount_str.strip()
        for symbol in self.CURRENCY_SYMBOLS:
            cleaned = cleaned.replace(symbol, '')
        for code in self.CURRENCY_CODES:
            cleaned = re.sub(rf'\b{code}\b', '', cleaned, flags=re.IGNORECASE)

        cleaned = re.sub(r'[\s,]', '', cleaned)

        if not self.NUMBER_PATTERN.match(cleaned):
            logger.debug(f"Could not parse amount: {amount_str!r}")
            return None

        return cleaned

    def to_float(self, amount_str: str) -> Optional[float]:
        """
        Convert an amount string to float.

        Example:
            >>> normalizer.to_float("1,250.50")
            1250.5
        """
        normalized = self.normalize(amount_str)
        if normalized is None:
            return None
        return float(normalized)


class DateNormalizer:
    """
    Parses dates written in the usual invoice formats.

    Dates keep their original spelling in results; parsing is only used
    to decide whether a captured string really is a date.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.parse("March 15, 2024")
        datetime.datetime(2024, 3, 15, 0, 0)
        >>> normalizer.parse("Date") is None
        True
    """

    def parse(self, date_str: str) -> Optional[datetime]:
        if not date_str or not re.search(r'\d', date_str):
            return None

        cleaned = ' '.join(date_str.split())
        # Remove ordinal suffixes (1st, 2nd, 3rd, 4th, etc.)
        cleaned = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', cleaned, flags=re.IGNORECASE)

        try:
            return date_parser.parse(cleaned, dayfirst=False)
        except (ValueError, OverflowError):
            logger.debug(f"Could not parse date: {date_str!r}")
            return None


class TextNormalizer:
    """
    Cleans names captured from free text.

    Example:
        >>> TextNormalizer().clean_name("Acme Supplies Ltd:\\n")
        "Acme Supplies Ltd"
    """

    TRAILING_JUNK = re.compile(r'[\s:;,\-]+$')

    def clean_name(self, value: str) -> str:
        if not value:
            return ""
        value = ' '.join(value.split())
        return self.TRAILING_JUNK.sub('', value)
