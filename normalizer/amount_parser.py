"""
Amount parser for handling statement number formats and currency.
"""
import math
import re
from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Optional, Tuple, Union


def is_finite_number(value: Any) -> bool:
    """
    Check if a value is a finite number.

    Booleans and numeric strings are not numbers here; strings must go
    through ``parse_amount`` first.
    """
    if isinstance(value, bool) or not isinstance(value, Number):
        return False

    if isinstance(value, Decimal):
        return value.is_finite()

    try:
        return math.isfinite(value)
    except (TypeError, ValueError):
        return False


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a finite number to Decimal, or None.

    Floats go through ``str()`` so 0.1 becomes Decimal("0.1") rather than
    its binary expansion.
    """
    if not is_finite_number(value):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def to_json_number(value: Any) -> Optional[float]:
    """Convert a finite number to a JSON-serialisable float, or None."""
    if not is_finite_number(value):
        return None
    return float(value)


def parse_amount(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """
    Parse an amount value from various formats into a Decimal.

    Handles:
    - Plain numbers: 1200, 1200.5, Decimal("1200.50")
    - Thousands separators: "1,234.56"
    - Currency symbols: $, €, £, ₹, Rs, USD, EUR, GBP, INR
    - Negative formats: -1000, (1000), 1000-, 1000 DR, 1000 CR

    Args:
        value: A string/number that might be an amount

    Returns:
        A Decimal (positive or negative), or None if unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    # If already a number
    if isinstance(value, Number):
        return to_decimal(value)

    if not isinstance(value, str):
        return None

    value_str = value.strip()

    if not value_str:
        return None

    amount, _ = _parse_amount_with_sign(value_str)
    return amount


def _parse_amount_with_sign(value_str: str) -> Tuple[Optional[Decimal], str]:
    """
    Parse an amount string and determine its sign.

    Args:
        value_str: Raw amount string

    Returns:
        Tuple of (amount as Decimal or None, sign indicator: 'CR', 'DR', or '')
    """
    value_str = value_str.strip()

    is_negative = False
    sign_indicator = ""

    # Check for DR/CR suffix (case-insensitive)
    dr_match = re.search(r'\s*(DR|Dr|dr)\.?\s*$', value_str)
    cr_match = re.search(r'\s*(CR|Cr|cr)\.?\s*$', value_str)

    if dr_match:
        is_negative = True
        sign_indicator = "DR"
        value_str = value_str[:dr_match.start()]
    elif cr_match:
        sign_indicator = "CR"
        value_str = value_str[:cr_match.start()]

    value_str = value_str.strip()

    # Check for parentheses: (1000) means negative
    if value_str.startswith('(') and value_str.endswith(')'):
        is_negative = True
        value_str = value_str[1:-1].strip()

    # Currency may sit on either side of the sign: "-$5.00" or "$-5.00"
    value_str = _remove_currency_symbols(value_str).strip()

    if value_str.startswith('-'):
        is_negative = True
        value_str = value_str[1:]
    elif value_str.startswith('+'):
        value_str = value_str[1:]

    # Trailing minus sign (some formats use this)
    if value_str.endswith('-'):
        is_negative = True
        value_str = value_str[:-1]

    value_str = _remove_currency_symbols(value_str)

    # Remove thousands separators
    value_str = value_str.replace(',', '').replace(' ', '')

    if not value_str:
        return None, sign_indicator

    # Decimal accepts "NaN" and "Infinity"; only plain digits are amounts
    if not re.fullmatch(r'\d+(\.\d*)?|\.\d+', value_str):
        return None, sign_indicator

    amount = Decimal(value_str)
    if is_negative:
        amount = -abs(amount)
    return amount, sign_indicator


def _remove_currency_symbols(value_str: str) -> str:
    """
    Remove currency symbols from a string.

    Args:
        value_str: String potentially containing currency symbols

    Returns:
        String with currency symbols removed
    """
    patterns = [
        r'US\$\s*',        # US dollar prefix
        r'\$\s*',          # Dollar
        r'€\s*',           # Euro
        r'£\s*',           # Pound
        r'₹\s*',           # Rupee symbol
        r'\bRs\.?\s*',     # Rs or Rs.
        r'\b(USD|EUR|GBP|CAD|AUD|INR)\b\s*',
    ]

    for pattern in patterns:
        value_str = re.sub(pattern, '', value_str, flags=re.IGNORECASE)

    return value_str


def has_valid_amount(value: Union[str, int, float, Decimal, None]) -> bool:
    """
    Check if a value contains a parseable amount.

    Args:
        value: A value to check

    Returns:
        True if the value contains a valid amount, False otherwise
    """
    return parse_amount(value) is not None


def format_currency(amount: Any, symbol: str = "$") -> str:
    """
    Format an amount for display, e.g. ``$1,234.56`` or ``-$5.00``.

    Args:
        amount: The amount to format
        symbol: Currency symbol to prefix

    Returns:
        Formatted currency string, or "N/A" when there is no amount
    """
    value = to_decimal(amount)
    if value is None:
        return "N/A"

    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
