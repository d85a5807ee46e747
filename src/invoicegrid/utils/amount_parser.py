"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Any, Optional


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45", "€123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is not finite
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str).replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    return -amount if is_negative else amount


def to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce a cell or request value into a finite Decimal.

    Accepts Decimal, int, float and numeric strings. Booleans, None, NaN,
    infinities and anything unparseable give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        result = Decimal(str(value))
        return result if result.is_finite() else None
    if isinstance(value, str):
        try:
            return parse_amount(value)
        except ValueError:
            return None
    return None


def coerce_amount(value: Any) -> Decimal:
    """Like ``to_decimal`` but missing or invalid values count as zero."""
    result = to_decimal(value)
    return result if result is not None else Decimal("0")


def to_json_number(value: Decimal):
    """Return ``value`` as an int when integral, else as a float, for JSON cells."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
