"""Amount parsing for French formatted documents."""

import re
from decimal import Decimal, InvalidOperation

# Regular, non-breaking and narrow non-breaking spaces used as thousands separators.
_SPACES = (" ", "\u00a0", "\u202f")

# "1,000" or "12,500,000": commas grouping thousands, no decimal part.
_COMMA_THOUSANDS_RE = re.compile(r"^-?\d{1,3}(?:,\d{3})+$")


def parse_amount(value) -> Decimal:
    """
    Parse an amount handling French and English number formats.

    Accepts numbers as well as strings such as "1 000,50 €", "1.000,50",
    "1,000.50" or "EUR 1000.50". A lone comma is the decimal separator
    ("1000,5"), except when it groups exactly three digits after a one to
    three digit head ("1,000" is one thousand).

    Raises:
        InvalidOperation: If the value isn't a finite number.
    """
    if isinstance(value, bool):
        raise InvalidOperation(f"Not an amount: {value!r}")
    if isinstance(value, (int, float)):
        return _finite(Decimal(str(value)), value)
    if isinstance(value, Decimal):
        return _finite(value, value)

    str_value = str(value).strip()

    # Remove currency symbols and whitespace
    str_value = str_value.replace("€", "").replace("EUR", "").replace("eur", "")
    for space in _SPACES:
        str_value = str_value.replace(space, "")

    # Handle French format: 1.234,56
    if "," in str_value and "." in str_value:
        if str_value.rindex(",") > str_value.rindex("."):
            str_value = str_value.replace(".", "").replace(",", ".")
        else:
            str_value = str_value.replace(",", "")

    elif _COMMA_THOUSANDS_RE.match(str_value):
        str_value = str_value.replace(",", "")

    # Handle comma as decimal separator: 1234,56
    elif "," in str_value:
        str_value = str_value.replace(",", ".")

    if not str_value:
        raise InvalidOperation(f"Not an amount: {value!r}")

    return _finite(Decimal(str_value), value)


def _finite(amount: Decimal, raw) -> Decimal:
    if not amount.is_finite():
        raise InvalidOperation(f"Not a finite amount: {raw!r}")
    return amount
