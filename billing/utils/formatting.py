"""Display formatting helpers for amounts and dates"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union

from billing.calculations.amounts import money_context, to_decimal

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DISPLAY_DATE = re.compile(r"^\d{2}-\d{2}-\d{4}$")


def format_indian_number(value: Any, decimals: int = 2) -> str:
    """
    Group digits the Indian way: last three, then pairs.

    Examples:
        >>> format_indian_number(2500000)
        '25,00,000.00'
        >>> format_indian_number("3038.5")
        '3,038.50'

    Empty input (None or "") formats as an empty string.
    """
    if value is None or value == "":
        return ""
    number = to_decimal(value)
    exponent = Decimal(1).scaleb(-decimals)
    with money_context():
        try:
            fixed = format(number.quantize(exponent, rounding=ROUND_HALF_UP), "f")
        except InvalidOperation:
            # too many digits to round; print as is
            fixed = format(number, "f")

    sign = ""
    if fixed.startswith("-"):
        sign, fixed = "-", fixed[1:]
    whole, _, fraction = fixed.partition(".")

    if len(whole) > 3:
        head, last_three = whole[:-3], whole[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        whole = ",".join(pairs + [last_three])

    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def format_currency(value: Any, decimals: int = 2) -> str:
    return format_indian_number(value, decimals)


def format_money(value: Any, round_off: bool) -> str:
    """Whole rupees under round-off, otherwise two decimals"""
    return format_indian_number(value, 0 if round_off else 2)


def format_date(value: Optional[Union[date, str]]) -> str:
    """YYYY-MM-DD (or a date) -> DD-MM-YYYY; other text passes through"""
    if not value:
        return ""
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    if _DISPLAY_DATE.match(value):
        return value
    if _ISO_DATE.match(value):
        year, month, day = value.split("-")
        return f"{day}-{month}-{year}"
    return value


def parse_date(value: Optional[str]) -> str:
    """DD-MM-YYYY -> YYYY-MM-DD; other text passes through"""
    if not value:
        return ""
    if _ISO_DATE.match(value):
        return value
    if _DISPLAY_DATE.match(value):
        day, month, year = value.split("-")
        return f"{year}-{month}-{day}"
    return value
