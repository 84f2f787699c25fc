"""Line amount formula and monetary rounding helpers

Every monetary value in the system passes through these helpers. Inputs are
forgiving: text that does not start with a number counts as zero instead of
raising, so data entry is never blocked by a half-typed value.
"""

import re
from decimal import Context, Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Union

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
WHOLE_UNIT = Decimal("1")

# Significant digits for money arithmetic; a rounded value that needs more
# degrades to zero
MONEY_PRECISION = 60

_MONEY_CONTEXT = Context(prec=MONEY_PRECISION, rounding=ROUND_HALF_UP)

# Leading magnitude of a quantity such as "5 pcs" or "2.5 kg"
_QUANTITY_PATTERN = re.compile(r"^\d*\.?\d+")

# Leading signed number, as a browser's parseFloat would read it
_NUMBER_PATTERN = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

Numeric = Union[int, float, Decimal]


def to_decimal(value: Any) -> Decimal:
    """
    Coerce an arbitrary input to Decimal, degrading to zero.

    Numbers are converted through their string form to avoid binary float
    artefacts. Strings use their leading numeric prefix ("12.5abc" -> 12.5).
    Anything else, including None and booleans, is zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return result if result.is_finite() else ZERO
    if isinstance(value, str):
        match = _NUMBER_PATTERN.match(value)
        if not match:
            return ZERO
        return Decimal(match.group(0).strip())
    return ZERO


def quantity_magnitude(quantity: Any) -> Decimal:
    """
    Effective numeric magnitude of a quantity field.

    Examples:
        >>> quantity_magnitude("5 pcs")
        Decimal('5')
        >>> quantity_magnitude("2.5 kg")
        Decimal('2.5')
        >>> quantity_magnitude("pcs")
        Decimal('0')
    """
    if isinstance(quantity, (int, float, Decimal)) and not isinstance(quantity, bool):
        return to_decimal(quantity)
    if not isinstance(quantity, str):
        return ZERO
    match = _QUANTITY_PATTERN.match(quantity)
    if not match:
        return ZERO
    return Decimal(match.group(0))


def money_context():
    """Decimal context for sums and products of money values"""
    return localcontext(_MONEY_CONTEXT)


def _quantize(value: Decimal, exponent: Decimal) -> Decimal:
    with money_context():
        try:
            return value.quantize(exponent, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return ZERO


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places"""
    return _quantize(value, CENT)


def apply_rounding_policy(value: Decimal, round_off: bool) -> Decimal:
    """Round to whole units when round-off is on, otherwise to cents"""
    if round_off:
        return _quantize(value, WHOLE_UNIT)
    return round2(value)


def calculate_amount(quantity: Any, rate: Any) -> Decimal:
    """
    Line amount: magnitude of the quantity times the rate, rounded to cents.

    Negative rates are not rejected; they yield negative amounts. A product
    too large to represent counts as zero.
    """
    with money_context():
        try:
            product = quantity_magnitude(quantity) * to_decimal(rate)
        except DecimalException:
            return ZERO
    return round2(product)


def percentage_of(base: Decimal, rate: Any) -> Decimal:
    """Unrounded `rate` percent of `base`"""
    with money_context():
        try:
            return base * to_decimal(rate) / HUNDRED
        except DecimalException:
            return ZERO
