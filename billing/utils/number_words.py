"""Amount in words using the Indian numbering system (lakh, crore)"""

import logging
from typing import Any

from num2words import num2words

from billing.calculations.amounts import apply_rounding_policy, to_decimal
from billing.utils.formatting import format_indian_number

logger = logging.getLogger(__name__)


def integer_to_words(n: int) -> str:
    """
    Spell a non-negative integer, title-cased without "and" or commas.

    Examples:
        >>> integer_to_words(3039)
        'Three Thousand Thirty Nine'
        >>> integer_to_words(12500000)
        'One Crore Twenty Five Lakh'
    """
    words = num2words(n, lang="en_IN").replace("-", " ").replace(",", "")
    return " ".join(word for word in words.split() if word != "and").title()


def amount_in_words(amount: Any) -> str:
    """Rupee amount rounded to the nearest rupee, e.g. "Three Thousand Thirty Nine Rupees Only" """
    value = apply_rounding_policy(to_decimal(amount), True)
    try:
        words = integer_to_words(abs(int(value)))
    except OverflowError:
        logger.warning(f"Amount {value} is too large to spell; printing digits")
        words = format_indian_number(abs(value), 0)
    if value < 0:
        words = f"Minus {words}"
    return f"{words} Rupees Only"
