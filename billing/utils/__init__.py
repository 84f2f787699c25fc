"""Formatting utilities"""

from .formatting import format_indian_number, format_currency, format_money, format_date, parse_date
from .number_words import amount_in_words, integer_to_words

__all__ = [
    'format_indian_number',
    'format_currency',
    'format_money',
    'format_date',
    'parse_date',
    'amount_in_words',
    'integer_to_words',
]
