"""
Normalizer module for parsing amounts.
"""
from .amount_parser import (
    format_currency, has_valid_amount, is_finite_number, parse_amount, to_decimal
)

__all__ = ['parse_amount', 'has_valid_amount', 'is_finite_number', 'to_decimal', 'format_currency']
