"""
Validators Module - Parsed transaction checks (sign, date, time, amounts).
"""

from .financial_validator import (
    TransactionValidator,
    validate_transactions,
    ValidationError
)

__all__ = [
    'TransactionValidator',
    'validate_transactions',
    'ValidationError',
]
