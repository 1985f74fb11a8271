"""
Output Module - CSV and JSON transaction exports.
"""

from .writer import (
    TransactionWriter,
    write_transactions
)

__all__ = [
    'TransactionWriter',
    'write_transactions',
]
