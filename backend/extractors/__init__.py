"""
Extractors Module - M-Pesa message parsing and categorization.
"""

from .sms_extractor import (
    ParsedTransaction,
    SmsExtractor,
    DEFAULT_EXTRACTORS,
    is_mpesa_message,
    parse_sms,
    try_in_order,
    extract_transactions_from_messages
)

from .financial_rules import (
    TransactionCategory,
    FlowDirection,
    apply_sign_for_category,
    format_amount_display,
    get_direction
)

__all__ = [
    'ParsedTransaction',
    'SmsExtractor',
    'DEFAULT_EXTRACTORS',
    'is_mpesa_message',
    'parse_sms',
    'try_in_order',
    'extract_transactions_from_messages',
    'TransactionCategory',
    'FlowDirection',
    'apply_sign_for_category',
    'format_amount_display',
    'get_direction',
]
