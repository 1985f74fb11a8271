"""
Loaders Module - SMS inbox loading.
"""

from .sms_loader import (
    load_inbox,
    load_inbox_text,
    load_multiple_inboxes,
    SmsLoadError
)

__all__ = [
    'load_inbox',
    'load_inbox_text',
    'load_multiple_inboxes',
    'SmsLoadError',
]
