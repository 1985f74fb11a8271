"""
Extraction Helpers
Amount, date and time normalization, counterparty cleanup, and the shared
best-effort scans for balance, transaction cost and outstanding overdraft.
"""

import re
import logging
from datetime import date, datetime
from typing import Optional

from .patterns import (
    BALANCE_SCAN_PATTERNS,
    COST_SCAN_PATTERNS,
    OUTSTANDING_SCAN_PATTERNS,
    DATE_SCAN,
    TIME_SCAN,
    DATE_TOKEN,
    TIME_TOKEN,
)

logger = logging.getLogger(__name__)

UNKNOWN_ENTITY = "Unknown"

_WHITESPACE = re.compile(r"\s+")
_EDGE_NON_WORD = re.compile(r"^\W+|\W+$")


def parse_amount(amount_str: Optional[str]) -> float:
    """
    Parse amount string to float.
    Handles commas in thousands. Anything unparseable yields 0.

    Args:
        amount_str: Raw amount token, e.g. "12,345.50"

    Returns:
        Amount rounded to 2 decimals
    """
    if not amount_str:
        return 0.0

    clean = amount_str.replace(",", "").strip()
    try:
        return round(float(clean), 2)
    except ValueError:
        logger.debug(f"Cannot parse amount '{amount_str}', using 0")
        return 0.0


def clean_entity_name(name: Optional[str], fallback: str = UNKNOWN_ENTITY) -> str:
    """Trim, collapse whitespace, strip edge punctuation and uppercase."""
    if not name:
        return fallback

    cleaned = _WHITESPACE.sub(" ", name.strip())
    cleaned = _EDGE_NON_WORD.sub("", cleaned).strip()
    if not cleaned:
        return fallback
    return cleaned.upper()


def clean_reference(reference: Optional[str]) -> Optional[str]:
    """Collapse whitespace in an account reference."""
    if not reference:
        return None
    cleaned = _WHITESPACE.sub(" ", reference).strip(" .,")
    return cleaned or None


def format_date(moment: datetime) -> str:
    """Calendar date of a timestamp as YYYY-MM-DD."""
    return moment.date().isoformat()


def format_time(moment: datetime) -> str:
    """12-hour clock rendering without leading zero, e.g. '2:30 PM'."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def parse_date(date_str: Optional[str], fallback: datetime) -> str:
    """
    Parse a D/M/YY or D/M/YYYY token into ISO form.

    Two-digit years are taken to be in the 2000s. Anything else, including
    impossible calendar dates like 31/2/25, falls back to the received
    timestamp.
    """
    if not date_str:
        return format_date(fallback)

    match = DATE_TOKEN.fullmatch(date_str)
    if not match:
        logger.debug(f"Unrecognized date token '{date_str}', using fallback")
        return format_date(fallback)

    day, month, year = match.groups()
    full_year = 2000 + int(year) if len(year) == 2 else int(year)
    try:
        return date(full_year, int(month), int(day)).isoformat()
    except ValueError:
        logger.debug(f"Invalid calendar date '{date_str}', using fallback")
        return format_date(fallback)


def parse_time(time_str: Optional[str], fallback: datetime) -> str:
    """Normalize an 'H:MM AM/PM' token, or render the fallback."""
    if not time_str:
        return format_time(fallback)

    match = TIME_TOKEN.fullmatch(time_str)
    if not match:
        logger.debug(f"Unrecognized time token '{time_str}', using fallback")
        return format_time(fallback)

    hour, minute, suffix = match.groups()
    return f"{hour}:{minute} {suffix.upper()}"


def extract_date_from_message(message: str, fallback: datetime) -> str:
    """Find the first event date in the message (due dates are skipped)."""
    match = DATE_SCAN.search(message)
    return parse_date(match.group("date"), fallback) if match else format_date(fallback)


def extract_time_from_message(message: str, fallback: datetime) -> str:
    match = TIME_SCAN.search(message)
    return parse_time(match.group("time"), fallback) if match else format_time(fallback)


def _scan(patterns: tuple, message: str, group: str) -> Optional[float]:
    for pattern in patterns:
        match = pattern.search(message)
        if match:
            return parse_amount(match.group(group))
    return None


def extract_balance(message: str) -> float:
    """Resulting M-Pesa balance stated in the message, or 0."""
    balance = _scan(BALANCE_SCAN_PATTERNS, message, "balance")
    return balance if balance is not None else 0.0


def extract_transaction_cost(message: str) -> float:
    """Transaction cost / fee stated in the message, or 0."""
    cost = _scan(COST_SCAN_PATTERNS, message, "cost")
    return cost if cost is not None else 0.0


def extract_outstanding_amount(message: str) -> Optional[float]:
    """Outstanding Fuliza / overdraft total, or None when not stated."""
    return _scan(OUTSTANDING_SCAN_PATTERNS, message, "outstanding")
