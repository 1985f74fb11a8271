"""
SMS Extractor Module
Parses M-Pesa notification text into structured, signed transactions.

Each category extractor is a pure function that returns a ParsedTransaction
or None. Extractors are tried in a fixed priority order and the first match
wins; a message nothing recognizes yields None.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional

from config import config
from .financial_rules import (
    TransactionCategory,
    FlowDirection,
    SAVINGS_CATEGORIES,
    apply_sign_for_category,
    format_amount_display,
    get_direction,
)
from .helpers import (
    clean_entity_name,
    clean_reference,
    extract_balance,
    extract_date_from_message,
    extract_outstanding_amount,
    extract_time_from_message,
    extract_transaction_cost,
    parse_amount,
    parse_date,
    parse_time,
)
from . import patterns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedTransaction:
    """A single transaction parsed from one notification."""

    category: TransactionCategory
    amount: float
    counterparty: str
    balance: float
    transaction_cost: float
    date: str
    time: str
    raw_message: str
    account_number: Optional[str] = None
    outstanding_amount: Optional[float] = None
    is_full_repayment: Optional[bool] = None

    def __post_init__(self):
        # The sign always comes from the category
        object.__setattr__(self, "amount", apply_sign_for_category(self.amount, self.category))

    @property
    def direction(self) -> FlowDirection:
        return get_direction(self.category)

    @property
    def amount_display(self) -> str:
        return format_amount_display(self.amount)

    @property
    def is_savings_transfer(self) -> bool:
        return self.category in SAVINGS_CATEGORIES

    def to_dict(self) -> dict:
        """Convert transaction to dictionary."""
        return {
            "category": self.category.value,
            "amount": self.amount,
            "amount_display": self.amount_display,
            "direction": self.direction.value,
            "counterparty": self.counterparty,
            "balance": self.balance,
            "transaction_cost": self.transaction_cost,
            "date": self.date,
            "time": self.time,
            "account_number": self.account_number,
            "outstanding_amount": self.outstanding_amount,
            "is_full_repayment": self.is_full_repayment,
            "raw_message": self.raw_message,
        }

    def to_storage_row(self) -> dict:
        """Row shape stored by the wallet screen."""
        return {
            "type": self.category.value,
            "entity": self.counterparty,
            "amount": self.amount,
            "date": self.date,
            "time": self.time,
            "is_savings_transfer": 1 if self.is_savings_transfer else 0,
        }

    def __repr__(self) -> str:
        return (
            f"ParsedTransaction(category={self.category.value}, "
            f"entity={self.counterparty[:30]}, amount={self.amount_display}, date={self.date})"
        )


Extractor = Callable[[str, datetime], Optional[ParsedTransaction]]


def is_mpesa_message(message: str) -> bool:
    """Cheap, permissive check that text looks like a mobile-money notification."""
    lower = message.lower()
    return any(keyword in lower for keyword in patterns.MPESA_KEYWORDS)


def _first_match(candidates: tuple, message: str):
    for pattern in candidates:
        match = pattern.search(message)
        if match:
            return match
    return None


def _when(match, message: str, received_at: datetime) -> tuple[str, str]:
    """Date and time from the match, then the message, then the received timestamp."""
    groups = match.groupdict()
    date_str = groups.get("date")
    time_str = groups.get("time")
    occurred_on = (
        parse_date(date_str, received_at) if date_str
        else extract_date_from_message(message, received_at)
    )
    occurred_at = (
        parse_time(time_str, received_at) if time_str
        else extract_time_from_message(message, received_at)
    )
    return occurred_on, occurred_at


def _build(
    category: TransactionCategory,
    match,
    message: str,
    received_at: datetime,
    counterparty: str,
    transaction_cost: Optional[float] = None,
    **extra,
) -> ParsedTransaction:
    occurred_on, occurred_at = _when(match, message, received_at)
    groups = match.groupdict()
    balance = parse_amount(groups["balance"]) if groups.get("balance") else extract_balance(message)
    if transaction_cost is None:
        transaction_cost = extract_transaction_cost(message)

    return ParsedTransaction(
        category=category,
        amount=parse_amount(groups.get("amount")),
        counterparty=counterparty,
        balance=balance,
        transaction_cost=transaction_cost,
        date=occurred_on,
        time=occurred_at,
        raw_message=message,
        **extra,
    )


# Category extractors, in priority order

def extract_sent(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """Peer transfer out. Bill payments and Fuliza repayments are left to their own extractors."""
    if patterns.BILL_PAYMENT_ANCHOR.search(message) or patterns.FULIZA_SEND_ANCHOR.search(message):
        return None
    match = _first_match(patterns.SENT_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.SENT, match, message, received_at,
        counterparty=clean_entity_name(match.group("entity")),
    )


def extract_received(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    match = _first_match(patterns.RECEIVED_PATTERNS, message)
    if not match:
        return None
    # Receiving money has no cost
    return _build(
        TransactionCategory.RECEIVED, match, message, received_at,
        counterparty=clean_entity_name(match.group("entity")),
        transaction_cost=0.0,
    )


def extract_withdrawal(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    match = _first_match(patterns.WITHDRAWAL_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.WITHDRAWAL, match, message, received_at,
        counterparty=clean_entity_name(match.group("entity")),
    )


def extract_deposit(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    match = _first_match(patterns.DEPOSIT_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.DEPOSIT, match, message, received_at,
        counterparty=clean_entity_name(match.groupdict().get("entity"), fallback="M-PESA AGENT"),
    )


def extract_buy_goods(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """Till payment. Messages carrying pay-bill anchors are declined."""
    if patterns.BILL_PAYMENT_ANCHOR.search(message):
        return None
    match = _first_match(patterns.BUY_GOODS_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.BUY_GOODS, match, message, received_at,
        counterparty=clean_entity_name(match.group("entity")),
    )


def extract_pay_bill(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    match = _first_match(patterns.PAY_BILL_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.PAY_BILL, match, message, received_at,
        counterparty=clean_entity_name(match.group("entity")),
        account_number=clean_reference(match.groupdict().get("account")),
    )


def extract_airtime(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    match = _first_match(patterns.AIRTIME_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.AIRTIME, match, message, received_at,
        counterparty="Airtime Purchase",
    )


def extract_savings_transfer(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """M-Shwari moves. Direction is decided by keyword."""
    match = _first_match(patterns.SAVINGS_PATTERNS, message)
    if not match:
        return None

    lower = message.lower()
    if "transferred from m-shwari" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_IN, "M-Shwari Withdrawal"
    elif "lock savings" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_OUT, "M-Shwari Lock Savings"
    else:
        category, label = TransactionCategory.SAVINGS_TRANSFER_OUT, "M-Shwari Savings"

    return _build(category, match, message, received_at, counterparty=label)


def extract_bank_transfer(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """KCB M-Pesa transfers and savings accounts. Direction is decided by keyword."""
    match = _first_match(patterns.BANK_TRANSFER_PATTERNS, message)
    if not match:
        return None

    lower = message.lower()
    product = (match.groupdict().get("product") or "").title()
    if "from your kcb" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_IN, "KCB M-Pesa Withdrawal"
    elif "unlocked" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_IN, f"KCB {product} Savings Unlock"
    elif "opened a" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_OUT, f"KCB {product} Savings"
    elif "top up" in lower:
        category, label = TransactionCategory.SAVINGS_TRANSFER_OUT, "KCB Target Savings Top Up"
    else:
        category, label = TransactionCategory.SAVINGS_TRANSFER_OUT, "KCB M-Pesa Deposit"

    return _build(category, match, message, received_at, counterparty=label)


def extract_fuliza(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """Fuliza disbursement (positive) or interest-charge notice (zero)."""
    lower = message.lower()
    if "fuliza" not in lower and "overdraft" not in lower:
        return None
    if patterns.REPAYMENT_ANCHOR.search(message):
        return None

    if "interest charged" in lower:
        charge = _first_match(patterns.FULIZA_CHARGE_PATTERNS, message)
        return ParsedTransaction(
            category=TransactionCategory.FULIZA_CHARGE,
            amount=0.0,
            counterparty="Fuliza Interest Charge",
            balance=extract_balance(message),
            transaction_cost=parse_amount(charge.group("cost")) if charge else 0.0,
            date=extract_date_from_message(message, received_at),
            time=extract_time_from_message(message, received_at),
            raw_message=message,
            outstanding_amount=extract_outstanding_amount(message),
        )

    match = _first_match(patterns.FULIZA_PATTERNS, message)
    if not match:
        return None

    outstanding = match.groupdict().get("outstanding")
    outstanding_amount = parse_amount(outstanding) if outstanding else extract_outstanding_amount(message)
    if outstanding_amount is None:
        logger.debug("Fuliza mention without an outstanding total, not a disbursement")
        return None

    return _build(
        TransactionCategory.LOAN_DISBURSEMENT, match, message, received_at,
        counterparty="Fuliza Overdraft",
        outstanding_amount=outstanding_amount,
    )


def extract_fuliza_repayment(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """Fuliza repayment, full or partial."""
    lower = message.lower()
    if "fuliza" not in lower:
        return None
    match = _first_match(patterns.REPAYMENT_PATTERNS, message)
    if not match:
        return None

    scope = match.groupdict().get("scope")
    is_full = scope.lower() == "fully" if scope else "fully" in lower
    outstanding = extract_outstanding_amount(message)
    if outstanding is None and is_full:
        outstanding = 0.0

    return _build(
        TransactionCategory.LOAN_REPAYMENT, match, message, received_at,
        counterparty="Fuliza Full Repayment" if is_full else "Fuliza Partial Repayment",
        transaction_cost=0.0,
        outstanding_amount=outstanding,
        is_full_repayment=is_full,
    )


def extract_balance_inquiry(message: str, received_at: datetime) -> Optional[ParsedTransaction]:
    """Last resort. Messages that moved money are left unrecognized rather than zeroed."""
    if patterns.MOVEMENT_ANCHOR.search(message):
        logger.debug("Balance mention in a money-moving message, not an inquiry")
        return None
    match = _first_match(patterns.BALANCE_INQUIRY_PATTERNS, message)
    if not match:
        return None
    return _build(
        TransactionCategory.BALANCE_INQUIRY, match, message, received_at,
        counterparty="Balance Inquiry",
        transaction_cost=0.0,
    )


DEFAULT_EXTRACTORS: tuple[tuple[str, Extractor], ...] = (
    ("sent", extract_sent),
    ("received", extract_received),
    ("withdrawal", extract_withdrawal),
    ("deposit", extract_deposit),
    ("buy_goods", extract_buy_goods),
    ("pay_bill", extract_pay_bill),
    ("airtime", extract_airtime),
    ("savings_transfer", extract_savings_transfer),
    ("bank_transfer", extract_bank_transfer),
    ("fuliza", extract_fuliza),
    ("fuliza_repayment", extract_fuliza_repayment),
    ("balance_inquiry", extract_balance_inquiry),
)


def try_in_order(
    extractors: Iterable[tuple[str, Extractor]],
    message: str,
    received_at: datetime,
) -> Optional[ParsedTransaction]:
    """Return the first extractor result that is not None."""
    for name, extractor in extractors:
        result = extractor(message, received_at)
        if result is not None:
            logger.debug(f"Matched by '{name}' extractor: {result}")
            return result
    return None


def _resolve_received_at(received_at) -> datetime:
    if received_at is None:
        return datetime.now()
    if isinstance(received_at, datetime):
        return received_at
    if isinstance(received_at, date):
        return datetime.combine(received_at, time())
    logger.warning(f"Ignoring received_at of type {type(received_at).__name__}, using current time")
    return datetime.now()


def parse_sms(
    text,
    received_at: Optional[datetime] = None,
    extractors: Iterable[tuple[str, Extractor]] = DEFAULT_EXTRACTORS,
) -> Optional[ParsedTransaction]:
    """
    Parse one M-Pesa notification.

    Args:
        text: Raw message body
        received_at: When the message arrived; fallback for date/time not
            stated in the text. Defaults to now.
        extractors: Ordered (name, extractor) table

    Returns:
        ParsedTransaction, or None if the text is invalid, irrelevant or
        unrecognized. Never raises.
    """
    if not text or not isinstance(text, str):
        logger.debug("Invalid input: text must be a non-empty string")
        return None

    message = text.strip()
    if not message:
        return None

    if len(message) > config.MAX_MESSAGE_LENGTH:
        logger.warning(
            f"Message too long ({len(message)} chars, max {config.MAX_MESSAGE_LENGTH}), skipping"
        )
        return None

    if not is_mpesa_message(message):
        logger.debug(f"Not an M-Pesa message: {message[:50]}...")
        return None

    try:
        return try_in_order(extractors, message, _resolve_received_at(received_at))
    except Exception as e:
        logger.error(f"Error parsing M-Pesa message: {e}", exc_info=True)
        logger.debug(f"Problematic message: {message[:100]}...")
        return None


class SmsExtractor:
    """
    Parses a batch of messages (an exported inbox, a pasted list) and keeps
    statistics about what was recognized.
    """

    def __init__(self, extractors: Iterable[tuple[str, Extractor]] = DEFAULT_EXTRACTORS):
        self.extractors = tuple(extractors)
        self.stats = {
            "messages_processed": 0,
            "transactions_found": 0,
            "invalid": 0,
            "irrelevant": 0,
            "unrecognized": 0,
            "by_category": {},
        }

    def extract_transactions(self, messages: Iterable) -> list[ParsedTransaction]:
        """
        Parse every message in the batch.

        Args:
            messages: Plain strings, or (text, received_at) pairs

        Returns:
            List of ParsedTransaction objects, in input order
        """
        transactions: list[ParsedTransaction] = []
        for index, item in enumerate(messages, 1):
            self.stats["messages_processed"] += 1
            if isinstance(item, tuple):
                if len(item) != 2:
                    self.stats["invalid"] += 1
                    logger.debug(f"Message {index}: expected (text, received_at), got {len(item)} items")
                    continue
                text, received_at = item
            else:
                text, received_at = item, None

            if not isinstance(text, str) or not text.strip():
                self.stats["invalid"] += 1
                logger.debug(f"Message {index}: empty or not text")
                continue

            if not is_mpesa_message(text):
                self.stats["irrelevant"] += 1
                continue

            result = parse_sms(text, received_at, self.extractors)
            if result is None:
                self.stats["unrecognized"] += 1
                logger.info(f"Message {index}: unrecognized format: {text.strip()[:50]}...")
                continue

            transactions.append(result)
            self.stats["transactions_found"] += 1
            by_category = self.stats["by_category"]
            by_category[result.category.value] = by_category.get(result.category.value, 0) + 1

        logger.info(
            f"Extraction complete: {self.stats['transactions_found']} transactions from "
            f"{self.stats['messages_processed']} messages "
            f"({self.stats['irrelevant']} irrelevant, {self.stats['unrecognized']} unrecognized)"
        )
        return transactions

    def get_stats(self) -> dict:
        """Get extraction statistics."""
        stats = self.stats.copy()
        stats["by_category"] = dict(self.stats["by_category"])
        return stats


def extract_transactions_from_messages(messages: Iterable) -> list[ParsedTransaction]:
    """
    Convenience function to parse a batch of messages.

    Args:
        messages: Message bodies, or (text, received_at) pairs

    Returns:
        List of ParsedTransaction objects
    """
    extractor = SmsExtractor()
    return extractor.extract_transactions(messages)
