"""
Financial Rules Module
Defines the transaction categories and the sign convention applied to each.
"""

from enum import Enum
import logging

logger = logging.getLogger(__name__)


class TransactionCategory(Enum):
    """Closed set of M-Pesa event categories."""
    SENT = "sent"
    RECEIVED = "received"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    BUY_GOODS = "buy_goods"
    PAY_BILL = "pay_bill"
    AIRTIME = "airtime"
    SAVINGS_TRANSFER_OUT = "savings_transfer_out"
    SAVINGS_TRANSFER_IN = "savings_transfer_in"
    LOAN_DISBURSEMENT = "loan_disbursement"
    LOAN_REPAYMENT = "loan_repayment"
    BALANCE_INQUIRY = "balance_inquiry"
    FULIZA_CHARGE = "fuliza_charge"


class FlowDirection(Enum):
    """Which way money moves relative to the user's account."""
    IN = "in"
    OUT = "out"
    NONE = "none"


# Money entering the account
INFLOW_CATEGORIES = frozenset({
    TransactionCategory.RECEIVED,
    TransactionCategory.DEPOSIT,
    TransactionCategory.SAVINGS_TRANSFER_IN,
    TransactionCategory.LOAN_DISBURSEMENT,
})

# Money leaving the account
OUTFLOW_CATEGORIES = frozenset({
    TransactionCategory.SENT,
    TransactionCategory.WITHDRAWAL,
    TransactionCategory.BUY_GOODS,
    TransactionCategory.PAY_BILL,
    TransactionCategory.AIRTIME,
    TransactionCategory.SAVINGS_TRANSFER_OUT,
    TransactionCategory.LOAN_REPAYMENT,
})

# Notices with no money movement
NEUTRAL_CATEGORIES = frozenset({
    TransactionCategory.BALANCE_INQUIRY,
    TransactionCategory.FULIZA_CHARGE,
})

SAVINGS_CATEGORIES = frozenset({
    TransactionCategory.SAVINGS_TRANSFER_OUT,
    TransactionCategory.SAVINGS_TRANSFER_IN,
})


def get_direction(category: TransactionCategory) -> FlowDirection:
    """Get the flow direction for a category."""
    if category in INFLOW_CATEGORIES:
        return FlowDirection.IN
    if category in OUTFLOW_CATEGORIES:
        return FlowDirection.OUT
    return FlowDirection.NONE


def apply_sign_for_category(amount: float, category: TransactionCategory) -> float:
    """
    Apply correct sign to amount based on transaction category.

    Inflow categories: positive
    Outflow categories: negative
    Neutral categories: always exactly zero

    Args:
        amount: Raw amount (source text never carries a sign)
        category: Category of the parsed message

    Returns:
        Amount with correct sign applied
    """
    # Ensure we start with absolute value
    amount = abs(amount)

    direction = get_direction(category)
    if direction == FlowDirection.IN:
        return amount
    elif direction == FlowDirection.OUT:
        return -amount
    else:
        if amount:
            logger.debug(f"Dropping amount {amount} for neutral category {category.value}")
        return 0.0


def format_amount_display(amount: float) -> str:
    """
    Format amount for display with explicit sign.

    Positive amounts: +1000.00
    Negative amounts: -500.00
    Zero: 0.00

    Args:
        amount: Signed amount

    Returns:
        Formatted string with explicit sign
    """
    if amount > 0:
        return f"+{amount:.2f}"
    elif amount < 0:
        return f"{amount:.2f}"  # Negative sign already included
    return f"{0:.2f}"
