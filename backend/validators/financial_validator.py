"""
Financial Validator Module
Validates parsed M-Pesa transactions for correctness and completeness.
"""

import logging
import math
import re
from datetime import date
from extractors.financial_rules import (
    TransactionCategory,
    FlowDirection,
    NEUTRAL_CATEGORIES,
    get_direction,
)
from extractors.sms_extractor import ParsedTransaction

logger = logging.getLogger(__name__)

_TIME_FORMAT = re.compile(r"(?:[1-9]|1[0-2]):[0-5]\d (?:AM|PM)")


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def _empty_stats() -> dict:
    return {
        "total_validated": 0,
        "valid": 0,
        "invalid": 0,
        "invalid_category": 0,
        "invalid_amount": 0,
        "invalid_date": 0,
        "invalid_time": 0,
        "invalid_counterparty": 0,
        "invalid_balance": 0,
    }


class TransactionValidator:
    """Validates parsed transactions."""

    def __init__(
        self,
        strict_mode: bool = False,
        allow_zero_amounts: bool = True,
    ):
        """
        Initialize validator with configurable settings.

        Args:
            strict_mode: If True, raise exceptions on invalid data.
                        If False, log warnings and skip invalid transactions.
            allow_zero_amounts: If True, money-moving categories may carry a
                        zero amount. Neutral categories are always zero.
        """
        self.strict_mode = strict_mode
        self.allow_zero_amounts = allow_zero_amounts
        self.validation_stats = _empty_stats()

    def validate_transaction(self, transaction: ParsedTransaction) -> bool:
        """
        Validate a single transaction.

        Args:
            transaction: ParsedTransaction to validate

        Returns:
            True if valid, False if invalid

        Raises:
            ValidationError: If strict_mode is True and validation fails
        """
        self.validation_stats["total_validated"] += 1

        checks = (
            ("invalid_category", self._validate_category(transaction.category),
             f"Invalid category: {transaction.category}"),
            ("invalid_amount", self._validate_amount(transaction.amount, transaction.category),
             f"Invalid amount: {transaction.amount}"),
            ("invalid_date", self._validate_date(transaction.date),
             f"Invalid date: {transaction.date}"),
            ("invalid_time", self._validate_time(transaction.time),
             f"Invalid time: {transaction.time}"),
            ("invalid_counterparty", self._validate_counterparty(transaction.counterparty),
             "Invalid counterparty: empty"),
            ("invalid_balance", self._validate_non_negative(transaction.balance, transaction.transaction_cost),
             f"Negative balance or cost: {transaction.balance}/{transaction.transaction_cost}"),
        )

        for stat, ok, msg in checks:
            if ok:
                continue
            self.validation_stats[stat] += 1
            self.validation_stats["invalid"] += 1
            if self.strict_mode:
                raise ValidationError(msg)
            logger.warning(f"{msg} in transaction: {transaction}")
            return False

        self.validation_stats["valid"] += 1
        return True

    def validate_transactions(self, transactions: list[ParsedTransaction]) -> list[ParsedTransaction]:
        """
        Validate a list of transactions.

        Args:
            transactions: List of ParsedTransaction objects

        Returns:
            List of valid transactions (invalid ones filtered out)
        """
        valid_transactions = [txn for txn in transactions if self.validate_transaction(txn)]

        logger.info(
            f"Validation complete: {self.validation_stats['valid']} valid, "
            f"{self.validation_stats['invalid']} invalid out of "
            f"{self.validation_stats['total_validated']} total"
        )

        return valid_transactions

    def _validate_category(self, category) -> bool:
        return isinstance(category, TransactionCategory)

    def _validate_amount(self, amount, category) -> bool:
        """
        Amount must be a finite number whose sign agrees with the category.

        Inflows are positive, outflows negative, neutral notices exactly zero.
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            return False
        if not math.isfinite(amount):
            return False
        if not isinstance(category, TransactionCategory):
            return False

        if category in NEUTRAL_CATEGORIES:
            return amount == 0

        if amount == 0:
            if not self.allow_zero_amounts:
                logger.debug("Amount is zero (rejected - allow_zero_amounts=False)")
                return False
            return True

        direction = get_direction(category)
        if direction == FlowDirection.IN:
            return amount > 0
        return amount < 0

    def _validate_date(self, date_str: str) -> bool:
        """Date must be ISO YYYY-MM-DD."""
        if not date_str or not isinstance(date_str, str):
            return False
        try:
            date.fromisoformat(date_str)
        except ValueError:
            return False
        return len(date_str) == 10

    def _validate_time(self, time_str: str) -> bool:
        """Time must read like '2:30 PM'."""
        if not isinstance(time_str, str):
            return False
        return _TIME_FORMAT.fullmatch(time_str) is not None

    def _validate_counterparty(self, counterparty: str) -> bool:
        return isinstance(counterparty, str) and bool(counterparty.strip())

    def _validate_non_negative(self, *values) -> bool:
        return all(isinstance(v, (int, float)) and v >= 0 for v in values)

    def get_stats(self) -> dict:
        """Get validation statistics."""
        return self.validation_stats.copy()

    def reset_stats(self):
        """Reset validation statistics."""
        self.validation_stats = _empty_stats()


def validate_transactions(
    transactions: list[ParsedTransaction],
    strict_mode: bool = False
) -> list[ParsedTransaction]:
    """
    Convenience function to validate a list of transactions.

    Args:
        transactions: List of ParsedTransaction objects
        strict_mode: If True, raise exceptions on invalid data

    Returns:
        List of valid transactions
    """
    validator = TransactionValidator(strict_mode=strict_mode)
    return validator.validate_transactions(transactions)
