"""
M-Pesa Inbox Scanner - Main Pipeline
Orchestrates loading an SMS export, parsing, validation, filtering,
grouping and export.
"""

import argparse
import logging
import sys
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import config
from logging_config import setup_logging
from extractors.financial_rules import TransactionCategory, FlowDirection
from extractors.sms_extractor import ParsedTransaction, SmsExtractor
from loaders.sms_loader import load_inbox, SmsLoadError
from validators.financial_validator import TransactionValidator
from output.writer import write_transactions

logger = logging.getLogger(__name__)


class TransactionFilter:
    """Filters transactions by counterparty keyword, category and month range."""

    @staticmethod
    def filter_by_keyword(transactions: list[ParsedTransaction], keyword: str) -> list[ParsedTransaction]:
        """
        Filter transactions by keyword (case-insensitive substring match on counterparty).

        Args:
            transactions: List of transactions
            keyword: Keyword to search for

        Returns:
            Filtered list of transactions
        """
        if not keyword:
            return transactions

        keyword_lower = keyword.lower()
        filtered = [
            txn for txn in transactions
            if keyword_lower in txn.counterparty.lower()
        ]

        logger.info(f"Keyword filter '{keyword}': {len(filtered)}/{len(transactions)} transactions matched")
        return filtered

    @staticmethod
    def filter_by_keywords(
        transactions: list[ParsedTransaction],
        keywords: list[str]
    ) -> list[ParsedTransaction]:
        """Keep transactions whose counterparty matches any keyword, in input order."""
        if not keywords:
            return transactions

        lowered = [k.lower() for k in keywords]
        filtered = [
            txn for txn in transactions
            if any(k in txn.counterparty.lower() for k in lowered)
        ]

        logger.info(f"Keywords {keywords}: {len(filtered)}/{len(transactions)} transactions matched")
        return filtered

    @staticmethod
    def filter_by_categories(
        transactions: list[ParsedTransaction],
        categories: list[TransactionCategory]
    ) -> list[ParsedTransaction]:
        if not categories:
            return transactions
        wanted = set(categories)
        return [txn for txn in transactions if txn.category in wanted]

    @staticmethod
    def filter_by_date_range(
        transactions: list[ParsedTransaction],
        start_month: Optional[str],
        end_month: Optional[str]
    ) -> list[ParsedTransaction]:
        """
        Filter transactions by month range. Either bound may be omitted.

        Args:
            transactions: List of transactions
            start_month: Start month (YYYY-MM), inclusive
            end_month: End month (YYYY-MM), inclusive

        Returns:
            Filtered list of transactions
        """
        if not start_month and not end_month:
            return transactions

        filtered = []
        for txn in transactions:
            txn_month = TransactionFilter._extract_month(txn.date)
            if not txn_month:
                continue
            if start_month and txn_month < start_month:
                continue
            if end_month and txn_month > end_month:
                continue
            filtered.append(txn)

        logger.info(
            f"Date range filter ({start_month or '*'} to {end_month or '*'}): "
            f"{len(filtered)}/{len(transactions)} transactions matched"
        )
        return filtered

    @staticmethod
    def _extract_month(date_str: str) -> Optional[str]:
        """YYYY-MM from an ISO date, or None."""
        try:
            return datetime.strptime(date_str, "%Y-%m-%d").strftime("%Y-%m")
        except (TypeError, ValueError):
            logger.warning(f"Failed to parse date '{date_str}'")
            return None


class TransactionGrouper:
    """Groups transactions by month and flow direction, and totals them."""

    @staticmethod
    def group_by_month(transactions: list[ParsedTransaction]) -> dict[str, list[ParsedTransaction]]:
        """
        Group transactions by month (YYYY-MM).

        Args:
            transactions: List of transactions

        Returns:
            Dictionary mapping month to list of transactions, months in order
        """
        grouped = defaultdict(list)

        for txn in transactions:
            month = TransactionFilter._extract_month(txn.date)
            if month:
                grouped[month].append(txn)

        logger.info(f"Grouped {len(transactions)} transactions into {len(grouped)} months")
        return dict(sorted(grouped.items()))

    @staticmethod
    def group_by_month_direction(
        transactions: list[ParsedTransaction]
    ) -> dict[str, dict[str, list[ParsedTransaction]]]:
        """
        Group by month, then flow direction.

        Returns:
            Nested dict: {month: {'in': [...], 'out': [...], 'none': [...]}}
            with empty directions left out
        """
        result = {}
        for month, month_txns in TransactionGrouper.group_by_month(transactions).items():
            month_data = {}
            for direction in FlowDirection:
                txns = [txn for txn in month_txns if txn.direction == direction]
                if txns:
                    month_data[direction.value] = txns
            result[month] = month_data
        return result

    @staticmethod
    def summarize(transactions: list[ParsedTransaction]) -> dict:
        """
        Totals for a set of transactions.

        Returns:
            Dict with count, total_in, total_out (negative), net, total_fees and
            per-category count/total
        """
        total_in = sum(txn.amount for txn in transactions if txn.amount > 0)
        total_out = sum(txn.amount for txn in transactions if txn.amount < 0)
        by_category: dict[str, dict] = {}
        for txn in transactions:
            entry = by_category.setdefault(txn.category.value, {"count": 0, "total": 0.0})
            entry["count"] += 1
            entry["total"] = round(entry["total"] + txn.amount, 2)

        return {
            "count": len(transactions),
            "total_in": round(total_in, 2),
            "total_out": round(total_out, 2),
            "net": round(total_in + total_out, 2),
            "total_fees": round(sum(txn.transaction_cost for txn in transactions), 2),
            "by_category": by_category,
        }

    @staticmethod
    def summarize_by_month(transactions: list[ParsedTransaction]) -> dict[str, dict]:
        return {
            month: TransactionGrouper.summarize(txns)
            for month, txns in TransactionGrouper.group_by_month(transactions).items()
        }


class SmsScanPipeline:
    """Main orchestrator for the inbox scan pipeline."""

    def __init__(self, strict_mode: bool = config.STRICT_MODE):
        """Initialize pipeline."""
        self.strict_mode = strict_mode
        self.stats = {
            "messages_loaded": 0,
            "total_extracted": 0,
            "valid_transactions": 0,
            "after_keyword_filter": 0,
            "after_date_filter": 0,
            "final_output": 0,
        }
        self.extraction_stats: dict = {}

    def _validate_inputs(
        self,
        inbox_path: str,
        keywords: Optional[list[str]],
        start_month: Optional[str],
        end_month: Optional[str],
        output_path: Optional[str]
    ):
        """Validate all input parameters."""
        if not inbox_path or not isinstance(inbox_path, str):
            raise ValueError("inbox_path must be a non-empty string")

        if not Path(inbox_path).exists():
            raise ValueError(f"Inbox file not found: {inbox_path}")

        if keywords is not None:
            if not isinstance(keywords, list):
                raise ValueError("keywords must be a list")
            if not all(isinstance(k, str) and k.strip() for k in keywords):
                raise ValueError("All keywords must be non-empty strings")

        for label, month in (("start_month", start_month), ("end_month", end_month)):
            if month is None:
                continue
            try:
                datetime.strptime(month, "%Y-%m")
            except (TypeError, ValueError):
                raise ValueError(f"{label} must be in YYYY-MM format")

        if start_month and end_month and start_month > end_month:
            raise ValueError(f"start_month ({start_month}) must be <= end_month ({end_month})")

        if output_path is not None and Path(output_path).suffix.lower() not in (".csv", ".json"):
            raise ValueError("output_path must end with .csv or .json")

        logger.info("Input validation passed")

    def run(
        self,
        entries: list,
        keywords: Optional[list[str]] = None,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None
    ) -> list[ParsedTransaction]:
        """
        Parse, validate and filter already-loaded messages.

        Args:
            entries: Message bodies or (text, received_at) pairs

        Returns:
            Transactions that survived validation and filtering
        """
        self.stats["messages_loaded"] = len(entries)

        logger.info("Parsing messages")
        extractor = SmsExtractor()
        transactions = extractor.extract_transactions(entries)
        self.extraction_stats = extractor.get_stats()
        self.stats["total_extracted"] = len(transactions)

        if not transactions:
            logger.warning("No M-Pesa transactions found. Check the export format.")

        logger.info("Validating transactions")
        validator = TransactionValidator(
            strict_mode=self.strict_mode,
            allow_zero_amounts=config.ALLOW_ZERO_AMOUNTS
        )
        transactions = validator.validate_transactions(transactions)
        self.stats["valid_transactions"] = len(transactions)

        transactions = TransactionFilter.filter_by_keywords(transactions, keywords or [])
        self.stats["after_keyword_filter"] = len(transactions)

        transactions = TransactionFilter.filter_by_date_range(transactions, start_month, end_month)
        self.stats["after_date_filter"] = len(transactions)
        self.stats["final_output"] = len(transactions)

        return transactions

    def process(
        self,
        inbox_path: str,
        keywords: Optional[list[str]] = None,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
        output_path: Optional[str] = None
    ) -> dict:
        """
        Scan an exported inbox and optionally write an export.

        Args:
            inbox_path: Path to a .txt or .json SMS export
            keywords: Counterparty keywords to keep (any match)
            start_month: Start month (YYYY-MM)
            end_month: End month (YYYY-MM)
            output_path: Optional .csv or .json export path

        Returns:
            Dict with transactions, grouped (month -> direction) and summary

        Raises:
            ValueError: If inputs are invalid
            SmsLoadError: If the inbox cannot be loaded
            ValidationError: In strict mode, on the first invalid transaction
        """
        logger.info("=" * 80)
        logger.info("Starting M-Pesa Inbox Scan Pipeline")
        logger.info("=" * 80)

        try:
            self._validate_inputs(inbox_path, keywords, start_month, end_month, output_path)
        except ValueError as e:
            logger.error(f"Input validation failed: {e}")
            raise

        try:
            logger.info(f"Step 1: Loading inbox - {inbox_path}")
            entries = load_inbox(inbox_path)

            logger.info("Step 2-4: Parsing, validating and filtering")
            transactions = self.run(entries, keywords, start_month, end_month)

            logger.info("Step 5: Grouping transactions by month and direction")
            grouped = TransactionGrouper.group_by_month_direction(transactions)
            summary = TransactionGrouper.summarize(transactions)

            if output_path:
                logger.info(f"Step 6: Writing export - {output_path}")
                write_transactions(output_path, transactions, summary)

            self._print_summary()

            logger.info("Pipeline completed successfully!")
            return {
                "transactions": transactions,
                "grouped": grouped,
                "summary": summary,
            }

        except SmsLoadError as e:
            logger.error(f"Failed to load inbox: {e}")
            raise
        except Exception as e:
            logger.error(f"Pipeline failed with unexpected error: {e}", exc_info=True)
            raise

    def _print_summary(self):
        """Log extraction summary."""
        logger.info("=" * 80)
        logger.info("SCAN SUMMARY")
        logger.info("=" * 80)
        logger.info(f"Messages loaded:                 {self.stats['messages_loaded']}")
        logger.info(f"Transactions extracted:          {self.stats['total_extracted']}")
        logger.info(f"Valid transactions:              {self.stats['valid_transactions']}")
        logger.info(f"After keyword filter:            {self.stats['after_keyword_filter']}")
        logger.info(f"After date range filter:         {self.stats['after_date_filter']}")
        logger.info("=" * 80)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipeline.py",
        description="Scan an exported SMS inbox for M-Pesa transactions."
    )
    parser.add_argument("inbox", help="Path to a .txt or .json SMS export")
    parser.add_argument(
        "--keyword", "-k", action="append", dest="keywords",
        help="Keep only transactions whose counterparty contains this text (repeatable)"
    )
    parser.add_argument("--start-month", help="First month to include (YYYY-MM)")
    parser.add_argument("--end-month", help="Last month to include (YYYY-MM)")
    parser.add_argument("--output", "-o", help="Export path (.csv or .json)")
    parser.add_argument(
        "--strict", action="store_true", default=config.STRICT_MODE,
        help="Fail on the first invalid transaction instead of skipping it"
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Command line entry point."""
    args = build_arg_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file="mpesa_parser.log")

    pipeline = SmsScanPipeline(strict_mode=args.strict)
    try:
        result = pipeline.process(
            inbox_path=args.inbox,
            keywords=args.keywords,
            start_month=args.start_month,
            end_month=args.end_month,
            output_path=args.output
        )
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        print(f"\nInput Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        return 1

    summary = result["summary"]
    print(f"\nTransactions: {summary['count']}")
    print(f"Money in:     {summary['total_in']:.2f}")
    print(f"Money out:    {summary['total_out']:.2f}")
    print(f"Net:          {summary['net']:.2f}")
    print(f"Fees:         {summary['total_fees']:.2f}")
    if args.output:
        print(f"Export saved to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
