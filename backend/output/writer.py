"""
Export Writer Module
Writes parsed transactions to CSV or JSON files.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from extractors.sms_extractor import ParsedTransaction

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "date",
    "time",
    "category",
    "direction",
    "counterparty",
    "amount",
    "amount_display",
    "transaction_cost",
    "balance",
    "account_number",
    "outstanding_amount",
    "is_full_repayment",
    "raw_message",
]


class TransactionWriter:
    """Writes transaction exports."""

    SUPPORTED_FORMATS = (".csv", ".json")

    def __init__(self, output_path: str):
        """
        Initialize writer.

        Args:
            output_path: Path of the export; the suffix picks the format
        """
        self.output_path = Path(output_path)
        if self.output_path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported export format '{self.output_path.suffix}'. "
                f"Use one of: {', '.join(self.SUPPORTED_FORMATS)}"
            )

    def write(self, transactions: list[ParsedTransaction], summary: Optional[dict] = None) -> Path:
        """
        Write transactions to the output path.

        Args:
            transactions: Parsed transactions, written in the given order
            summary: Optional totals, included in JSON exports only

        Returns:
            Path of the written file

        Raises:
            ValueError: If transactions is not a list
            OSError: If the file cannot be written
        """
        if not isinstance(transactions, list):
            logger.error("transactions must be a list")
            raise ValueError("transactions must be a list")

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Writing {len(transactions)} transactions to {self.output_path}")

        if self.output_path.suffix.lower() == ".csv":
            self._write_csv(transactions)
        else:
            self._write_json(transactions, summary)

        return self.output_path

    def _write_csv(self, transactions: list[ParsedTransaction]):
        with open(self.output_path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS, extrasaction="ignore")
            writer.writeheader()
            for txn in transactions:
                writer.writerow(txn.to_dict())

    def _write_json(self, transactions: list[ParsedTransaction], summary: Optional[dict]):
        document = {
            "generated_at": datetime.now().isoformat(timespec="seconds"),
            "count": len(transactions),
            "transactions": [txn.to_dict() for txn in transactions],
        }
        if summary is not None:
            document["summary"] = summary

        with open(self.output_path, "w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2, ensure_ascii=False)


def write_transactions(
    output_path: str,
    transactions: list[ParsedTransaction],
    summary: Optional[dict] = None
) -> Path:
    """
    Convenience function to export transactions.

    Args:
        output_path: Target .csv or .json path
        transactions: Parsed transactions
        summary: Optional totals for JSON exports
    """
    writer = TransactionWriter(output_path)
    return writer.write(transactions, summary)
