"""
Tests for the inbox scan pipeline, filters and grouping.
"""

import json
from datetime import datetime

import pytest

import pipeline
from extractors.financial_rules import TransactionCategory
from extractors.sms_extractor import parse_sms
from pipeline import SmsScanPipeline, TransactionFilter, TransactionGrouper

RECEIVED_AT = datetime(2025, 7, 15, 9, 5)

SENT_JUNE = (
    "Confirmed. Ksh500.00 sent to JOHN DOE 254712345678 on 1/6/25 at 2:30 PM. "
    "New M-PESA balance is Ksh1,500.00. Transaction cost, Ksh7.00."
)
RECEIVED_JUNE = (
    "Confirmed. You have received Ksh1,000.00 from JANE SMITH 254798765432 on 2/6/25 at 3:45 PM. "
    "New M-PESA balance is Ksh2,500.00."
)
PAY_BILL_JULY = (
    "Confirmed. Ksh1,200.00 sent to KPLC PREPAID for account 54321 on 3/7/25 at 8:00 AM. "
    "New M-PESA balance is Ksh1,300.00. Transaction cost, Ksh23.00."
)
BALANCE_JULY = "Your M-PESA balance is Ksh1,300.00 as at 4/7/25 6:30 PM."
OTP_SMS = "Your OTP code is 123456. Valid for 5 minutes."


@pytest.fixture
def transactions():
    return [parse_sms(m, RECEIVED_AT) for m in (SENT_JUNE, RECEIVED_JUNE, PAY_BILL_JULY, BALANCE_JULY)]


@pytest.fixture
def inbox(tmp_path):
    path = tmp_path / "inbox.txt"
    path.write_text("\n\n".join([SENT_JUNE, OTP_SMS, RECEIVED_JUNE, PAY_BILL_JULY, BALANCE_JULY]), encoding="utf-8")
    return path


def test_filter_by_keyword(transactions):
    assert [t.counterparty for t in TransactionFilter.filter_by_keyword(transactions, "kplc")] == ["KPLC PREPAID"]
    assert TransactionFilter.filter_by_keyword(transactions, "") == transactions


def test_filter_by_keywords_keeps_input_order(transactions):
    filtered = TransactionFilter.filter_by_keywords(transactions, ["jane", "john"])
    assert [t.counterparty for t in filtered] == ["JOHN DOE", "JANE SMITH"]


def test_filter_by_categories(transactions):
    filtered = TransactionFilter.filter_by_categories(transactions, [TransactionCategory.PAY_BILL])
    assert len(filtered) == 1


@pytest.mark.parametrize("start, end, expected", [
    ("2025-06", "2025-06", 2),
    ("2025-07", None, 2),
    (None, "2025-06", 2),
    (None, None, 4),
    ("2025-08", "2025-09", 0),
])
def test_filter_by_date_range(transactions, start, end, expected):
    assert len(TransactionFilter.filter_by_date_range(transactions, start, end)) == expected


def test_group_by_month_direction(transactions):
    grouped = TransactionGrouper.group_by_month_direction(transactions)

    assert list(grouped) == ["2025-06", "2025-07"]
    assert set(grouped["2025-06"]) == {"in", "out"}
    assert set(grouped["2025-07"]) == {"out", "none"}


def test_summarize(transactions):
    summary = TransactionGrouper.summarize(transactions)

    assert summary["count"] == 4
    assert summary["total_in"] == 1000.0
    assert summary["total_out"] == -1700.0
    assert summary["net"] == -700.0
    assert summary["total_fees"] == 30.0
    assert summary["by_category"]["pay_bill"] == {"count": 1, "total": -1200.0}


def test_summarize_by_month(transactions):
    monthly = TransactionGrouper.summarize_by_month(transactions)
    assert monthly["2025-06"]["net"] == 500.0
    assert monthly["2025-07"]["count"] == 2


def test_process_writes_export(inbox, tmp_path):
    output = tmp_path / "export.json"
    scan = SmsScanPipeline()
    result = scan.process(str(inbox), start_month="2025-06", end_month="2025-06", output_path=str(output))

    assert len(result["transactions"]) == 2
    assert result["summary"]["net"] == 500.0
    assert scan.stats["messages_loaded"] == 5
    assert scan.stats["total_extracted"] == 4
    assert scan.extraction_stats["irrelevant"] == 1

    document = json.loads(output.read_text(encoding="utf-8"))
    assert document["count"] == 2


@pytest.mark.parametrize("kwargs, message", [
    ({"start_month": "June"}, "YYYY-MM"),
    ({"start_month": "2025-07", "end_month": "2025-06"}, "must be <="),
    ({"keywords": ["ok", " "]}, "non-empty"),
    ({"output_path": "report.pdf"}, ".csv or .json"),
])
def test_process_rejects_bad_inputs(inbox, kwargs, message):
    with pytest.raises(ValueError, match=message):
        SmsScanPipeline().process(str(inbox), **kwargs)


def test_process_missing_inbox(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        SmsScanPipeline().process(str(tmp_path / "nope.txt"))


def test_cli(inbox, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(pipeline, "setup_logging", lambda **kwargs: None)
    output = tmp_path / "export.csv"

    exit_code = pipeline.main([str(inbox), "--keyword", "kplc", "--output", str(output)])

    assert exit_code == 0
    assert output.exists()
    assert "Transactions: 1" in capsys.readouterr().out


def test_cli_reports_errors(tmp_path, monkeypatch):
    monkeypatch.setattr(pipeline, "setup_logging", lambda **kwargs: None)
    assert pipeline.main([str(tmp_path / "missing.txt")]) == 1
