"""
Tests for inbox loading and transaction exports.
"""

import csv
import json
from datetime import datetime

import pytest

from extractors.sms_extractor import parse_sms
from loaders.sms_loader import (
    SmsLoadError,
    load_inbox,
    load_inbox_text,
    load_multiple_inboxes,
)
from output.writer import CSV_COLUMNS, TransactionWriter, write_transactions

SENT_SMS = (
    "Confirmed. Ksh500.00 sent to JOHN DOE 254712345678 on 1/6/25 at 2:30 PM. "
    "New M-PESA balance is Ksh1,500.00. Transaction cost, Ksh0.00."
)
RECEIVED_SMS = (
    "Confirmed. You have received Ksh1,000.00 from JANE SMITH 254798765432 on 1/6/25 at 3:45 PM. "
    "New M-PESA balance is Ksh2,500.00."
)


def test_plain_text_messages_split_on_blank_lines():
    content = "Confirmed. Ksh500.00 sent to\nJOHN DOE.\n\n\n  \nSecond message\n"
    entries = load_inbox_text(content)

    assert entries == [
        ("Confirmed. Ksh500.00 sent to JOHN DOE.", None),
        ("Second message", None),
    ]


def test_json_list_of_strings():
    entries = load_inbox_text(json.dumps([SENT_SMS, RECEIVED_SMS]), "json")
    assert [text for text, _ in entries] == [SENT_SMS, RECEIVED_SMS]


def test_json_objects_with_dates():
    content = json.dumps([
        {"body": SENT_SMS, "date": "2025-06-01T14:30:00"},
        {"message": RECEIVED_SMS, "received_at": 1748784600000},
        {"body": None},
        42,
    ])
    entries = load_inbox_text(content, "json")

    assert len(entries) == 2
    assert entries[0] == (SENT_SMS, datetime(2025, 6, 1, 14, 30))
    assert isinstance(entries[1][1], datetime)


def test_json_wrapped_in_messages_key():
    entries = load_inbox_text(json.dumps({"messages": ["one", "two"]}), "json")
    assert len(entries) == 2


def test_unparseable_received_date_is_ignored():
    entries = load_inbox_text(json.dumps([{"body": "x", "date": "last tuesday"}]), "json")
    assert entries == [("x", None)]


@pytest.mark.parametrize("content", ["{not json", json.dumps({"a": 1}), json.dumps("text")])
def test_bad_json_raises(content):
    with pytest.raises(SmsLoadError):
        load_inbox_text(content, "json")


def test_unknown_format_raises():
    with pytest.raises(SmsLoadError, match="Unsupported inbox format"):
        load_inbox_text("x", "xml")


def test_load_inbox_from_files(tmp_path):
    text_file = tmp_path / "inbox.txt"
    text_file.write_text(f"{SENT_SMS}\n\n{RECEIVED_SMS}\n", encoding="utf-8")
    json_file = tmp_path / "inbox.json"
    json_file.write_text(json.dumps([SENT_SMS]), encoding="utf-8")

    assert len(load_inbox(str(text_file))) == 2
    assert len(load_inbox(str(json_file))) == 1
    assert len(load_multiple_inboxes([str(text_file), str(tmp_path / "missing.txt")])) == 2


def test_load_inbox_errors(tmp_path):
    with pytest.raises(SmsLoadError, match="not found"):
        load_inbox(str(tmp_path / "missing.txt"))

    wrong_type = tmp_path / "inbox.csv"
    wrong_type.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(SmsLoadError, match="Unsupported"):
        load_inbox(str(wrong_type))

    empty = tmp_path / "empty.txt"
    empty.write_text("\n\n", encoding="utf-8")
    with pytest.raises(SmsLoadError, match="No messages"):
        load_inbox(str(empty))

    with pytest.raises(SmsLoadError):
        load_multiple_inboxes([])


def test_csv_export(tmp_path):
    transactions = [parse_sms(SENT_SMS), parse_sms(RECEIVED_SMS)]
    path = write_transactions(str(tmp_path / "out" / "export.csv"), transactions)

    with open(path, newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))

    assert list(rows[0].keys()) == CSV_COLUMNS
    assert rows[0]["category"] == "sent"
    assert rows[0]["amount"] == "-500.0"
    assert rows[1]["counterparty"] == "JANE SMITH"
    assert rows[1]["amount_display"] == "+1000.00"


def test_json_export_includes_summary(tmp_path):
    transactions = [parse_sms(SENT_SMS)]
    path = write_transactions(str(tmp_path / "export.json"), transactions, {"count": 1})

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["count"] == 1
    assert document["summary"] == {"count": 1}
    assert document["transactions"][0]["counterparty"] == "JOHN DOE"


def test_writer_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported export format"):
        TransactionWriter(str(tmp_path / "report.pdf"))


def test_writer_requires_a_list(tmp_path):
    with pytest.raises(ValueError):
        TransactionWriter(str(tmp_path / "export.csv")).write(None)
