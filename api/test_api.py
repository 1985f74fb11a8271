"""
Tests for the M-Pesa SMS Parser API
"""

import json

import pytest
from fastapi.testclient import TestClient

from main import app

SENT_SMS = (
    "Confirmed. Ksh500.00 sent to JOHN DOE 254712345678 on 1/6/25 at 2:30 PM. "
    "New M-PESA balance is Ksh1,500.00. Transaction cost, Ksh0.00."
)
RECEIVED_SMS = (
    "Confirmed. You have received Ksh1,000.00 from JANE SMITH 254798765432 on 1/6/25 at 3:45 PM. "
    "New M-PESA balance is Ksh2,500.00."
)
OTP_SMS = "Your OTP code is 123456. Valid for 5 minutes."


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "POST /parse" in response.json()["endpoints"]


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_config(client):
    response = client.get("/config")
    assert response.status_code == 200
    assert response.json()["max_message_length"] == 2000


def test_parse_sent_message(client):
    response = client.post("/parse", json={"message": SENT_SMS})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "parsed"
    assert body["transaction"]["category"] == "sent"
    assert body["transaction"]["amount"] == -500.0
    assert body["transaction"]["counterparty"] == "JOHN DOE"
    assert body["storage_row"]["is_savings_transfer"] == 0


def test_parse_uses_received_at_for_missing_date(client):
    response = client.post(
        "/parse",
        json={"message": "Ksh50.00 sent to JOHN DOE.", "received_at": "2025-07-15T09:05:00"}
    )

    transaction = response.json()["transaction"]
    assert transaction["date"] == "2025-07-15"
    assert transaction["time"] == "9:05 AM"


def test_parse_unrecognized_message(client):
    response = client.post("/parse", json={"message": OTP_SMS})

    assert response.status_code == 200
    assert response.json()["status"] == "unrecognized"


def test_parse_rejects_empty_message(client):
    assert client.post("/parse", json={"message": "   "}).status_code == 400


def test_parse_rejects_overlong_message(client):
    assert client.post("/parse", json={"message": "Ksh " + "x" * 2100}).status_code == 400


def test_parse_requires_message_field(client):
    assert client.post("/parse", json={}).status_code == 422


def test_parse_batch(client):
    response = client.post("/parse/batch", json={"messages": [SENT_SMS, OTP_SMS, RECEIVED_SMS]})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert [t["category"] for t in body["transactions"]] == ["sent", "received"]
    assert body["summary"]["net"] == 500.0
    assert body["stats"]["irrelevant"] == 1


def test_parse_batch_requires_messages(client):
    assert client.post("/parse/batch", json={"messages": []}).status_code == 400


def test_scan_text_inbox(client):
    content = f"{SENT_SMS}\n\n{OTP_SMS}\n\n{RECEIVED_SMS}\n".encode("utf-8")
    response = client.post(
        "/scan",
        files={"file": ("inbox.txt", content, "text/plain")},
        data={"keywords": "jane"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert len(body["transactions"]) == 1
    assert body["transactions"][0]["counterparty"] == "JANE SMITH"
    assert body["monthly_summary"]["2025-06"]["total_in"] == 1000.0
    assert body["stats"]["extraction"]["irrelevant"] == 1


def test_scan_json_inbox(client):
    content = json.dumps([{"body": SENT_SMS, "date": "2025-06-01T14:30:00"}]).encode("utf-8")
    response = client.post("/scan", files={"file": ("inbox.json", content, "application/json")})

    assert response.status_code == 200
    assert response.json()["summary"]["count"] == 1


def test_scan_rejects_wrong_file_type(client):
    response = client.post("/scan", files={"file": ("statement.pdf", b"%PDF", "application/pdf")})
    assert response.status_code == 400


def test_scan_rejects_bad_month(client):
    response = client.post(
        "/scan",
        files={"file": ("inbox.txt", SENT_SMS.encode("utf-8"), "text/plain")},
        data={"start_month": "June"}
    )
    assert response.status_code == 400
