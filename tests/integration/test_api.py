"""Integration tests for API endpoints"""

import base64
import pytest
from fastapi.testclient import TestClient
from smart_lending.config import settings


@pytest.fixture
def application_body() -> dict:
    """APP-1 request body with good credit profile"""
    return {
        "application_number": "APP-1",
        "make": "Toyota",
        "model": "Corolla",
        "loan_amount": 24000.0,
        "ssn": "1234567",
        "age": 35,
        "monthly_income": 2500.0,
        "credit_score": 650,
        "tenure": 5,
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, application_body: dict):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/applications", json=application_body)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "lending_applications_created_total" in response.text
    assert "lending_quotations_total" in response.text


def test_create_application(client: TestClient, application_body: dict):
    """Test POST /v1/applications collects four quotations"""
    response = client.post("/v1/applications", json=application_body)

    assert response.status_code == 201
    data = response.json()
    assert data["application_number"] == "APP-1"
    assert data["status"] == 1
    assert len(data["quotations"]) == 4
    assert all(q["interest_rate"] == 6.0 for q in data["quotations"])
    assert len(data["transactions"]) == 2


def test_create_application_duplicate(client: TestClient, application_body: dict):
    client.post("/v1/applications", json=application_body)

    response = client.post("/v1/applications", json=application_body)
    assert response.status_code == 409


def test_create_application_empty_number(client: TestClient, application_body: dict):
    application_body["application_number"] = ""

    response = client.post("/v1/applications", json=application_body)
    assert response.status_code == 400


def test_create_application_validation(client: TestClient, application_body: dict):
    """Test malformed body is rejected before reaching the engine"""
    del application_body["credit_score"]

    response = client.post("/v1/applications", json=application_body)
    assert response.status_code == 422


def test_get_application_returns_stored_record(client: TestClient, application_body: dict):
    created = client.post("/v1/applications", json=application_body)

    response = client.get("/v1/applications/APP-1")

    assert response.status_code == 200
    assert response.content == created.content


def test_get_application_not_found(client: TestClient):
    response = client.get("/v1/applications/APP-404")
    assert response.status_code == 404


def test_request_id_becomes_transaction_id(client: TestClient, application_body: dict):
    """Test X-Request-ID and X-Caller-Metadata are stamped on audit entries"""
    response = client.post(
        "/v1/applications",
        json=application_body,
        headers={
            "X-Request-ID": "req-123",
            "X-Caller-Metadata": base64.b64encode(b"dealer-42").decode(),
        },
    )

    assert response.headers["X-Request-ID"] == "req-123"
    transactions = response.json()["transactions"]
    assert [t["transaction_id"] for t in transactions] == ["req-123", "req-123"]
    assert base64.b64decode(transactions[0]["caller_metadata"]) == b"dealer-42"


def test_confirm_bid_and_schedule(client: TestClient, application_body: dict):
    """Test POST /v1/applications/{number}/bid opens the loan"""
    quotations = client.post("/v1/applications", json=application_body).json()["quotations"]
    bidding_number = quotations[0]["bidding_number"]

    response = client.post(
        "/v1/applications/APP-1/bid",
        json={"bidding_number": bidding_number, "bid_status": 2},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == 2
    assert sum(q["is_winning_bid"] for q in data["quotations"]) == 1
    assert data["account_number"] is not None
    assert len(data["repayment_schedule"]) == 60


def test_confirm_bid_not_found(client: TestClient):
    response = client.post("/v1/applications/APP-404/bid", json={"bidding_number": 1, "bid_status": 2})
    assert response.status_code == 404


def test_change_payment_status(client: TestClient, application_body: dict):
    """Test PUT installment status marks the installment and reclassifies"""
    quotations = client.post("/v1/applications", json=application_body).json()["quotations"]
    client.post(
        "/v1/applications/APP-1/bid",
        json={"bidding_number": quotations[1]["bidding_number"], "bid_status": 2},
    )

    response = client.put("/v1/applications/APP-1/installments/1", json={"repayment_status": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == 4
    assert data["repayment_schedule"][0]["repayment_status"] == 2
    assert data["repayment_schedule"][0]["repayment_date"] is not None


def test_change_payment_status_invalid_status(client: TestClient, application_body: dict):
    client.post("/v1/applications", json=application_body)

    response = client.put("/v1/applications/APP-1/installments/1", json={"repayment_status": 9})
    assert response.status_code == 400


def test_transaction_history(client: TestClient, application_body: dict):
    """Test GET /v1/applications/{number}/transactions lists every write"""
    client.post("/v1/applications", json=application_body)
    client.post("/v1/applications/APP-1/bid", json={"bidding_number": 1, "bid_status": 3})

    response = client.get("/v1/applications/APP-1/transactions")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == 3
    assert [t["application_state"] for t in data["transactions"]] == [0, 1, 3]


def test_invoke_dispatch(client: TestClient):
    """Test POST /v1/invoke runs operations by name with string arguments"""
    response = client.post(
        "/v1/invoke",
        json={
            "function": "CreateLoanApplication",
            "args": ["APP-7", "Ford", "Focus", "12000", "7654321", "52", "3500", "720", "1"],
        },
    )
    assert response.status_code == 200
    quotations = response.json()["quotations"]
    # age > 50 (+0.50), income > 3000 (+0.25), credit 720 (+0)
    assert all(q["interest_rate"] == 5.75 for q in quotations)

    response = client.post(
        "/v1/invoke",
        json={"function": "ConfirmBid", "args": ["APP-7", str(quotations[3]["bidding_number"]), "2"]},
    )
    assert response.status_code == 200
    assert len(response.json()["repayment_schedule"]) == 12

    response = client.post(
        "/v1/invoke",
        json={"function": "ChangePaymentStatus", "args": ["APP-7", "0", "5", "3"]},
    )
    assert response.status_code == 200
    assert response.json()["repayment_schedule"][4]["repayment_status"] == 3

    response = client.post("/v1/invoke", json={"function": "GetApplicationDetails", "args": ["APP-7"]})
    assert response.status_code == 200
    assert response.json()["status"] == 4


def test_invoke_unknown_function(client: TestClient):
    response = client.post("/v1/invoke", json={"function": "DeleteApplication", "args": []})
    assert response.status_code == 400


def test_invoke_bad_arguments(client: TestClient):
    response = client.post("/v1/invoke", json={"function": "ConfirmBid", "args": ["APP-1", "abc", "2"]})
    assert response.status_code == 400

    response = client.post("/v1/invoke", json={"function": "ConfirmBid", "args": ["APP-1"]})
    assert response.status_code == 400


@pytest.mark.parametrize("value", ["inf", "nan", "-Infinity"])
def test_create_application_rejects_non_finite_income(client: TestClient, application_body: dict, value: str):
    application_body["monthly_income"] = value

    response = client.post("/v1/applications", json=application_body)
    assert response.status_code == 422


@pytest.mark.parametrize("position, value", [(3, "inf"), (6, "nan"), (6, "inf")])
def test_invoke_rejects_non_finite_amounts(client: TestClient, position: int, value: str):
    """Test a non-finite amount is refused and leaves no unreadable record behind"""
    args = ["APP-9", "Ford", "Focus", "12000", "7654321", "40", "2500", "650", "1"]
    args[position] = value

    response = client.post("/v1/invoke", json={"function": "CreateLoanApplication", "args": args})
    assert response.status_code == 400

    assert client.get("/v1/applications/APP-9").status_code == 404
    args[position] = "2500"
    response = client.post("/v1/invoke", json={"function": "CreateLoanApplication", "args": args})
    assert response.status_code == 200


def test_sequential_identifiers_come_from_counter(client: TestClient, application_body: dict, monkeypatch):
    """Test sequential numbers continue across requests and reads do not consume any"""
    monkeypatch.setattr(settings, "identifier_strategy", "sequential")

    first = client.post("/v1/applications", json=application_body).json()
    client.get("/v1/applications/APP-1")
    application_body["application_number"] = "APP-2"
    second = client.post("/v1/applications", json=application_body).json()
    confirmed = client.post("/v1/applications/APP-2/bid", json={"bidding_number": 6, "bid_status": 2}).json()

    assert [q["bidding_number"] for q in first["quotations"]] == [1, 2, 3, 4]
    assert [q["bidding_number"] for q in second["quotations"]] == [5, 6, 7, 8]
    assert confirmed["account_number"] == 9
