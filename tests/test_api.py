"""Tests for the HTTP API."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta
from fastapi.testclient import TestClient

OTHER_HEADERS = {"X-User-Id": "mallory"}


@pytest.fixture
def client(api_client, auth_headers):
    """Test client that sends the default user's header on every request."""
    api_client.headers.update(auth_headers)
    return api_client


def _account(client, **fields):
    payload = {"name": "Checking", "account_type": "checking", **fields}
    response = client.post("/api/accounts", json=payload)
    assert response.status_code == 201
    return response.json()


def _transaction(client, account_id, amount, day, description="Purchase", **fields):
    payload = {
        "account_id": account_id,
        "amount": amount,
        "description": description,
        "transaction_date": day.isoformat(),
        **fields,
    }
    response = client.post("/api/transactions", json=payload)
    assert response.status_code == 201
    return response.json()


def _balance(client, account_id):
    response = client.get(f"/api/accounts/{account_id}/balance")
    assert response.status_code == 200
    return Decimal(response.json()["balance"])


def test_health(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_user_header_is_unauthorized(api_client):
    response = api_client.get("/api/accounts")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_unauthenticated_write_has_no_effect(client):
    account = _account(client)
    anonymous = TestClient(client.app)
    payload = {
        "account_id": account["id"],
        "amount": "-40.00",
        "description": "Groceries",
        "transaction_date": "2024-03-01",
    }

    response = anonymous.post("/api/transactions", json=payload)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert anonymous.delete(f"/api/accounts/{account['id']}").status_code == 401
    assert client.get("/api/transactions").json() == []
    assert _balance(client, account["id"]) == Decimal("0.00")
    assert client.get(f"/api/accounts/{account['id']}").status_code == 200


def test_current_user_and_preferences(client):
    me = client.get("/api/users/me").json()
    assert me["id"] == "local"
    assert me["preferences"]["currency"] == "USD"

    response = client.patch("/api/users/me/preferences", json={"currency": "EUR"})
    assert response.status_code == 200
    assert response.json()["currency"] == "EUR"

    response = client.patch("/api/users/me/preferences", json={"timezone": "Europe/Oslo"})
    assert response.json()["timezone"] == "Europe/Oslo"
    assert response.json()["currency"] == "EUR"

    response = client.patch("/api/users/me/preferences", json={"timezone": "Mars/Olympus_Mons"})
    assert response.status_code == 400


def test_new_user_is_provisioned_on_first_request(api_client):
    response = api_client.get("/api/users/me", headers={"X-User-Id": "newcomer"})
    assert response.status_code == 200
    assert response.json()["email"] == "newcomer@users.pennywise"


def test_account_crud(client):
    account = _account(client, name="Everyday")
    assert Decimal(account["balance"]) == Decimal("0")

    listed = client.get("/api/accounts").json()
    assert [a["name"] for a in listed] == ["Everyday"]

    response = client.patch(f"/api/accounts/{account['id']}", json={"name": "Main"})
    assert response.json()["name"] == "Main"

    assert client.delete(f"/api/accounts/{account['id']}").status_code == 204
    response = client.get(f"/api/accounts/{account['id']}")
    assert response.status_code == 404
    assert "error" in response.json()


def test_foreign_account_is_not_found(client):
    account = _account(client)

    response = client.get(f"/api/accounts/{account['id']}", headers=OTHER_HEADERS)

    assert response.status_code == 404


def test_account_with_transactions_cannot_be_deleted(client):
    account = _account(client)
    _transaction(client, account["id"], "-10.00", date(2024, 1, 5))

    response = client.delete(f"/api/accounts/{account['id']}")

    assert response.status_code == 409
    assert "error" in response.json()


def test_request_validation_envelope(client):
    response = client.post("/api/accounts", json={"account_type": "checking"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert any(detail["field"] == "name" for detail in body["details"])


def test_transactions_keep_balance_in_step(client):
    account = _account(client)
    first = _transaction(client, account["id"], "-45.5", date(2024, 1, 5), "Groceries")
    _transaction(client, account["id"], "1000.00", date(2024, 2, 1), "Salary")

    assert Decimal(first["amount"]) == Decimal("-45.50")
    assert _balance(client, account["id"]) == Decimal("954.50")

    response = client.patch(f"/api/transactions/{first['id']}", json={"amount": "-50.00"})
    assert response.status_code == 200
    assert _balance(client, account["id"]) == Decimal("950.00")

    assert client.delete(f"/api/transactions/{first['id']}").status_code == 204
    assert _balance(client, account["id"]) == Decimal("1000.00")


def test_list_transactions_filters(client):
    account = _account(client)
    _transaction(client, account["id"], "-10.00", date(2024, 1, 5))
    _transaction(client, account["id"], "-20.00", date(2024, 2, 5))

    response = client.get("/api/transactions", params={"start_date": "2024-02-01"})

    assert [t["transaction_date"] for t in response.json()] == ["2024-02-05"]


def test_zero_amount_transaction_rejected(client):
    account = _account(client)
    response = client.post(
        "/api/transactions",
        json={"account_id": account["id"], "amount": "0", "transaction_date": "2024-01-05"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_categories(client):
    response = client.post("/api/categories/defaults")
    assert response.status_code == 201
    assert response.json()["created"] > 0

    response = client.post("/api/categories", json={"name": "Hobbies"})
    assert response.status_code == 201

    names = [c["name"] for c in client.get("/api/categories").json()]
    assert "Hobbies" in names
    assert "Groceries" in names


def test_recurring_payment_lifecycle(client):
    account = _account(client)
    response = client.post(
        "/api/recurring-payments",
        json={
            "account_id": account["id"],
            "name": "Gym",
            "amount": "40.00",
            "frequency": "monthly",
            "next_due_date": "2024-02-01",
        },
    )
    assert response.status_code == 201
    payment = response.json()
    assert payment["status"] == "pending"

    response = client.post(
        f"/api/recurring-payments/{payment['id']}/pay", json={"paid_on": "2024-02-03"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert response.json()["next_due_date"] == "2024-03-01"

    response = client.patch(f"/api/recurring-payments/{payment['id']}", json={"amount": "45.00"})
    assert Decimal(response.json()["amount"]) == Decimal("45.00")

    assert client.delete(f"/api/recurring-payments/{payment['id']}").status_code == 204
    assert client.get(f"/api/recurring-payments/{payment['id']}").status_code == 404


def test_missed_and_processed_payments(client):
    account = _account(client)
    due = date.today() - timedelta(days=10)
    client.post(
        "/api/recurring-payments",
        json={
            "account_id": account["id"],
            "name": "Insurance",
            "amount": "25.00",
            "frequency": "monthly",
            "next_due_date": due.isoformat(),
        },
    )

    [missed] = client.get("/api/recurring-payments/missed").json()
    assert missed["payment_name"] == "Insurance"
    assert missed["days_overdue"] == 10

    result = client.post("/api/recurring-payments/process").json()
    assert len(result["created_transactions"]) == 1
    assert result["errors"] == []
    assert result["updated_payments"][0]["next_due_date"] == (due + relativedelta(months=1)).isoformat()
    assert _balance(client, account["id"]) == Decimal("-25.00")


def test_detect_and_confirm_pattern(client):
    account = _account(client)
    today = date.today()
    for months_back in range(1, 7):
        _transaction(
            client,
            account["id"],
            "-15.99",
            today - relativedelta(months=months_back),
            "NETFLIX.COM AUTOPAY",
        )

    response = client.post("/api/recurring-payments/detect", json={})
    assert response.status_code == 200
    [detection] = response.json()
    assert detection["is_new_pattern"]
    assert detection["pattern"]["frequency"] == "monthly"

    confirm = {
        "account_id": account["id"],
        "name": "Netflix",
        "amount": "15.99",
        "frequency": "monthly",
        "next_due_date": detection["pattern"]["next_expected_date"],
    }
    pattern_id = detection["pattern"]["id"]
    response = client.post(f"/api/recurring-payments/{pattern_id}/confirm", json=confirm)
    assert response.status_code == 201
    assert response.json()["merchant_pattern"] == detection["pattern"]["merchant_pattern"]

    response = client.post(f"/api/recurring-payments/{pattern_id}/confirm", json=confirm)
    assert response.status_code == 409

    [again] = client.post("/api/recurring-payments/detect", json={}).json()
    assert not again["is_new_pattern"]


def test_budget_analysis(client):
    account = _account(client)
    client.post(
        "/api/recurring-payments",
        json={
            "account_id": account["id"],
            "name": "Rent",
            "amount": "1200.00",
            "frequency": "monthly",
            "next_due_date": "2024-04-01",
        },
    )

    response = client.get("/api/recurring-payments/analysis", params={"total_budget": "2000"})

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total_monthly"]) == Decimal("1200.00")
    assert Decimal(body["allocation"]["available_spending"]) == Decimal("800.00")

    projections = client.get(
        "/api/recurring-payments/projections", params={"months": 3, "total_budget": "2000"}
    ).json()
    assert len(projections) == 3


def test_savings_goal_flow(client):
    account = _account(client, name="Savings", account_type="savings")
    response = client.post(
        "/api/savings-goals",
        json={
            "account_id": account["id"],
            "name": "Emergency Fund",
            "target_amount": "1000.00",
            "target_date": (date.today() + timedelta(days=365)).isoformat(),
        },
    )
    assert response.status_code == 201
    goal = response.json()
    assert len(goal["milestones"]) == 4

    response = client.post(f"/api/savings-goals/{goal['id']}/progress", json={"amount": "300"})
    assert response.status_code == 200
    assert response.json()["achieved_milestones"] == [25]
    assert not response.json()["completed"]

    [listed] = client.get("/api/savings-goals").json()
    assert listed["progress_percentage"] == pytest.approx(30.0)

    analytics = client.get("/api/savings-goals/analytics").json()
    assert analytics["total_goals"] == 1

    assert client.get(f"/api/savings-goals/{goal['id']}", headers=OTHER_HEADERS).status_code == 404


def test_past_target_date_rejected(client):
    account = _account(client, name="Savings", account_type="savings")
    response = client.post(
        "/api/savings-goals",
        json={
            "account_id": account["id"],
            "name": "Too late",
            "target_amount": "100.00",
            "target_date": "2000-01-01",
        },
    )
    assert response.status_code == 400


def test_credit_card_alert_flow(client):
    card = _account(client, name="Visa", account_type="credit_card", credit_limit="1000.00")
    _transaction(client, card["id"], "-950.00", date(2024, 5, 1), "Laptop")

    [alert] = client.get("/api/alerts").json()
    assert alert["priority"] == "critical"
    assert alert["status"] == "triggered"

    [utilization] = client.get("/api/accounts/utilization").json()
    assert Decimal(utilization["utilization_percentage"]) == Decimal("95")

    assert client.post("/api/alerts/check").json() == []

    response = client.post(f"/api/alerts/{alert['id']}/snooze", json={"minutes": 0})
    assert response.status_code == 400

    response = client.post(f"/api/alerts/{alert['id']}/snooze", json={"minutes": 30})
    assert response.json()["status"] == "snoozed"

    response = client.post(f"/api/alerts/{alert['id']}/acknowledge")
    assert response.json()["status"] == "acknowledged"

    response = client.post(f"/api/alerts/{alert['id']}/dismiss", headers=OTHER_HEADERS)
    assert response.status_code == 404


def test_alert_settings(client):
    card = _account(client, name="Visa", account_type="credit_card", credit_limit="1000.00")

    response = client.put(
        "/api/alerts/settings", json={"account_id": card["id"], "threshold_percentage": "20"}
    )
    assert response.status_code == 200
    assert Decimal(response.json()["threshold_percentage"]) == Decimal("20")

    [setting] = client.get("/api/alerts/settings", params={"account_id": card["id"]}).json()
    assert setting["is_enabled"]

    response = client.put("/api/alerts/settings", json={"account_id": card["id"]})
    assert response.status_code == 400


def test_notification_preferences(client):
    response = client.put(
        "/api/notifications/preferences",
        json={
            "alert_type": "recurring_payment_due",
            "sms_enabled": True,
            "quiet_hours_start": "22:00",
            "quiet_hours_end": "07:00",
        },
    )
    assert response.status_code == 200
    assert response.json()["sms_enabled"]
    assert response.json()["email_enabled"]

    [preference] = client.get("/api/notifications/preferences").json()
    assert preference["quiet_hours_start"] == "22:00"

    response = client.put(
        "/api/notifications/preferences",
        json={"alert_type": "recurring_payment_due", "quiet_hours_start": "25:00"},
    )
    assert response.status_code == 400


def test_notification_center_and_processing(client):
    card = _account(client, name="Visa", account_type="credit_card", credit_limit="1000.00")
    _transaction(client, card["id"], "-950.00", date(2024, 5, 1), "Laptop")
    client.post(
        "/api/recurring-payments",
        json={
            "account_id": card["id"],
            "name": "Phone",
            "amount": "20.00",
            "frequency": "monthly",
            "next_due_date": (date.today() + timedelta(days=2)).isoformat(),
        },
    )

    center = client.get("/api/notifications/center").json()
    assert center["total_count"] == 1
    assert center["summary"]["unread"] == 1
    assert not center["has_next_page"]

    [pending] = client.get("/api/notifications/pending").json()
    assert pending["type"] == "due_soon"
    assert pending["days_until_due"] == 2

    counts = client.post("/api/notifications/process").json()
    assert counts["upcoming_reminders"] == 1
    assert counts["total_alerts"] == 1


def test_analytics_reports(client):
    checking = _account(client)
    card = _account(client, name="Visa", account_type="credit_card", credit_limit="1000.00")
    _transaction(client, checking["id"], "2000.00", date(2024, 3, 1), "Salary")
    _transaction(client, checking["id"], "-500.00", date(2024, 3, 5), "Rent")
    _transaction(client, card["id"], "-100.00", date(2024, 3, 10), "Dinner")
    march = {"start_date": "2024-03-01", "end_date": "2024-03-31"}

    overview = client.get("/api/analytics/overview", params=march).json()
    assert Decimal(overview["total_income"]) == Decimal("2000.00")
    assert Decimal(overview["total_expenses"]) == Decimal("600.00")
    assert Decimal(overview["total_liabilities"]) == Decimal("100.00")
    assert Decimal(overview["net_worth"]) == Decimal("1400.00")
    assert overview["savings_rate"] == 70.0

    worth = client.get("/api/analytics/net-worth", params={"as_of": "2024-03-07"}).json()
    assert Decimal(worth["net_worth"]) == Decimal("1500.00")

    flow = client.get("/api/analytics/cash-flow", params={**march, "group_by": "week"}).json()
    assert [p["label"] for p in flow] == [
        "2024-02-26",
        "2024-03-04",
        "2024-03-11",
        "2024-03-18",
        "2024-03-25",
    ]
    assert Decimal(flow[1]["expenses"]) == Decimal("500.00")

    [spending] = client.get(
        "/api/analytics/spending", params={**march, "account_id": card["id"]}
    ).json()
    assert spending["category_name"] == "Uncategorized"
    assert spending["percentage"] == 100.0

    history = client.get(
        "/api/analytics/net-worth/history", params={**march, "group_by": "month"}
    ).json()
    assert [(p["label"], Decimal(p["net_worth"])) for p in history] == [
        ("2024-03", Decimal("1400.00"))
    ]

    dashboard = client.get("/api/analytics/dashboard", params=march).json()
    assert len(dashboard["cash_flow"]) == 31
    assert {c["metric"]: c["trend"] for c in dashboard["comparisons"]}["income"] == "up"


def test_analytics_rejects_bad_ranges(client):
    response = client.get(
        "/api/analytics/overview", params={"start_date": "2024-04-01", "end_date": "2024-03-01"}
    )
    assert response.status_code == 400

    response = client.get("/api/analytics/cash-flow", params={"group_by": "fortnight"})
    assert response.status_code == 400

    response = client.get("/api/analytics/overview", params={"account_id": 9999})
    assert response.status_code == 404
