from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.app import schemas
from backend.app.errors import PermissionDeniedError
from backend.app.services import ExpenseService


def _expense(**overrides) -> schemas.ExpenseCreate:
    fields = {
        "description": "Packaging tape",
        "amount": Decimal("250.00"),
        "date": date(2026, 10, 1),
        "notes": None,
    }
    fields.update(overrides)
    return schemas.ExpenseCreate(**fields)


def test_create_and_list_expenses(client):
    response = client.post(
        "/expenses",
        json={"description": "Fuel", "amount": "1200.50", "date": "2026-10-02", "notes": "Van"},
    )

    assert response.status_code == 201, response.text
    created = response.json()
    assert uuid.UUID(created["id"])
    assert created["amount"] == 1200.5
    assert created["date"] == "2026-10-02"
    assert created["timestamp"]

    listing = client.get("/expenses").json()
    assert [item["id"] for item in listing] == [created["id"]]


def test_expenses_are_listed_newest_first(client, db_session):
    start = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
    ExpenseService.create_expense(db_session, _expense(description="Older"), now=start)
    ExpenseService.create_expense(
        db_session, _expense(description="Newer"), now=start + timedelta(hours=1)
    )

    listing = client.get("/expenses").json()

    assert [item["description"] for item in listing] == ["Newer", "Older"]


@pytest.mark.parametrize(
    "payload",
    [
        {"description": "Fuel", "amount": -1, "date": "2026-10-02"},
        {"description": "Fuel", "amount": "99999999999.00", "date": "2026-10-02"},
        {"description": "Fuel", "amount": "1,200", "date": "2026-10-02"},
        {"description": "", "amount": 10, "date": "2026-10-02"},
        {"description": "Fuel", "amount": 10},
    ],
)
def test_create_expense_rejects_invalid_payloads(client, payload):
    response = client.post("/expenses", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


def test_expense_can_be_deleted_within_window(db_session):
    created_at = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
    expense = ExpenseService.create_expense(db_session, _expense(), now=created_at)

    ExpenseService.delete_expense(
        db_session, str(expense.id), now=created_at + timedelta(minutes=29)
    )

    assert ExpenseService.list_expenses(db_session) == []


def test_expense_delete_at_exactly_thirty_minutes_is_allowed(db_session):
    created_at = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
    expense = ExpenseService.create_expense(db_session, _expense(), now=created_at)

    ExpenseService.delete_expense(
        db_session, str(expense.id), now=created_at + timedelta(minutes=30)
    )

    assert ExpenseService.list_expenses(db_session) == []


def test_expense_delete_after_window_is_refused(db_session):
    created_at = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
    expense = ExpenseService.create_expense(db_session, _expense(), now=created_at)

    with pytest.raises(PermissionDeniedError):
        ExpenseService.delete_expense(
            db_session, str(expense.id), now=created_at + timedelta(minutes=31)
        )

    assert len(ExpenseService.list_expenses(db_session)) == 1


def test_delete_expense_endpoint(client, db_session):
    fresh = ExpenseService.create_expense(db_session, _expense(description="Fresh"))
    stale = ExpenseService.create_expense(
        db_session,
        _expense(description="Stale"),
        now=datetime.now(timezone.utc) - timedelta(minutes=31),
    )

    response = client.delete(f"/expenses/{fresh.id}")
    assert response.status_code == 200
    assert response.json()["message"] == f"Expense {fresh.id} deleted successfully."

    response = client.delete(f"/expenses/{stale.id}")
    assert response.status_code == 403
    assert (
        response.json()["message"]
        == "Expense can only be deleted within 30 minutes of creation."
    )

    assert [item["description"] for item in client.get("/expenses").json()] == ["Stale"]


@pytest.mark.parametrize("expense_id", ["missing", str(uuid.uuid4())])
def test_delete_unknown_expense_returns_not_found(client, expense_id):
    response = client.delete(f"/expenses/{expense_id}")

    assert response.status_code == 404
    assert response.json()["message"] == "Expense not found."


def test_expense_summary_filters_by_date(client, db_session):
    ExpenseService.create_expense(db_session, _expense(amount=Decimal("100"), date=date(2026, 9, 30)))
    ExpenseService.create_expense(db_session, _expense(amount=Decimal("40.25"), date=date(2026, 10, 1)))
    ExpenseService.create_expense(db_session, _expense(amount=Decimal("9.75"), date=date(2026, 10, 5)))

    overall = client.get("/expenses/summary").json()
    assert overall["total_amount"] == 150.0
    assert overall["count"] == 3

    october = client.get(
        "/expenses/summary", params={"start_date": "2026-10-01", "end_date": "2026-10-31"}
    ).json()
    assert october["total_amount"] == 50.0
    assert october["count"] == 2
    assert october["start_date"] == "2026-10-01"

    response = client.get(
        "/expenses/summary", params={"start_date": "2026-10-31", "end_date": "2026-10-01"}
    )
    assert response.status_code == 400
