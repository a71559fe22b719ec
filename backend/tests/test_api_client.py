from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.app import models, schemas
from backend.app.services import GoalService, OrderService
from backend.client import ApiError, DashboardApiClient, OutgoingFile, TimedCache


@pytest.fixture
def api(client) -> DashboardApiClient:
    return DashboardApiClient(client)


def test_timed_cache_expires_after_ttl():
    now = [100.0]
    cache: TimedCache[list] = TimedCache(ttl=30, clock=lambda: now[0])

    assert cache.get() is None
    cache.store(["order"])
    now[0] = 129.9
    assert cache.get() == ["order"]
    now[0] = 130.0
    assert cache.get() is None

    cache.store(["again"])
    cache.invalidate()
    assert cache.is_valid() is False


def test_add_order_then_list_normalizes_money(api, order_payload, storage):
    created = api.add_order(
        order_payload(totalPrice="1500.5"),
        [OutgoingFile(name="label.pdf", content=b"label", content_type="application/pdf")],
    )

    orders = api.get_orders()

    assert [order["id"] for order in orders] == [created["id"]]
    assert orders[0]["totalPrice"] == Decimal("1500.50")
    assert orders[0]["attachments"][0]["name"] == "label.pdf"
    assert (storage.root / "attachments" / created["id"] / "label.pdf").exists()


def test_order_list_is_cached_until_a_mutation(api, make_order):
    make_order(customer_name="Cached")
    assert len(api.get_orders()) == 1

    # Written behind the client's back, so only visible once the cache is invalidated.
    make_order(customer_name="Hidden")
    assert len(api.get_orders()) == 1
    assert len(api.get_orders(force_refresh=True)) == 2

    order_id = api.get_orders()[0]["id"]
    api.update_order_status(order_id, "Accepted")
    refreshed = api.get_orders()
    assert {order["id"]: order["status"] for order in refreshed}[order_id] == "Accepted"


def test_status_filter_uses_cached_orders(api, make_order):
    make_order(customer_name="One")
    accepted = make_order(customer_name="Two")
    api.update_order_status(str(accepted.id), "Accepted")
    api.get_orders()

    filtered = api.get_orders("Accepted")

    assert [order["customerName"] for order in filtered] == ["Two"]


def test_unknown_status_is_rejected_client_side(api):
    with pytest.raises(ValueError):
        api.get_orders("Shipped")
    with pytest.raises(ValueError):
        api.update_order_status("whatever", "Lost")


def test_delete_order_invalidates_cache(api, make_order):
    order = make_order()
    assert len(api.get_orders()) == 1

    api.delete_order(str(order.id))

    assert api.get_orders() == []


def test_errors_carry_status_and_message(api):
    with pytest.raises(ApiError) as excinfo:
        api.delete_order("not-a-uuid")

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Order not found"


def test_expense_round_trip(api):
    created = api.add_expense("Boxes", 99.9, date(2026, 10, 3), notes="Bulk")

    assert created["amount"] == Decimal("99.90")
    assert [item["id"] for item in api.get_expenses()] == [created["id"]]

    api.delete_expense(created["id"])
    assert api.get_expenses() == []


def test_goal_operations(api, db_session):
    assert api.get_goal() is None
    goal = GoalService.provision_goal(
        db_session, schemas.GoalCreate(name="Van", goal_amount=Decimal("5000"))
    )

    updated = api.update_goal(str(goal.id), goal_amount="6000", name=None)
    assert updated["goal_amount"] == Decimal("6000.00")
    assert updated["name"] == "Van"

    after = api.add_to_goal(str(goal.id), "125.25")
    assert after["current_amount"] == Decimal("125.25")
    assert api.get_goal()["current_amount"] == Decimal("125.25")


def test_status_filter_beyond_first_page_asks_the_server(api, make_order, db_session):
    done = make_order(customer_name="Oldest")
    OrderService.update_status(db_session, str(done.id), models.OrderStatus.DONE)
    for index in range(50):
        make_order(customer_name=f"Newer {index}")

    assert len(api.get_orders()) == 50

    filtered = api.get_orders("Done")

    assert [order["customerName"] for order in filtered] == ["Oldest"]


def test_empty_order_list_is_served_from_cache(api, client, monkeypatch):
    calls: list[str] = []
    original = client.request

    def counting_request(method, url, **kwargs):
        calls.append(f"{method} {url}")
        return original(method, url, **kwargs)

    monkeypatch.setattr(client, "request", counting_request)

    assert api.get_orders() == []
    assert api.get_orders() == []
    assert api.get_orders("New") == []

    assert calls == ["GET /orders"]
