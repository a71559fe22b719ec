"""HTTP data-access layer used by the dashboard front end."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

import httpx

from ..app.money import parse_money
from .cache import DEFAULT_TTL_SECONDS, TimedCache

LOGGER = logging.getLogger(__name__)

ORDER_STATUSES = ("New", "Accepted", "Done")


class ApiError(RuntimeError):
    """Raised when the backend answers with an error status."""

    def __init__(self, status_code: int, message: str, error: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.error = error or message
        super().__init__(f"{status_code}: {message}")


@dataclass
class OutgoingFile:
    """A file to attach to a new order."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "OutgoingFile":
        file_path = Path(path)
        return cls(
            name=file_path.name,
            content=file_path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "name": self.name,
            "type": self.content_type,
            "data": base64.b64encode(self.content).decode("ascii"),
        }


def _money_fields(record: dict[str, Any], *fields: str) -> dict[str, Any]:
    normalized = dict(record)
    for field in fields:
        if field in normalized and normalized[field] is not None:
            normalized[field] = parse_money(normalized[field], field=field)
    return normalized


def normalize_order(record: dict[str, Any]) -> dict[str, Any]:
    order = _money_fields(record, "totalPrice")
    order.setdefault("attachments", [])
    return order


def normalize_expense(record: dict[str, Any]) -> dict[str, Any]:
    return _money_fields(record, "amount")


def normalize_goal(record: dict[str, Any]) -> dict[str, Any]:
    return _money_fields(record, "goal_amount", "current_amount")


@dataclass
class OrderPage:
    """One server response of the order list, with the filtered total."""

    orders: list[dict[str, Any]]
    total: int

    @property
    def complete(self) -> bool:
        return self.total <= len(self.orders)


class DashboardApiClient:
    """Calls the backend API and caches the order list for a short time."""

    def __init__(self, http: httpx.Client, *, cache_ttl: float = DEFAULT_TTL_SECONDS) -> None:
        self.http = http
        self.cache_ttl = cache_ttl
        self.order_caches: dict[Optional[str], TimedCache[OrderPage]] = {}

    @classmethod
    def from_base_url(
        cls, base_url: str, *, timeout: float = 30.0, cache_ttl: float = DEFAULT_TTL_SECONDS
    ) -> "DashboardApiClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout), cache_ttl=cache_ttl)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.error("Error calling %s %s: %s", method, url, exc)
            raise ApiError(0, "Could not reach the server", str(exc)) from exc
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("message") or response.reason_phrase or "Request failed"
            LOGGER.error("Error calling %s %s: %s", method, url, message)
            raise ApiError(response.status_code, message, body.get("error"))
        if not response.content:
            return None
        return response.json()

    # Orders

    def _orders_cache(self, status: Optional[str]) -> TimedCache[OrderPage]:
        if status not in self.order_caches:
            self.order_caches[status] = TimedCache(ttl=self.cache_ttl)
        return self.order_caches[status]

    def _cached_orders(self, status: Optional[str]) -> Optional[list[dict[str, Any]]]:
        page = self._orders_cache(status).get()
        if page is not None:
            return page.orders
        if status is None:
            return None
        # The unfiltered page can only answer a status filter when it holds every order.
        everything = self._orders_cache(None).get()
        if everything is not None and everything.complete:
            return [order for order in everything.orders if order.get("status") == status]
        return None

    def invalidate_orders(self) -> None:
        for cache in self.order_caches.values():
            cache.invalidate()

    def add_order(
        self, order: dict[str, Any], files: Iterable[OutgoingFile] = ()
    ) -> dict[str, Any]:
        payload = {"order": order, "files": [item.to_payload() for item in files]}
        try:
            return self._request("POST", "/orders", json=payload)
        finally:
            # Attachments may have been partially stored even when the call fails.
            self.invalidate_orders()

    def get_orders(
        self, status: Optional[str] = None, *, force_refresh: bool = False
    ) -> list[dict[str, Any]]:
        if status is not None and status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status {status!r}")

        if not force_refresh:
            cached = self._cached_orders(status)
            if cached is not None:
                return cached

        body = self._request("GET", "/orders", params={"status": status} if status else None)
        page = OrderPage(
            orders=[normalize_order(item) for item in body["orders"]],
            total=body["total"],
        )
        self._orders_cache(status).store(page)
        return page.orders

    def update_order_status(self, order_id: str, status: str) -> None:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status {status!r}")
        self._request("PUT", f"/orders/{order_id}/status", json={"status": status})
        self.invalidate_orders()

    def delete_order(self, order_id: str) -> None:
        self._request("DELETE", f"/orders/{order_id}")
        self.invalidate_orders()

    # Expenses

    def get_expenses(self) -> list[dict[str, Any]]:
        return [normalize_expense(item) for item in self._request("GET", "/expenses")]

    def add_expense(
        self,
        description: str,
        amount: Decimal | float | str,
        expense_date: date,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        payload = {
            "description": description,
            "amount": str(parse_money(amount)),
            "date": expense_date.isoformat(),
            "notes": notes,
        }
        return normalize_expense(self._request("POST", "/expenses", json=payload))

    def delete_expense(self, expense_id: str) -> None:
        self._request("DELETE", f"/expenses/{expense_id}")

    # Goal

    def get_goal(self) -> Optional[dict[str, Any]]:
        body = self._request("GET", "/goal")
        return normalize_goal(body) if body else None

    def update_goal(self, goal_id: str, **fields: Any) -> dict[str, Any]:
        payload = {
            key: (str(parse_money(value, field=key)) if key.endswith("_amount") else value)
            for key, value in fields.items()
            if value is not None
        }
        return normalize_goal(self._request("PUT", f"/goal/{goal_id}", json=payload))

    def add_to_goal(self, goal_id: str, amount: Decimal | float | str) -> dict[str, Any]:
        payload = {"amount": str(parse_money(amount))}
        return normalize_goal(self._request("POST", f"/goal/{goal_id}/add", json=payload))
