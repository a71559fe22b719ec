from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from backend.app import schemas
from backend.app.services.courier import (
    CourierError,
    InpostaCourierClient,
    ShipmentReceiver,
    ShipmentRequest,
    ShipmentService,
    build_courier_client_from_env,
)


def _request(**overrides) -> ShipmentRequest:
    fields = {
        "receiver": ShipmentReceiver(
            name="Ana Petrovska",
            city="Skopje",
            phone_number="+38970123456",
            address="Partizanska 12",
        ),
        "package_value": Decimal("1500.00"),
        "order_number": "#42",
    }
    fields.update(overrides)
    return ShipmentRequest(**fields)


def test_payload_uses_courier_field_names():
    payload = _request(note="Fragile").to_payload()

    assert payload == {
        "shipment_type": "Пакети",
        "shipment_type_value": "1",
        "receiver": {
            "name": "Ana Petrovska",
            "city": "Skopje",
            "phone_number": "+38970123456",
            "address": "Partizanska 12",
        },
        "package_value": 1500.0,
        "number_packages": 1,
        "shipping_payment_method": "П-Г",
        "commission_payment_method": "П-Г",
        "order_number": "#42",
        "note": "Fragile",
    }


def test_create_shipment_returns_reference():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"shipment": {"reference": "IP987", "id": 7}})

    courier = InpostaCourierClient(
        token="token-123",
        base_url="https://courier.example.com/api/v1/",
        transport=httpx.MockTransport(handler),
    )

    result = courier.create_shipment(_request())

    assert result.tracking_code == "IP987"
    assert result.raw == {"reference": "IP987", "id": 7}
    request = seen[0]
    assert str(request.url) == "https://courier.example.com/api/v1/shipments"
    assert request.headers["authorization"] == "token-123"
    assert json.loads(request.content)["order_number"] == "#42"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(422, json={"message": "Invalid phone number"}),
        httpx.Response(500, text="upstream exploded"),
        httpx.Response(200, json={"shipment": {}}),
    ],
)
def test_create_shipment_failures_raise_courier_error(response):
    courier = InpostaCourierClient(
        token="token-123", transport=httpx.MockTransport(lambda request: response)
    )

    with pytest.raises(CourierError) as excinfo:
        courier.create_shipment(_request())

    assert excinfo.value.status_code == 502


def test_create_shipment_surfaces_courier_message():
    courier = InpostaCourierClient(
        token="token-123",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(422, json={"message": "Invalid phone number"})
        ),
    )

    with pytest.raises(CourierError) as excinfo:
        courier.create_shipment(_request())

    assert excinfo.value.error == "Invalid phone number"


def test_create_shipment_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    courier = InpostaCourierClient(token="token-123", transport=httpx.MockTransport(handler))

    with pytest.raises(CourierError) as excinfo:
        courier.create_shipment(_request())

    assert excinfo.value.message == "Could not reach the courier"


def test_build_courier_client_disabled_without_token(monkeypatch):
    monkeypatch.delenv("COURIER_API_TOKEN", raising=False)

    assert build_courier_client_from_env() is None


def test_build_courier_client_reads_environment(monkeypatch):
    monkeypatch.setenv("COURIER_API_TOKEN", "abc")
    monkeypatch.setenv("COURIER_API_URL", "https://courier.example.com/api/v1")
    monkeypatch.setenv("COURIER_TIMEOUT", "5")

    courier = build_courier_client_from_env()

    assert isinstance(courier, InpostaCourierClient)
    assert courier.base_url == "https://courier.example.com/api/v1"
    assert courier.timeout == 5.0


def test_build_request_prefers_explicit_package_value(make_order):
    order = make_order(total_price=Decimal("750"))

    default = ShipmentService.build_request(order, schemas.ShipmentBookingRequest())
    explicit = ShipmentService.build_request(
        order, schemas.ShipmentBookingRequest(package_value=Decimal("100"), number_packages=2)
    )

    assert default.package_value == Decimal("750")
    assert explicit.package_value == Decimal("100")
    assert explicit.number_packages == 2
    assert explicit.receiver.city == "Tetovo"
