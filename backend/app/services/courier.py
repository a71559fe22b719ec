"""Courier (shipment booking) integration."""

from __future__ import annotations

import abc
import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import httpx
from fastapi import status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import ConfigurationError, ServiceError
from .orders import OrderService

LOGGER = logging.getLogger(__name__)

DEFAULT_COURIER_URL = "https://app.inpostaradeski.mk/api/v1"
DEFAULT_TIMEOUT = 30.0


class CourierError(ServiceError):
    """Raised when the courier rejects a shipment or cannot be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY


@dataclass
class ShipmentReceiver:
    name: str
    city: str
    phone_number: str
    address: str


@dataclass
class ShipmentRequest:
    """Normalized shipment payload understood by the courier API."""

    receiver: ShipmentReceiver
    package_value: Decimal
    number_packages: int = 1
    shipping_payment_method: str = "П-Г"
    commission_payment_method: str = "П-Г"
    shipment_type: str = "Пакети"
    shipment_type_value: str = "1"
    order_number: Optional[str] = None
    note: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "shipment_type": self.shipment_type,
            "shipment_type_value": self.shipment_type_value,
            "receiver": {
                "name": self.receiver.name,
                "city": self.receiver.city,
                "phone_number": self.receiver.phone_number,
                "address": self.receiver.address,
            },
            "package_value": float(self.package_value),
            "number_packages": self.number_packages,
            "shipping_payment_method": self.shipping_payment_method,
            "commission_payment_method": self.commission_payment_method,
        }
        if self.order_number:
            payload["order_number"] = self.order_number
        if self.note:
            payload["note"] = self.note
        return payload


@dataclass
class ShipmentResult:
    """Outcome returned by the courier once a shipment is booked."""

    tracking_code: str
    raw: dict[str, Any] = field(default_factory=dict)


class CourierClient(abc.ABC):
    """Interface implemented by shipment booking providers."""

    @abc.abstractmethod
    def create_shipment(self, request: ShipmentRequest) -> ShipmentResult:
        """Book the shipment and return its tracking reference."""


class InpostaCourierClient(CourierClient):
    """Book shipments through the InPosta REST API."""

    def __init__(
        self,
        *,
        token: str | None,
        base_url: str = DEFAULT_COURIER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not token:
            raise ConfigurationError("COURIER_API_TOKEN is required to book shipments.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": token, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def create_shipment(self, request: ShipmentRequest) -> ShipmentResult:
        payload = request.to_payload()
        LOGGER.debug("Courier request: %s", payload)
        try:
            response = self._client.post("/shipments", json=payload)
        except httpx.TimeoutException as exc:
            raise CourierError(
                "The courier did not respond in time", error=str(exc) or "timeout"
            ) from exc
        except httpx.HTTPError as exc:
            raise CourierError("Could not reach the courier", error=str(exc)) from exc

        try:
            body = response.json()
        except json.JSONDecodeError:
            body = {"message": response.text}

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            raise CourierError(
                "The courier rejected the shipment",
                error=message or f"HTTP {response.status_code}",
            )

        shipment = body.get("shipment") if isinstance(body, dict) else None
        reference = shipment.get("reference") if isinstance(shipment, dict) else None
        if not reference:
            raise CourierError(
                "The courier response did not include a tracking reference",
                error=json.dumps(body, ensure_ascii=False)[:500],
            )
        return ShipmentResult(tracking_code=str(reference), raw=shipment)

    def close(self) -> None:
        self._client.close()


def build_courier_client_from_env() -> CourierClient | None:
    """Instantiate the courier client, or ``None`` when no token is configured."""

    try:
        timeout = float(os.getenv("COURIER_TIMEOUT", DEFAULT_TIMEOUT))
    except ValueError:
        LOGGER.warning("Invalid COURIER_TIMEOUT; using %.1f seconds", DEFAULT_TIMEOUT)
        timeout = DEFAULT_TIMEOUT
    try:
        return InpostaCourierClient(
            token=os.getenv("COURIER_API_TOKEN"),
            base_url=os.getenv("COURIER_API_URL", DEFAULT_COURIER_URL),
            timeout=timeout,
        )
    except ConfigurationError as exc:
        LOGGER.warning("Courier booking disabled: %s", exc)
        return None


class ShipmentService:
    """Books courier shipments for stored orders."""

    @staticmethod
    def build_request(
        order: models.Order, options: schemas.ShipmentBookingRequest
    ) -> ShipmentRequest:
        package_value = (
            options.package_value if options.package_value is not None else order.total_price
        )
        return ShipmentRequest(
            receiver=ShipmentReceiver(
                name=order.customer_name,
                city=order.city,
                phone_number=order.phone_number,
                address=order.street,
            ),
            package_value=Decimal(package_value),
            number_packages=options.number_packages,
            shipping_payment_method=options.shipping_payment_method,
            commission_payment_method=options.commission_payment_method,
            shipment_type=options.shipment_type,
            shipment_type_value=options.shipment_type_value,
            order_number=f"#{order.sequence_number}",
            note=order.notes or None,
        )

    @staticmethod
    def book_for_order(
        db: Session,
        order_id: str,
        courier: CourierClient,
        options: schemas.ShipmentBookingRequest,
    ) -> ShipmentResult:
        order = OrderService.get_order(db, order_id)
        request = ShipmentService.build_request(order, options)
        result = courier.create_shipment(request)
        OrderService.set_tracking_code(db, order_id, result.tracking_code)
        LOGGER.info(
            "Shipment booked",
            extra={
                "order_id": order_id,
                "sequence_number": order.sequence_number,
                "tracking_code": result.tracking_code,
            },
        )
        return result
