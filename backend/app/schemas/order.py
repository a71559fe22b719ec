from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import Attachment, AttachmentType, Order, OrderStatus
from .common import Money


class CamelModel(BaseModel):
    """Base for schemas exchanged with the dashboard in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(CamelModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)


class OrderDraft(CamelModel):
    """Order fields submitted by the intake form."""

    customer_name: str = Field(..., min_length=1, max_length=200)
    address: Address
    phone_number: str = Field(..., min_length=1, max_length=50)
    total_price: Money = Field(..., ge=0)
    notes: Optional[str] = None
    status: Optional[OrderStatus] = None
    tracking_code: Optional[str] = Field(None, max_length=120)


class UploadedFile(CamelModel):
    """A file sent inline with the order, its content base64 encoded."""

    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("application/octet-stream", description="MIME type of the file")
    data: str = Field(..., description="Base64 encoded file content")


class OrderCreateRequest(CamelModel):
    order: OrderDraft
    files: list[UploadedFile] = Field(default_factory=list)


class OrderCreated(CamelModel):
    id: str
    sequence_number: int
    tracking_code: Optional[str] = None


class AttachmentRead(CamelModel):
    id: str
    type: AttachmentType
    url: str
    name: str


class OrderRead(CamelModel):
    id: str
    sequence_number: int
    customer_name: str
    address: Address
    phone_number: str
    total_price: Money
    notes: Optional[str] = None
    timestamp: datetime
    status: OrderStatus
    tracking_code: Optional[str] = None
    attachments: list[AttachmentRead] = Field(default_factory=list)

    @classmethod
    def from_model(
        cls, order: Order, attachments: Sequence[Attachment] | None = None
    ) -> "OrderRead":
        """Rebuild the nested wire shape from the flattened ``orders`` row."""

        if attachments is None:
            attachments = order.attachments
        return cls(
            id=str(order.id),
            sequence_number=order.sequence_number,
            customer_name=order.customer_name,
            address=Address(street=order.street, city=order.city),
            phone_number=order.phone_number,
            total_price=order.total_price,
            notes=order.notes,
            timestamp=order.created_at,
            status=OrderStatus(order.status),
            tracking_code=order.tracking_code,
            attachments=[
                AttachmentRead(
                    id=str(item.id),
                    type=AttachmentType(item.type),
                    url=item.url,
                    name=item.name,
                )
                for item in attachments
            ],
        )


class OrderListResponse(CamelModel):
    orders: list[OrderRead]
    total: int = Field(..., ge=0)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class TrackingCodeUpdate(CamelModel):
    tracking_code: str = Field(..., min_length=1, max_length=120)


class ShipmentBookingRequest(CamelModel):
    """Courier options chosen when booking a shipment for an order."""

    shipment_type: str = Field("Пакети", description="Courier shipment category")
    shipment_type_value: str = Field("1")
    package_value: Optional[Money] = Field(
        None, ge=0, description="Declared value; defaults to the order total"
    )
    number_packages: int = Field(1, ge=1)
    shipping_payment_method: str = Field("П-Г")
    commission_payment_method: str = Field("П-Г")


class ShipmentBooked(CamelModel):
    tracking_code: str
    shipment: dict
