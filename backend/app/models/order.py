"""SQLAlchemy models for customer orders and their attachments."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Lifecycle stages an order moves through."""

    NEW = "New"
    ACCEPTED = "Accepted"
    DONE = "Done"


class AttachmentType(str, enum.Enum):
    """Kind of file attached to an order, derived from its MIME type."""

    IMAGE = "image"
    DOCUMENT = "document"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "AttachmentType":
        if content_type and content_type.lower().startswith("image/"):
            return cls.IMAGE
        return cls.DOCUMENT


class Order(Base):
    """A customer shipment request."""

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
    )

    id = Column("order_id", GUID(), primary_key=True, default=uuid.uuid4)
    sequence_number = Column("order_number", Integer, nullable=False, unique=True)
    customer_name = Column(String(200), nullable=False)
    street = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False)
    phone_number = Column(String(50), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    status = Column(
        Enum(
            OrderStatus,
            name="order_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=OrderStatus.NEW,
    )
    tracking_code = Column(String(120), nullable=True)

    attachments = relationship(
        "Attachment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Attachment.name",
    )


class Attachment(Base):
    """A file stored in object storage and owned by an order."""

    __tablename__ = "attachments"

    id = Column("attachment_id", GUID(), primary_key=True, default=uuid.uuid4)
    order_id = Column(
        GUID(),
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(
        Enum(
            AttachmentType,
            name="attachment_type_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    url = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)

    order = relationship("Order", back_populates="attachments")


class OrderSequence(Base):
    """Single-row counter handing out human-facing order numbers."""

    __tablename__ = "order_sequence"

    id = Column(Integer, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


Index("orders_created_at_idx", Order.created_at)
Index("orders_status_created_at_idx", Order.status, Order.created_at)
Index("attachments_order_id_idx", Attachment.order_id)
