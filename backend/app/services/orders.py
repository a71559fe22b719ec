"""Business logic for customer orders and their attachments."""

from __future__ import annotations

import base64
import binascii
import logging
import uuid
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFoundError, PersistenceError, ValidationError, persistence_guard
from ..money import parse_money
from .storage import ObjectStorageClient, StorageError, attachment_key

LOGGER = logging.getLogger(__name__)

SEQUENCE_ROW_ID = 1


class OrderService:
    """Encapsulates persistence of orders, attachments and their lifecycle."""

    @staticmethod
    def _require_text(value: Optional[str], field: str) -> str:
        if value is None or not value.strip():
            raise ValidationError(f"{field} is required", error=f"missing field: {field}")
        return value.strip()

    @staticmethod
    def _validated_fields(draft: schemas.OrderDraft) -> dict:
        if draft.address is None:
            raise ValidationError("address is required", error="missing field: address")
        if draft.total_price is None:
            raise ValidationError("totalPrice is required", error="missing field: totalPrice")
        try:
            total_price = parse_money(draft.total_price, field="totalPrice")
        except ValueError as exc:
            raise ValidationError("totalPrice must be a number", error=str(exc)) from exc
        if total_price < 0:
            raise ValidationError("totalPrice cannot be negative", error=str(total_price))

        return {
            "customer_name": OrderService._require_text(draft.customer_name, "customerName"),
            "street": OrderService._require_text(draft.address.street, "address.street"),
            "city": OrderService._require_text(draft.address.city, "address.city"),
            "phone_number": OrderService._require_text(draft.phone_number, "phoneNumber"),
            "total_price": total_price,
            "notes": draft.notes or None,
            "status": draft.status or models.OrderStatus.NEW,
            "tracking_code": (draft.tracking_code or "").strip() or None,
        }

    @staticmethod
    def _next_sequence_number(db: Session) -> int:
        """Bump the counter row; the write lock is held until the caller commits."""

        bumped = db.execute(
            update(models.OrderSequence)
            .where(models.OrderSequence.id == SEQUENCE_ROW_ID)
            .values(last_value=models.OrderSequence.last_value + 1)
        )
        if bumped.rowcount == 0:
            current_max = db.scalar(select(func.max(models.Order.sequence_number))) or 0
            db.add(models.OrderSequence(id=SEQUENCE_ROW_ID, last_value=current_max + 1))
            db.flush()
        return db.scalar(
            select(models.OrderSequence.last_value).where(
                models.OrderSequence.id == SEQUENCE_ROW_ID
            )
        )

    @staticmethod
    def create_order(db: Session, draft: schemas.OrderDraft) -> models.Order:
        """Insert a new order and assign its sequence number in one transaction."""

        fields = OrderService._validated_fields(draft)
        with persistence_guard(db, "add order"):
            order = models.Order(**fields)
            order.sequence_number = OrderService._next_sequence_number(db)
            db.add(order)
            db.commit()
            db.refresh(order)
        LOGGER.info(
            "Order created",
            extra={"order_id": str(order.id), "sequence_number": order.sequence_number},
        )
        return order

    @staticmethod
    def _decode(upload: schemas.UploadedFile) -> bytes:
        data = upload.data
        if "," in data and data.lstrip().startswith("data:"):
            data = data.split(",", 1)[1]
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(
                f"File {upload.name} is not valid base64", error=str(exc)
            ) from exc

    @staticmethod
    def decode_files(
        files: Sequence[schemas.UploadedFile],
    ) -> list[tuple[schemas.UploadedFile, bytes]]:
        """Decode every upload up front so a malformed file rejects the whole request."""

        return [(upload, OrderService._decode(upload)) for upload in files]

    @staticmethod
    def attach_files(
        db: Session,
        order: models.Order,
        files: Sequence[tuple[schemas.UploadedFile, bytes]],
        storage: ObjectStorageClient,
    ) -> list[models.Attachment]:
        """Upload decoded ``files`` and record an attachment row for each stored object.

        Files uploaded before a failing one are still recorded; the failure is
        raised afterwards so the caller does not treat the order as complete.
        """

        if not files:
            return []

        order_id = str(order.id)
        uploaded: list[models.Attachment] = []
        failure: Optional[Exception] = None
        for upload, content in files:
            try:
                url = storage.put(attachment_key(order_id, upload.name), content, upload.type)
            except PersistenceError as exc:
                LOGGER.error("Failed to upload %s for order %s: %s", upload.name, order_id, exc)
                failure = exc
                break
            uploaded.append(
                models.Attachment(
                    order_id=order_id,
                    type=models.AttachmentType.from_content_type(upload.type),
                    url=url,
                    name=upload.name,
                )
            )

        if uploaded:
            with persistence_guard(db, "save attachments"):
                db.add_all(uploaded)
                db.commit()
                for attachment in uploaded:
                    db.refresh(attachment)
            LOGGER.info(
                "Attachments stored",
                extra={"order_id": order_id, "attachment_count": len(uploaded)},
            )

        if failure is not None:
            raise PersistenceError(
                f"Order #{order.sequence_number} was saved but only "
                f"{len(uploaded)} of {len(files)} attachments were uploaded",
                error=getattr(failure, "error", str(failure)),
            ) from failure
        return uploaded

    @staticmethod
    def list_orders(
        db: Session,
        *,
        status: Optional[models.OrderStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[list[tuple[models.Order, list[models.Attachment]]], int]:
        """Return a page of orders, newest first, each with its attachments."""

        with persistence_guard(db, "get orders"):
            query = select(models.Order)
            count_query = select(func.count()).select_from(models.Order)
            if status is not None:
                query = query.where(models.Order.status == status)
                count_query = count_query.where(models.Order.status == status)

            total = db.scalar(count_query) or 0
            orders = db.scalars(
                query.order_by(models.Order.created_at.desc())
                .offset(max(offset, 0))
                .limit(max(limit, 1))
            ).all()

            grouped: dict[str, list[models.Attachment]] = defaultdict(list)
            if orders:
                order_ids = [order.id for order in orders]
                attachments = db.scalars(
                    select(models.Attachment)
                    .where(models.Attachment.order_id.in_(order_ids))
                    .order_by(models.Attachment.name)
                ).all()
                for attachment in attachments:
                    grouped[str(attachment.order_id)].append(attachment)

        return [(order, grouped.get(str(order.id), [])) for order in orders], total

    @staticmethod
    def get_order(db: Session, order_id: str) -> models.Order:
        try:
            uuid.UUID(str(order_id))
        except ValueError as exc:
            raise NotFoundError("Order not found", error=f"no order with id {order_id}") from exc
        with persistence_guard(db, "get order"):
            order = db.get(models.Order, order_id)
        if order is None:
            raise NotFoundError("Order not found", error=f"no order with id {order_id}")
        return order

    @staticmethod
    def update_status(db: Session, order_id: str, status: models.OrderStatus) -> models.Order:
        """Write ``status`` as-is; forward-only progression is the caller's concern."""

        order = OrderService.get_order(db, order_id)
        with persistence_guard(db, "update order status"):
            order.status = status
            db.commit()
            db.refresh(order)
        LOGGER.info("Order status updated", extra={"order_id": order_id, "status": status.value})
        return order

    @staticmethod
    def set_tracking_code(db: Session, order_id: str, code: str) -> models.Order:
        tracking_code = OrderService._require_text(code, "trackingCode")
        order = OrderService.get_order(db, order_id)
        with persistence_guard(db, "set tracking code"):
            order.tracking_code = tracking_code
            db.commit()
            db.refresh(order)
        LOGGER.info(
            "Tracking code assigned",
            extra={"order_id": order_id, "tracking_code": tracking_code},
        )
        return order

    @staticmethod
    def _remove_stored_files(
        order_id: str, urls: Iterable[str], storage: ObjectStorageClient
    ) -> int:
        removed = 0
        for url in urls:
            try:
                storage.delete(storage.key_from_url(url))
                removed += 1
            except (StorageError, PersistenceError) as exc:
                LOGGER.warning(
                    "Error deleting attachment file %s for order %s: %s", url, order_id, exc
                )
        return removed

    @staticmethod
    def delete_order(db: Session, order_id: str, storage: ObjectStorageClient) -> None:
        """Delete the order, its attachment rows and, best effort, their files."""

        order = OrderService.get_order(db, order_id)
        urls = [attachment.url for attachment in order.attachments]
        removed = OrderService._remove_stored_files(order_id, urls, storage)
        with persistence_guard(db, "delete order"):
            db.delete(order)
            db.commit()
        LOGGER.info(
            "Order deleted",
            extra={
                "order_id": order_id,
                "attachment_count": len(urls),
                "files_removed": removed,
            },
        )

    @staticmethod
    def total_revenue(db: Session, *, status: Optional[models.OrderStatus] = None) -> Decimal:
        with persistence_guard(db, "sum order revenue"):
            query = select(func.coalesce(func.sum(models.Order.total_price), 0))
            if status is not None:
                query = query.where(models.Order.status == status)
            return parse_money(db.scalar(query) or 0)
