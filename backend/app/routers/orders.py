"""Router exposing order intake and lifecycle operations."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..dependencies import get_courier_client, get_storage_client
from ..services import CourierClient, ObjectStorageClient, OrderService, ShipmentService

router = APIRouter(
    responses={
        400: {"model": schemas.ErrorResponse},
        404: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
        502: {"model": schemas.ErrorResponse},
    }
)


@router.post("", response_model=schemas.OrderCreated, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: schemas.OrderCreateRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage_client),
) -> schemas.OrderCreated:
    """Validate the files, store the order, then upload and record its attachments."""

    files = OrderService.decode_files(payload.files)
    order = OrderService.create_order(db, payload.order)
    OrderService.attach_files(db, order, files, storage)
    return schemas.OrderCreated(
        id=str(order.id),
        sequence_number=order.sequence_number,
        tracking_code=order.tracking_code,
    )


@router.get("", response_model=schemas.OrderListResponse)
def list_orders(
    db: Session = Depends(get_db),
    status_filter: Optional[models.OrderStatus] = Query(
        None, alias="status", description="Only return orders in this status"
    ),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of orders to return"),
    offset: int = Query(0, ge=0, description="Number of orders to skip"),
) -> schemas.OrderListResponse:
    rows, total = OrderService.list_orders(db, status=status_filter, limit=limit, offset=offset)
    return schemas.OrderListResponse(
        orders=[schemas.OrderRead.from_model(order, attachments) for order, attachments in rows],
        total=total,
    )


@router.get("/revenue")
def order_revenue(
    db: Session = Depends(get_db),
    status_filter: Optional[models.OrderStatus] = Query(None, alias="status"),
) -> dict[str, float]:
    """Sum of order totals, optionally restricted to one status."""

    revenue = OrderService.total_revenue(db, status=status_filter)
    return {"revenue": float(revenue)}


@router.get("/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db)) -> schemas.OrderRead:
    return schemas.OrderRead.from_model(OrderService.get_order(db, order_id))


@router.put("/{order_id}/status", response_model=schemas.MessageResponse)
def update_order_status(
    order_id: str,
    payload: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    OrderService.update_status(db, order_id, payload.status)
    return schemas.MessageResponse(
        message=f"Order {order_id} status updated to {payload.status.value}"
    )


@router.put("/{order_id}/tracking-code", response_model=schemas.OrderRead)
def set_tracking_code(
    order_id: str,
    payload: schemas.TrackingCodeUpdate,
    db: Session = Depends(get_db),
) -> schemas.OrderRead:
    order = OrderService.set_tracking_code(db, order_id, payload.tracking_code)
    return schemas.OrderRead.from_model(order)


@router.post("/{order_id}/shipment", response_model=schemas.ShipmentBooked)
def book_shipment(
    order_id: str,
    options: Optional[schemas.ShipmentBookingRequest] = None,
    db: Session = Depends(get_db),
    courier: CourierClient = Depends(get_courier_client),
) -> schemas.ShipmentBooked:
    """Book the order with the courier and keep the returned tracking code."""

    result = ShipmentService.book_for_order(
        db, order_id, courier, options or schemas.ShipmentBookingRequest()
    )
    return schemas.ShipmentBooked(tracking_code=result.tracking_code, shipment=result.raw)


@router.delete("/{order_id}", response_model=schemas.MessageResponse)
def delete_order(
    order_id: str,
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage_client),
) -> schemas.MessageResponse:
    OrderService.delete_order(db, order_id, storage)
    return schemas.MessageResponse(message=f"Order {order_id} and its attachments deleted.")
