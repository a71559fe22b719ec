"""Pydantic schemas exposed by the API."""

from .common import ErrorResponse, MessageResponse, Money, MoneyTotal
from .expense import ExpenseBase, ExpenseCreate, ExpenseRead, ExpenseSummary
from .goal import GoalContribution, GoalCreate, GoalRead, GoalUpdate
from .order import (
    Address,
    AttachmentRead,
    OrderCreated,
    OrderCreateRequest,
    OrderDraft,
    OrderListResponse,
    OrderRead,
    OrderStatusUpdate,
    ShipmentBooked,
    ShipmentBookingRequest,
    TrackingCodeUpdate,
    UploadedFile,
)

__all__ = [
    "Address",
    "AttachmentRead",
    "ErrorResponse",
    "ExpenseBase",
    "ExpenseCreate",
    "ExpenseRead",
    "ExpenseSummary",
    "GoalContribution",
    "GoalCreate",
    "GoalRead",
    "GoalUpdate",
    "MessageResponse",
    "Money",
    "MoneyTotal",
    "OrderCreated",
    "OrderCreateRequest",
    "OrderDraft",
    "OrderListResponse",
    "OrderRead",
    "OrderStatusUpdate",
    "ShipmentBooked",
    "ShipmentBookingRequest",
    "TrackingCodeUpdate",
    "UploadedFile",
]
