"""Expose SQLAlchemy models for convenient imports."""

from .expense import Expense
from .goal import Goal
from .order import Attachment, AttachmentType, Order, OrderSequence, OrderStatus

__all__ = [
    "Attachment",
    "AttachmentType",
    "Expense",
    "Goal",
    "Order",
    "OrderSequence",
    "OrderStatus",
]
