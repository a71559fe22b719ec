"""Routers package."""

from .expenses import router as expenses_router
from .goal import router as goal_router
from .orders import router as orders_router

__all__ = [
    "expenses_router",
    "goal_router",
    "orders_router",
]
