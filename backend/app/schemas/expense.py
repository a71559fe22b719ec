from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import Expense
from .common import Money, MoneyTotal


class ExpenseBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255, description="What the money was spent on")
    amount: Money = Field(..., ge=0, description="Monetary value of the expense")
    date: dt.date = Field(..., description="Calendar day the expense occurred")
    notes: Optional[str] = Field(None, description="Free-text notes")


class ExpenseCreate(ExpenseBase):
    """Schema used to create new expenses."""

    pass


class ExpenseRead(ExpenseBase):
    """Schema representing stored expenses."""

    id: str
    timestamp: dt.datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, expense: Expense) -> "ExpenseRead":
        return cls(
            id=str(expense.id),
            description=expense.description,
            amount=expense.amount,
            date=expense.expense_date,
            notes=expense.notes,
            timestamp=expense.created_at,
        )


class ExpenseSummary(BaseModel):
    """Aggregated spend for the dashboard."""

    total_amount: MoneyTotal
    count: int = Field(..., ge=0)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
