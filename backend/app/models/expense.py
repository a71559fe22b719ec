"""SQLAlchemy model definitions for business expenses."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    func,
)

from ..database import Base
from ..db_types import GUID
from .order import utcnow


class Expense(Base):
    """An append-only ledger entry; deletable only shortly after creation."""

    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
    )

    id = Column("expense_id", GUID(), primary_key=True, default=uuid.uuid4)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    notes = Column(Text, nullable=True)


Index("expenses_created_at_idx", Expense.created_at)
