"""Business logic for expenses."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFoundError, PermissionDeniedError, ValidationError, persistence_guard
from ..money import parse_money

LOGGER = logging.getLogger(__name__)

DELETE_WINDOW = timedelta(minutes=30)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ExpenseService:
    """Encapsulates the append-only expense ledger."""

    @staticmethod
    def list_expenses(db: Session) -> list[models.Expense]:
        with persistence_guard(db, "fetch expenses"):
            return list(
                db.scalars(
                    select(models.Expense).order_by(models.Expense.created_at.desc())
                ).all()
            )

    @staticmethod
    def create_expense(
        db: Session, data: schemas.ExpenseCreate, *, now: Optional[datetime] = None
    ) -> models.Expense:
        try:
            amount = parse_money(data.amount)
        except ValueError as exc:
            raise ValidationError("amount must be a number", error=str(exc)) from exc
        if amount < 0:
            raise ValidationError("amount cannot be negative", error=str(amount))
        description = (data.description or "").strip()
        if not description:
            raise ValidationError("description is required", error="missing field: description")

        expense = models.Expense(
            description=description,
            amount=amount,
            expense_date=data.date,
            notes=data.notes or None,
            created_at=now or datetime.now(timezone.utc),
        )
        with persistence_guard(db, "add expense"):
            db.add(expense)
            db.commit()
            db.refresh(expense)
        LOGGER.info("Expense recorded", extra={"expense_id": str(expense.id), "amount": str(amount)})
        return expense

    @staticmethod
    def get_expense(db: Session, expense_id: str) -> models.Expense:
        try:
            uuid.UUID(str(expense_id))
        except ValueError as exc:
            raise NotFoundError("Expense not found.", error=f"no expense with id {expense_id}") from exc
        with persistence_guard(db, "fetch expense"):
            expense = db.get(models.Expense, expense_id)
        if expense is None:
            raise NotFoundError("Expense not found.", error=f"no expense with id {expense_id}")
        return expense

    @staticmethod
    def delete_expense(db: Session, expense_id: str, *, now: Optional[datetime] = None) -> None:
        """Delete the expense if it was created no more than 30 minutes ago."""

        expense = ExpenseService.get_expense(db, expense_id)
        reference = _as_utc(now or datetime.now(timezone.utc))
        elapsed = reference - _as_utc(expense.created_at)
        if elapsed > DELETE_WINDOW:
            minutes = int(elapsed.total_seconds() // 60)
            raise PermissionDeniedError(
                "Expense can only be deleted within 30 minutes of creation.",
                error=f"delete window expired {minutes - 30} minutes ago",
            )
        with persistence_guard(db, "delete expense"):
            db.delete(expense)
            db.commit()
        LOGGER.info("Expense deleted", extra={"expense_id": expense_id})

    @staticmethod
    def summarize_expenses(
        db: Session,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> schemas.ExpenseSummary:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date cannot be after end_date")
        query = select(
            func.coalesce(func.sum(models.Expense.amount), 0), func.count(models.Expense.id)
        )
        if start_date:
            query = query.where(models.Expense.expense_date >= start_date)
        if end_date:
            query = query.where(models.Expense.expense_date <= end_date)
        with persistence_guard(db, "summarize expenses"):
            total, count = db.execute(query).one()
        return schemas.ExpenseSummary(
            total_amount=parse_money(total or 0),
            count=count,
            start_date=start_date,
            end_date=end_date,
        )
