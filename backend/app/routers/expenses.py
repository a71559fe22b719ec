"""Router exposing expense operations."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import ExpenseService

router = APIRouter(
    responses={
        400: {"model": schemas.ErrorResponse},
        403: {"model": schemas.ErrorResponse},
        404: {"model": schemas.ErrorResponse},
    }
)


@router.get("", response_model=list[schemas.ExpenseRead])
def list_expenses(db: Session = Depends(get_db)) -> list[schemas.ExpenseRead]:
    """Return every expense, newest first."""

    return [schemas.ExpenseRead.from_model(item) for item in ExpenseService.list_expenses(db)]


@router.get("/summary", response_model=schemas.ExpenseSummary)
def summarize_expenses(
    db: Session = Depends(get_db),
    start_date: Optional[date] = Query(None, description="Include expenses on or after this date"),
    end_date: Optional[date] = Query(None, description="Include expenses on or before this date"),
) -> schemas.ExpenseSummary:
    return ExpenseService.summarize_expenses(db, start_date=start_date, end_date=end_date)


@router.post("", response_model=schemas.ExpenseRead, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense_in: schemas.ExpenseCreate, db: Session = Depends(get_db)
) -> schemas.ExpenseRead:
    return schemas.ExpenseRead.from_model(ExpenseService.create_expense(db, expense_in))


@router.delete("/{expense_id}", response_model=schemas.MessageResponse)
def delete_expense(expense_id: str, db: Session = Depends(get_db)) -> schemas.MessageResponse:
    ExpenseService.delete_expense(db, expense_id)
    return schemas.MessageResponse(message=f"Expense {expense_id} deleted successfully.")
