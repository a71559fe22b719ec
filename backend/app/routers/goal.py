"""Router exposing the savings goal tracker."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import GoalService

router = APIRouter(
    responses={400: {"model": schemas.ErrorResponse}, 404: {"model": schemas.ErrorResponse}}
)


@router.get("", response_model=Optional[schemas.GoalRead])
def get_goal(db: Session = Depends(get_db)) -> Optional[schemas.GoalRead]:
    goal = GoalService.get_goal(db)
    return schemas.GoalRead.from_model(goal) if goal is not None else None


@router.post("", response_model=schemas.GoalRead, status_code=status.HTTP_201_CREATED)
def provision_goal(goal_in: schemas.GoalCreate, db: Session = Depends(get_db)) -> schemas.GoalRead:
    return schemas.GoalRead.from_model(GoalService.provision_goal(db, goal_in))


@router.put("/{goal_id}", response_model=schemas.GoalRead)
def update_goal(
    goal_id: str, goal_in: schemas.GoalUpdate, db: Session = Depends(get_db)
) -> schemas.GoalRead:
    return schemas.GoalRead.from_model(GoalService.update_goal(db, goal_id, goal_in))


@router.post("/{goal_id}/add", response_model=schemas.GoalRead)
def add_to_goal(
    goal_id: str, contribution: schemas.GoalContribution, db: Session = Depends(get_db)
) -> schemas.GoalRead:
    """Add a contribution to the goal's current amount in a single transaction."""

    return schemas.GoalRead.from_model(
        GoalService.add_to_current(db, goal_id, contribution.amount)
    )
