"""Business logic for the savings goal tracker."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFoundError, ValidationError, persistence_guard
from ..money import parse_money

LOGGER = logging.getLogger(__name__)


class GoalService:
    """Reads and mutates the single tracked savings goal."""

    @staticmethod
    def get_goal(db: Session) -> Optional[models.Goal]:
        with persistence_guard(db, "fetch goal"):
            return db.scalars(select(models.Goal).limit(1)).first()

    @staticmethod
    def _get_by_id(db: Session, goal_id: str) -> models.Goal:
        try:
            uuid.UUID(str(goal_id))
        except ValueError as exc:
            raise NotFoundError("Goal not found", error=f"no goal with id {goal_id}") from exc
        with persistence_guard(db, "fetch goal"):
            goal = db.get(models.Goal, goal_id)
        if goal is None:
            raise NotFoundError("Goal not found", error=f"no goal with id {goal_id}")
        return goal

    @staticmethod
    def provision_goal(db: Session, data: schemas.GoalCreate) -> models.Goal:
        """Create the goal row when none has been provisioned yet."""

        if GoalService.get_goal(db) is not None:
            raise ValidationError("A goal is already being tracked", error="goal already exists")
        goal = models.Goal(
            name=data.name.strip(),
            goal_amount=parse_money(data.goal_amount),
            current_amount=parse_money(data.current_amount),
            image_url=data.image_url,
        )
        with persistence_guard(db, "create goal"):
            db.add(goal)
            db.commit()
            db.refresh(goal)
        LOGGER.info("Goal provisioned", extra={"goal_id": str(goal.id)})
        return goal

    @staticmethod
    def update_goal(db: Session, goal_id: str, data: schemas.GoalUpdate) -> models.Goal:
        """Overwrite only the fields supplied with a non-null value."""

        goal = GoalService._get_by_id(db, goal_id)
        changes: dict[str, Any] = {}
        if data.name is not None:
            changes["name"] = data.name
        if data.goal_amount is not None:
            changes["goal_amount"] = parse_money(data.goal_amount)
        if data.current_amount is not None:
            changes["current_amount"] = parse_money(data.current_amount)
        if data.image_url is not None:
            changes["image_url"] = data.image_url

        with persistence_guard(db, "update goal"):
            for key, value in changes.items():
                setattr(goal, key, value)
            db.commit()
            db.refresh(goal)
        LOGGER.info("Goal updated", extra={"goal_id": goal_id, "fields": sorted(changes)})
        return goal

    @staticmethod
    def add_to_current(db: Session, goal_id: str, delta: Decimal) -> models.Goal:
        """Atomically add ``delta`` to the goal's current amount."""

        try:
            amount = parse_money(delta)
        except ValueError as exc:
            raise ValidationError("amount must be a number", error=str(exc)) from exc
        GoalService._get_by_id(db, goal_id)

        with persistence_guard(db, "add to goal"):
            # Single UPDATE so concurrent contributions cannot overwrite each other.
            db.execute(
                update(models.Goal)
                .where(models.Goal.id == goal_id)
                .values(current_amount=models.Goal.current_amount + amount)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            goal = db.get(models.Goal, goal_id, populate_existing=True)
        if goal is None:
            raise NotFoundError("Goal not found", error=f"no goal with id {goal_id}")
        LOGGER.info("Goal contribution added", extra={"goal_id": goal_id, "amount": str(amount)})
        return goal
