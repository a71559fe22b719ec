from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import Goal
from .common import Money


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    goal_amount: Money = Field(..., ge=0, description="Target amount to save")
    current_amount: Money = Field(0, ge=0, description="Amount saved so far")
    image_url: Optional[str] = None


class GoalUpdate(BaseModel):
    """Partial overwrite; omitted or null fields keep their stored value."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    goal_amount: Optional[Money] = Field(None, ge=0)
    current_amount: Optional[Money] = Field(None, ge=0)
    image_url: Optional[str] = None


class GoalContribution(BaseModel):
    amount: Money = Field(..., description="Amount added to the current total")


class GoalRead(BaseModel):
    id: str
    name: str
    goal_amount: Money
    current_amount: Money
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, goal: Goal) -> "GoalRead":
        return cls(
            id=str(goal.id),
            name=goal.name,
            goal_amount=goal.goal_amount,
            current_amount=goal.current_amount,
            image_url=goal.image_url,
        )
