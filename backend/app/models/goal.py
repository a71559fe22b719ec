"""SQLAlchemy model for the savings goal tracker."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Numeric, String, Text

from ..database import Base
from ..db_types import GUID


class Goal(Base):
    """Singleton savings target with an accumulating current amount."""

    __tablename__ = "goal_tracker"

    id = Column("goal_id", GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    goal_amount = Column(Numeric(12, 2), nullable=False, default=0)
    current_amount = Column(Numeric(12, 2), nullable=False, default=0)
    image_url = Column(Text, nullable=True)
