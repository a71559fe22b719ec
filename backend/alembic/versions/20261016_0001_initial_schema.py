"""Create orders, attachments, expenses and goal tracker tables"""

from __future__ import annotations

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261016_0001"
down_revision = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

ORDER_STATUS_VALUES = ("New", "Accepted", "Done")
ATTACHMENT_TYPE_VALUES = ("image", "document")


def _guid() -> sa.types.TypeEngine:
    return sa.String(length=36).with_variant(postgresql.UUID(as_uuid=True), "postgresql")


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if inspector.has_table("orders"):
        return

    op.create_table(
        "orders",
        sa.Column("order_id", _guid(), primary_key=True),
        sa.Column("order_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("phone_number", sa.String(length=50), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*ORDER_STATUS_VALUES, name="order_status_enum"),
            nullable=False,
            server_default="New",
        ),
        sa.Column("tracking_code", sa.String(length=120), nullable=True),
        sa.CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
    )
    op.create_index("orders_created_at_idx", "orders", ["created_at"])
    op.create_index("orders_status_created_at_idx", "orders", ["status", "created_at"])

    op.create_table(
        "attachments",
        sa.Column("attachment_id", _guid(), primary_key=True),
        sa.Column(
            "order_id",
            _guid(),
            sa.ForeignKey("orders.order_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "type",
            sa.Enum(*ATTACHMENT_TYPE_VALUES, name="attachment_type_enum"),
            nullable=False,
        ),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
    )
    op.create_index("attachments_order_id_idx", "attachments", ["order_id"])

    op.create_table(
        "order_sequence",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )
    op.bulk_insert(
        sa.table("order_sequence", sa.column("id", sa.Integer), sa.column("last_value", sa.Integer)),
        [{"id": 1, "last_value": 0}],
    )

    op.create_table(
        "expenses",
        sa.Column("expense_id", _guid(), primary_key=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
    )
    op.create_index("expenses_created_at_idx", "expenses", ["created_at"])

    op.create_table(
        "goal_tracker",
        sa.Column("goal_id", _guid(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("goal_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("current_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("image_url", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("goal_tracker")
    op.drop_index("expenses_created_at_idx", table_name="expenses")
    op.drop_table("expenses")
    op.drop_table("order_sequence")
    op.drop_index("attachments_order_id_idx", table_name="attachments")
    op.drop_table("attachments")
    op.drop_index("orders_status_created_at_idx", table_name="orders")
    op.drop_index("orders_created_at_idx", table_name="orders")
    op.drop_table("orders")
    sa.Enum(name="attachment_type_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="order_status_enum").drop(op.get_bind(), checkfirst=True)
