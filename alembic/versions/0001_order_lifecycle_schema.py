"""order lifecycle schema

Revision ID: 0001_order_lifecycle_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_order_lifecycle_schema"
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUSES = ("pending", "accepted", "preparing", "ready", "out_for_delivery", "completed", "cancelled")


def _status_type() -> sa.Enum:
    return sa.Enum(*ORDER_STATUSES, name="order_status", native_enum=False, length=32)


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("status", _status_type(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("preparing_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("out_for_delivery_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_orders_tenant_status", "orders", ["tenant_id", "status"])

    op.create_table(
        "order_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("prev_status", _status_type(), nullable=True),
        sa.Column("new_status", _status_type(), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("actor_name", sa.String(length=255), nullable=False),
        sa.Column("observation", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=128), nullable=True),
    )
    op.create_index("ix_order_history_order_created", "order_history", ["order_id", "created_at"])
    op.create_index(
        "uq_order_history_order_idempotency",
        "order_history",
        ["order_id", "idempotency_key"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("uq_order_history_order_idempotency", table_name="order_history")
    op.drop_index("ix_order_history_order_created", table_name="order_history")
    op.drop_table("order_history")

    op.drop_index("ix_orders_tenant_status", table_name="orders")
    op.drop_table("orders")
