"""Add activities feed table

Revision ID: 20261016_activities
Revises: 20261016_initial
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261016_activities"
down_revision = "20261016_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("entity_type", sa.String(length=16), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("printshop_id", sa.String(length=64), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("from_value", sa.String(length=64), nullable=True),
        sa.Column("to_value", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["printshop_id"], ["printshops.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("activities", schema=None) as batch_op:
        batch_op.create_index("ix_activities_entity", ["entity_type", "entity_id"], unique=False)
        batch_op.create_index("ix_activities_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_activities_printshop_id", ["printshop_id"], unique=False)
        batch_op.create_index("ix_activities_created_at", ["created_at"], unique=False)


def downgrade():
    with op.batch_alter_table("activities", schema=None) as batch_op:
        batch_op.drop_index("ix_activities_created_at")
        batch_op.drop_index("ix_activities_printshop_id")
        batch_op.drop_index("ix_activities_order_id")
        batch_op.drop_index("ix_activities_entity")
    op.drop_table("activities")
