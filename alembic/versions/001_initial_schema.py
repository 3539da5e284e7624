"""
Initial database schema: subscriptions.

Revision ID: 001
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    """Create the subscriptions table."""
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient", sa.String(32), nullable=False),
        sa.Column("origin_station", sa.String(64), nullable=False),
        sa.Column("destination", sa.String(128), nullable=False),
        sa.Column("notify_at", sa.Time(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    # every scheduler tick filters on notify_at
    op.create_index("ix_subscriptions_notify_at", "subscriptions", ["notify_at"])

def downgrade() -> None:
    """Drop the subscriptions table."""
    op.drop_index("ix_subscriptions_notify_at", table_name="subscriptions")
    op.drop_table("subscriptions")
