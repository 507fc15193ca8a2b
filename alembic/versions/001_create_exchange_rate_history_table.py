"""create exchange_rate_history table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "exchange_rate_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("sender_country", sa.String(3), nullable=False),
        sa.Column("recipient_country", sa.String(3), nullable=False),
        sa.Column("sender_currency", sa.String(3), nullable=False),
        sa.Column("recipient_currency", sa.String(3), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("official_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("official_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("platform_results", JSONB(), server_default="[]", nullable=False),
        sa.Column("winner_platform", sa.String(50), nullable=True),
        sa.Column("best_receive_amount", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("best_exchange_rate", sa.Numeric(18, 6), server_default="0", nullable=False),
        sa.Column("average_rate", sa.Numeric(18, 6), server_default="0", nullable=False),
        sa.Column("rate_variance_pct", sa.Numeric(10, 4), server_default="0", nullable=False),
        sa.Column("platform_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("comparison_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "sender_country", "recipient_country", "comparison_date",
            name="uq_exchange_rate_history_corridor_day",
        ),
    )
    op.create_index(
        "ix_exchange_rate_history_corridor_created",
        "exchange_rate_history",
        ["sender_country", "recipient_country", "created_at"],
    )
    op.create_index(
        "ix_exchange_rate_history_expires_at",
        "exchange_rate_history",
        ["expires_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_exchange_rate_history_expires_at", table_name="exchange_rate_history")
    op.drop_index("ix_exchange_rate_history_corridor_created", table_name="exchange_rate_history")
    op.drop_table("exchange_rate_history")
