"""create platform_performance table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "platform_performance",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("platform_name", sa.String(50), nullable=False),
        sa.Column("sender_country", sa.String(3), nullable=False),
        sa.Column("recipient_country", sa.String(3), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_requests", sa.Integer(), server_default="0", nullable=False),
        sa.Column("successful_requests", sa.Integer(), server_default="0", nullable=False),
        sa.Column("failed_requests", sa.Integer(), server_default="0", nullable=False),
        sa.Column("average_response_time_ms", sa.Float(), nullable=True),
        sa.Column("times_winner", sa.Integer(), server_default="0", nullable=False),
        sa.Column("average_rank", sa.Float(), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.UniqueConstraint(
            "platform_name", "sender_country", "recipient_country", "date",
            name="uq_platform_performance_platform_corridor_date",
        ),
    )
    op.create_index(
        "ix_platform_performance_platform_name",
        "platform_performance",
        ["platform_name"],
    )


def downgrade() -> None:
    op.drop_index("ix_platform_performance_platform_name", table_name="platform_performance")
    op.drop_table("platform_performance")
