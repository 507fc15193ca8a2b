"""create api_usage_logs table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "api_usage_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("endpoint", sa.String(200), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("sender_country", sa.String(3), nullable=True),
        sa.Column("recipient_country", sa.String(3), nullable=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("fetch_historical_data", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("response_time_ms", sa.Integer(), server_default="0", nullable=False),
        sa.Column("platforms_queried", sa.Integer(), server_default="0", nullable=False),
        sa.Column("successful_platforms", sa.Integer(), server_default="0", nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column(
            "requested_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )
    op.create_index("ix_api_usage_logs_requested_at", "api_usage_logs", ["requested_at"])


def downgrade() -> None:
    op.drop_index("ix_api_usage_logs_requested_at", table_name="api_usage_logs")
    op.drop_table("api_usage_logs")
