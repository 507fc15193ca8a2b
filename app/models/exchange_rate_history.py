"""
Exchange rate history — one stored comparison per corridor per UTC day.

``platform_results`` keeps the full ordered list of platform quotes as
returned to the caller, so analytics can be recomputed from history alone.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, UniqueConstraint, event
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.config import settings
from app.database import Base


class ExchangeRateHistory(Base):
    __tablename__ = "exchange_rate_history"
    __table_args__ = (
        UniqueConstraint(
            "sender_country", "recipient_country", "comparison_date",
            name="uq_exchange_rate_history_corridor_day",
        ),
        Index("ix_exchange_rate_history_corridor_created", "sender_country", "recipient_country", "created_at"),
        Index("ix_exchange_rate_history_expires_at", "expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )

    # Corridor
    sender_country: Mapped[str] = mapped_column(String(3), nullable=False)
    recipient_country: Mapped[str] = mapped_column(String(3), nullable=False)
    sender_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    recipient_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), nullable=False)

    # Official reference
    official_rate: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=6), nullable=False)
    official_amount: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), nullable=False)

    # Platform quotes and derived summary
    platform_results: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    winner_platform: Mapped[str | None] = mapped_column(String(50))
    best_receive_amount: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), default=Decimal("0"))
    best_exchange_rate: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=6), default=Decimal("0"))
    average_rate: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=6), default=Decimal("0"))
    rate_variance_pct: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=4), default=Decimal("0"))
    platform_count: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    comparison_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @property
    def corridor(self) -> str:
        return f"{self.sender_country}-{self.recipient_country}"

    def __repr__(self) -> str:
        return (
            f"<ExchangeRateHistory {self.corridor} "
            f"{self.comparison_date} winner={self.winner_platform}>"
        )


@event.listens_for(ExchangeRateHistory, "init")
def _set_history_defaults(target, args, kwargs):
    """Fill timestamps on construction so unsaved records are complete."""
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    if "platform_results" not in kwargs:
        target.platform_results = []
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "comparison_date" not in kwargs:
        target.comparison_date = target.created_at.astimezone(timezone.utc).date()
    if "expires_at" not in kwargs:
        target.expires_at = target.created_at + timedelta(days=settings.HISTORY_RETENTION_DAYS)
