"""
Platform performance — per platform, per corridor, per UTC day counters.

Rows are only ever written through the ``INSERT ... ON CONFLICT DO UPDATE``
statement built in ``app.services.persistence``.
"""

import uuid
import datetime as dt

from sqlalchemy import Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

class PlatformPerformance(Base):
    __tablename__ = "platform_performance"
    __table_args__ = (
        UniqueConstraint(
            "platform_name", "sender_country", "recipient_country", "date",
            name="uq_platform_performance_platform_corridor_date",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    platform_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    sender_country: Mapped[str] = mapped_column(String(3), nullable=False)
    recipient_country: Mapped[str] = mapped_column(String(3), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    total_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_response_time_ms: Mapped[float | None] = mapped_column(Float)
    times_winner: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rank: Mapped[float | None] = mapped_column(Float)

    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        onupdate=lambda: dt.datetime.now(dt.timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<PlatformPerformance {self.platform_name} "
            f"{self.sender_country}-{self.recipient_country} {self.date}>"
        )
