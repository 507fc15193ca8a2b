"""
Persistence gateway — every read and write the comparison pipeline makes
against PostgreSQL.

Three stores:

  - ``exchange_rate_history``: one comparison per corridor per UTC day
  - ``platform_performance``: per platform/corridor/day counters, written
    with a single atomic ``INSERT ... ON CONFLICT DO UPDATE``
  - ``api_usage_logs``: append-only request log

Store failures never break a comparison: writes are logged and dropped,
reads are logged and return an empty result. ``query_records_between`` can
be asked to raise instead (``strict=True``) for callers that must not
report an empty day when the database is down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import PersistenceError
from app.models.api_usage_log import ApiUsageLog
from app.models.exchange_rate_history import ExchangeRateHistory
from app.models.platform_performance import PlatformPerformance

logger = logging.getLogger(__name__)

# asyncpg surfaces refused connections as plain OSError
DB_ERRORS = (SQLAlchemyError, OSError)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Platform performance upsert
# ---------------------------------------------------------------------------


@dataclass
class PerformanceUpdate:
    """One observation of a platform for a corridor."""
    platform_name: str
    sender_country: str
    recipient_country: str
    success: bool
    response_time_ms: int
    is_winner: bool = False
    rank: int | None = None
    day: date = field(default_factory=utc_today)


def build_performance_upsert(update: PerformanceUpdate):
    """
    Build the ``INSERT ... ON CONFLICT DO UPDATE`` for one observation.

    Counters are incremented in place. ``average_response_time_ms`` and
    ``average_rank`` are running averages weighted by the stored
    ``total_requests``; a missing stored average is seeded with the new
    value. An observation without a rank leaves ``average_rank`` untouched.
    """
    now = datetime.now(timezone.utc)
    current = PlatformPerformance.__table__.c

    stmt = pg_insert(PlatformPerformance).values(
        platform_name=update.platform_name,
        sender_country=update.sender_country,
        recipient_country=update.recipient_country,
        date=update.day,
        total_requests=1,
        successful_requests=1 if update.success else 0,
        failed_requests=0 if update.success else 1,
        average_response_time_ms=float(update.response_time_ms),
        times_winner=1 if update.is_winner else 0,
        average_rank=float(update.rank) if update.rank else None,
        updated_at=now,
    )
    new = stmt.excluded

    set_ = {
        "total_requests": current.total_requests + 1,
        "successful_requests": current.successful_requests + new.successful_requests,
        "failed_requests": current.failed_requests + new.failed_requests,
        "average_response_time_ms": (
            func.coalesce(current.average_response_time_ms, new.average_response_time_ms)
            * current.total_requests
            + new.average_response_time_ms
        ) / (current.total_requests + 1),
        "times_winner": current.times_winner + new.times_winner,
        "updated_at": new.updated_at,
    }
    if update.rank:
        set_["average_rank"] = (
            func.coalesce(current.average_rank, new.average_rank) * current.total_requests
            + new.average_rank
        ) / (current.total_requests + 1)

    return stmt.on_conflict_do_update(
        index_elements=["platform_name", "sender_country", "recipient_country", "date"],
        set_=set_,
    )


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class PersistenceGateway:
    """Async SQLAlchemy access to the comparison stores."""

    def __init__(self, session_factory=None):
        """
        Args:
            session_factory: Async session factory
                             (defaults to ``app.database.async_session``).
        """
        self._session_factory = session_factory

    @property
    def session_factory(self):
        if self._session_factory is not None:
            return self._session_factory
        from app.database import async_session
        return async_session

    # ── Comparison history ──────────────────────────────────────────────

    @staticmethod
    async def _count_for_day(session, sender_country: str, recipient_country: str, day: date) -> int:
        result = await session.execute(
            select(func.count())
            .select_from(ExchangeRateHistory)
            .where(
                ExchangeRateHistory.sender_country == sender_country,
                ExchangeRateHistory.recipient_country == recipient_country,
                ExchangeRateHistory.comparison_date == day,
            )
        )
        return result.scalar_one()

    async def has_comparison_for_today(self, sender_country: str, recipient_country: str) -> bool:
        try:
            async with self.session_factory() as session:
                count = await self._count_for_day(
                    session, sender_country, recipient_country, utc_today(),
                )
        except DB_ERRORS:
            logger.exception("Failed to check today's comparison for %s-%s", sender_country, recipient_country)
            return False
        return count > 0

    async def save_comparison(self, record: ExchangeRateHistory) -> bool:
        """
        Store ``record`` unless its corridor already has one for that UTC day.

        Returns True when a row was written. A concurrent writer that wins
        the race trips the unique constraint; that is treated as "already
        stored" and rolled back.
        """
        corridor = f"{record.sender_country}-{record.recipient_country}"
        try:
            async with self.session_factory() as session:
                existing = await self._count_for_day(
                    session, record.sender_country, record.recipient_country, record.comparison_date,
                )
                if existing:
                    logger.info("Comparison for %s on %s already stored, skipping", corridor, record.comparison_date)
                    return False

                session.add(record)
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    logger.info("Comparison for %s on %s stored concurrently, skipping", corridor, record.comparison_date)
                    return False
        except DB_ERRORS:
            logger.exception("Failed to save comparison for %s", corridor)
            return False

        logger.info("Stored comparison for %s (winner=%s)", corridor, record.winner_platform)
        return True

    async def query_historical_records(
        self,
        sender_country: str,
        recipient_country: str,
        since: datetime,
    ) -> list[ExchangeRateHistory]:
        """Corridor comparisons created at or after ``since``, newest first."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ExchangeRateHistory)
                    .where(
                        ExchangeRateHistory.sender_country == sender_country,
                        ExchangeRateHistory.recipient_country == recipient_country,
                        ExchangeRateHistory.created_at >= since,
                    )
                    .order_by(ExchangeRateHistory.created_at.desc())
                )
                return list(result.scalars().all())
        except DB_ERRORS:
            logger.exception("Failed to load history for %s-%s", sender_country, recipient_country)
            return []

    async def query_records_between(
        self,
        start: datetime,
        end: datetime | None = None,
        strict: bool = False,
    ) -> list[ExchangeRateHistory]:
        """All comparisons with ``start <= created_at < end``, oldest first."""
        query = select(ExchangeRateHistory).where(ExchangeRateHistory.created_at >= start)
        if end is not None:
            query = query.where(ExchangeRateHistory.created_at < end)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    query.order_by(ExchangeRateHistory.created_at.asc())
                )
                return list(result.scalars().all())
        except DB_ERRORS as exc:
            if strict:
                raise PersistenceError(f"Failed to load comparisons between {start} and {end}") from exc
            logger.exception("Failed to load comparisons between %s and %s", start, end)
            return []

    async def delete_expired_records(self) -> int:
        """Remove comparisons past ``expires_at``. Returns the number deleted."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(ExchangeRateHistory).where(
                        ExchangeRateHistory.expires_at < datetime.now(timezone.utc),
                    )
                )
                await session.commit()
        except DB_ERRORS:
            logger.exception("Failed to delete expired comparisons")
            return 0
        return result.rowcount or 0

    # ── Platform performance ────────────────────────────────────────────

    async def upsert_platform_performance(self, update: PerformanceUpdate) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(build_performance_upsert(update))
                await session.commit()
        except DB_ERRORS:
            logger.exception(
                "Failed to update performance for %s (%s-%s)",
                update.platform_name, update.sender_country, update.recipient_country,
            )

    async def get_platform_leaderboard(
        self,
        sender_country: str,
        recipient_country: str,
        days: int = 30,
    ) -> list[PlatformPerformance]:
        """Daily performance rows for the corridor, most wins first, best rank next."""
        since = utc_today() - timedelta(days=days)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(PlatformPerformance)
                    .where(
                        PlatformPerformance.sender_country == sender_country,
                        PlatformPerformance.recipient_country == recipient_country,
                        PlatformPerformance.date >= since,
                    )
                    .order_by(
                        PlatformPerformance.times_winner.desc(),
                        PlatformPerformance.average_rank.asc().nulls_last(),
                    )
                )
                return list(result.scalars().all())
        except DB_ERRORS:
            logger.exception("Failed to load leaderboard for %s-%s", sender_country, recipient_country)
            return []

    # ── Usage log ───────────────────────────────────────────────────────

    async def log_api_usage(self, entry: dict[str, Any]) -> None:
        """Append one usage row. Never raises."""
        try:
            async with self.session_factory() as session:
                session.add(ApiUsageLog(**entry))
                await session.commit()
        except DB_ERRORS:
            logger.exception("Failed to log API usage for %s", entry.get("endpoint"))

    # ── Summaries and maintenance ───────────────────────────────────────

    async def get_corridor_summary(self, sender_country: str, recipient_country: str) -> dict:
        empty = {"total_records": 0, "oldest_record": None, "most_recent": None}
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(
                        func.count(ExchangeRateHistory.id),
                        func.min(ExchangeRateHistory.created_at),
                        func.max(ExchangeRateHistory.created_at),
                    ).where(
                        ExchangeRateHistory.sender_country == sender_country,
                        ExchangeRateHistory.recipient_country == recipient_country,
                    )
                )
                total, oldest, newest = result.one()
        except DB_ERRORS:
            logger.exception("Failed to summarize corridor %s-%s", sender_country, recipient_country)
            return empty

        return {
            "total_records": total or 0,
            "oldest_record": oldest.isoformat() if oldest else None,
            "most_recent": newest.isoformat() if newest else None,
        }

    async def get_stats(self) -> dict:
        """Row counts used by the hourly health job."""
        day_ago = datetime.now(timezone.utc) - timedelta(hours=24)
        try:
            async with self.session_factory() as session:
                comparisons = await session.scalar(
                    select(func.count()).select_from(ExchangeRateHistory)
                )
                performance = await session.scalar(
                    select(func.count()).select_from(PlatformPerformance)
                )
                usage = await session.scalar(
                    select(func.count())
                    .select_from(ApiUsageLog)
                    .where(ApiUsageLog.requested_at >= day_ago)
                )
        except DB_ERRORS:
            logger.exception("Failed to collect database stats")
            return {}

        return {
            "total_comparisons": comparisons or 0,
            "platform_performance_records": performance or 0,
            "api_usage_logs_last_24h": usage or 0,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def ping(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except DB_ERRORS:
            logger.exception("Database connectivity check failed")
            return False
        return True
