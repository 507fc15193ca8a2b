"""
Scheduled maintenance jobs.

Each job is an async function (callable directly, and from tests) wrapped by
a Celery task that runs it in a fresh event loop. Failures are logged and
re-raised so Celery records them.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis

from app.config import settings
from app.services.analytics_service import AnalyticsEngine
from app.services.persistence import PersistenceGateway
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

POPULARITY_KEY = "analytics:corridor_popularity"
POPULARITY_DAYS = 30
WEEKLY_DAYS = 7
WEEKLY_TOP_CORRIDORS = 5


# ---------------------------------------------------------------------------
# Async job bodies
# ---------------------------------------------------------------------------


async def run_daily_cleanup_async(gateway: PersistenceGateway | None = None) -> dict:
    """Delete comparisons past their retention window."""
    gateway = gateway or PersistenceGateway()
    deleted = await gateway.delete_expired_records()
    logger.info("Daily cleanup completed: deleted %d expired comparisons", deleted)
    return {"deleted": deleted}


async def generate_daily_summary_async(analytics: AnalyticsEngine | None = None) -> dict:
    """Summarize yesterday (UTC) and log it."""
    analytics = analytics or AnalyticsEngine()
    yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)
    summary = await analytics.daily_summary(yesterday)
    logger.info(
        "Daily summary for %s: %d comparisons across %d corridors",
        summary["date"], summary["total_comparisons"], summary["unique_corridors"],
    )
    return summary


async def update_corridor_popularity_async(
    analytics: AnalyticsEngine | None = None,
    redis_client=None,
) -> dict:
    """Rank corridors by comparison count and publish the ranking to Redis."""
    analytics = analytics or AnalyticsEngine()
    corridors = await analytics.corridor_analytics(POPULARITY_DAYS)
    ranking = [
        {
            "corridor": c.corridor,
            "popularity_rank": c.popularity_rank,
            "total_comparisons": c.total_comparisons,
            "best_platform": c.best_platform,
        }
        for c in corridors
    ]

    owns_client = redis_client is None
    if owns_client:
        redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await redis_client.set(POPULARITY_KEY, json.dumps(ranking))
    finally:
        if owns_client:
            await redis_client.aclose()

    logger.info("Corridor popularity updated: %d corridors ranked", len(ranking))
    return {"corridors": len(ranking)}


async def perform_health_check_async(gateway: PersistenceGateway | None = None) -> dict:
    """Database connectivity and row counts."""
    gateway = gateway or PersistenceGateway()
    healthy = await gateway.ping()
    stats = await gateway.get_stats() if healthy else {}
    if healthy:
        logger.debug("Database health check passed: %s", stats)
    else:
        logger.error("Database health check failed")
    return {"healthy": healthy, "stats": stats}


async def generate_weekly_report_async(analytics: AnalyticsEngine | None = None) -> dict:
    """Platform analytics and 7-day trends for the week's busiest corridors."""
    analytics = analytics or AnalyticsEngine()
    corridors = await analytics.corridor_analytics(WEEKLY_DAYS)

    reports = []
    for corridor in corridors[:WEEKLY_TOP_CORRIDORS]:
        platforms = await analytics.platform_analytics(
            corridor.sender_country, corridor.recipient_country, WEEKLY_DAYS,
        )
        trends = await analytics.trend_analysis(
            corridor.sender_country, corridor.recipient_country, ["7d"],
        )
        reports.append({
            "corridor": corridor.corridor,
            "analytics": [p.to_dict() for p in platforms],
            "trends": [t.to_dict() for t in trends],
        })

    logger.info(
        "Weekly report generated: %d corridors analyzed of %d",
        len(reports), len(corridors),
    )
    return {"corridors_analyzed": len(reports), "total_corridors": len(corridors), "reports": reports}


# ---------------------------------------------------------------------------
# Celery tasks
# ---------------------------------------------------------------------------


def _run(job, description: str):
    """
    Run an async job in a new event loop.

    The engine's pooled connections belong to the loop that opened them, so
    they are disposed before the loop closes.
    """
    from app.database import engine

    logger.info("Starting %s", description)
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(job())
    except Exception:
        logger.exception("%s failed", description)
        raise
    finally:
        loop.run_until_complete(engine.dispose())
        loop.close()


@celery_app.task(name="app.tasks.scheduled_tasks.run_daily_cleanup")
def run_daily_cleanup():
    return _run(run_daily_cleanup_async, "daily cleanup")


@celery_app.task(name="app.tasks.scheduled_tasks.generate_daily_summary")
def generate_daily_summary():
    return _run(generate_daily_summary_async, "daily summary generation")


@celery_app.task(name="app.tasks.scheduled_tasks.update_corridor_popularity")
def update_corridor_popularity():
    return _run(update_corridor_popularity_async, "corridor popularity update")


@celery_app.task(name="app.tasks.scheduled_tasks.perform_health_check")
def perform_health_check():
    return _run(perform_health_check_async, "database health check")


@celery_app.task(name="app.tasks.scheduled_tasks.generate_weekly_report")
def generate_weekly_report():
    return _run(generate_weekly_report_async, "weekly report generation")


# Job types accepted by the manual trigger endpoint
JOB_TASKS = {
    "cleanup": run_daily_cleanup,
    "summary": generate_daily_summary,
    "popularity": update_corridor_popularity,
    "health": perform_health_check,
    "weekly": generate_weekly_report,
}
