"""
Analytics endpoints.

Read-only views over stored comparisons (platform reliability, corridor
popularity, trends, daily summary) plus inspection and manual triggering of
the scheduled maintenance jobs.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_analytics_engine
from app.core.exceptions import PersistenceError
from app.schemas.analytics import (
    CorridorAnalyticsResponse,
    CorridorAnalyticsSummary,
    DailySummaryResponse,
    JobTriggerResponse,
    PlatformAnalyticsResponse,
    PlatformAnalyticsSummary,
    ScheduledJob,
    SchedulerStatusResponse,
    TrendAnalysisResponse,
    TrendSummary,
)
from app.services.analytics_service import (
    DECLINING,
    DEFAULT_TREND_PERIODS,
    IMPROVING,
    STABLE,
    AnalyticsEngine,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/platforms", response_model=PlatformAnalyticsResponse)
async def get_platform_analytics(
    sender_country: str = Query(..., min_length=2, max_length=3),
    recipient_country: str = Query(..., min_length=2, max_length=3),
    days: int = Query(30, ge=1, le=365),
    analytics: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Per-platform win rate, averages and reliability for a corridor."""
    sender_country = sender_country.upper()
    recipient_country = recipient_country.upper()
    platforms = await analytics.platform_analytics(sender_country, recipient_country, days)

    return PlatformAnalyticsResponse(
        corridor=f"{sender_country}-{recipient_country}",
        period=f"{days} days",
        platforms=[p.to_dict() for p in platforms],
        summary=PlatformAnalyticsSummary(
            total_platforms=len(platforms),
            best_platform=platforms[0].platform if platforms else None,
            average_win_rate=(
                sum(p.win_rate for p in platforms) / len(platforms) if platforms else 0.0
            ),
        ),
    )


@router.get("/corridors", response_model=CorridorAnalyticsResponse)
async def get_corridor_analytics(
    days: int = Query(30, ge=1, le=365),
    analytics: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Every corridor compared in the period, most popular first."""
    corridors = [c.to_dict() for c in await analytics.corridor_analytics(days)]
    return CorridorAnalyticsResponse(
        period=f"{days} days",
        corridors=corridors,
        summary=CorridorAnalyticsSummary(
            total_corridors=len(corridors),
            total_comparisons=sum(c["total_comparisons"] for c in corridors),
            most_popular=corridors[0] if corridors else None,
        ),
    )


@router.get("/trends", response_model=TrendAnalysisResponse)
async def get_trend_analysis(
    sender_country: str = Query(..., min_length=2, max_length=3),
    recipient_country: str = Query(..., min_length=2, max_length=3),
    periods: str | None = Query(None, description="Comma-separated, e.g. 7d,14d,4w"),
    analytics: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Start-to-end movement of each platform's receive amount per period."""
    sender_country = sender_country.upper()
    recipient_country = recipient_country.upper()
    period_list = (
        [p.strip() for p in periods.split(",") if p.strip()]
        if periods else list(DEFAULT_TREND_PERIODS)
    )
    trends = await analytics.trend_analysis(sender_country, recipient_country, period_list)

    def count(direction: str) -> int:
        return sum(1 for t in trends if t.direction == direction)

    return TrendAnalysisResponse(
        corridor=f"{sender_country}-{recipient_country}",
        periods=period_list,
        trends=[t.to_dict() for t in trends],
        summary=TrendSummary(
            total_trends=len(trends),
            improving_platforms=count(IMPROVING),
            declining_platforms=count(DECLINING),
            stable_platforms=count(STABLE),
        ),
    )


@router.get("/daily-summary", response_model=DailySummaryResponse)
async def get_daily_summary(
    day: date | None = Query(None, alias="date", description="UTC date, defaults to today"),
    analytics: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Comparison totals for one UTC day."""
    try:
        summary = await analytics.daily_summary(day)
    except PersistenceError:
        logger.exception("Daily summary failed for %s", day)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate daily summary",
        )
    return DailySummaryResponse(**summary)


@router.get("/scheduler/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status():
    """The beat schedule the workers run."""
    from app.tasks.celery_app import celery_app

    jobs = [
        ScheduledJob(name=name, task=entry["task"], schedule=str(entry["schedule"]))
        for name, entry in celery_app.conf.beat_schedule.items()
    ]
    return SchedulerStatusResponse(jobs=jobs, count=len(jobs))


@router.post("/scheduler/trigger/{job_type}", response_model=JobTriggerResponse)
async def trigger_job(job_type: str):
    """Queue one of the scheduled jobs to run now."""
    from app.tasks.scheduled_tasks import JOB_TASKS

    task = JOB_TASKS.get(job_type)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid job type. Available: {', '.join(JOB_TASKS)}",
        )

    result = task.delay()
    logger.info("Manually triggered %s job (task %s)", job_type, result.id)
    return JobTriggerResponse(
        job_type=job_type,
        task_id=str(result.id),
        message=f"{job_type} job queued",
    )
