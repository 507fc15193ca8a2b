"""
Pydantic schemas for analytics endpoints.
"""

from datetime import datetime

from pydantic import BaseModel


class PlatformAnalyticsItem(BaseModel):
    platform: str
    total_comparisons: int
    win_count: int
    win_rate: float
    average_receive_amount: float
    average_exchange_rate: float
    average_fees: float
    average_response_time_ms: float
    reliability_score: float
    trend_direction: str
    last_seen: datetime


class PlatformAnalyticsSummary(BaseModel):
    total_platforms: int
    best_platform: str | None
    average_win_rate: float


class PlatformAnalyticsResponse(BaseModel):
    corridor: str
    period: str
    platforms: list[PlatformAnalyticsItem]
    summary: PlatformAnalyticsSummary


class CorridorAnalyticsItem(BaseModel):
    sender_country: str
    recipient_country: str
    total_comparisons: int
    average_amount: float
    popularity_rank: int
    best_platform: str
    average_savings: float
    volatility_score: float
    last_compared: datetime


class CorridorAnalyticsSummary(BaseModel):
    total_corridors: int
    total_comparisons: int
    most_popular: CorridorAnalyticsItem | None


class CorridorAnalyticsResponse(BaseModel):
    period: str
    corridors: list[CorridorAnalyticsItem]
    summary: CorridorAnalyticsSummary


class TrendItem(BaseModel):
    platform: str
    period: str
    start_rate: float
    end_rate: float
    change_percentage: float
    direction: str
    confidence: float


class TrendSummary(BaseModel):
    total_trends: int
    improving_platforms: int
    declining_platforms: int
    stable_platforms: int


class TrendAnalysisResponse(BaseModel):
    corridor: str
    periods: list[str]
    trends: list[TrendItem]
    summary: TrendSummary


class TopCorridor(BaseModel):
    corridor: str
    comparisons: int


class DailySummaryResponse(BaseModel):
    date: str
    total_comparisons: int
    unique_corridors: int
    platform_performance: dict[str, int]
    top_corridors: list[TopCorridor]
    average_amount: float
    summary: str


class ScheduledJob(BaseModel):
    name: str
    task: str
    schedule: str


class SchedulerStatusResponse(BaseModel):
    jobs: list[ScheduledJob]
    count: int


class JobTriggerResponse(BaseModel):
    job_type: str
    task_id: str
    message: str
