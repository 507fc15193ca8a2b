"""SQLAlchemy ORM models for RemiTip."""

from app.models.api_usage_log import ApiUsageLog
from app.models.exchange_rate_history import ExchangeRateHistory
from app.models.platform_performance import PlatformPerformance

__all__ = [
    "ApiUsageLog",
    "ExchangeRateHistory",
    "PlatformPerformance",
]
