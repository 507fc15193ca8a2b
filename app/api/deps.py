"""
Reusable FastAPI dependencies that build the service layer.

Dependencies:
  - get_gateway               — persistence gateway on the shared session factory
  - get_exchange_rate_service — comparison orchestration (Redis-cached official rate)
  - get_analytics_engine      — analytics over comparison history

Tests swap any of these out through ``app.dependency_overrides``.
"""

from fastapi import Depends

from app.integrations.registry import get_registry
from app.redis_client import get_redis
from app.services.aggregation_service import AggregationEngine
from app.services.analytics_service import AnalyticsEngine
from app.services.exchange_rate_service import ExchangeRateService
from app.services.official_rate_service import OfficialRateService
from app.services.persistence import PersistenceGateway


async def get_gateway() -> PersistenceGateway:
    return PersistenceGateway()


async def get_exchange_rate_service(
    redis=Depends(get_redis),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> ExchangeRateService:
    return ExchangeRateService(
        engine=AggregationEngine(registry=get_registry(), gateway=gateway),
        gateway=gateway,
        official_rates=OfficialRateService(redis),
    )


async def get_analytics_engine(
    gateway: PersistenceGateway = Depends(get_gateway),
) -> AnalyticsEngine:
    return AnalyticsEngine(gateway)
