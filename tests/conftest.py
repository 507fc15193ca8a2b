"""
Shared test fixtures for RemiTip.

Provides Redis and database session mocks, a mocked persistence gateway,
scripted platform adapters, record/result factories, and an async test
client with the service dependencies overridden.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_analytics_engine, get_exchange_rate_service
from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult
from app.models.exchange_rate_history import ExchangeRateHistory
from app.services.persistence import PersistenceGateway


# --- Mock Redis ---


@pytest.fixture
def mock_redis():
    """AsyncMock Redis client with common methods."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.set = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock()
    return redis


# --- Mock Database Session ---


@pytest.fixture
def mock_db():
    """AsyncMock database session."""
    db = AsyncMock()

    # Mock the result object returned by db.execute()
    mock_result = MagicMock()
    mock_result.scalar_one = MagicMock(return_value=0)
    mock_result.scalars.return_value.all.return_value = []
    db.execute = AsyncMock(return_value=mock_result)
    db.scalar = AsyncMock(return_value=0)
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()

    return db


@pytest.fixture
def session_factory(mock_db):
    """Callable returning an async context manager that yields ``mock_db``."""
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=mock_db)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


# --- Mock Persistence Gateway ---


@pytest.fixture
def mock_gateway():
    """PersistenceGateway double with empty-store defaults."""
    gateway = AsyncMock(spec=PersistenceGateway)
    gateway.save_comparison.return_value = True
    gateway.has_comparison_for_today.return_value = False
    gateway.query_historical_records.return_value = []
    gateway.query_records_between.return_value = []
    gateway.get_platform_leaderboard.return_value = []
    gateway.get_corridor_summary.return_value = {
        "total_records": 0, "oldest_record": None, "most_recent": None,
    }
    gateway.delete_expired_records.return_value = 0
    gateway.get_stats.return_value = {}
    gateway.ping.return_value = True
    return gateway


# --- Scripted adapters ---


class ScriptedAdapter(BaseIntegration):
    """
    Adapter whose ``get_rate`` returns a canned outcome: a result, ``None``,
    or an exception to raise. No HTTP is involved.
    """

    def __init__(self, name: str, outcome=None):
        self.name = name
        super().__init__()
        self.outcome = outcome
        self.calls = 0

    async def get_rate(self, request: RateQuoteRequest):
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def fetch(self, client, request):
        raise NotImplementedError

    def parse(self, payload, request):
        raise NotImplementedError


@pytest.fixture
def make_adapter():
    """Factory fixture for scripted adapters."""
    return ScriptedAdapter


# --- Sample Data ---


@pytest.fixture
def quote_request():
    """US → NG, 100 USD."""
    return RateQuoteRequest(sender_country="US", recipient_country="NG", amount=Decimal("100"))


def _make_result(platform="Wise", receive_amount="157500", total_cost="105", fees="5", **overrides):
    values = {
        "platform": platform,
        "send_amount": Decimal("100"),
        "receive_amount": Decimal(str(receive_amount)),
        "exchange_rate": Decimal(str(receive_amount)) / Decimal("100"),
        "fees": Decimal(str(fees)),
        "total_cost": Decimal(str(total_cost)),
        "success": True,
        "response_time_ms": 120,
    }
    values.update(overrides)
    return RateQuoteResult(**values)


@pytest.fixture
def make_result():
    """Factory fixture for successful RateQuoteResult instances."""
    return _make_result


def _make_record(
    platforms: list[tuple[str, float]] | None = None,
    winner: str | None = None,
    created_at: datetime | None = None,
    sender: str = "US",
    recipient: str = "NG",
    amount: str = "100",
    official_amount: str = "155000",
    **overrides,
) -> ExchangeRateHistory:
    """
    Build a stored comparison. ``platforms`` is a list of
    ``(platform, receive_amount)`` pairs embedded as platform results.
    """
    platforms = platforms or []
    created_at = created_at or datetime.now(timezone.utc)
    results = [
        {
            "platform": name,
            "send_amount": float(amount),
            "receive_amount": receive,
            "exchange_rate": receive / float(amount),
            "fees": 2.5,
            "total_cost": float(amount) + 2.5,
            "response_time_ms": 200,
            "success": True,
        }
        for name, receive in platforms
    ]
    best = max((r for _, r in platforms), default=0)
    values = {
        "sender_country": sender,
        "recipient_country": recipient,
        "sender_currency": "USD",
        "recipient_currency": "NGN",
        "amount": Decimal(amount),
        "official_rate": Decimal("1550"),
        "official_amount": Decimal(official_amount),
        "platform_results": results,
        "winner_platform": winner,
        "best_receive_amount": Decimal(str(best)),
        "best_exchange_rate": Decimal(str(best / float(amount))),
        "average_rate": Decimal("0"),
        "rate_variance_pct": Decimal("0"),
        "platform_count": len(platforms),
        "created_at": created_at,
        "comparison_date": created_at.date(),
        "expires_at": created_at + timedelta(days=60),
    }
    values.update(overrides)
    return ExchangeRateHistory(**values)


@pytest.fixture
def make_record():
    """Factory fixture for ExchangeRateHistory instances."""
    return _make_record


# --- Dependency Override Helpers ---


@pytest.fixture
def mock_exchange_rate_service():
    svc = AsyncMock()
    svc.available_platforms = MagicMock(return_value=["Wise", "Remitly"])
    return svc


@pytest.fixture
def mock_analytics():
    analytics = AsyncMock()
    analytics.platform_analytics.return_value = []
    analytics.corridor_analytics.return_value = []
    analytics.trend_analysis.return_value = []
    return analytics


@pytest_asyncio.fixture
async def client(mock_exchange_rate_service, mock_analytics):
    """
    Async HTTP test client with the service dependencies overridden
    to use test doubles.
    """
    from app.main import app

    async def override_exchange_rate_service():
        return mock_exchange_rate_service

    async def override_analytics():
        return mock_analytics

    app.dependency_overrides[get_exchange_rate_service] = override_exchange_rate_service
    app.dependency_overrides[get_analytics_engine] = override_analytics

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
