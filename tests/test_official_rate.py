"""Tests for the official rate service — mock and live providers, Redis caching."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.exceptions import OfficialRateError
from app.services import official_rate_service
from app.services.official_rate_service import (
    RATE_CACHE_KEY_PREFIX,
    ExchangeRateAPIProvider,
    MockOfficialRateProvider,
    OfficialRate,
    OfficialRateService,
    get_official_rate_provider,
    set_official_rate_provider,
)


@pytest.fixture
def provider():
    """Install a recording provider for the duration of a test."""
    fake = AsyncMock()
    fake.fetch_pair.return_value = OfficialRate(
        base_currency="USD",
        target_currency="NGN",
        conversion_rate=Decimal("1550.25"),
        converted_amount=Decimal("155025.00"),
        last_update="Mon, 04 Mar 2024 00:00:01 +0000",
    )
    set_official_rate_provider(fake)
    yield fake
    set_official_rate_provider(None)


class TestMockOfficialRateProvider:

    @pytest.mark.asyncio
    async def test_usd_to_ngn(self):
        rate = await MockOfficialRateProvider().fetch_pair("USD", "NGN", Decimal("100"))
        assert rate.conversion_rate == Decimal("1550.000000")
        assert rate.converted_amount == Decimal("155000.00")

    @pytest.mark.asyncio
    async def test_cross_rate(self):
        rate = await MockOfficialRateProvider().fetch_pair("GBP", "NGN", Decimal("10"))
        expected = (Decimal("1550.00") / Decimal("0.79")).quantize(Decimal("0.000001"))
        assert rate.conversion_rate == expected

    @pytest.mark.asyncio
    async def test_unknown_currency(self):
        with pytest.raises(OfficialRateError):
            await MockOfficialRateProvider().fetch_pair("USD", "XXX", Decimal("1"))

    def test_default_provider_is_mock_in_development(self):
        assert isinstance(get_official_rate_provider(), MockOfficialRateProvider)


class TestExchangeRateAPIProvider:

    @pytest.mark.asyncio
    async def test_parses_pair_conversion(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "result": "success",
                "base_code": "USD",
                "target_code": "NGN",
                "conversion_rate": 1548.5,
                "conversion_result": 154850.0,
                "time_last_update_utc": "Mon, 04 Mar 2024 00:00:01 +0000",
            })

        api = ExchangeRateAPIProvider(api_key="k", transport=httpx.MockTransport(handler))
        rate = await api.fetch_pair("USD", "NGN", Decimal("100"))

        assert rate.conversion_rate == Decimal("1548.5")
        assert rate.converted_amount == Decimal("154850.0")
        assert seen[0].url.path.endswith("/k/pair/USD/NGN/100")

    @pytest.mark.asyncio
    async def test_non_success_result(self):
        def handler(request):
            return httpx.Response(200, json={"result": "error", "error-type": "invalid-key"})

        api = ExchangeRateAPIProvider(api_key="bad", transport=httpx.MockTransport(handler))
        with pytest.raises(OfficialRateError, match="invalid-key"):
            await api.fetch_pair("USD", "NGN", Decimal("100"))

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request):
            return httpx.Response(503)

        api = ExchangeRateAPIProvider(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(OfficialRateError):
            await api.fetch_pair("USD", "NGN", Decimal("100"))


class TestOfficialRateService:

    @pytest.mark.asyncio
    async def test_cache_miss_fetches_and_caches(self, mock_redis, provider):
        svc = OfficialRateService(mock_redis)

        rate = await svc.get_official_rate("US", "NG", Decimal("100"))

        assert rate.conversion_rate == Decimal("1550.25")
        provider.fetch_pair.assert_awaited_once_with("USD", "NGN", Decimal("100"))
        key, ttl, payload = mock_redis.setex.await_args.args
        assert key == f"{RATE_CACHE_KEY_PREFIX}USD:NGN"
        assert ttl == 300
        assert json.loads(payload)["conversion_rate"] == "1550.25"

    @pytest.mark.asyncio
    async def test_cache_hit_recomputes_amount(self, mock_redis, provider):
        mock_redis.get.return_value = json.dumps({
            "conversion_rate": "1500.00",
            "last_update": "cached",
        })
        svc = OfficialRateService(mock_redis)

        rate = await svc.get_official_rate("US", "NG", Decimal("20"))

        assert rate.conversion_rate == Decimal("1500.00")
        assert rate.converted_amount == Decimal("30000.00")
        assert rate.last_update == "cached"
        provider.fetch_pair.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_errors_ignored(self, mock_redis, provider):
        mock_redis.get.side_effect = RedisConnectionError("down")
        mock_redis.setex.side_effect = RedisConnectionError("down")
        svc = OfficialRateService(mock_redis)

        rate = await svc.get_official_rate("US", "NG", Decimal("100"))

        assert rate.converted_amount == Decimal("155025.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cached", [
        "not-json{",
        json.dumps({"conversion_rate": "1550"}),
        json.dumps({"conversion_rate": "abc", "last_update": "x"}),
        json.dumps(["1550"]),
    ])
    async def test_unreadable_cache_entry_falls_through(self, mock_redis, provider, cached):
        mock_redis.get.return_value = cached
        svc = OfficialRateService(mock_redis)

        rate = await svc.get_official_rate("US", "NG", Decimal("100"))

        assert rate.conversion_rate == Decimal("1550.25")
        provider.fetch_pair.assert_awaited_once_with("USD", "NGN", Decimal("100"))
        mock_redis.setex.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_redis(self, provider):
        rate = await OfficialRateService().get_official_rate("US", "NG", Decimal("100"))
        assert rate.target_currency == "NGN"

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, mock_redis):
        failing = AsyncMock()
        failing.fetch_pair.side_effect = OfficialRateError("Exchange rate API error: quota-reached")
        set_official_rate_provider(failing)
        try:
            with pytest.raises(OfficialRateError):
                await OfficialRateService(mock_redis).get_official_rate("US", "NG", Decimal("100"))
        finally:
            set_official_rate_provider(None)
        assert official_rate_service._provider is None
