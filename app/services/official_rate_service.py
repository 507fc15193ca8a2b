"""
Official exchange rate — the mid-market reference every platform quote is
compared against.

Uses the exchangerate-api.com pair endpoint, or deterministic mock rates for
development/testing. Conversion rates are cached in Redis for a few minutes;
the cache is best-effort and never fails a lookup.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

import httpx
from redis.exceptions import RedisError

from app.config import settings
from app.core.exceptions import OfficialRateError
from app.integrations.currencies import currency_for

logger = logging.getLogger(__name__)

RATE_CACHE_KEY_PREFIX = "official_rate:"

CACHE_ERRORS = (RedisError, OSError, ValueError)

# Mock units per 1 USD (deterministic for testing)
MOCK_USD_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "NGN": Decimal("1550.00"),
    "GBP": Decimal("0.79"),
    "EUR": Decimal("0.92"),
    "CAD": Decimal("1.36"),
    "MXN": Decimal("17.10"),
    "PHP": Decimal("56.20"),
    "INR": Decimal("83.30"),
    "KES": Decimal("129.00"),
    "GHS": Decimal("15.40"),
    "ZAR": Decimal("18.60"),
    "AUD": Decimal("1.52"),
    "NZD": Decimal("1.64"),
    "JPY": Decimal("151.00"),
    "CNY": Decimal("7.25"),
    "BRL": Decimal("5.05"),
    "ARS": Decimal("870.00"),
    "CLP": Decimal("950.00"),
    "COP": Decimal("3900.00"),
    "PEN": Decimal("3.72"),
    "THB": Decimal("36.40"),
    "VND": Decimal("24800.00"),
    "IDR": Decimal("15900.00"),
    "MYR": Decimal("4.72"),
    "SGD": Decimal("1.35"),
    "KRW": Decimal("1340.00"),
    "AED": Decimal("3.6725"),
    "SAR": Decimal("3.75"),
    "EGP": Decimal("47.50"),
    "MAD": Decimal("10.05"),
    "TND": Decimal("3.12"),
    "DZD": Decimal("134.50"),
    "UYU": Decimal("39.00"),
}


@dataclass(frozen=True)
class OfficialRate:
    base_currency: str
    target_currency: str
    conversion_rate: Decimal
    converted_amount: Decimal
    last_update: str

    def to_dict(self) -> dict:
        return {
            "base_currency": self.base_currency,
            "target_currency": self.target_currency,
            "conversion_rate": float(self.conversion_rate),
            "converted_amount": float(self.converted_amount),
            "last_update": self.last_update,
        }


def convert(amount: Decimal, rate: Decimal) -> Decimal:
    return (amount * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Official rate provider protocol
# ---------------------------------------------------------------------------


class OfficialRateProvider(Protocol):
    async def fetch_pair(self, base: str, target: str, amount: Decimal) -> OfficialRate:
        """Fetch the official ``base``→``target`` rate and convert ``amount``."""
        ...


class MockOfficialRateProvider:
    """Cross rates derived from a fixed USD table."""

    async def fetch_pair(self, base: str, target: str, amount: Decimal) -> OfficialRate:
        try:
            rate = MOCK_USD_RATES[target] / MOCK_USD_RATES[base]
        except KeyError as exc:
            raise OfficialRateError(f"No mock rate for {exc.args[0]}") from exc

        rate = rate.quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP)
        return OfficialRate(
            base_currency=base,
            target_currency=target,
            conversion_rate=rate,
            converted_amount=convert(amount, rate),
            last_update=datetime.now(timezone.utc).isoformat(),
        )


class ExchangeRateAPIProvider:
    """exchangerate-api.com v6 pair conversion."""

    def __init__(self, api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key if api_key is not None else settings.EXCHANGE_RATE_API_KEY
        self._transport = transport

    async def fetch_pair(self, base: str, target: str, amount: Decimal) -> OfficialRate:
        url = f"{settings.EXCHANGE_RATE_API_URL}/{self.api_key}/pair/{base}/{target}/{amount}"
        try:
            async with httpx.AsyncClient(
                timeout=settings.OFFICIAL_RATE_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise OfficialRateError(f"Official rate request failed: {exc}") from exc

        if data.get("result") != "success":
            raise OfficialRateError(f"Exchange rate API error: {data.get('error-type')}")

        return OfficialRate(
            base_currency=data["base_code"],
            target_currency=data["target_code"],
            conversion_rate=Decimal(str(data["conversion_rate"])),
            converted_amount=Decimal(str(data["conversion_result"])),
            last_update=data.get("time_last_update_utc") or "",
        )


# Module-level provider override (for tests)
_provider: OfficialRateProvider | None = None


def get_official_rate_provider() -> OfficialRateProvider:
    """Return the configured official rate provider."""
    if _provider is not None:
        return _provider
    if settings.OFFICIAL_RATE_MOCK:
        return MockOfficialRateProvider()
    return ExchangeRateAPIProvider()


def set_official_rate_provider(provider: OfficialRateProvider | None) -> None:
    """Override the official rate provider (for testing)."""
    global _provider
    _provider = provider


# ---------------------------------------------------------------------------
# OfficialRateService
# ---------------------------------------------------------------------------


class OfficialRateService:
    """Official rate lookups with a short-lived Redis cache."""

    def __init__(self, redis=None):
        self.redis = redis

    @staticmethod
    def _cache_key(base: str, target: str) -> str:
        return f"{RATE_CACHE_KEY_PREFIX}{base}:{target}"

    async def _read_cache(self, base: str, target: str) -> tuple[Decimal, str] | None:
        """Cached ``(conversion_rate, last_update)``; unreadable entries count as a miss."""
        if self.redis is None:
            return None
        try:
            cached = await self.redis.get(self._cache_key(base, target))
        except CACHE_ERRORS:
            logger.warning("Official rate cache read failed for %s/%s", base, target, exc_info=True)
            return None
        if not cached:
            return None
        try:
            data = json.loads(cached)
            return Decimal(data["conversion_rate"]), str(data["last_update"])
        except (ValueError, KeyError, TypeError, ArithmeticError):
            logger.warning("Ignoring unreadable official rate cache entry for %s/%s", base, target)
            return None

    async def _write_cache(self, rate: OfficialRate) -> None:
        if self.redis is None:
            return
        payload = {
            "conversion_rate": str(rate.conversion_rate),
            "last_update": rate.last_update,
        }
        try:
            await self.redis.setex(
                self._cache_key(rate.base_currency, rate.target_currency),
                settings.OFFICIAL_RATE_CACHE_TTL_SECONDS,
                json.dumps(payload),
            )
        except CACHE_ERRORS:
            logger.warning(
                "Official rate cache write failed for %s/%s",
                rate.base_currency, rate.target_currency, exc_info=True,
            )

    async def get_official_rate(
        self,
        sender_country: str,
        recipient_country: str,
        amount: Decimal,
    ) -> OfficialRate:
        """
        Official rate for the corridor, with ``amount`` converted at it.

        Raises:
            OfficialRateError: the rate source failed or returned an error.
        """
        base = currency_for(sender_country)
        target = currency_for(recipient_country)
        amount = Decimal(str(amount))

        cached = await self._read_cache(base, target)
        if cached is not None:
            rate, last_update = cached
            return OfficialRate(
                base_currency=base,
                target_currency=target,
                conversion_rate=rate,
                converted_amount=convert(amount, rate),
                last_update=last_update,
            )

        logger.info("Fetching official exchange rate %s/%s for %s", base, target, amount)
        rate = await get_official_rate_provider().fetch_pair(base, target, amount)
        await self._write_cache(rate)
        return rate
