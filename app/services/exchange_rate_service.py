"""
Exchange rate comparison — the end-to-end flow behind
``GET /api/v1/exchange-rates/compare``.

    official rate → platform fan-out → winner → metrics
        → (optional) historical payload → daily snapshot → usage log

The official rate is mandatory: without it there is nothing to measure the
platforms against, so its failure fails the whole comparison. Every failure
reaches the caller as the same ``ComparisonFailedError``; the cause is only
logged.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.config import settings
from app.core.exceptions import ComparisonFailedError
from app.integrations.base import ZERO, RateQuoteRequest, RateQuoteResult, elapsed_ms
from app.models.exchange_rate_history import ExchangeRateHistory
from app.models.platform_performance import PlatformPerformance
from app.services.aggregation_service import (
    AggregationEngine,
    ComparisonMetrics,
    compute_metrics,
    select_winner,
)
from app.services.analytics_service import DECLINING, IMPROVING, STABLE, iter_platform_entries, trend_direction
from app.services.official_rate_service import OfficialRate, OfficialRateService
from app.services.persistence import PersistenceGateway

logger = logging.getLogger(__name__)

COMPARE_ENDPOINT = "/api/v1/exchange-rates/compare"


# ---------------------------------------------------------------------------
# Historical payload helpers
# ---------------------------------------------------------------------------


def summarize_period(records: list, days: int) -> dict:
    """
    Per-platform averages, win counts and trend buckets for one look-back
    window. ``records`` is newest first, as returned by the gateway; records
    with unreadable platform results are skipped.
    """
    stats: dict[str, dict] = {}
    for record, entry in iter_platform_entries(reversed(records), "historical payload"):
        platform = entry["platform"]
        s = stats.setdefault(platform, {"rates": [], "receive_amounts": [], "wins": 0})
        s["rates"].append(float(entry.get("exchange_rate", 0)))
        s["receive_amounts"].append(float(entry.get("receive_amount", 0)))
        if record.winner_platform == platform:
            s["wins"] += 1

    average_rates = {}
    best_performers = []
    trends = {IMPROVING: [], DECLINING: [], STABLE: []}
    for platform, s in stats.items():
        average_rates[platform] = sum(s["rates"]) / len(s["rates"])
        best_performers.append({
            "platform": platform,
            "win_count": s["wins"],
            "avg_receive_amount": sum(s["receive_amounts"]) / len(s["receive_amounts"]),
        })
        trends[trend_direction(s["receive_amounts"])].append(platform)

    best_performers.sort(key=lambda p: (-p["win_count"], -p["avg_receive_amount"]))

    return {
        "average_rates": average_rates,
        "best_performers": best_performers,
        "trends": trends,
        "total_comparisons": len(records),
        "period_days": days,
    }


def leaderboard_entry(row: PlatformPerformance) -> dict:
    return {
        "platform": row.platform_name,
        "date": row.date.isoformat(),
        "total_requests": row.total_requests,
        "successful_requests": row.successful_requests,
        "failed_requests": row.failed_requests,
        "average_response_time_ms": row.average_response_time_ms,
        "times_winner": row.times_winner,
        "average_rank": row.average_rank,
    }


# ---------------------------------------------------------------------------
# ExchangeRateService
# ---------------------------------------------------------------------------


class ExchangeRateService:
    """Comparison orchestration across the official rate and all platforms."""

    def __init__(
        self,
        engine: AggregationEngine | None = None,
        gateway: PersistenceGateway | None = None,
        official_rates: OfficialRateService | None = None,
    ):
        self.gateway = gateway if gateway is not None else PersistenceGateway()
        self.engine = engine if engine is not None else AggregationEngine(gateway=self.gateway)
        self.official_rates = official_rates if official_rates is not None else OfficialRateService()

    async def get_official_rate(
        self,
        sender_country: str,
        recipient_country: str,
        amount: Decimal,
    ) -> OfficialRate:
        return await self.official_rates.get_official_rate(sender_country, recipient_country, amount)

    async def compare_rates(
        self,
        request: RateQuoteRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> dict:
        """
        Run a full comparison for ``request``.

        Raises:
            ComparisonFailedError: anything went wrong; the usage log records
                the attempt with status 500.
        """
        started = time.perf_counter()
        client = {"ip_address": ip_address, "user_agent": user_agent}
        logger.info(
            "Comparing rates for %s (amount=%s, historical=%s)",
            request.corridor, request.amount, request.fetch_historical_data,
        )

        try:
            official = await self.get_official_rate(
                request.sender_country, request.recipient_country, request.amount,
            )
            adapters = self.engine.registry.adapters_for(request)
            results = await self.engine.get_all_rates(request, adapters)
            winner = select_winner(results)
            metrics = compute_metrics(results, official.conversion_rate)

            payload = {
                "sender_country": request.sender_country,
                "sending_amount": float(request.amount),
                "sending_currency_code": request.sender_currency,
                "recipient_country": request.recipient_country,
                "recipient_currency_code": request.recipient_currency,
                "official_exchange_rate": official.to_dict(),
                "platforms": [r.to_dict() for r in results],
                "winner": winner.to_dict() if winner else None,
                "metrics": metrics.to_dict(),
                "response_time_ms": elapsed_ms(started),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            if request.fetch_historical_data:
                payload["historical_data"] = await self.get_historical_data(request)

            await self.gateway.save_comparison(
                self.build_record(request, official, results, winner, metrics)
            )
            await self.gateway.log_api_usage(self._usage_entry(
                request, 200, elapsed_ms(started),
                platforms_queried=len(adapters),
                successful_platforms=len(results),
                **client,
            ))
            return payload
        except Exception as exc:
            logger.exception("Error comparing rates for %s", request.corridor)
            await self.gateway.log_api_usage(self._usage_entry(
                request, 500, elapsed_ms(started),
                platforms_queried=0,
                successful_platforms=0,
                **client,
            ))
            raise ComparisonFailedError() from exc

    @staticmethod
    def build_record(
        request: RateQuoteRequest,
        official: OfficialRate,
        results: list[RateQuoteResult],
        winner: RateQuoteResult | None,
        metrics: ComparisonMetrics,
    ) -> ExchangeRateHistory:
        """Daily snapshot row for this comparison."""
        return ExchangeRateHistory(
            sender_country=request.sender_country,
            recipient_country=request.recipient_country,
            sender_currency=request.sender_currency,
            recipient_currency=request.recipient_currency,
            amount=request.amount,
            official_rate=official.conversion_rate,
            official_amount=official.converted_amount,
            platform_results=[r.to_dict() for r in results],
            winner_platform=winner.platform if winner else None,
            best_receive_amount=winner.receive_amount if winner else ZERO,
            best_exchange_rate=winner.exchange_rate if winner else ZERO,
            average_rate=metrics.average_exchange_rate,
            rate_variance_pct=metrics.spread_percentage,
            platform_count=metrics.platform_count,
        )

    @staticmethod
    def _usage_entry(request: RateQuoteRequest, status_code: int, response_time_ms: int, **extra) -> dict:
        return {
            "endpoint": COMPARE_ENDPOINT,
            "method": "GET",
            "sender_country": request.sender_country,
            "recipient_country": request.recipient_country,
            "amount": request.amount,
            "fetch_historical_data": request.fetch_historical_data,
            "status_code": status_code,
            "response_time_ms": response_time_ms,
            **extra,
        }

    # ── Historical payload ──────────────────────────────────────────────

    async def get_historical_data(self, request: RateQuoteRequest) -> dict:
        sender, recipient = request.sender_country, request.recipient_country
        now = datetime.now(timezone.utc)

        periods = {}
        for days in settings.HISTORICAL_PERIODS_DAYS:
            records = await self.gateway.query_historical_records(
                sender, recipient, now - timedelta(days=days),
            )
            periods[f"last_{days}_days"] = summarize_period(records, days)

        leaderboard = await self.gateway.get_platform_leaderboard(
            sender, recipient, settings.LEADERBOARD_DAYS,
        )
        return {
            "periods": periods,
            "leaderboard": [leaderboard_entry(row) for row in leaderboard],
            "summary": await self.gateway.get_corridor_summary(sender, recipient),
        }

    # ── Platform listing / health ───────────────────────────────────────

    def available_platforms(self, sender_country: str, recipient_country: str) -> list[str]:
        return self.engine.registry.available_platforms(sender_country, recipient_country)

    async def health_check(self) -> dict[str, bool]:
        return await self.engine.health_check()
