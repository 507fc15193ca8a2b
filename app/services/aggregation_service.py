"""
Aggregation engine — fans a quote request out to every eligible platform,
isolates their failures, ranks what comes back, and records per-platform
performance.

Each adapter call is bounded only by its own HTTP timeout; a slow platform
delays the comparison but never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Decimal

from app.integrations.base import ZERO, BaseIntegration, RateQuoteRequest, RateQuoteResult, elapsed_ms
from app.integrations.registry import AdapterRegistry, get_registry
from app.services.persistence import PerformanceUpdate, PersistenceGateway

logger = logging.getLogger(__name__)

HEALTH_PROBE = ("US", "NG", Decimal("100"))

HUNDRED = Decimal("100")


@dataclass
class ComparisonMetrics:
    """Summary statistics over the successful quotes of one comparison."""
    average_receive_amount: Decimal = ZERO
    average_exchange_rate: Decimal = ZERO
    average_fees: Decimal = ZERO
    best_receive_amount: Decimal = ZERO
    worst_receive_amount: Decimal = ZERO
    spread_percentage: Decimal = ZERO
    official_rate_comparison: Decimal = ZERO
    platform_count: int = 0

    def to_dict(self) -> dict:
        return {
            "average_receive_amount": float(self.average_receive_amount),
            "average_exchange_rate": float(self.average_exchange_rate),
            "average_fees": float(self.average_fees),
            "best_receive_amount": float(self.best_receive_amount),
            "worst_receive_amount": float(self.worst_receive_amount),
            "spread_percentage": float(self.spread_percentage),
            "official_rate_comparison": float(self.official_rate_comparison),
            "platform_count": self.platform_count,
        }


def _beats(candidate: RateQuoteResult, best: RateQuoteResult) -> bool:
    """More received, then lower total cost, then lower fees."""
    if candidate.receive_amount != best.receive_amount:
        return candidate.receive_amount > best.receive_amount
    if candidate.total_cost != best.total_cost:
        return candidate.total_cost < best.total_cost
    return candidate.fees < best.fees


def select_winner(results: list[RateQuoteResult]) -> RateQuoteResult | None:
    """Best successful quote; the earliest one wins an exact tie."""
    best = None
    for result in results:
        if not result.success:
            continue
        if best is None or _beats(result, best):
            best = result
    return best


def _mean(values: list[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values)


def compute_metrics(results: list[RateQuoteResult], official_rate: Decimal) -> ComparisonMetrics:
    """
    Averages, best/worst receive amount and spread over successful quotes.

    ``spread_percentage`` is ``(best - worst) / best * 100``;
    ``official_rate_comparison`` is how far the average platform rate sits
    above (positive) or below the official rate, in percent.
    """
    successful = [r for r in results if r.success]
    if not successful:
        return ComparisonMetrics()

    receive_amounts = [r.receive_amount for r in successful]
    best = max(receive_amounts)
    worst = min(receive_amounts)
    average_rate = _mean([r.exchange_rate for r in successful])
    official_rate = Decimal(str(official_rate))

    return ComparisonMetrics(
        average_receive_amount=_mean(receive_amounts),
        average_exchange_rate=average_rate,
        average_fees=_mean([r.fees for r in successful]),
        best_receive_amount=best,
        worst_receive_amount=worst,
        spread_percentage=(best - worst) / best * HUNDRED if best else ZERO,
        official_rate_comparison=(
            (average_rate - official_rate) / official_rate * HUNDRED if official_rate else ZERO
        ),
        platform_count=len(successful),
    )


class AggregationEngine:
    """Concurrent fan-out over the adapter registry."""

    def __init__(
        self,
        registry: AdapterRegistry | None = None,
        gateway: PersistenceGateway | None = None,
    ):
        self.registry = registry if registry is not None else get_registry()
        self.gateway = gateway if gateway is not None else PersistenceGateway()

    select_winner = staticmethod(select_winner)
    compute_metrics = staticmethod(compute_metrics)

    # ── Fan-out ─────────────────────────────────────────────────────────

    async def _record(
        self,
        platform: str,
        request: RateQuoteRequest,
        success: bool,
        response_time_ms: int,
        rank: int | None = None,
    ) -> None:
        await self.gateway.upsert_platform_performance(PerformanceUpdate(
            platform_name=platform,
            sender_country=request.sender_country,
            recipient_country=request.recipient_country,
            success=success,
            response_time_ms=response_time_ms,
            is_winner=rank == 1,
            rank=rank,
        ))

    async def _invoke(self, adapter: BaseIntegration, request: RateQuoteRequest) -> RateQuoteResult | None:
        """Call one adapter, time it, and record the outcome."""
        started = time.perf_counter()
        try:
            result = await adapter.get_rate(request)
        except Exception:
            logger.exception("Integration %s failed", adapter.name)
            await self._record(adapter.name, request, False, elapsed_ms(started))
            return None

        response_time_ms = elapsed_ms(started)
        if result is not None:
            result.response_time_ms = response_time_ms
        await self._record(
            adapter.name, request, result is not None and result.success, response_time_ms,
        )
        return result

    async def get_all_rates(
        self,
        request: RateQuoteRequest,
        adapters: list[BaseIntegration] | None = None,
    ) -> list[RateQuoteResult]:
        """
        Quote ``request`` on every enabled, unrestricted platform, or on
        ``adapters`` when the caller has already resolved them.

        Returns only successful quotes, best receive amount first. Each
        settled call is recorded once as a raw success/failure observation;
        each returned quote is then recorded again with its rank.
        """
        if adapters is None:
            adapters = self.registry.adapters_for(request)
        started = time.perf_counter()
        logger.info(
            "Starting rate comparison for %s (amount=%s, platforms=%d)",
            request.corridor, request.amount, len(adapters),
        )

        settled = await asyncio.gather(
            *(self._invoke(adapter, request) for adapter in adapters),
            return_exceptions=True,
        )

        results: list[RateQuoteResult] = []
        for adapter, outcome in zip(adapters, settled):
            if isinstance(outcome, BaseException):
                logger.error("Integration %s crashed outside its error handling", adapter.name, exc_info=outcome)
                continue
            if outcome is not None and outcome.success:
                results.append(outcome)

        results.sort(key=lambda r: r.receive_amount, reverse=True)

        for rank, result in enumerate(results, start=1):
            await self._record(result.platform, request, True, result.response_time_ms, rank=rank)

        logger.info(
            "Rate comparison for %s completed in %dms: %d/%d platforms succeeded, best=%s",
            request.corridor, elapsed_ms(started), len(results), len(adapters),
            results[0].platform if results else None,
        )
        return results

    # ── Health ──────────────────────────────────────────────────────────

    async def health_check(self) -> dict[str, bool]:
        """Probe every enabled platform with a small US→NG quote."""
        probe = RateQuoteRequest(*HEALTH_PROBE)
        adapters = self.registry.enabled_adapters()
        outcomes = await asyncio.gather(
            *(adapter.get_rate(probe) for adapter in adapters),
            return_exceptions=True,
        )
        return {
            adapter.name: isinstance(outcome, RateQuoteResult) and outcome.success
            for adapter, outcome in zip(adapters, outcomes)
        }
