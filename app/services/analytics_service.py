"""
Analytics over stored comparisons — platform reliability, corridor
popularity, rate trends and the daily summary.

Everything here is recomputed from ``exchange_rate_history`` on demand; the
per-platform numbers come from the quotes embedded in each record's
``platform_results``.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from app.services.persistence import PersistenceGateway

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30
DEFAULT_TREND_PERIODS = ("7d", "14d", "30d")
TOP_CORRIDORS = 5

# Minimum move, in percent, before a series counts as improving/declining
TREND_THRESHOLD = 2.0

IMPROVING = "improving"
DECLINING = "declining"
STABLE = "stable"

_PERIOD_RE = re.compile(r"(\d+)([dw])")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class PlatformAnalytics:
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

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CorridorAnalytics:
    sender_country: str
    recipient_country: str
    total_comparisons: int
    average_amount: float
    popularity_rank: int
    best_platform: str
    average_savings: float
    volatility_score: float
    last_compared: datetime

    @property
    def corridor(self) -> str:
        return f"{self.sender_country}-{self.recipient_country}"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TrendAnalysis:
    platform: str
    period: str
    start_rate: float
    end_rate: float
    change_percentage: float
    direction: str
    confidence: float

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Statistics helpers
# ---------------------------------------------------------------------------


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def population_stddev(values: list[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = _mean(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def consistency_score(values: list[float]) -> float:
    """100 minus the coefficient of variation in percent, floored at 0."""
    if len(values) < 2:
        return 100.0
    mean = _mean(values)
    if mean == 0:
        return 0.0
    return max(0.0, 100.0 - population_stddev(values) / mean * 100)


def trend_direction(values: list[float]) -> str:
    """
    Compare the mean of the first half of a chronological series with the
    mean of the second half (split at ``len // 2``).
    """
    if len(values) < 3:
        return STABLE

    split = len(values) // 2
    first_avg = _mean(values[:split])
    second_avg = _mean(values[split:])
    if first_avg == 0:
        return STABLE

    change = (second_avg - first_avg) / first_avg * 100
    if abs(change) < TREND_THRESHOLD:
        return STABLE
    return IMPROVING if change > 0 else DECLINING


def trend_confidence(values: list[float]) -> float:
    """R² of a least-squares line through the series, as 0-100."""
    n = len(values)
    if n < 3:
        return 0.0

    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in zip(xs, values))
    sum_xx = sum(x * x for x in xs)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    y_mean = sum_y / n
    total_ss = sum((y - y_mean) ** 2 for y in values)
    if total_ss == 0:
        return 0.0
    residual_ss = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, values))

    r_squared = 1 - residual_ss / total_ss
    return max(0.0, min(100.0, r_squared * 100))


def parse_period_days(period: str) -> int:
    """``"7d"`` → 7, ``"2w"`` → 14; anything else → 30."""
    match = _PERIOD_RE.search(period or "")
    if not match:
        return DEFAULT_PERIOD_DAYS
    value = int(match.group(1))
    return value * 7 if match.group(2) == "w" else value


def platform_entries(record) -> list[dict]:
    """The quotes stored on a comparison record (tolerates legacy JSON strings)."""
    data = record.platform_results
    if not data:
        return []
    if isinstance(data, str):
        data = json.loads(data)
    return data if isinstance(data, list) else []


def iter_platform_entries(records: Iterable, context: str):
    """Yield ``(record, entry)`` pairs, skipping records whose payload is unreadable."""
    for record in records:
        try:
            entries = platform_entries(record)
        except ValueError:
            logger.warning("Unreadable platform results on record %s (%s)", record.id, context)
            continue
        for entry in entries:
            if isinstance(entry, dict) and entry.get("platform"):
                yield record, entry


# ---------------------------------------------------------------------------
# AnalyticsEngine
# ---------------------------------------------------------------------------


class AnalyticsEngine:
    """Derived analytics over comparison history."""

    def __init__(self, gateway: PersistenceGateway | None = None):
        self.gateway = gateway if gateway is not None else PersistenceGateway()

    @staticmethod
    def _since(days: int) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=days)

    # ── Platform analytics ──────────────────────────────────────────────

    async def platform_analytics(
        self,
        sender_country: str,
        recipient_country: str,
        days: int = DEFAULT_PERIOD_DAYS,
    ) -> list[PlatformAnalytics]:
        """
        Per-platform performance on one corridor over the last ``days``.

        ``reliability_score`` blends win rate (50%), a response time score
        (30%, 100 minus one point per 100ms) and consistency of the amounts
        received (20%). Highest reliability first.
        """
        try:
            records = await self.gateway.query_historical_records(
                sender_country, recipient_country, self._since(days),
            )
            return self._platform_analytics(records)
        except Exception:
            logger.exception("Error generating platform analytics for %s-%s", sender_country, recipient_country)
            return []

    @staticmethod
    def _platform_analytics(records: list) -> list[PlatformAnalytics]:
        stats: dict[str, dict] = {}

        # Oldest first so receive amounts form a chronological series
        ordered = sorted(records, key=lambda r: r.created_at)
        for record, entry in iter_platform_entries(ordered, "platform analytics"):
            platform = entry["platform"]
            s = stats.setdefault(platform, {
                "comparisons": 0,
                "wins": 0,
                "receive_amounts": [],
                "exchange_rates": [],
                "fees": [],
                "response_times": [],
                "last_seen": record.created_at,
            })
            s["comparisons"] += 1
            s["receive_amounts"].append(float(entry.get("receive_amount", 0)))
            s["exchange_rates"].append(float(entry.get("exchange_rate", 0)))
            s["fees"].append(float(entry.get("fees", 0)))
            if entry.get("response_time_ms"):
                s["response_times"].append(float(entry["response_time_ms"]))
            if record.winner_platform == platform:
                s["wins"] += 1
            if record.created_at > s["last_seen"]:
                s["last_seen"] = record.created_at

        analytics = []
        for platform, s in stats.items():
            win_rate = s["wins"] / s["comparisons"] * 100
            avg_response = _mean(s["response_times"]) if s["response_times"] else 0.0
            response_score = max(0.0, 100 - avg_response / 100)
            reliability = (
                win_rate * 0.5
                + response_score * 0.3
                + consistency_score(s["receive_amounts"]) * 0.2
            )
            analytics.append(PlatformAnalytics(
                platform=platform,
                total_comparisons=s["comparisons"],
                win_count=s["wins"],
                win_rate=win_rate,
                average_receive_amount=_mean(s["receive_amounts"]),
                average_exchange_rate=_mean(s["exchange_rates"]),
                average_fees=_mean(s["fees"]),
                average_response_time_ms=avg_response,
                reliability_score=reliability,
                trend_direction=trend_direction(s["receive_amounts"]),
                last_seen=s["last_seen"],
            ))

        analytics.sort(key=lambda a: a.reliability_score, reverse=True)
        return analytics

    # ── Corridor analytics ──────────────────────────────────────────────

    async def corridor_analytics(self, days: int = DEFAULT_PERIOD_DAYS) -> list[CorridorAnalytics]:
        """Every corridor compared in the last ``days``, most compared first."""
        try:
            records = await self.gateway.query_records_between(self._since(days))
            return self._corridor_analytics(records)
        except Exception:
            logger.exception("Error generating corridor analytics")
            return []

    @staticmethod
    def _corridor_analytics(records: list) -> list[CorridorAnalytics]:
        groups: dict[tuple[str, str], list] = {}
        for record in records:
            groups.setdefault((record.sender_country, record.recipient_country), []).append(record)

        analytics = []
        for (sender, recipient), group in groups.items():
            newest_first = sorted(group, key=lambda r: r.created_at, reverse=True)

            winners = Counter(r.winner_platform for r in newest_first if r.winner_platform)
            best_platform = max(winners.items(), key=lambda kv: kv[1])[0] if winners else ""

            savings = 0.0
            best_amounts = []
            for record in newest_first:
                if record.best_receive_amount and record.official_amount:
                    savings += float(record.best_receive_amount) - float(record.official_amount)
                    best_amounts.append(float(record.best_receive_amount))

            analytics.append(CorridorAnalytics(
                sender_country=sender,
                recipient_country=recipient,
                total_comparisons=len(group),
                average_amount=_mean([float(r.amount) for r in group]),
                popularity_rank=0,
                best_platform=best_platform,
                average_savings=savings / len(group),
                volatility_score=population_stddev(best_amounts),
                last_compared=newest_first[0].created_at,
            ))

        analytics.sort(key=lambda c: c.total_comparisons, reverse=True)
        for rank, corridor in enumerate(analytics, start=1):
            corridor.popularity_rank = rank
        return analytics

    # ── Trend analysis ──────────────────────────────────────────────────

    async def trend_analysis(
        self,
        sender_country: str,
        recipient_country: str,
        periods: Iterable[str] = DEFAULT_TREND_PERIODS,
    ) -> list[TrendAnalysis]:
        """
        Start-to-end change of each platform's receive amount per period.

        Periods are ``"<n>d"`` or ``"<n>w"``. Periods with fewer than two
        comparisons, and platforms seen fewer than twice, are skipped.
        Largest absolute change first.
        """
        trends: list[TrendAnalysis] = []
        try:
            for period in periods:
                records = await self.gateway.query_historical_records(
                    sender_country, recipient_country, self._since(parse_period_days(period)),
                )
                if len(records) < 2:
                    continue
                trends.extend(self._period_trends(records, period))
        except Exception:
            logger.exception("Error generating trend analysis for %s-%s", sender_country, recipient_country)
            return []

        trends.sort(key=lambda t: abs(t.change_percentage), reverse=True)
        return trends

    @staticmethod
    def _period_trends(records: list, period: str) -> list[TrendAnalysis]:
        series: dict[str, list[tuple[datetime, float]]] = {}
        for record, entry in iter_platform_entries(records, "trend analysis"):
            series.setdefault(entry["platform"], []).append(
                (record.created_at, float(entry.get("receive_amount", 0)))
            )

        trends = []
        for platform, points in series.items():
            if len(points) < 2:
                continue
            values = [value for _, value in sorted(points, key=lambda p: p[0])]
            start, end = values[0], values[-1]
            change = (end - start) / start * 100 if start else 0.0

            direction = STABLE
            if abs(change) > TREND_THRESHOLD:
                direction = IMPROVING if change > 0 else DECLINING

            trends.append(TrendAnalysis(
                platform=platform,
                period=period,
                start_rate=start,
                end_rate=end,
                change_percentage=change,
                direction=direction,
                confidence=trend_confidence(values),
            ))
        return trends

    # ── Daily summary ───────────────────────────────────────────────────

    async def daily_summary(self, day: date | None = None) -> dict:
        """
        Totals for one UTC calendar day (default: today).

        Raises:
            PersistenceError: the comparison history could not be read.
        """
        day = day or datetime.now(timezone.utc).date()
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        records = await self.gateway.query_records_between(start, start + timedelta(days=1), strict=True)

        if not records:
            return {
                "date": day.isoformat(),
                "total_comparisons": 0,
                "unique_corridors": 0,
                "platform_performance": {},
                "top_corridors": [],
                "average_amount": 0.0,
                "summary": "No data available for this date",
            }

        corridors = Counter(f"{r.sender_country}-{r.recipient_country}" for r in records)
        wins = Counter(r.winner_platform for r in records if r.winner_platform)
        top = sorted(corridors.items(), key=lambda kv: kv[1], reverse=True)[:TOP_CORRIDORS]

        return {
            "date": day.isoformat(),
            "total_comparisons": len(records),
            "unique_corridors": len(corridors),
            "platform_performance": dict(wins),
            "top_corridors": [{"corridor": c, "comparisons": n} for c, n in top],
            "average_amount": _mean([float(r.amount) for r in records]),
            "summary": f"Processed {len(records)} comparisons across {len(corridors)} corridors",
        }
