"""
Pydantic schemas for exchange rate comparisons.
"""

from typing import Any

from pydantic import BaseModel


class PlatformQuote(BaseModel):
    """One platform's normalized quote."""
    platform: str
    send_amount: float
    receive_amount: float
    exchange_rate: float
    fees: float
    total_cost: float
    response_time_ms: int
    success: bool
    error: str | None = None


class OfficialExchangeRate(BaseModel):
    """Mid-market reference rate for the corridor."""
    base_currency: str
    target_currency: str
    conversion_rate: float
    converted_amount: float
    last_update: str


class ComparisonMetrics(BaseModel):
    average_receive_amount: float
    average_exchange_rate: float
    average_fees: float
    best_receive_amount: float
    worst_receive_amount: float
    spread_percentage: float
    official_rate_comparison: float
    platform_count: int


class ComparisonResponse(BaseModel):
    """Full comparison across all eligible platforms."""
    sender_country: str
    sending_amount: float
    sending_currency_code: str
    recipient_country: str
    recipient_currency_code: str
    official_exchange_rate: OfficialExchangeRate
    platforms: list[PlatformQuote]
    winner: PlatformQuote | None
    metrics: ComparisonMetrics
    response_time_ms: int
    timestamp: str
    historical_data: dict[str, Any] | None = None


class AvailablePlatformsResponse(BaseModel):
    sender_country: str
    recipient_country: str
    available_platforms: list[str]
    count: int


class PlatformHealthResponse(BaseModel):
    status: str  # "healthy" | "degraded"
    platforms: dict[str, bool]
    timestamp: str
