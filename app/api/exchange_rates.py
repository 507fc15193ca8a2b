"""
Exchange rate comparison endpoints.

Compares what each remittance platform would deliver for a corridor and
amount, lists the platforms eligible for a corridor, and probes platform
health. No authentication: these are public read endpoints.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from app.api.deps import get_exchange_rate_service
from app.core.exceptions import ComparisonFailedError
from app.integrations.base import RateQuoteRequest
from app.schemas.exchange_rate import (
    AvailablePlatformsResponse,
    ComparisonResponse,
    PlatformHealthResponse,
)
from app.services.exchange_rate_service import ExchangeRateService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/compare", response_model=ComparisonResponse)
async def compare_exchange_rates(
    request: Request,
    sender_country: str = Query(
        ..., min_length=2, max_length=3, pattern=r"^[A-Za-z]{2,3}$",
        description="Sender country code", examples=["US"],
    ),
    recipient_country: str = Query(
        ..., min_length=2, max_length=3, pattern=r"^[A-Za-z]{2,3}$",
        description="Recipient country code", examples=["NG"],
    ),
    amount: Decimal = Query(
        ..., gt=0, description="Amount in the sender's currency", examples=[1000],
    ),
    fetch_historical_data: bool = Query(False, description="Include historical analytics"),
    svc: ExchangeRateService = Depends(get_exchange_rate_service),
):
    """
    Compare every eligible platform for sending ``amount`` from
    ``sender_country`` to ``recipient_country``.

    Returns the official reference rate, the successful platform quotes
    (best receive amount first), the winner and spread metrics. With
    ``fetch_historical_data`` the response also carries 1/7/14/30-day
    history, a 30-day leaderboard and a corridor summary.
    """
    logger.info(
        "Exchange rate comparison request: %s -> %s, amount=%s",
        sender_country, recipient_country, amount,
    )
    quote_request = RateQuoteRequest(
        sender_country=sender_country,
        recipient_country=recipient_country,
        amount=amount,
        fetch_historical_data=fetch_historical_data,
    )

    try:
        result = await svc.compare_rates(
            quote_request,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except ComparisonFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )

    return ComparisonResponse(**result)


@router.get("/platforms", response_model=AvailablePlatformsResponse)
async def get_available_platforms(
    sender_country: str = Query(..., min_length=2, max_length=3, pattern=r"^[A-Za-z]{2,3}$"),
    recipient_country: str = Query(..., min_length=2, max_length=3, pattern=r"^[A-Za-z]{2,3}$"),
    svc: ExchangeRateService = Depends(get_exchange_rate_service),
):
    """Platforms that would be queried for this corridor."""
    sender_country = sender_country.upper()
    recipient_country = recipient_country.upper()
    platforms = svc.available_platforms(sender_country, recipient_country)
    return AvailablePlatformsResponse(
        sender_country=sender_country,
        recipient_country=recipient_country,
        available_platforms=platforms,
        count=len(platforms),
    )


@router.get("/health", response_model=PlatformHealthResponse)
async def platform_health(
    response: Response,
    svc: ExchangeRateService = Depends(get_exchange_rate_service),
):
    """
    Probe each enabled platform with a small US→NG quote.

    Responds 503 when any platform is unhealthy.
    """
    platforms = await svc.health_check()
    healthy = all(platforms.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return PlatformHealthResponse(
        status="healthy" if healthy else "degraded",
        platforms=platforms,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
