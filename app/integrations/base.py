"""
Base class and shared types for remittance platform integrations.

Every platform adapter turns one provider's upstream protocol (REST query,
JSON POST, GraphQL mutation) into the same ``RateQuoteResult``. The base
class owns the parts that must behave identically across providers:

  - one ``httpx.AsyncClient`` per call with the platform timeout and headers
  - wall-clock timing of the upstream exchange
  - conversion of *any* exception into a failure result

Subclasses only implement ``fetch`` (talk to the provider) and ``parse``
(unwrap the provider's payload, returning ``None`` when there is no quote).
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from app.config import settings
from app.integrations.currencies import currency_for

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Human-readable messages for upstream statuses we see in practice
HTTP_ERROR_MESSAGES: dict[int, str] = {
    403: "Access forbidden - platform is blocking automated requests",
    404: "Endpoint not found - platform API may have changed",
    429: "Rate limited - too many requests to platform",
    500: "Platform server error",
}
NETWORK_ERROR_MESSAGE = "Network error - platform is unreachable"
TIMEOUT_ERROR_MESSAGE = "Request timed out waiting for platform"


# ---------------------------------------------------------------------------
# Request / result types
# ---------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal:
    """Parse an upstream number (int, float, or ``"1,234.50"`` string) as Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


@dataclass(frozen=True)
class RateQuoteRequest:
    """A corridor + amount to be quoted by every platform."""
    sender_country: str
    recipient_country: str
    amount: Decimal
    fetch_historical_data: bool = False

    def __post_init__(self):
        object.__setattr__(self, "sender_country", self.sender_country.strip().upper())
        object.__setattr__(self, "recipient_country", self.recipient_country.strip().upper())
        amount = to_decimal(self.amount)
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        object.__setattr__(self, "amount", amount)

    @property
    def sender_currency(self) -> str:
        return currency_for(self.sender_country)

    @property
    def recipient_currency(self) -> str:
        return currency_for(self.recipient_country)

    @property
    def corridor(self) -> str:
        return f"{self.sender_country}-{self.recipient_country}"


@dataclass
class RateQuoteResult:
    """One platform's normalized quote (or failure) for a request."""
    platform: str
    send_amount: Decimal
    receive_amount: Decimal
    exchange_rate: Decimal
    fees: Decimal
    total_cost: Decimal
    success: bool
    response_time_ms: int = 0
    error: str | None = None

    @classmethod
    def failure(
        cls,
        platform: str,
        request: RateQuoteRequest,
        error: str,
        response_time_ms: int = 0,
    ) -> "RateQuoteResult":
        """Build the conventional failure shape: zero receive/rate, cost = amount."""
        return cls(
            platform=platform,
            send_amount=request.amount,
            receive_amount=ZERO,
            exchange_rate=ZERO,
            fees=ZERO,
            total_cost=request.amount,
            success=False,
            response_time_ms=response_time_ms,
            error=error,
        )

    def to_dict(self) -> dict:
        """JSON-ready representation used for JSONB storage and API payloads."""
        data = {
            "platform": self.platform,
            "send_amount": float(self.send_amount),
            "receive_amount": float(self.receive_amount),
            "exchange_rate": float(self.exchange_rate),
            "fees": float(self.fees),
            "total_cost": float(self.total_cost),
            "response_time_ms": self.response_time_ms,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# ---------------------------------------------------------------------------
# Error normalization
# ---------------------------------------------------------------------------


def _upstream_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        return str(message) if message else None
    return None


def describe_error(exc: BaseException) -> str:
    """Map an exception raised while quoting to a human-readable message."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in HTTP_ERROR_MESSAGES:
            return HTTP_ERROR_MESSAGES[status]
        return _upstream_message(exc.response) or f"Platform returned HTTP {status}"
    if isinstance(exc, httpx.TimeoutException):
        return TIMEOUT_ERROR_MESSAGE
    if isinstance(exc, httpx.TransportError):
        return NETWORK_ERROR_MESSAGE
    return str(exc) or "Unknown error"


def elapsed_ms(started: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return max(0, int((time.perf_counter() - started) * 1000))


# ---------------------------------------------------------------------------
# Base integration
# ---------------------------------------------------------------------------


class BaseIntegration(ABC):
    """
    Common behaviour for all platform adapters.

    Subclasses set ``name`` (the platform identifier used everywhere else in
    the system) and ``base_url``, and may add provider-specific headers via
    ``extra_headers``.
    """

    name: str = ""
    base_url: str = ""
    extra_headers: dict[str, str] = {}

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            timeout: Per-call HTTP timeout in seconds
                     (defaults to ``settings.PLATFORM_TIMEOUT_SECONDS``).
            transport: Optional httpx transport, used by tests to stub the upstream.
        """
        if not self.name:
            raise TypeError(f"{type(self).__name__} must define a platform name")
        self.timeout = timeout if timeout is not None else settings.PLATFORM_TIMEOUT_SECONDS
        self._transport = transport

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    # ── HTTP plumbing ───────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "User-Agent": settings.PLATFORM_USER_AGENT,
            "Accept": "application/json",
            "Content-Type": "application/json",
            **self.extra_headers,
        }
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=self._transport,
            event_hooks={
                "request": [self._log_request],
                "response": [self._log_response],
            },
        )

    async def _log_request(self, request: httpx.Request) -> None:
        logger.debug("%s API request: %s %s", self.name, request.method, request.url)

    async def _log_response(self, response: httpx.Response) -> None:
        logger.debug(
            "%s API response: %s %s",
            self.name, response.status_code, response.reason_phrase,
        )

    @staticmethod
    async def _get_json(client: httpx.AsyncClient, url: str, params: dict) -> Any:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    async def _post_json(client: httpx.AsyncClient, url: str, payload: dict) -> Any:
        resp = await client.post(url, json=payload)
        resp.raise_for_status()
        return resp.json()

    # ── Public entry point ──────────────────────────────────────────────

    async def get_rate(self, request: RateQuoteRequest) -> RateQuoteResult | None:
        """
        Quote ``request`` on this platform.

        Returns a success result, a failure result carrying a normalized
        error, or ``None`` when the platform answered without a usable quote.
        Never raises.
        """
        started = time.perf_counter()
        try:
            async with self._client() as client:
                payload = await self.fetch(client, request)
            response_time_ms = elapsed_ms(started)
            result = self.parse(payload, request)
        except Exception as exc:
            return self.handle_error(exc, request, elapsed_ms(started))

        if result is None:
            logger.info(
                "%s returned no quote for %s (amount=%s)",
                self.name, request.corridor, request.amount,
            )
            return None

        result.response_time_ms = response_time_ms
        return result

    # ── Provider-specific hooks ─────────────────────────────────────────

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest) -> Any:
        """Call the provider and return its decoded response body."""

    @abstractmethod
    def parse(self, payload: Any, request: RateQuoteRequest) -> RateQuoteResult | None:
        """Unwrap the provider payload into a result, or ``None`` if no quote."""

    # ── Helpers for subclasses ──────────────────────────────────────────

    def quote(
        self,
        send_amount,
        receive_amount,
        exchange_rate,
        fees,
        total_cost,
    ) -> RateQuoteResult:
        """Build a successful result for this platform from raw upstream numbers."""
        return RateQuoteResult(
            platform=self.name,
            send_amount=to_decimal(send_amount),
            receive_amount=to_decimal(receive_amount),
            exchange_rate=to_decimal(exchange_rate),
            fees=to_decimal(fees),
            total_cost=to_decimal(total_cost),
            success=True,
        )

    def handle_error(
        self,
        exc: BaseException,
        request: RateQuoteRequest,
        response_time_ms: int = 0,
    ) -> RateQuoteResult:
        """Log a failed upstream call and convert it into a failure result."""
        message = describe_error(exc)
        logger.warning(
            "%s integration failed: %s (corridor=%s, amount=%s)",
            self.name, message, request.corridor, request.amount,
        )
        logger.debug("%s failure detail", self.name, exc_info=exc)
        return RateQuoteResult.failure(self.name, request, message, response_time_ms)
