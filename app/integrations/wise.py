"""
Wise integration.

Wise has no public quote endpoint for anonymous callers, so the live rate is
read from the ``rates/history+live`` series that backs their currency
converter and the published fee schedule is applied on top.
"""

from decimal import Decimal

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult, to_decimal

PERCENTAGE_FEE = Decimal("0.005")  # 0.5% variable fee
FIXED_FEE = Decimal("2.00")


class WiseIntegration(BaseIntegration):
    name = "Wise"
    base_url = "https://wise.com"

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/rates/history+live", {
            "source": request.sender_currency,
            "target": request.recipient_currency,
            "length": 1,
            "resolution": "hourly",
            "unit": "day",
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        if not isinstance(payload, list) or not payload:
            return None

        exchange_rate = to_decimal(payload[-1]["value"])
        fees = request.amount * PERCENTAGE_FEE + FIXED_FEE

        return self.quote(
            send_amount=request.amount,
            receive_amount=request.amount * exchange_rate,
            exchange_rate=exchange_rate,
            fees=fees,
            total_cost=request.amount + fees,
        )
