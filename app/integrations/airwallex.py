"""
Airwallex integration — indicative FX quote.

Airwallex does not itemize a fee; it is recovered from the gap between
their own rate (``awxRate``) and the rate offered to the client.
"""

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult, to_decimal


class AirwallexIntegration(BaseIntegration):
    name = "Airwallex"
    base_url = "https://www.airwallex.com"

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/api/fx/fxRate/indicativeQuote", {
            "sellAmount": str(request.amount),
            "sellCcy": request.sender_currency,
            "buyCcy": request.recipient_currency,
            "feePercent": 1,
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        payload = payload or {}
        if not payload.get("buyAmount") or not payload.get("clientRate"):
            return None

        sell_amount = to_decimal(payload["sellAmount"])
        buy_amount = to_decimal(payload["buyAmount"])
        awx_rate = to_decimal(payload["awxRate"])
        fees = (sell_amount * awx_rate - buy_amount) / awx_rate

        return self.quote(
            send_amount=sell_amount,
            receive_amount=buy_amount,
            exchange_rate=payload["clientRate"],
            fees=fees,
            total_cost=sell_amount,
        )
