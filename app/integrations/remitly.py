"""Remitly integration — public calculator estimate endpoint."""

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult


class RemitlyIntegration(BaseIntegration):
    name = "Remitly"
    base_url = "https://api.remitly.io"

    @staticmethod
    def conduit(request: RateQuoteRequest) -> str:
        """Remitly corridor key, e.g. ``US:USD-NG:NGN``."""
        return (
            f"{request.sender_country}:{request.sender_currency}-"
            f"{request.recipient_country}:{request.recipient_currency}"
        )

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/v3/calculator/estimate", {
            "conduit": self.conduit(request),
            "anchor": "SEND",
            "amount": str(request.amount),
            "purpose": "OTHER",
            "customer_segment": "UNRECOGNIZED",
            "strict_promo": "false",
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        estimate = (payload or {}).get("estimate")
        if not estimate:
            return None

        return self.quote(
            send_amount=estimate["send_amount"],
            receive_amount=estimate["receive_amount"],
            exchange_rate=estimate["exchange_rate"]["base_rate"],
            fees=estimate["fee"]["total_fee_amount"],
            total_cost=estimate["total_charge_amount"],
        )
