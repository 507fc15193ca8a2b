"""Revolut integration — remittance routes API (amounts in minor units)."""

from decimal import Decimal

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult, to_decimal

MINOR_UNITS = Decimal("100")


class RevolutIntegration(BaseIntegration):
    name = "Revolut"
    base_url = "https://www.revolut.com"
    extra_headers = {"x-api-version": "v2"}

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/api/remittance/routes", {
            "amount": str(int(request.amount * MINOR_UNITS)),
            "isRecipientAmount": "false",
            "recipientCountry": request.recipient_country,
            "recipientCurrency": request.recipient_currency,
            "senderCountry": request.sender_country,
            "senderCurrency": request.sender_currency,
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        routes = (payload or {}).get("routes")
        if not routes:
            return None

        # First route / first plan is the one Revolut shows by default
        plan = routes[0]["plans"][0]

        def major(value) -> Decimal:
            return to_decimal(value) / MINOR_UNITS

        return self.quote(
            send_amount=major(plan["senderAmountWithoutFees"]["amount"]),
            receive_amount=major(plan["totalRecipientAmount"]["amount"]),
            exchange_rate=payload["rate"]["rate"],
            fees=major(plan["fees"]["total"]),
            total_cost=major(plan["totalSenderAmount"]["amount"]),
        )
