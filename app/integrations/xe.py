"""
XE integration — send-money rate tables.

XE publishes a table of pre-computed sell/buy pairs per corridor rather than
quoting an arbitrary amount; the row closest to the requested amount is used.
XE earns on the rate margin, so the fee is an estimate.
"""

from decimal import Decimal

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult, to_decimal

ESTIMATED_MARGIN = Decimal("0.025")


class XEIntegration(BaseIntegration):
    name = "XE"
    base_url = "https://www.xe.com"

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/api/send-money-tables/", {
            "sellCcy": request.sender_currency,
            "buyCcy": request.recipient_currency,
            "userCountry": request.recipient_country,
            "countryTo": request.recipient_country,
            "deliveryMethod": "BankAccount",
            "settlementMethod": "BankTransfer",
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        if not isinstance(payload, list) or not payload:
            return None

        closest = min(payload, key=lambda row: abs(to_decimal(row["sell"]) - request.amount))
        send_amount = to_decimal(closest["sell"])
        receive_amount = to_decimal(closest["buy"])

        return self.quote(
            send_amount=send_amount,
            receive_amount=receive_amount,
            exchange_rate=receive_amount / send_amount,
            fees=send_amount * ESTIMATED_MARGIN,
            total_cost=send_amount,
        )
