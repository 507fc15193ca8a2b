"""Ria integration — money transfer calculator (JSON POST)."""

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult


class RiaIntegration(BaseIntegration):
    name = "Ria"
    base_url = "https://public.riamoneytransfer.com"

    @staticmethod
    def build_payload(request: RateQuoteRequest) -> dict:
        return {
            "selections": {
                "countryTo": request.recipient_country,
                "amountFrom": float(request.amount),
                "amountTo": None,
                "currencyFrom": request.sender_currency,
                "currencyTo": None,
                "paymentMethod": "DebitCard",
                "deliveryMethod": "OfficePickup",
                "shouldCalcAmountFrom": False,
                "shouldCalcVariableRates": True,
                "state": None,
                "agentToId": None,
                "stateTo": None,
                "agentToLocationId": None,
                "promoCode": None,
                "promoId": 0,
                "transferReason": None,
                "countryFrom": request.sender_country,
            },
        }

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._post_json(
            client, "/MoneyTransferCalculator/Calculate", self.build_payload(request),
        )

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        model = (payload or {}).get("model") or {}
        calculations = (model.get("transferDetails") or {}).get("calculations")
        if not calculations:
            return None

        return self.quote(
            send_amount=calculations["amountFrom"],
            receive_amount=calculations["amountTo"],
            exchange_rate=calculations["exchangeRate"],
            fees=calculations["transferFee"],
            total_cost=calculations["totalAmount"],
        )
