"""MoneyGram integration — website fee-quote API (promo pricing preferred)."""

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult


class MoneyGramIntegration(BaseIntegration):
    name = "MoneyGram"
    base_url = "https://www.moneygram.com"
    extra_headers = {
        "locale-header": "en-us",
        "referer": "https://www.moneygram.com/us/en/corridor/nigeria",
    }

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._get_json(client, "/api/send-money/fee-quote/v2", {
            "senderCountryCode": request.sender_country,
            "senderCurrencyCode": request.sender_currency,
            "receiverCountryCode": request.recipient_country,
            "sendAmount": f"{request.amount:.2f}",
        })

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        quotes = (payload or {}).get("feeQuotesByCurrency")
        if not quotes:
            return None

        quote = quotes.get(request.recipient_currency)
        if not quote:
            return None

        promo = quote.get("promo") or {}

        def pick(key):
            return promo.get(key) or quote[key]

        return self.quote(
            send_amount=quote["sendAmount"],
            receive_amount=pick("totalReceiveAmount"),
            exchange_rate=pick("fxRate"),
            fees=pick("sendFee"),
            total_cost=pick("totalSendAmount"),
        )
