"""WorldRemit integration — GraphQL ``createCalculation`` mutation."""

import httpx

from app.core.exceptions import AdapterUpstreamError
from app.integrations.base import ZERO, BaseIntegration, RateQuoteRequest, RateQuoteResult

CREATE_CALCULATION = """
mutation createCalculation(
  $amount: BigDecimal!, $type: CalculationType!,
  $sendCountryCode: CountryCode!, $sendCurrencyCode: CurrencyCode!,
  $receiveCountryCode: CountryCode!, $receiveCurrencyCode: CurrencyCode!,
  $payOutMethodCode: String, $correspondentId: String
) {
  createCalculation(
    calculationInput: {
      amount: $amount, type: $type,
      send: {country: $sendCountryCode, currency: $sendCurrencyCode},
      receive: {country: $receiveCountryCode, currency: $receiveCurrencyCode},
      payOutMethodCode: $payOutMethodCode, correspondentId: $correspondentId
    }
  ) {
    calculation {
      id
      isFree
      informativeSummary {
        fee { value { amount currency } type }
        totalToPay { amount }
      }
      send { currency amount }
      receive { amount currency }
      exchangeRate { value }
    }
    errors { message }
  }
}
"""


class WorldRemitIntegration(BaseIntegration):
    name = "WorldRemit"
    base_url = "https://api.worldremit.com"

    @staticmethod
    def build_query(request: RateQuoteRequest) -> dict:
        return {
            "operationName": "createCalculation",
            "query": CREATE_CALCULATION,
            "variables": {
                "amount": float(request.amount),
                "type": "SEND",
                "sendCountryCode": request.sender_country,
                "sendCurrencyCode": request.sender_currency,
                "receiveCountryCode": request.recipient_country,
                "receiveCurrencyCode": request.recipient_currency,
                "payOutMethodCode": "BNK",  # bank transfer
                "correspondentId": "",
            },
        }

    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest):
        return await self._post_json(client, "/graphql", self.build_query(request))

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        created = ((payload or {}).get("data") or {}).get("createCalculation") or {}

        errors = created.get("errors") or (payload or {}).get("errors")
        if errors:
            raise AdapterUpstreamError(self.name, errors[0].get("message") or "GraphQL error")

        calculation = created.get("calculation")
        if not calculation:
            return None

        summary = calculation["informativeSummary"]
        fee = ((summary.get("fee") or {}).get("value") or {}).get("amount") or ZERO

        return self.quote(
            send_amount=calculation["send"]["amount"],
            receive_amount=calculation["receive"]["amount"],
            exchange_rate=calculation["exchangeRate"]["value"],
            fees=fee,
            total_cost=summary["totalToPay"]["amount"],
        )
