"""
Xoom integration — permanent stub.

Xoom (PayPal) exposes no quote endpoint that can be called outside an
authenticated PayPal session, so this adapter never contacts the upstream
and always reports the same failure.
"""

import httpx

from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult

UNAVAILABLE_MESSAGE = "Xoom integration not fully implemented - no public quote API"


class XoomIntegration(BaseIntegration):
    name = "Xoom"
    base_url = "https://www.xoom.com"

    async def get_rate(self, request: RateQuoteRequest) -> RateQuoteResult | None:
        return RateQuoteResult.failure(self.name, request, UNAVAILABLE_MESSAGE)

    # get_rate never opens a client, so the HTTP hooks have nothing to do.
    async def fetch(self, client: httpx.AsyncClient, request: RateQuoteRequest) -> None:
        return None

    def parse(self, payload, request: RateQuoteRequest) -> RateQuoteResult | None:
        return None
