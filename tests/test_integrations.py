"""Tests for platform integrations — payload parsing, request shape, error normalization."""

import json
from decimal import Decimal

import httpx
import pytest

from app.integrations.airwallex import AirwallexIntegration
from app.integrations.base import (
    HTTP_ERROR_MESSAGES,
    NETWORK_ERROR_MESSAGE,
    TIMEOUT_ERROR_MESSAGE,
    RateQuoteRequest,
    RateQuoteResult,
    to_decimal,
)
from app.integrations.currencies import currency_for
from app.integrations.moneygram import MoneyGramIntegration
from app.integrations.remitly import RemitlyIntegration
from app.integrations.revolut import RevolutIntegration
from app.integrations.ria import RiaIntegration
from app.integrations.wise import WiseIntegration
from app.integrations.worldremit import WorldRemitIntegration
from app.integrations.xe import XEIntegration
from app.integrations.xoom import UNAVAILABLE_MESSAGE, XoomIntegration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Recorder:
    """MockTransport handler that records requests and replies with a canned body."""

    def __init__(self, body=None, status_code=200, exc=None):
        self.body = body
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make(cls, handler):
    return cls(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Request / result types
# ---------------------------------------------------------------------------


class TestRateQuoteRequest:

    def test_normalizes_country_codes(self):
        req = RateQuoteRequest(" us", "ng ", Decimal("100"))
        assert req.sender_country == "US"
        assert req.recipient_country == "NG"
        assert req.corridor == "US-NG"

    def test_maps_currencies(self, quote_request):
        assert quote_request.sender_currency == "USD"
        assert quote_request.recipient_currency == "NGN"

    def test_accepts_string_amount(self):
        req = RateQuoteRequest("US", "NG", "1,250.50")
        assert req.amount == Decimal("1250.50")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_rejects_non_positive_amount(self, amount):
        with pytest.raises(ValueError):
            RateQuoteRequest("US", "NG", Decimal(amount))


class TestCurrencies:

    def test_alpha3_and_informal_codes(self):
        assert currency_for("USA") == "USD"
        assert currency_for("NGA") == "NGN"
        assert currency_for("UK") == "GBP"

    def test_unknown_country_falls_back_to_usd(self):
        assert currency_for("ZZ") == "USD"
        assert currency_for("") == "USD"


class TestRateQuoteResult:

    def test_failure_shape(self, quote_request):
        result = RateQuoteResult.failure("Wise", quote_request, "boom", 42)
        assert result.success is False
        assert result.receive_amount == Decimal("0")
        assert result.exchange_rate == Decimal("0")
        assert result.fees == Decimal("0")
        assert result.total_cost == Decimal("100")
        assert result.response_time_ms == 42
        assert result.to_dict()["error"] == "boom"

    def test_to_dict_omits_error_on_success(self, make_result):
        data = make_result().to_dict()
        assert "error" not in data
        assert data["receive_amount"] == 157500.0
        assert data["success"] is True

    def test_to_decimal_parses_grouped_strings(self):
        assert to_decimal("1,234.50") == Decimal("1234.50")
        with pytest.raises(ValueError):
            to_decimal("n/a")


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class TestWise:

    @pytest.mark.asyncio
    async def test_applies_fee_schedule_to_live_rate(self, quote_request):
        handler = Recorder([{"value": 1500, "time": 1}, {"value": 1520, "time": 2}])
        result = await make(WiseIntegration, handler).get_rate(quote_request)

        assert result.success is True
        assert result.platform == "Wise"
        assert result.exchange_rate == Decimal("1520")
        assert result.receive_amount == Decimal("152000")
        assert result.fees == Decimal("2.500")
        assert result.total_cost == Decimal("102.500")

        params = handler.last.url.params
        assert handler.last.url.path == "/rates/history+live"
        assert params["source"] == "USD"
        assert params["target"] == "NGN"

    @pytest.mark.asyncio
    async def test_empty_series_is_no_quote(self, quote_request):
        result = await make(WiseIntegration, Recorder([])).get_rate(quote_request)
        assert result is None


class TestRemitly:

    def test_conduit(self, quote_request):
        assert RemitlyIntegration.conduit(quote_request) == "US:USD-NG:NGN"

    @pytest.mark.asyncio
    async def test_parses_estimate(self, quote_request):
        handler = Recorder({"estimate": {
            "send_amount": "100.00",
            "receive_amount": "155000.00",
            "exchange_rate": {"base_rate": "1550.00"},
            "fee": {"total_fee_amount": "3.99"},
            "total_charge_amount": "103.99",
        }})
        result = await make(RemitlyIntegration, handler).get_rate(quote_request)

        assert result.receive_amount == Decimal("155000.00")
        assert result.exchange_rate == Decimal("1550.00")
        assert result.fees == Decimal("3.99")
        assert result.total_cost == Decimal("103.99")
        assert handler.last.url.params["conduit"] == "US:USD-NG:NGN"
        assert handler.last.url.params["anchor"] == "SEND"

    @pytest.mark.asyncio
    async def test_missing_estimate_is_no_quote(self, quote_request):
        assert await make(RemitlyIntegration, Recorder({})).get_rate(quote_request) is None


class TestMoneyGram:

    @pytest.mark.asyncio
    async def test_prefers_promo_pricing(self, quote_request):
        handler = Recorder({"feeQuotesByCurrency": {"NGN": {
            "sendAmount": 100,
            "totalReceiveAmount": 150000,
            "fxRate": 1500,
            "sendFee": 4.99,
            "totalSendAmount": 104.99,
            "promo": {"totalReceiveAmount": 152000, "fxRate": 1520, "sendFee": 0, "totalSendAmount": 100},
        }}})
        result = await make(MoneyGramIntegration, handler).get_rate(quote_request)

        assert result.receive_amount == Decimal("152000")
        assert result.exchange_rate == Decimal("1520")
        # promo fee of 0 is falsy, so the regular fee is used
        assert result.fees == Decimal("4.99")
        assert result.total_cost == Decimal("100")
        assert handler.last.url.params["sendAmount"] == "100.00"
        assert handler.last.headers["locale-header"] == "en-us"

    @pytest.mark.asyncio
    async def test_no_quote_for_recipient_currency(self, quote_request):
        handler = Recorder({"feeQuotesByCurrency": {"GHS": {"sendAmount": 100}}})
        assert await make(MoneyGramIntegration, handler).get_rate(quote_request) is None


class TestWorldRemit:

    def test_build_query_variables(self, quote_request):
        body = WorldRemitIntegration.build_query(quote_request)
        assert body["operationName"] == "createCalculation"
        assert body["variables"]["sendCurrencyCode"] == "USD"
        assert body["variables"]["receiveCurrencyCode"] == "NGN"
        assert body["variables"]["amount"] == 100.0

    @pytest.mark.asyncio
    async def test_parses_calculation(self, quote_request):
        handler = Recorder({"data": {"createCalculation": {
            "calculation": {
                "informativeSummary": {
                    "fee": {"value": {"amount": 2.99}},
                    "totalToPay": {"amount": 102.99},
                },
                "send": {"amount": 100},
                "receive": {"amount": 154000},
                "exchangeRate": {"value": 1540},
            },
            "errors": [],
        }}})
        result = await make(WorldRemitIntegration, handler).get_rate(quote_request)

        assert result.receive_amount == Decimal("154000")
        assert result.fees == Decimal("2.99")
        assert result.total_cost == Decimal("102.99")
        assert handler.last.method == "POST"
        assert json.loads(handler.last.content)["operationName"] == "createCalculation"

    @pytest.mark.asyncio
    async def test_missing_fee_defaults_to_zero(self, quote_request):
        handler = Recorder({"data": {"createCalculation": {"calculation": {
            "informativeSummary": {"totalToPay": {"amount": 100}},
            "send": {"amount": 100},
            "receive": {"amount": 154000},
            "exchangeRate": {"value": 1540},
        }}}})
        result = await make(WorldRemitIntegration, handler).get_rate(quote_request)
        assert result.fees == Decimal("0")

    @pytest.mark.asyncio
    async def test_graphql_errors_become_failure(self, quote_request):
        handler = Recorder({"data": {"createCalculation": {
            "calculation": None,
            "errors": [{"message": "Corridor not supported"}],
        }}})
        result = await make(WorldRemitIntegration, handler).get_rate(quote_request)
        assert result.success is False
        assert "Corridor not supported" in result.error


class TestAirwallex:

    @pytest.mark.asyncio
    async def test_fee_recovered_from_rate_gap(self, quote_request):
        handler = Recorder({
            "sellAmount": 100,
            "buyAmount": 150000,
            "clientRate": 1500,
            "awxRate": 1520,
        })
        result = await make(AirwallexIntegration, handler).get_rate(quote_request)

        assert result.receive_amount == Decimal("150000")
        assert result.exchange_rate == Decimal("1500")
        assert result.fees == Decimal("2000") / Decimal("1520")
        assert result.total_cost == Decimal("100")

    @pytest.mark.asyncio
    async def test_missing_client_rate_is_no_quote(self, quote_request):
        handler = Recorder({"sellAmount": 100, "buyAmount": 150000})
        assert await make(AirwallexIntegration, handler).get_rate(quote_request) is None


class TestRevolut:

    @pytest.mark.asyncio
    async def test_minor_units(self):
        request = RateQuoteRequest("US", "GB", Decimal("100"))
        handler = Recorder({
            "rate": {"rate": 0.79},
            "routes": [{"plans": [{
                "senderAmountWithoutFees": {"amount": 10000},
                "totalRecipientAmount": {"amount": 7900},
                "fees": {"total": 150},
                "totalSenderAmount": {"amount": 10150},
            }]}],
        })
        result = await make(RevolutIntegration, handler).get_rate(request)

        assert result.send_amount == Decimal("100")
        assert result.receive_amount == Decimal("79")
        assert result.fees == Decimal("1.5")
        assert result.total_cost == Decimal("101.5")
        assert handler.last.url.params["amount"] == "10000"
        assert handler.last.headers["x-api-version"] == "v2"


class TestXE:

    @pytest.mark.asyncio
    async def test_uses_closest_table_row(self, quote_request):
        handler = Recorder([
            {"sell": "50", "buy": "75,500.00"},
            {"sell": "100", "buy": "151,000.00"},
            {"sell": "500", "buy": "755,000.00"},
        ])
        result = await make(XEIntegration, handler).get_rate(quote_request)

        assert result.send_amount == Decimal("100")
        assert result.receive_amount == Decimal("151000.00")
        assert result.exchange_rate == Decimal("1510")
        assert result.fees == Decimal("2.500")
        assert result.total_cost == Decimal("100")


class TestRia:

    @pytest.mark.asyncio
    async def test_posts_calculator_selections(self, quote_request):
        handler = Recorder({"model": {"transferDetails": {"calculations": {
            "amountFrom": 100,
            "amountTo": 149000,
            "exchangeRate": 1490,
            "transferFee": 5,
            "totalAmount": 105,
        }}}})
        result = await make(RiaIntegration, handler).get_rate(quote_request)

        assert result.receive_amount == Decimal("149000")
        assert result.total_cost == Decimal("105")
        body = json.loads(handler.last.content)
        assert body["selections"]["countryTo"] == "NG"
        assert body["selections"]["currencyFrom"] == "USD"


class TestXoom:

    @pytest.mark.asyncio
    async def test_always_fails_without_calling_upstream(self, quote_request):
        handler = Recorder({})
        result = await make(XoomIntegration, handler).get_rate(quote_request)

        assert result.success is False
        assert result.error == UNAVAILABLE_MESSAGE
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_http_hooks_are_inert(self, quote_request):
        xoom = XoomIntegration()
        assert await xoom.fetch(None, quote_request) is None
        assert xoom.parse({}, quote_request) is None


# ---------------------------------------------------------------------------
# Error normalization
# ---------------------------------------------------------------------------


class TestErrorNormalization:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [403, 404, 429, 500])
    async def test_known_statuses(self, quote_request, status):
        handler = Recorder({}, status_code=status)
        result = await make(WiseIntegration, handler).get_rate(quote_request)
        assert result.success is False
        assert result.error == HTTP_ERROR_MESSAGES[status]
        assert result.total_cost == quote_request.amount

    @pytest.mark.asyncio
    async def test_upstream_message_used_for_other_statuses(self, quote_request):
        handler = Recorder({"message": "Upstream maintenance"}, status_code=502)
        result = await make(WiseIntegration, handler).get_rate(quote_request)
        assert result.error == "Upstream maintenance"

    @pytest.mark.asyncio
    async def test_generic_status_message(self, quote_request):
        handler = Recorder({}, status_code=418)
        result = await make(WiseIntegration, handler).get_rate(quote_request)
        assert result.error == "Platform returned HTTP 418"

    @pytest.mark.asyncio
    async def test_network_error(self, quote_request):
        handler = Recorder(exc=httpx.ConnectError("connection refused"))
        result = await make(WiseIntegration, handler).get_rate(quote_request)
        assert result.success is False
        assert result.receive_amount == Decimal("0")
        assert result.error == NETWORK_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_timeout(self, quote_request):
        handler = Recorder(exc=httpx.ReadTimeout("slow"))
        result = await make(WiseIntegration, handler).get_rate(quote_request)
        assert result.error == TIMEOUT_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_malformed_payload(self, quote_request):
        handler = Recorder({"estimate": {"send_amount": 100}})
        result = await make(RemitlyIntegration, handler).get_rate(quote_request)
        assert result.success is False
        assert result.error
