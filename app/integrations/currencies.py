"""
Country → currency lookup shared by every platform integration.

Both ISO alpha-2 codes and the handful of alpha-3 / informal codes the
frontend sends (``USA``, ``NGA``, ``UK``) are accepted. Unknown codes
fall back to USD.
"""

from types import MappingProxyType

DEFAULT_CURRENCY = "USD"

COUNTRY_CURRENCIES = MappingProxyType({
    "US": "USD",
    "USA": "USD",
    "NG": "NGN",
    "NGA": "NGN",
    "GB": "GBP",
    "UK": "GBP",
    "CA": "CAD",
    "MX": "MXN",
    "PH": "PHP",
    "IN": "INR",
    "KE": "KES",
    "GH": "GHS",
    "ZA": "ZAR",
    "EU": "EUR",
    "DE": "EUR",
    "FR": "EUR",
    "IT": "EUR",
    "ES": "EUR",
    "AU": "AUD",
    "NZ": "NZD",
    "JP": "JPY",
    "CN": "CNY",
    "BR": "BRL",
    "AR": "ARS",
    "CL": "CLP",
    "CO": "COP",
    "PE": "PEN",
    "TH": "THB",
    "VN": "VND",
    "ID": "IDR",
    "MY": "MYR",
    "SG": "SGD",
    "KR": "KRW",
    "AE": "AED",
    "SA": "SAR",
    "EG": "EGP",
    "MA": "MAD",
    "TN": "TND",
    "DZ": "DZD",
    "UY": "UYU",
})


def currency_for(country_code: str) -> str:
    """Return the currency used in ``country_code`` (USD when unmapped)."""
    return COUNTRY_CURRENCIES.get((country_code or "").strip().upper(), DEFAULT_CURRENCY)
