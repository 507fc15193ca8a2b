from app.integrations.airwallex import AirwallexIntegration
from app.integrations.base import BaseIntegration, RateQuoteRequest, RateQuoteResult
from app.integrations.moneygram import MoneyGramIntegration
from app.integrations.registry import AdapterRegistry, get_registry
from app.integrations.remitly import RemitlyIntegration
from app.integrations.revolut import RevolutIntegration
from app.integrations.ria import RiaIntegration
from app.integrations.wise import WiseIntegration
from app.integrations.worldremit import WorldRemitIntegration
from app.integrations.xe import XEIntegration
from app.integrations.xoom import XoomIntegration

__all__ = [
    "AdapterRegistry",
    "AirwallexIntegration",
    "BaseIntegration",
    "MoneyGramIntegration",
    "RateQuoteRequest",
    "RateQuoteResult",
    "RemitlyIntegration",
    "RevolutIntegration",
    "RiaIntegration",
    "WiseIntegration",
    "WorldRemitIntegration",
    "XEIntegration",
    "XoomIntegration",
    "get_registry",
]
