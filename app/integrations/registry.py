"""
Adapter registry — the set of platform integrations and the rules for which
of them may be asked about a given corridor.
"""

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping

from app.integrations.airwallex import AirwallexIntegration
from app.integrations.base import BaseIntegration, RateQuoteRequest
from app.integrations.moneygram import MoneyGramIntegration
from app.integrations.platforms import PLATFORM_CONFIG, PlatformConfig
from app.integrations.remitly import RemitlyIntegration
from app.integrations.revolut import RevolutIntegration
from app.integrations.ria import RiaIntegration
from app.integrations.wise import WiseIntegration
from app.integrations.worldremit import WorldRemitIntegration
from app.integrations.xe import XEIntegration
from app.integrations.xoom import XoomIntegration

logger = logging.getLogger(__name__)

PROBE_AMOUNT = Decimal("100")

ALL_INTEGRATIONS: tuple[type[BaseIntegration], ...] = (
    WiseIntegration,
    RemitlyIntegration,
    MoneyGramIntegration,
    WorldRemitIntegration,
    AirwallexIntegration,
    RevolutIntegration,
    XEIntegration,
    RiaIntegration,
    XoomIntegration,
)


class AdapterRegistry:
    """Holds one adapter instance per platform, keyed by platform name."""

    def __init__(
        self,
        adapters: Iterable[BaseIntegration] | None = None,
        config: Mapping[str, PlatformConfig] = PLATFORM_CONFIG,
    ):
        if adapters is None:
            adapters = [cls() for cls in ALL_INTEGRATIONS]
        self._adapters = MappingProxyType({a.name: a for a in adapters})
        self._config = config

    def __len__(self) -> int:
        return len(self._adapters)

    def names(self) -> list[str]:
        return list(self._adapters)

    def get(self, name: str) -> BaseIntegration | None:
        return self._adapters.get(name)

    def enabled_adapters(self) -> list[BaseIntegration]:
        """Adapters switched on in the platform catalog, in registration order."""
        return [
            adapter for name, adapter in self._adapters.items()
            if (cfg := self._config.get(name)) is not None and cfg.enabled
        ]

    def is_restricted(self, platform_name: str, request: RateQuoteRequest) -> bool:
        """
        True if the platform must not be queried for this corridor, i.e. the
        recipient country or its currency is on the platform's deny-lists.
        Platforms missing from the catalog are never restricted.
        """
        cfg = self._config.get(platform_name)
        if cfg is None:
            return False
        return (
            request.recipient_currency in cfg.disabled_currencies
            or request.recipient_country in cfg.disabled_countries
        )

    def adapters_for(self, request: RateQuoteRequest) -> list[BaseIntegration]:
        """Enabled adapters allowed to quote ``request``."""
        adapters = []
        for adapter in self.enabled_adapters():
            if self.is_restricted(adapter.name, request):
                logger.info("Skipping %s for %s: corridor restricted", adapter.name, request.corridor)
                continue
            adapters.append(adapter)
        return adapters

    def available_platforms(self, sender_country: str, recipient_country: str) -> list[str]:
        """Names of the platforms that would be queried for this corridor."""
        probe = RateQuoteRequest(sender_country, recipient_country, PROBE_AMOUNT)
        return [adapter.name for adapter in self.adapters_for(probe)]


_registry: AdapterRegistry | None = None


def get_registry() -> AdapterRegistry:
    """Process-wide registry built from the static catalog."""
    global _registry
    if _registry is None:
        _registry = AdapterRegistry()
    return _registry
