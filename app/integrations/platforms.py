"""
Static platform catalog: which integrations are switched on, and which
corridors each one must not be asked about.

Loaded once at import; nothing mutates it at runtime.
"""

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class PlatformConfig:
    enabled: bool
    disabled_currencies: frozenset[str] = frozenset()
    disabled_countries: frozenset[str] = frozenset()


PLATFORM_CONFIG = MappingProxyType({
    "Wise": PlatformConfig(enabled=True),
    "Remitly": PlatformConfig(enabled=True),
    "MoneyGram": PlatformConfig(enabled=False),   # 403s on automated traffic
    "WorldRemit": PlatformConfig(enabled=True),
    "Airwallex": PlatformConfig(enabled=True),
    "Revolut": PlatformConfig(                    # no payouts to these markets
        enabled=False,
        disabled_currencies=frozenset({"NGN", "GHS", "KES"}),
        disabled_countries=frozenset({"NG", "GH", "KE"}),
    ),
    "XE": PlatformConfig(enabled=True),
    "Ria": PlatformConfig(enabled=False),         # calculator returns 500s
    "Xoom": PlatformConfig(enabled=False),        # no public quote API
})
