"""
Domain exceptions for RemiTip.

Only ``OfficialRateError`` and ``ComparisonFailedError`` ever reach a caller
of the comparison service; the rest are raised and recovered internally.
"""


class RemiTipError(Exception):
    """Base exception for all RemiTip errors."""
    pass


class AdapterUpstreamError(RemiTipError):
    """A remittance platform answered with an error envelope instead of a quote."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(message)


class OfficialRateError(RemiTipError):
    """The official exchange rate source was unreachable or reported failure."""
    pass


class ComparisonFailedError(RemiTipError):
    """Generic failure surfaced to callers when a comparison cannot complete."""

    def __init__(self, message: str = "Failed to compare exchange rates"):
        super().__init__(message)


class PersistenceError(RemiTipError):
    """A strict read from the comparison history store failed."""
    pass
