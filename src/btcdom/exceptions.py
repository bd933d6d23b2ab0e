"""Custom exceptions for the BTCDOM2 strategy core.

The scoring engine never raises; only the market data layer and the
temperature cache surface these.
"""


class BtcdomError(Exception):
    """Base exception for all strategy core errors."""


class UpstreamError(BtcdomError):
    """Base for failures talking to the market data provider."""


class UpstreamUnavailable(UpstreamError):
    """Raised on network errors, timeouts, or non-2xx provider responses."""


class UpstreamDataError(UpstreamError):
    """Raised when the provider reports success but the payload is unusable."""


class InvalidParameter(BtcdomError):
    """Raised when caller-supplied parameters fail validation.

    Carries every validation error found, not just the first.
    """

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
