from __future__ import annotations


class MarketDeskError(Exception):
    pass


class ConfigurationError(MarketDeskError):
    """Static configuration is missing or unusable; raised at construction."""


class UpstreamError(MarketDeskError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedPayloadError(MarketDeskError):
    """Upstream answered 2xx but the body does not match the expected schema."""
