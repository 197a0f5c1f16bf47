"""Custom exception types raised by genbridge adapters."""

from __future__ import annotations


class AdapterError(RuntimeError):
    """Raised when an adapter cannot fulfil a request."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UnsupportedContentShape(AdapterError):
    """Raised for input parts or turns the canonical model does not understand."""


class EmptyConversation(AdapterError):
    """Raised when a request carries no text-bearing turn."""


class ProviderTransportError(AdapterError):
    """Raised when the provider could not be reached or the connection failed."""


class ProviderAPIError(AdapterError):
    """Raised when the provider answered with an error payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
