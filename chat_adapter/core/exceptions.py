"""Core exceptions for the chat adapter."""

from typing import Optional, Sequence


class AdapterError(Exception):
    """Base exception for adapter errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AdapterError):
    """Raised when an inbound chat request violates the request contract."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class ConfigurationError(AdapterError):
    """Raised when there's an issue with the configuration."""
    pass


class ProviderCallError(AdapterError):
    """Raised when the provider call fails before translation starts.

    ``status_code`` mirrors the provider's HTTP status when one was received;
    transport failures leave it at 500.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.provider_status = status_code
        if status_code is not None:
            self.status_code = status_code


class EventDecodeError(AdapterError):
    """Raised for a single malformed event line in a provider stream."""

    def __init__(self, message: str, payload: str = "") -> None:
        super().__init__(message)
        self.payload = payload


class StreamTransportError(AdapterError):
    """Raised when the upstream stream fails after the response has started."""
    pass
