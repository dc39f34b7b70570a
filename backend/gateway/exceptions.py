"""Error taxonomy shared by the chatbot and payment endpoints.

Every error carries the HTTP status it maps to so routers can turn it into a
JSON error body without a lookup table.
"""

from typing import Iterable, List, Optional


class GatewayError(Exception):
    """Base class for gateway errors."""

    http_status = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status


class ConfigurationError(GatewayError):
    """Missing or malformed startup configuration. Fatal to the chatbot only."""

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing: List[str] = list(missing or [])


class InvalidCredentialFormat(ConfigurationError):
    """Credentials are present but do not look like a service account."""


class ClientUninitialized(GatewayError):
    """The NLU client is not ready (still starting or permanently failed)."""


class ValidationError(GatewayError):
    """Per-request payload validation failure. Never retried."""

    http_status = 400


class UpstreamError(GatewayError):
    """The NLU backend or payment processor failed."""
