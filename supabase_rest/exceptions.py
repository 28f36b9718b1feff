from __future__ import annotations
from typing import Optional


class SupabaseError(Exception):
    """Base class for every error raised by the client."""


class ConfigurationError(SupabaseError):
    """Missing or invalid configuration (environment variables)."""


class TransportError(SupabaseError):
    """The HTTP call could not be completed (DNS, refused connection, timeout)."""


class RequestBuildError(TransportError):
    """The request could not be prepared, usually a malformed base URL."""


class RequestFailedError(SupabaseError):
    """Backend answered with a status outside 2xx.

    The raw body is kept on ``body`` for diagnostics; no status code gets
    special treatment.
    """

    def __init__(self, status_code: int, body: bytes = b'', text: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.text = text if text is not None else body.decode('utf-8', errors='replace')
        super().__init__(f"request failed ({status_code}): {self.text}")


class InvalidResponseError(SupabaseError):
    """Token endpoint returned 2xx with a body that is not a token response."""
