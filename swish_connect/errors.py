"""Exception types raised by the Swish client."""
from __future__ import annotations


class SwishError(Exception):
    """Base class for everything the Swish client raises."""

    # Set when the failure happened after Swish accepted the payment request,
    # so the caller can still read it instead of creating a second one.
    request_id: str | None = None
    location: str | None = None
    payment_request_token: str | None = None


class CredentialError(SwishError):
    """Certificate, private key or passphrase could not be loaded."""


class ConnectivityError(SwishError):
    """Swish could not be reached (TLS handshake, DNS, timeout, reset)."""


class ProtocolError(SwishError):
    """Swish answered with something the client does not understand."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApplicationError(SwishError):
    """Swish rejected the payment request with an error code."""

    def __init__(
        self,
        error_code: str | None,
        error_message: str | None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"{error_code or 'UNKNOWN'}: {error_message or ''}".rstrip(": "))
        self.error_code = error_code
        self.error_message = error_message
        self.status_code = status_code
