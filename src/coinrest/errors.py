"""Typed exception hierarchy for exchange client operations.

Callers can tell "could not reach the exchange" (`ConnectionFailed`) from
"the exchange answered with something unusable" (`MalformedResponse`) and
from "the exchange declined the request" (`ExchangeRejected`). No error in
this module implies a retry; retry policy belongs to the caller.
"""

from typing import Any


class ExchangeClientError(Exception):
    """Base class for all errors raised by coinrest."""


class ConnectionFailed(ExchangeClientError):
    """Transport failure, timeout, or a non-success status without a parseable body."""


class MalformedResponse(ExchangeClientError):
    """A success status whose body is absent, unparseable or missing required fields."""


class ExchangeRejected(ExchangeClientError):
    """A well-formed, business-level rejection reported by the exchange.

    Attributes:
        code: The exchange's own error code, verbatim (int, str or list item).
        message: A human readable description of the rejection.
        venue: The lowercase name of the exchange that rejected the request.
    """

    def __init__(self, code: Any, message: str, venue: str = "") -> None:
        self.code = code
        self.message = message
        self.venue = venue
        prefix = f"[{venue}] " if venue else ""
        super().__init__(f"{prefix}rejected ({code}): {message}")


class AuthMissing(ExchangeClientError):
    """An authenticated operation was invoked without API key and secret."""


class UnsupportedPair(ExchangeClientError):
    """The requested trading pair is not implemented by this adapter."""


class UnsupportedOperation(ExchangeClientError, NotImplementedError):
    """The exchange does not offer the requested operation."""
