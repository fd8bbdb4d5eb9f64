"""Error taxonomy for the aggregation layer.

Upstream and generative failures are classified so the fallback chain can
decide whether to trip the live-tier circuit breaker. None of these reach the
consumer except the caller errors (unknown operation, invalid params).
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NO_CREDENTIALS = "no_credentials"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    TRANSIENT_NETWORK = "transient_network"
    MALFORMED_RESPONSE = "malformed_response"
    MALFORMED_GENERATIVE_OUTPUT = "malformed_generative_output"
    UNKNOWN_OPERATION = "unknown_operation"
    INVALID_PARAMS = "invalid_params"


class AggregationError(Exception):
    """Base exception for the aggregation layer."""

    kind: ErrorKind = ErrorKind.TRANSIENT_NETWORK

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.value.upper()


class NoCredentialsError(AggregationError):
    """No API key configured for a tier."""

    kind = ErrorKind.NO_CREDENTIALS


class UpstreamError(AggregationError):
    """Failure reported by a live upstream provider."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, details)


class UnauthorizedError(UpstreamError):
    """Rejected credentials or exhausted quota (HTTP 401/403/429)."""

    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(UpstreamError):
    kind = ErrorKind.NOT_FOUND


class TransientNetworkError(UpstreamError):
    """Timeouts, connection failures and 5xx responses."""

    kind = ErrorKind.TRANSIENT_NETWORK


class MalformedUpstreamResponse(UpstreamError):
    kind = ErrorKind.MALFORMED_RESPONSE


class MalformedGenerativeOutput(AggregationError):
    """Generative output could not be parsed into records."""

    kind = ErrorKind.MALFORMED_GENERATIVE_OUTPUT


class UnknownOperationError(AggregationError):
    kind = ErrorKind.UNKNOWN_OPERATION


class InvalidParamsError(AggregationError):
    kind = ErrorKind.INVALID_PARAMS


def classify_status(status_code: int) -> type[UpstreamError]:
    """Map a non-2xx HTTP status to the error class it should raise."""
    if status_code in (401, 403, 429):
        return UnauthorizedError
    if status_code == 404:
        return NotFoundError
    if status_code >= 500:
        return TransientNetworkError
    return MalformedUpstreamResponse
