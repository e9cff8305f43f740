"""Error taxonomy and classification.

Every failure in the workflow is one of five kinds:

- TRANSPORT    : network/HTTP failure, retried by the generation client
- CANCELLATION : cooperative abort, never retried
- PARSE        : response text is not valid JSON, not retried
- VALIDATION   : JSON does not satisfy the field/range contract
- CONFIGURATION: missing credential, unsupported vendor, stage
                 precondition; raised before any network call
"""

from __future__ import annotations

import asyncio
from enum import Enum


class ErrorKind(Enum):
    TRANSPORT = "transport"
    CANCELLATION = "cancellation"
    PARSE = "parse"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class AppraisalError(Exception):
    """Base class for all workflow errors."""

    kind = ErrorKind.UNKNOWN


class TransportError(AppraisalError):
    """Network failure or non-success HTTP status from a vendor."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class VendorResponseError(TransportError):
    """Vendor returned success but the text path was missing."""


class CancellationError(AppraisalError):
    """The stage's cancel token fired."""

    kind = ErrorKind.CANCELLATION

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class ParseError(AppraisalError):
    """Model output could not be decoded as JSON."""

    kind = ErrorKind.PARSE


class ValidationError(AppraisalError):
    """Decoded JSON violates the expected shape or ranges."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        constraint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.constraint = constraint


class ConfigurationError(AppraisalError):
    """Missing credential, unsupported vendor, or unmet precondition."""

    kind = ErrorKind.CONFIGURATION


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception to its ErrorKind.

    asyncio cancellation counts as CANCELLATION; plain timeouts and
    OS-level connection errors count as TRANSPORT.
    """
    if isinstance(error, AppraisalError):
        return error.kind
    if isinstance(error, asyncio.CancelledError):
        return ErrorKind.CANCELLATION
    if isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorKind.TRANSPORT
    return ErrorKind.UNKNOWN


def is_cancellation(error: BaseException) -> bool:
    """Return True if the error signals cooperative cancellation."""
    return classify_error(error) is ErrorKind.CANCELLATION


_PREFIXES: dict[ErrorKind, str] = {
    ErrorKind.TRANSPORT: "Request to the model failed",
    ErrorKind.CANCELLATION: "Cancelled",
    ErrorKind.PARSE: "The model returned malformed JSON",
    ErrorKind.VALIDATION: "The model returned an invalid result",
    ErrorKind.CONFIGURATION: "Configuration error",
    ErrorKind.UNKNOWN: "Unexpected error",
}


def describe_error(error: BaseException) -> str:
    """Build the single human-readable message shown for a failed stage."""
    kind = classify_error(error)
    detail = str(error).strip()
    prefix = _PREFIXES[kind]
    if not detail or detail == prefix:
        return prefix
    return f"{prefix}: {detail}"
