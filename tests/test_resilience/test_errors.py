"""Tests for the error taxonomy and stage messages."""

from __future__ import annotations

import asyncio

import pytest

from appraiser.resilience.errors import (
    AppraisalError,
    CancellationError,
    ConfigurationError,
    ErrorKind,
    ParseError,
    TransportError,
    ValidationError,
    VendorResponseError,
    classify_error,
    describe_error,
    is_cancellation,
)


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (TransportError("503"), ErrorKind.TRANSPORT),
        (VendorResponseError("no text"), ErrorKind.TRANSPORT),
        (CancellationError(), ErrorKind.CANCELLATION),
        (asyncio.CancelledError(), ErrorKind.CANCELLATION),
        (ParseError("bad json"), ErrorKind.PARSE),
        (ValidationError("bad item"), ErrorKind.VALIDATION),
        (ConfigurationError("no key"), ErrorKind.CONFIGURATION),
        (TimeoutError(), ErrorKind.TRANSPORT),
        (ConnectionResetError(), ErrorKind.TRANSPORT),
        (RuntimeError("???"), ErrorKind.UNKNOWN),
    ],
)
def test_classify_error(error: BaseException, kind: ErrorKind) -> None:
    assert classify_error(error) is kind


def test_vendor_response_error_is_transport() -> None:
    """Malformed success payloads go through the transport retry path."""
    assert issubclass(VendorResponseError, TransportError)
    assert issubclass(TransportError, AppraisalError)


def test_transport_error_carries_status_and_body() -> None:
    err = TransportError("failed", status_code=429, body="slow down")
    assert err.status_code == 429
    assert err.body == "slow down"


def test_validation_error_carries_field_and_constraint() -> None:
    err = ValidationError(
        "score out of range", field="score_1to7", constraint="1-7"
    )
    assert err.field == "score_1to7"
    assert err.constraint == "1-7"


def test_is_cancellation() -> None:
    assert is_cancellation(CancellationError())
    assert is_cancellation(asyncio.CancelledError())
    assert not is_cancellation(TransportError("x"))


class TestDescribeError:
    def test_prefixes_by_kind(self) -> None:
        msg = describe_error(TransportError("API request failed: 500 - x"))
        assert msg == "Request to the model failed: API request failed: 500 - x"

    def test_bare_cancellation_uses_prefix_only(self) -> None:
        assert describe_error(asyncio.CancelledError()) == "Cancelled"

    def test_unknown_error(self) -> None:
        assert describe_error(RuntimeError("kaboom")) == (
            "Unexpected error: kaboom"
        )

    def test_validation_message(self) -> None:
        msg = describe_error(ValidationError("Item 0: bad"))
        assert msg.startswith("The model returned an invalid result")
