import json

import httpx
import pytest

from shipquote.domain.interfaces.transport import CONNECT_ERROR, TIMEOUT, TransportError
from shipquote.domain.models.errors import CarrierError, ErrorKind
from shipquote.infrastructure.resilience.error_classifier import (
    classify,
    extract_error_code,
    extract_error_message,
    extract_retry_after,
)

UPS_ERROR_BODY = {"response": {"errors": [{"code": "111210", "message": "The requested service is unavailable"}]}}


def http_error(status, body=None, headers=None):
    return TransportError(
        f"status {status}", status=status, headers=headers, body=json.dumps(body) if body is not None else None
    )


@pytest.mark.parametrize("status, kind, retryable", [
    (400, ErrorKind.VALIDATION, False),
    (401, ErrorKind.AUTH, False),
    (403, ErrorKind.AUTH, False),
    (404, ErrorKind.VALIDATION, False),
    (409, ErrorKind.VALIDATION, False),
    (422, ErrorKind.VALIDATION, False),
    (429, ErrorKind.RATE_LIMIT, True),
    (500, ErrorKind.SERVICE, True),
    (502, ErrorKind.SERVICE, True),
    (503, ErrorKind.SERVICE, True),
    (504, ErrorKind.SERVICE, True),
    (507, ErrorKind.SERVICE, True),
    (302, ErrorKind.UNKNOWN, False),
])
def test_status_classification(status, kind, retryable):
    error = classify(http_error(status, UPS_ERROR_BODY), "ups")
    assert error.kind is kind
    assert error.retryable is retryable
    assert error.http_status == status
    assert error.carrier_code == "ups"


def test_carrier_error_message_and_code_extracted():
    error = classify(http_error(400, UPS_ERROR_BODY), "ups")
    assert error.message == "The requested service is unavailable"
    assert error.error_code == "111210"
    assert error.details == UPS_ERROR_BODY


def test_rate_limit_reads_retry_after():
    error = classify(http_error(429, {"message": "Too many requests"}, headers={"Retry-After": "60"}), "ups")
    assert error.kind is ErrorKind.RATE_LIMIT
    assert error.retry_after_seconds == 60
    assert error.message == "Too many requests"


def test_rate_limit_without_header():
    error = classify(http_error(429), "ups")
    assert error.retry_after_seconds is None
    assert error.message == "Unknown error"
    assert error.error_code == "UNKNOWN"


def test_timeout_without_response():
    error = classify(TransportError("read timed out", code=TIMEOUT), "ups")
    assert error.kind is ErrorKind.NETWORK
    assert error.error_code == "TIMEOUT"
    assert error.retryable
    assert error.http_status is None


def test_connection_failure_without_response():
    error = classify(TransportError("ECONNREFUSED", code=CONNECT_ERROR), "ups")
    assert error.kind is ErrorKind.NETWORK
    assert error.error_code == "NETWORK_ERROR"
    assert error.retryable


def test_httpx_exceptions_are_understood():
    request = httpx.Request("POST", "https://onlinetools.ups.com/api/rating/v2403/Shop")
    response = httpx.Response(503, request=request, json={"message": "down"})
    status_error = httpx.HTTPStatusError("503", request=request, response=response)
    assert classify(status_error, "ups").kind is ErrorKind.SERVICE
    assert classify(httpx.ReadTimeout("slow", request=request), "ups").error_code == "TIMEOUT"
    assert classify(httpx.ConnectError("refused", request=request), "ups").error_code == "NETWORK_ERROR"


def test_json_decode_error_is_parse_failure():
    try:
        json.loads("<html>")
    except json.JSONDecodeError as e:
        error = classify(e, "ups")
    assert error.kind is ErrorKind.RESPONSE_PARSE
    assert error.error_code == "PARSE_ERROR"
    assert not error.retryable


def test_anything_else_is_unknown():
    error = classify(RuntimeError("weird"), "ups")
    assert error.kind is ErrorKind.UNKNOWN
    assert error.error_code == "UNKNOWN_ERROR"
    assert error.message == "weird"
    assert not error.retryable


def test_classified_errors_pass_through():
    original = CarrierError(ErrorKind.AUTH, "expired", "ups", http_status=401)
    assert classify(original, "ups") is original


def test_classification_is_pure():
    failure = http_error(503, UPS_ERROR_BODY, headers={"retry-after": "5"})
    first = classify(failure, "ups")
    second = classify(failure, "ups")
    assert first.to_dict() == second.to_dict()


def test_non_json_body_kept_as_text():
    failure = TransportError("bad gateway", status=502, body="<html>Bad Gateway</html>")
    error = classify(failure, "ups")
    assert error.kind is ErrorKind.SERVICE
    assert error.message == "<html>Bad Gateway</html>"
    assert error.details == {"body": "<html>Bad Gateway</html>"}


@pytest.mark.parametrize("payload, message", [
    ({"message": "top"}, "top"),
    ({"error": {"message": "nested"}}, "nested"),
    ({"errors": [{"message": "listed"}]}, "listed"),
    ({"response": {"errors": [{"message": "ups"}]}}, "ups"),
    ("plain text", "plain text"),
    ({}, "Unknown error"),
    (None, "Unknown error"),
    ([1, 2], "Unknown error"),
])
def test_extract_error_message(payload, message):
    assert extract_error_message(payload) == message


@pytest.mark.parametrize("payload, code", [
    ({"code": "E1"}, "E1"),
    ({"errorCode": "E2"}, "E2"),
    ({"error_code": "E3"}, "E3"),
    ({"errors": [{"code": "E4"}]}, "E4"),
    ({"response": {"errors": [{"code": 250002}]}}, "250002"),
    ({}, "UNKNOWN"),
    ("text", "UNKNOWN"),
])
def test_extract_error_code(payload, code):
    assert extract_error_code(payload) == code


def test_extract_retry_after():
    assert extract_retry_after({"RETRY-AFTER": " 30 "}) == 30
    assert extract_retry_after({"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"}) is None
    assert extract_retry_after({}) is None
    assert extract_retry_after(None) is None


def test_retry_after_only_kept_for_rate_limits():
    error = CarrierError(ErrorKind.SERVICE, "down", "ups", retry_after_seconds=10)
    assert error.retry_after_seconds is None
    assert "retry_after_seconds" not in error.to_dict()
