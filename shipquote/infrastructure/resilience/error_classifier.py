"""Maps raw transport and parsing failures to classified carrier errors.

``classify`` is pure: the same failure (status, body, headers) always yields
the same kind and retryability. Errors that are already classified pass
through untouched so a failure is never wrapped twice.
"""

import json
import logging
from typing import Any, Mapping, Optional

import httpx

from shipquote.domain.interfaces.transport import TIMEOUT, TransportError, CONNECT_ERROR, NETWORK_ERROR
from shipquote.domain.models.errors import (
    CarrierError,
    ErrorKind,
    UNKNOWN_ERROR_CODE,
    UNKNOWN_ERROR_MESSAGE,
)

logger = logging.getLogger(__name__)

TIMEOUT_CODES = frozenset({TIMEOUT})
SERVICE_STATUSES = frozenset({500, 502, 503, 504})
VALIDATION_STATUSES = frozenset({400, 422})
AUTH_STATUSES = frozenset({401, 403})
RATE_LIMIT_STATUS = 429


def classify(failure: BaseException, carrier_code: str) -> CarrierError:
    """Classifies a failure raised while talking to a carrier.

    Args:
        failure: The exception to classify.
        carrier_code: Carrier the call was made to (e.g., 'ups').

    Returns:
        A CarrierError with kind and retryability decided by the failure.
    """
    if isinstance(failure, CarrierError):
        return failure

    if isinstance(failure, httpx.HTTPStatusError):
        response = failure.response
        failure = TransportError(
            str(failure),
            status=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )
    elif isinstance(failure, httpx.TimeoutException):
        failure = TransportError(str(failure), code=TIMEOUT)
    elif isinstance(failure, httpx.RequestError):
        failure = TransportError(str(failure), code=NETWORK_ERROR)

    if isinstance(failure, TransportError):
        return _classify_transport_error(failure, carrier_code)

    if isinstance(failure, json.JSONDecodeError):
        return CarrierError(
            ErrorKind.RESPONSE_PARSE,
            f"Failed to parse carrier response: {failure.msg}",
            carrier_code,
            "PARSE_ERROR",
            details={"original_error": str(failure)},
        )

    return CarrierError(
        ErrorKind.UNKNOWN,
        str(failure) or type(failure).__name__,
        carrier_code,
        "UNKNOWN_ERROR",
        details={"original_error": repr(failure)},
    )


def _classify_transport_error(error: TransportError, carrier_code: str) -> CarrierError:
    if not error.has_response:
        if error.code in TIMEOUT_CODES:
            return CarrierError(
                ErrorKind.NETWORK,
                f"Request timeout: {error.message}",
                carrier_code,
                "TIMEOUT",
                details={"code": error.code},
            )
        return CarrierError(
            ErrorKind.NETWORK,
            f"Network error: {error.message}",
            carrier_code,
            "NETWORK_ERROR",
            details={"code": error.code or CONNECT_ERROR},
        )

    status = error.status
    data = _decode_body(error.body)
    message = extract_error_message(data)
    code = extract_error_code(data)
    details = data if isinstance(data, dict) else ({"body": data} if data else None)

    if status in AUTH_STATUSES:
        kind = ErrorKind.AUTH
    elif status in VALIDATION_STATUSES:
        kind = ErrorKind.VALIDATION
    elif status == RATE_LIMIT_STATUS:
        return CarrierError(
            ErrorKind.RATE_LIMIT,
            message,
            carrier_code,
            code,
            http_status=status,
            retry_after_seconds=extract_retry_after(error.headers),
            details=details,
        )
    elif status in SERVICE_STATUSES:
        kind = ErrorKind.SERVICE
    elif 400 <= status < 500:
        kind = ErrorKind.VALIDATION
    elif status >= 500:
        kind = ErrorKind.SERVICE
    else:
        kind = ErrorKind.UNKNOWN

    return CarrierError(kind, message, carrier_code, code, http_status=status, details=details)


def _decode_body(body: Optional[str]) -> Any:
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body


def _first_error(data: Mapping[str, Any], *path: str) -> Optional[Mapping[str, Any]]:
    node: Any = data
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    if isinstance(node, list) and node and isinstance(node[0], Mapping):
        return node[0]
    return None


def extract_error_message(data: Any) -> str:
    """Probes the known payload shapes for a human-readable message."""
    if not data:
        return UNKNOWN_ERROR_MESSAGE
    if isinstance(data, str):
        return data
    if not isinstance(data, Mapping):
        return UNKNOWN_ERROR_MESSAGE

    if data.get("message"):
        return str(data["message"])
    error = data.get("error")
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    for path in (("response", "errors"), ("errors",)):
        first = _first_error(data, *path)
        if first and first.get("message"):
            return str(first["message"])
    return UNKNOWN_ERROR_MESSAGE


def extract_error_code(data: Any) -> str:
    """Probes the known payload shapes for a carrier error code."""
    if not isinstance(data, Mapping):
        return UNKNOWN_ERROR_CODE

    for key in ("code", "errorCode", "error_code"):
        if data.get(key):
            return str(data[key])
    for path in (("response", "errors"), ("errors",)):
        first = _first_error(data, *path)
        if first and first.get("code"):
            return str(first["code"])
    return UNKNOWN_ERROR_CODE


def extract_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[int]:
    """Reads an integer ``retry-after`` header, case-insensitively."""
    if not headers:
        return None
    value = None
    for name, header_value in headers.items():
        if name.lower() == "retry-after":
            value = header_value
            break
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        logger.debug(f"Ignoring non-integer retry-after header: {value!r}")
        return None
