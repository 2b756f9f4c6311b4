"""Carrier error taxonomy.

Every failure that leaves a carrier adapter is a ``CarrierError`` tagged with
an ``ErrorKind``. The kind decides retryability once, at construction; callers
dispatch on ``error.kind`` rather than on exception subclasses.
"""

from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_ERROR_CODE = "UNKNOWN"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ErrorKind(str, Enum):
    """Closed set of failure classes."""
    AUTH = "auth"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    SERVICE = "service"
    RESPONSE_PARSE = "response_parse"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMIT, ErrorKind.NETWORK, ErrorKind.SERVICE})


class CarrierError(Exception):
    """A classified, carrier-agnostic error.

    Attributes are read-only once the error is built. ``retry_after_seconds``
    is only ever set for ``ErrorKind.RATE_LIMIT``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        carrier_code: str,
        error_code: str = UNKNOWN_ERROR_CODE,
        http_status: Optional[int] = None,
        retry_after_seconds: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self._message = message
        self._carrier_code = carrier_code
        self._error_code = error_code or UNKNOWN_ERROR_CODE
        self._http_status = http_status
        self._retry_after_seconds = retry_after_seconds if self._kind is ErrorKind.RATE_LIMIT else None
        self._details = dict(details) if details else {}
        self._retryable = self._kind in RETRYABLE_KINDS

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def carrier_code(self) -> str:
        return self._carrier_code

    @property
    def error_code(self) -> str:
        return self._error_code

    @property
    def http_status(self) -> Optional[int]:
        return self._http_status

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def retry_after_seconds(self) -> Optional[int]:
        return self._retry_after_seconds

    @property
    def details(self) -> Dict[str, Any]:
        # Copy so callers cannot mutate the error's payload
        return dict(self._details)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view for logs and console output."""
        data: Dict[str, Any] = {
            "kind": self._kind.value,
            "message": self._message,
            "carrier_code": self._carrier_code,
            "error_code": self._error_code,
            "http_status": self._http_status,
            "retryable": self._retryable,
            "details": self._details,
        }
        if self._kind is ErrorKind.RATE_LIMIT:
            data["retry_after_seconds"] = self._retry_after_seconds
        return data

    def __repr__(self) -> str:
        return (
            f"CarrierError(kind={self._kind.value!r}, carrier={self._carrier_code!r}, "
            f"code={self._error_code!r}, status={self._http_status!r}, message={self._message!r})"
        )


class CarrierNotFoundError(LookupError):
    """Raised when no adapter is registered for a carrier code."""

    def __init__(self, carrier_code: str, available: list):
        self.carrier_code = carrier_code
        self.available = list(available)
        super().__init__(
            f'Carrier "{carrier_code}" not found. Available carriers: {", ".join(self.available)}'
        )
