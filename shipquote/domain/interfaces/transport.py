"""Interface for the HTTP transport primitive.

Carrier adapters talk to the network only through this port, which keeps the
rate pipeline testable with in-memory transports.
"""

import abc
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class TransportRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    timeout: Optional[float] = None  # Seconds


@dataclass(frozen=True)
class TransportResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)  # Lower-cased names
    text: str = ""

    def json(self) -> Any:
        """Decodes the body. Raises json.JSONDecodeError on malformed content."""
        return json.loads(self.text)


class TransportError(Exception):
    """A failed exchange.

    ``status`` is None when no response was received (timeouts, refused
    connections); ``code`` then names the low-level failure.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body

    @property
    def has_response(self) -> bool:
        return self.status is not None


# Failure codes for errors without a response
TIMEOUT = "timeout"
CONNECT_ERROR = "connect_error"
NETWORK_ERROR = "network_error"


class Transport(abc.ABC):
    """Abstract Base Class for sending HTTP requests."""

    @abc.abstractmethod
    async def send(self, request: TransportRequest) -> TransportResponse:
        """Sends a request and returns the 2xx response.

        Raises:
            TransportError: On network failure, timeout or a non-2xx status.
        """
        pass

    async def close(self) -> None:
        """Releases pooled connections, if any."""
        pass
