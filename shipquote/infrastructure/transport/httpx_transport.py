"""Concrete implementation of the Transport interface using httpx.

Hides the specifics of the httpx client library and translates its
responses and exceptions into the transport port's types.
"""

import logging
from typing import Optional

import httpx

from shipquote.domain.interfaces.transport import (
    CONNECT_ERROR,
    NETWORK_ERROR,
    TIMEOUT,
    Transport,
    TransportError,
    TransportRequest,
    TransportResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpxTransport(Transport):
    """httpx-backed transport. Owns its client unless one is injected."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=default_timeout)
        self.default_timeout = default_timeout

    async def send(self, request: TransportRequest) -> TransportResponse:
        timeout = request.timeout if request.timeout is not None else self.default_timeout
        logger.debug(f"{request.method} {request.url} (timeout={timeout}s)")
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(str(e) or "timed out", code=TIMEOUT) from e
        except httpx.ConnectError as e:
            raise TransportError(str(e) or "connection failed", code=CONNECT_ERROR) from e
        except httpx.RequestError as e:
            raise TransportError(str(e) or type(e).__name__, code=NETWORK_ERROR) from e

        headers = {k.lower(): v for k, v in response.headers.items()}
        if not response.is_success:
            logger.debug(f"{request.method} {request.url} -> {response.status_code}")
            raise TransportError(
                f"Request failed with status code {response.status_code}",
                status=response.status_code,
                headers=headers,
                body=response.text,
            )
        return TransportResponse(status=response.status_code, headers=headers, text=response.text)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
