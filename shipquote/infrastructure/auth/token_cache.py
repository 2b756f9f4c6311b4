"""OAuth client-credentials token cache.

Holds at most one bearer token per instance and refreshes it proactively
before expiry. Concurrent callers share a single in-flight refresh: the first
caller starts the exchange on its own event loop and everybody else awaits
the same ``concurrent.futures.Future``, so callers on other threads and
other loops join it too. The guard is cleared before the outcome is
published so later callers start over independently.
"""

import asyncio
import base64
import concurrent.futures
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Set

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from shipquote.domain.events.api_events import DomainEvent, EventSink, TokenInvalidated, TokenRefreshed
from shipquote.domain.interfaces.transport import Transport, TransportRequest
from shipquote.domain.models.common import AccessToken, CachedCredential, EpochMillis
from shipquote.domain.models.errors import CarrierError, ErrorKind
from shipquote.infrastructure.resilience.error_classifier import classify

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SECONDS = 60
EXCHANGE_TIMEOUT_SECONDS = 15.0


def epoch_millis() -> int:
    return int(time.time() * 1000)


class TokenGrant(BaseModel):
    """Exchange response. Numeric fields arrive as strings."""
    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: str   # Seconds
    issued_at: str    # Epoch milliseconds
    token_type: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[str] = None

    @field_validator("access_token")
    @classmethod
    def non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("access_token is empty")
        return v

    @field_validator("expires_in", "issued_at", mode="before")
    @classmethod
    def integral_string(cls, v):
        if isinstance(v, bool):
            raise ValueError("expected an integer string")
        if isinstance(v, int):
            v = str(v)
        if not isinstance(v, str) or not v.strip().isdigit():
            raise ValueError("expected an integer string")
        return v.strip()

    @property
    def expires_at_ms(self) -> int:
        return int(self.issued_at) + int(self.expires_in) * 1000


@dataclass
class _TokenState:
    credential: Optional[CachedCredential] = None
    refresh: Optional["concurrent.futures.Future[AccessToken]"] = None


class OAuthTokenCache:
    """Caches a client-credentials token for one carrier account."""

    def __init__(
        self,
        transport: Transport,
        token_url: str,
        client_id: str,
        client_secret: str,
        carrier_code: str,
        buffer_seconds: int = DEFAULT_BUFFER_SECONDS,
        clock: Callable[[], int] = epoch_millis,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the token cache.

        Args:
            transport: Transport used for the credential exchange.
            token_url: OAuth token endpoint.
            client_id: OAuth client id.
            client_secret: OAuth client secret.
            carrier_code: Carrier the credentials belong to (for errors/logs).
            buffer_seconds: Refresh this long before the real expiry.
            clock: Returns the current time in epoch milliseconds.
            event_sink: Optional callback receiving token events.
        """
        self._transport = transport
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self.carrier_code = carrier_code
        self._buffer_ms = buffer_seconds * 1000
        self._clock = clock
        self._event_sink = event_sink
        self._guard = threading.Lock()
        self._state = _TokenState()
        # Strong references to running exchanges; the loop only keeps weak ones
        self._exchanges: Set["asyncio.Task[None]"] = set()

    def _dispatch(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if not self._event_sink:
            return
        try:
            self._event_sink(event)
        except Exception:
            logger.exception(f"Event sink failed for {type(event).__name__}")

    def _fresh_value(self) -> Optional[AccessToken]:
        # Caller holds the guard
        credential = self._state.credential
        if credential and self._clock() < credential.expires_at_ms - self._buffer_ms:
            return credential.value
        return None

    async def acquire(self) -> AccessToken:
        """Returns a valid token, refreshing it if needed.

        Raises:
            CarrierError: If the exchange fails. Every caller waiting on the
                same refresh receives the same error.
        """
        start = False
        with self._guard:
            value = self._fresh_value()
            if value is not None:
                return value
            outcome = self._state.refresh
            if outcome is None or outcome.done():
                outcome = concurrent.futures.Future()
                # Running futures cannot be cancelled by a departing waiter
                outcome.set_running_or_notify_cancel()
                self._state.refresh = outcome
                start = True

        if start:
            logger.debug(f"Starting {self.carrier_code} token refresh")
            exchange = asyncio.ensure_future(self._refresh(outcome))
            self._exchanges.add(exchange)
            exchange.add_done_callback(self._exchanges.discard)
        else:
            logger.debug(f"Joining in-flight {self.carrier_code} token refresh")
        return await asyncio.wrap_future(outcome)

    def invalidate(self, reason: Optional[str] = None) -> None:
        """Drops the cached token. Idempotent."""
        with self._guard:
            had_credential = self._state.credential is not None
            self._state.credential = None
        if had_credential:
            logger.info(f"Invalidated cached {self.carrier_code} token" + (f" ({reason})" if reason else ""))
            self._dispatch(TokenInvalidated(carrier=self.carrier_code, reason=reason))

    async def _refresh(self, outcome: "concurrent.futures.Future[AccessToken]") -> None:
        """Runs one exchange and publishes its result to every waiter.

        The guard is cleared before ``outcome`` resolves, so a caller that
        sees the outcome and calls ``acquire`` again starts a new refresh.
        """
        try:
            credential = await self._exchange()
        except asyncio.CancelledError:
            # The starting caller's loop is shutting down; waiters elsewhere must not hang
            self._fail(outcome, CarrierError(
                ErrorKind.UNKNOWN,
                f"{self.carrier_code.upper()} token refresh was cancelled",
                self.carrier_code,
                "REFRESH_CANCELLED",
            ))
            raise
        except Exception as e:
            logger.warning(f"{self.carrier_code} token exchange failed: {e}")
            self._fail(outcome, e)
            return

        with self._guard:
            self._state.credential = credential
            self._state.refresh = None
        outcome.set_result(credential.value)
        logger.info(f"Cached new {self.carrier_code} token (expires_at={credential.expires_at_ms})")
        self._dispatch(TokenRefreshed(carrier=self.carrier_code, expires_at_ms=credential.expires_at_ms))

    def _fail(self, outcome: "concurrent.futures.Future[AccessToken]", error: BaseException) -> None:
        # No negative caching
        with self._guard:
            self._state.credential = None
            self._state.refresh = None
        outcome.set_exception(error)

    def _basic_auth_header(self) -> str:
        raw = f"{self._client_id}:{self._client_secret}".encode("utf-8")
        return "Basic " + base64.b64encode(raw).decode("ascii")

    async def _exchange(self) -> CachedCredential:
        request = TransportRequest(
            method="POST",
            url=self._token_url,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": self._basic_auth_header(),
            },
            body="grant_type=client_credentials",
            timeout=EXCHANGE_TIMEOUT_SECONDS,
        )
        try:
            response = await self._transport.send(request)
            payload = response.json()
        except Exception as e:
            classified = classify(e, self.carrier_code)
            if classified is e:
                raise
            raise classified from e

        try:
            grant = TokenGrant.model_validate(payload)
        except ValidationError as e:
            raise CarrierError(
                ErrorKind.AUTH,
                f"Invalid token response from {self.carrier_code.upper()}",
                self.carrier_code,
                "INVALID_TOKEN_RESPONSE",
                http_status=response.status,
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        return CachedCredential(value=AccessToken(grant.access_token), expires_at_ms=EpochMillis(grant.expires_at_ms))
