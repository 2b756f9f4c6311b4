import asyncio
import base64
import threading

import pytest
from conftest import TOKEN_URL, FakeTransport, http_error, json_response

from shipquote.domain.events.api_events import TokenInvalidated, TokenRefreshed
from shipquote.domain.interfaces.transport import TIMEOUT, Transport, TransportError
from shipquote.domain.models.errors import CarrierError, ErrorKind
from shipquote.infrastructure.auth.token_cache import OAuthTokenCache, TokenGrant

NOW_MS = 1_700_000_000_000


class Clock:
    def __init__(self, now=NOW_MS):
        self.now = now

    def __call__(self):
        return self.now


def grant(token="token-abc", issued_at=NOW_MS, expires_in=3600):
    return {
        "token_type": "Bearer",
        "issued_at": str(issued_at),
        "access_token": token,
        "expires_in": str(expires_in),
        "status": "approved",
    }


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_cache(fake_transport, clock, events):
    def factory(transport=None):
        return OAuthTokenCache(
            transport=transport or fake_transport,
            token_url=TOKEN_URL,
            client_id="client",
            client_secret="secret",
            carrier_code="ups",
            clock=clock,
            event_sink=events.append,
        )
    return factory


@pytest.mark.asyncio
async def test_first_acquire_exchanges_credentials(fake_transport, make_cache, events):
    fake_transport.on(TOKEN_URL, json_response(grant()))
    cache = make_cache()

    assert await cache.acquire() == "token-abc"

    [request] = fake_transport.requests
    assert request.method == "POST"
    assert request.body == "grant_type=client_credentials"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    expected = base64.b64encode(b"client:secret").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert isinstance(events[-1], TokenRefreshed)
    assert events[-1].expires_at_ms == NOW_MS + 3600 * 1000


@pytest.mark.asyncio
async def test_cached_token_reused_until_buffer(fake_transport, make_cache, clock):
    fake_transport.on(TOKEN_URL, json_response(grant("first")), json_response(grant("second", issued_at=NOW_MS + 3600_000)))
    cache = make_cache()

    assert await cache.acquire() == "first"
    clock.now = NOW_MS + (3600 - 61) * 1000
    assert await cache.acquire() == "first"
    assert len(fake_transport.requests) == 1

    # Inside the 60s buffer the token counts as expired
    clock.now = NOW_MS + (3600 - 60) * 1000
    assert await cache.acquire() == "second"
    assert len(fake_transport.requests) == 2


@pytest.mark.asyncio
async def test_concurrent_acquires_share_one_exchange(fake_transport, make_cache):
    fake_transport.on(TOKEN_URL, json_response(grant()))
    fake_transport.gate = asyncio.Event()
    cache = make_cache()

    waiters = [asyncio.ensure_future(cache.acquire()) for _ in range(10)]
    await asyncio.sleep(0)
    fake_transport.gate.set()
    tokens = await asyncio.gather(*waiters)

    assert tokens == ["token-abc"] * 10
    assert len(fake_transport.requests) == 1


@pytest.mark.asyncio
async def test_concurrent_failure_is_shared_and_not_cached(fake_transport, make_cache):
    fake_transport.on(TOKEN_URL, http_error(401, {"message": "Invalid client"}), json_response(grant()))
    fake_transport.gate = asyncio.Event()
    cache = make_cache()

    waiters = [asyncio.ensure_future(cache.acquire()) for _ in range(5)]
    await asyncio.sleep(0)
    fake_transport.gate.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert len(fake_transport.requests) == 1
    assert all(isinstance(r, CarrierError) for r in results)
    assert len({id(r) for r in results}) == 1
    assert results[0].kind is ErrorKind.AUTH
    assert results[0].http_status == 401

    fake_transport.gate = None
    assert await cache.acquire() == "token-abc"
    assert len(fake_transport.requests) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_new_exchange(fake_transport, make_cache, events):
    fake_transport.on(TOKEN_URL, json_response(grant("old")), json_response(grant("new")))
    cache = make_cache()

    assert await cache.acquire() == "old"
    cache.invalidate("HTTP 401")
    assert isinstance(events[-1], TokenInvalidated)
    assert events[-1].reason == "HTTP 401"
    assert await cache.acquire() == "new"
    assert len(fake_transport.requests) == 2


@pytest.mark.asyncio
async def test_invalidate_is_idempotent(fake_transport, make_cache, events):
    cache = make_cache()
    cache.invalidate()
    cache.invalidate()
    assert events == []
    assert fake_transport.requests == []


@pytest.mark.asyncio
async def test_network_failure_is_classified(fake_transport, make_cache):
    fake_transport.on(TOKEN_URL, TransportError("timed out", code=TIMEOUT))
    cache = make_cache()

    with pytest.raises(CarrierError) as exc_info:
        await cache.acquire()
    assert exc_info.value.kind is ErrorKind.NETWORK
    assert exc_info.value.retryable


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"token_type": "Bearer"},
    {"access_token": "", "expires_in": "3600", "issued_at": str(NOW_MS)},
    {"access_token": "abc", "expires_in": "soon", "issued_at": str(NOW_MS)},
])
async def test_malformed_grant_is_auth_error(fake_transport, make_cache, payload):
    fake_transport.on(TOKEN_URL, json_response(payload))
    cache = make_cache()

    with pytest.raises(CarrierError) as exc_info:
        await cache.acquire()
    assert exc_info.value.kind is ErrorKind.AUTH
    assert exc_info.value.error_code == "INVALID_TOKEN_RESPONSE"
    assert "errors" in exc_info.value.details


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_refresh(fake_transport, make_cache):
    fake_transport.on(TOKEN_URL, json_response(grant()))
    fake_transport.gate = asyncio.Event()
    cache = make_cache()

    first = asyncio.ensure_future(cache.acquire())
    second = asyncio.ensure_future(cache.acquire())
    await asyncio.sleep(0)
    first.cancel()
    fake_transport.gate.set()

    assert await second == "token-abc"
    assert len(fake_transport.requests) == 1


class SlowTransport(Transport):
    """Thread-safe transport whose exchange takes a while to answer."""

    def __init__(self, delay=0.3):
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    async def send(self, request):
        with self._lock:
            self.calls += 1
        await asyncio.sleep(self.delay)
        return json_response(grant())

    async def close(self):
        pass


def test_acquires_from_separate_threads_share_one_exchange(make_cache):
    transport = SlowTransport()
    cache = make_cache(transport=transport)
    start = threading.Barrier(2)
    tokens, errors = [], []

    def worker():
        start.wait()
        try:
            tokens.append(asyncio.run(cache.acquire()))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert tokens == ["token-abc", "token-abc"]
    assert transport.calls == 1


@pytest.mark.asyncio
async def test_failing_event_sink_does_not_break_acquire(fake_transport, clock):
    def broken_sink(event):
        raise RuntimeError("sink down")

    fake_transport.on(TOKEN_URL, json_response(grant()))
    cache = OAuthTokenCache(
        transport=fake_transport,
        token_url=TOKEN_URL,
        client_id="client",
        client_secret="secret",
        carrier_code="ups",
        clock=clock,
        event_sink=broken_sink,
    )

    assert await cache.acquire() == "token-abc"
    assert await cache.acquire() == "token-abc"
    assert len(fake_transport.requests) == 1
    cache.invalidate("HTTP 401")


def test_token_grant_expiry():
    parsed = TokenGrant.model_validate({"access_token": "x", "expires_in": 100, "issued_at": "1000"})
    assert parsed.expires_in == "100"
    assert parsed.expires_at_ms == 101_000
