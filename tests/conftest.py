import asyncio
import copy
import json
import time
from typing import Any, Dict, List, Optional, Union

import pytest
from typer.testing import CliRunner

from shipquote.domain.interfaces.transport import Transport, TransportError, TransportRequest, TransportResponse
from shipquote.infrastructure.carriers.ups.client import load_mock_payload
from shipquote.infrastructure.carriers.ups.config import UpsConfig
from shipquote.infrastructure.config import settings
from shipquote.infrastructure.config.settings import clear_test_config
from shipquote.main import DEMO_REQUEST

TOKEN_URL = "https://wwwcie.ups.com/security/v1/oauth/token"
BASE_URL = "https://wwwcie.ups.com"

Outcome = Union[TransportResponse, BaseException]


class FakeTransport(Transport):
    """In-memory transport scripted per URL fragment.

    Outcomes are consumed in order; the last one repeats. Every request is
    recorded in ``requests``.
    """

    def __init__(self):
        self.requests: List[TransportRequest] = []
        self._routes: Dict[str, List[Outcome]] = {}
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    def on(self, url_fragment: str, *outcomes: Outcome) -> "FakeTransport":
        self._routes[url_fragment] = list(outcomes)
        return self

    def calls_to(self, url_fragment: str) -> List[TransportRequest]:
        return [r for r in self.requests if url_fragment in r.url]

    async def send(self, request: TransportRequest) -> TransportResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        for fragment, outcomes in self._routes.items():
            if fragment in request.url:
                outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        raise AssertionError(f"Unexpected request to {request.url}")

    async def close(self) -> None:
        self.closed = True


def json_response(payload: Any, status: int = 200) -> TransportResponse:
    return TransportResponse(status=status, headers={"content-type": "application/json"}, text=json.dumps(payload))


def http_error(status: int, payload: Any = None, headers: Optional[Dict[str, str]] = None) -> TransportError:
    body = json.dumps(payload) if payload is not None else ""
    return TransportError(f"Request failed with status code {status}", status=status, headers=headers, body=body)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps real UPS credentials and test overrides from leaking between tests."""
    for name in (
        "UPS_CLIENT_ID", "UPS_CLIENT_SECRET", "UPS_ACCOUNT_NUMBER", "UPS_BASE_URL",
        "UPS_OAUTH_URL", "UPS_API_VERSION", "UPS_TRANSACTION_SRC", "UPS_MOCK_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    yield
    clear_test_config()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def ups_config():
    return UpsConfig(
        client_id="test-client",
        client_secret="test-secret",
        account_number="A1B2C3",
        base_url=BASE_URL,
        oauth_url=TOKEN_URL,
    )


@pytest.fixture
def token_payload():
    return {
        "token_type": "Bearer",
        "issued_at": str(int(time.time() * 1000)),
        "client_id": "test-client",
        "access_token": "token-abc",
        "expires_in": "14399",
        "status": "approved",
    }


@pytest.fixture
def rate_payload():
    """The bundled three-service Shop response."""
    return load_mock_payload()


@pytest.fixture
def sample_request():
    return copy.deepcopy(DEMO_REQUEST)
