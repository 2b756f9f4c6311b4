"""UPS Rating adapter.

Pipeline per call: validate the request, then (under the retry service)
acquire a token, build the UPS body, transmit, parse and map. Validation
failures never reach the network. A 401/403 on transmit drops the cached
token once so the next attempt re-authenticates.
"""

import json
import logging
import uuid
from importlib import resources
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from shipquote.domain.interfaces.carrier_adapter import CarrierAdapter
from shipquote.domain.interfaces.transport import Transport, TransportRequest
from shipquote.domain.models.common import RetryPolicy
from shipquote.domain.models.errors import CarrierError, ErrorKind
from shipquote.domain.models.rating import RateRequest, RateResponse
from shipquote.infrastructure.auth.token_cache import OAuthTokenCache
from shipquote.infrastructure.carriers.ups.config import UpsConfig
from shipquote.infrastructure.carriers.ups.constants import (
    CARRIER_CODE,
    DEFAULT_REQUEST_OPTION,
    RATE_REQUEST_TIMEOUT_SECONDS,
    RATING_PATH,
    RequestOption,
)
from shipquote.infrastructure.carriers.ups.mapper import from_ups_rate_response, to_ups_rate_request
from shipquote.infrastructure.carriers.ups.wire import UpsRateResponseEnvelope
from shipquote.infrastructure.resilience.api_retry import RetryService
from shipquote.infrastructure.resilience.error_classifier import classify

logger = logging.getLogger(__name__)

# Rating is interactive: fewer, shorter retries than the library default
RATE_RETRY_POLICY = RetryPolicy(
    max_extra_attempts=2,
    initial_delay_ms=1000,
    max_delay_ms=5000,
    backoff_multiplier=2.0,
    use_jitter=True,
)

MOCK_FIXTURE = "fixtures/rate_shop_response.json"


def load_mock_payload() -> Dict[str, Any]:
    """Reads the bundled Shop response used in mock mode."""
    text = resources.files(__package__).joinpath(MOCK_FIXTURE).read_text(encoding="utf-8")
    return json.loads(text)


def _parse_error(message: str, http_status: Optional[int] = None, details: Optional[Dict[str, Any]] = None) -> CarrierError:
    return CarrierError(
        ErrorKind.RESPONSE_PARSE,
        message,
        CARRIER_CODE,
        "PARSE_ERROR",
        http_status=http_status,
        details=details,
    )


def _parse_rates(payload: Any, transaction_id: str, http_status: Optional[int] = None) -> RateResponse:
    """Checks the envelope shape, then maps it to a RateResponse.

    Raises:
        CarrierError: RESPONSE_PARSE when either step fails.
    """
    try:
        UpsRateResponseEnvelope.model_validate(payload)
    except ValidationError as e:
        raise _parse_error(
            "Unexpected UPS rate response shape",
            http_status=http_status,
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e

    try:
        return from_ups_rate_response(payload, transaction_id=transaction_id)
    except (KeyError, TypeError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        raise _parse_error(f"Failed to map UPS rate response: {e}", http_status=http_status) from e


class UpsRatingClient(CarrierAdapter):
    """Carrier adapter for the UPS Rating API."""

    carrier_code = CARRIER_CODE

    def __init__(
        self,
        config: UpsConfig,
        transport: Transport,
        token_cache: Optional[OAuthTokenCache] = None,
        retry_service: Optional[RetryService] = None,
        retry_policy: RetryPolicy = RATE_RETRY_POLICY,
    ):
        """Initializes the UPS client.

        Args:
            config: UPS settings (credentials, endpoints, mock mode).
            transport: Transport used for both OAuth and rating calls.
            token_cache: Token cache; built from ``config`` when omitted.
            retry_service: Retry runner; a default one is created when omitted.
            retry_policy: Policy applied to each rating call.
        """
        self.config = config
        self._transport = transport
        self._token_cache = token_cache or OAuthTokenCache(
            transport=transport,
            token_url=config.oauth_url,
            client_id=config.client_id or "",
            client_secret=config.client_secret or "",
            carrier_code=CARRIER_CODE,
        )
        self._retry_service = retry_service or RetryService()
        self._retry_policy = retry_policy
        logger.debug(f"UpsRatingClient initialized with {config!r}")

    async def get_rates(self, request: Union[RateRequest, Mapping[str, Any]]) -> RateResponse:
        rate_request = self._validate(request)

        if self.config.mock_mode:
            return self._mock_rates()

        return await self._retry_service.run(
            lambda: self._execute_rate_request(rate_request),
            policy=self._retry_policy,
            operation_name="ups.get_rates",
        )

    def invalidate_auth(self) -> None:
        self._token_cache.invalidate("requested")

    def _validate(self, request: Union[RateRequest, Mapping[str, Any]]) -> RateRequest:
        if isinstance(request, RateRequest):
            return request
        try:
            return RateRequest.model_validate(request)
        except ValidationError as e:
            logger.info(f"Rejected invalid rate request: {e.error_count()} error(s)")
            raise CarrierError(
                ErrorKind.VALIDATION,
                "Invalid rate request",
                CARRIER_CODE,
                "VALIDATION_ERROR",
                http_status=400,
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def _mock_rates(self) -> RateResponse:
        logger.info("UPS mock mode: returning fixture rates")
        return _parse_rates(load_mock_payload(), str(uuid.uuid4()))

    def _rating_url(self, rate_request: RateRequest) -> str:
        option = RequestOption.RATE if rate_request.service_code else DEFAULT_REQUEST_OPTION
        path = RATING_PATH.format(version=self.config.api_version, option=option.value)
        return f"{self.config.base_url}{path}"

    async def _execute_rate_request(self, rate_request: RateRequest) -> RateResponse:
        token = await self._token_cache.acquire()
        transaction_id = str(uuid.uuid4())
        body = to_ups_rate_request(rate_request, self.config)

        transport_request = TransportRequest(
            method="POST",
            url=self._rating_url(rate_request),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "transId": transaction_id,
                "transactionSrc": self.config.transaction_src,
            },
            body=json.dumps(body),
            timeout=RATE_REQUEST_TIMEOUT_SECONDS,
        )
        logger.debug(f"POST {transport_request.url} transId={transaction_id}")

        try:
            response = await self._transport.send(transport_request)
        except Exception as e:
            error = classify(e, CARRIER_CODE)
            if error.kind is ErrorKind.AUTH:
                self._token_cache.invalidate(f"HTTP {error.http_status}")
            if error is e:
                raise
            raise error from e

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise classify(e, CARRIER_CODE) from e

        rate_response = _parse_rates(payload, transaction_id, http_status=response.status)
        logger.info(f"UPS returned {len(rate_response.quotes)} quote(s) (transId={transaction_id})")
        return rate_response
