"""Service for executing carrier calls with automatic retries.

Implements exponential backoff for transient failures such as rate limits
(429), server errors (5xx) and network faults. Retryability comes from the
classified error; anything else is surfaced immediately.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional

from shipquote.domain.events.api_events import (
    ApiCallFailed,
    ApiCallSucceeded,
    DomainEvent,
    EventSink,
    RetryScheduled,
)
from shipquote.domain.models.common import DEFAULT_RETRY_POLICY, RetryPolicy
from shipquote.domain.models.errors import CarrierError
from shipquote.infrastructure.resilience.backoff import compute_backoff_delay_ms

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]
RetryPredicate = Callable[[BaseException], bool]


def is_retryable_by_default(error: BaseException) -> bool:
    """Only classified errors flagged retryable are retried."""
    if isinstance(error, CarrierError):
        return error.retryable
    return False


def _kind_of(error: BaseException) -> str:
    if isinstance(error, CarrierError):
        return error.kind.value
    return type(error).__name__


class RetryService:
    """Runs async operations under a bounded retry policy."""

    def __init__(
        self,
        default_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the RetryService.

        Args:
            default_policy: Policy used when ``run`` is given none.
            sleep: Coroutine taking seconds; replaced in tests.
            rng: Uniform [0, 1) source for jitter.
            event_sink: Optional callback receiving resilience events.
        """
        self.default_policy = default_policy
        self._sleep = sleep
        self._rng = rng
        self._event_sink = event_sink
        logger.debug(f"RetryService initialized with default policy {default_policy}")

    def _dispatch(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if not self._event_sink:
            return
        try:
            self._event_sink(event)
        except Exception:
            logger.exception(f"Event sink failed for {type(event).__name__}")

    async def run(
        self,
        operation: Operation,
        policy: Optional[RetryPolicy] = None,
        is_retryable: Optional[RetryPredicate] = None,
        operation_name: Optional[str] = None,
    ) -> Any:
        """Executes ``operation`` with retries.

        The operation must be idempotent; side effects of failed attempts are
        not rolled back.

        Args:
            operation: Zero-argument coroutine function to call.
            policy: Retry policy; defaults to the service's policy.
            is_retryable: Overrides the default retryability check.
            operation_name: Label for logs and events.

        Returns:
            The operation's result.

        Raises:
            BaseException: The last attempt's error, unmodified.
        """
        effective_policy = policy or self.default_policy
        check = is_retryable or is_retryable_by_default
        name = operation_name or getattr(operation, "__name__", "operation")
        attempt = 0
        start_time = time.perf_counter()

        while True:
            try:
                result = await operation()
            except Exception as e:
                retryable = check(e)
                if not retryable or attempt >= effective_policy.max_extra_attempts:
                    if retryable:
                        logger.error(
                            f"Max retries ({effective_policy.max_extra_attempts}) reached for {name}. Last error: {e}"
                        )
                    else:
                        logger.info(f"Non-retryable error from {name} on attempt {attempt + 1}: {e}")
                    self._dispatch(ApiCallFailed(
                        operation=name,
                        attempts=attempt + 1,
                        error_kind=_kind_of(e),
                        error_message=str(e),
                    ))
                    raise

                delay_ms = compute_backoff_delay_ms(attempt, effective_policy, self._rng)
                logger.warning(
                    f"Retryable error from {name} on attempt {attempt + 1}/"
                    f"{effective_policy.max_extra_attempts + 1}: {_kind_of(e)}. Waiting {delay_ms}ms..."
                )
                self._dispatch(RetryScheduled(
                    operation=name,
                    attempt_number=attempt + 1,
                    delay_ms=delay_ms,
                    error_kind=_kind_of(e),
                ))
                await self._sleep(delay_ms / 1000)
                attempt += 1
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            self._dispatch(ApiCallSucceeded(operation=name, attempts=attempt + 1, latency_ms=latency_ms))
            return result
