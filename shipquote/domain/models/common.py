"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like access tokens
and retry configuration, ensuring consistency and type safety.
"""

from dataclasses import dataclass
from typing import NewType

# === Core Value Objects ===

AccessToken = NewType("AccessToken", str)        # Bearer token issued by a carrier OAuth endpoint
EpochMillis = NewType("EpochMillis", int)        # Unix timestamp in milliseconds


# === Authentication Context ===

@dataclass(frozen=True)
class CachedCredential:
    """A bearer token and the moment it stops being valid."""
    value: AccessToken
    expires_at_ms: EpochMillis


# === Resilience Context ===

@dataclass(frozen=True)
class RetryPolicy:
    """Value Object representing retry backoff configuration.

    Attributes:
        max_extra_attempts: Attempts allowed beyond the first one.
        initial_delay_ms: Delay before the first retry.
        max_delay_ms: Upper bound for any single delay.
        backoff_multiplier: Growth factor applied per attempt.
        use_jitter: Randomize each delay by +/-25%.
    """
    max_extra_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    use_jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_extra_attempts < 0:
            raise ValueError("max_extra_attempts must be >= 0")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")


DEFAULT_RETRY_POLICY = RetryPolicy()
