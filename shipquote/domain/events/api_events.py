"""Domain Events related to carrier API calls and resilience.

Examples include events for when calls are retried, fail, or succeed, and
when cached carrier tokens are refreshed or dropped.
"""

from dataclasses import dataclass, field
import time
from typing import Callable, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


EventSink = Callable[[DomainEvent], None]


# --- API Call Events ---

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an operation succeeds (possibly after retries)."""
    operation: str
    attempts: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an operation fails definitively."""
    operation: str
    attempts: int
    error_kind: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed operation."""
    operation: str
    attempt_number: int
    delay_ms: int
    error_kind: str
    timestamp: float = field(default_factory=time.time)


# --- Token Events ---

@dataclass
class TokenRefreshed(DomainEvent):
    """Event triggered when a fresh carrier token has been cached."""
    carrier: str
    expires_at_ms: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class TokenInvalidated(DomainEvent):
    """Event triggered when a cached carrier token is dropped."""
    carrier: str
    reason: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
