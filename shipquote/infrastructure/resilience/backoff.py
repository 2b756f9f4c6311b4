"""Exponential backoff delay calculation."""

import math
import random
from typing import Callable

from shipquote.domain.models.common import RetryPolicy

JITTER_RATIO = 0.25


def compute_backoff_delay_ms(
    attempt: int,
    policy: RetryPolicy,
    rng: Callable[[], float] = random.random,
) -> int:
    """Returns the delay before retrying after the given (0-based) attempt.

    delay = min(initial * multiplier ** attempt, max), then optionally moved
    by up to +/-25% and floored to whole milliseconds.

    Args:
        attempt: Number of the attempt that just failed, starting at 0.
        policy: The retry policy in effect.
        rng: Source of uniform floats in [0, 1); only used with jitter.
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")

    try:
        delay = policy.initial_delay_ms * (policy.backoff_multiplier ** attempt)
    except OverflowError:
        delay = float(policy.max_delay_ms)
    delay = min(delay, float(policy.max_delay_ms))

    if policy.use_jitter:
        jitter_range = delay * JITTER_RATIO
        delay += rng() * jitter_range * 2 - jitter_range

    return max(0, math.floor(delay))
