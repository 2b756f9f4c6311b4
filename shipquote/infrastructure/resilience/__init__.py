"""API Resilience Implementations.

Contains the backoff calculator, the error classifier and the retry service
that executes carrier calls with bounded, classified retries.
Bounded Context: API Resilience
"""
