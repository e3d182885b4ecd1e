"""Fetch utilities - retries and proxy routing."""

from .proxy import ProxyUrlBuilder
from .retries import RetryPhase, RetryPolicy, RetryState, attempt_with_retry

__all__ = [
    "ProxyUrlBuilder",
    "RetryPhase",
    "RetryPolicy",
    "RetryState",
    "attempt_with_retry",
]
