"""
Retry utilities with tenacity.

Runs one crawl unit's work with bounded re-attempts. Each attempt gets its
own browsing context from the shared session, released before the next
attempt starts or the result is returned. Exhaustion is reported through
the returned ``RetryState`` rather than raised, so one failing unit never
aborts its batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Generic, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from profilecrawl.core.backends.base import BackendError
from profilecrawl.core.extract.base import ExtractionFailure

if TYPE_CHECKING:
    from tenacity.wait import wait_base

    from profilecrawl.core.backends.base import BrowserSession, BrowsingContext
    from profilecrawl.core.config.models import CrawlConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MAX_WAIT = 30  # seconds
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (BackendError, ExtractionFailure)


class RetryPhase(str, Enum):
    """Lifecycle of one unit inside the retry wrapper."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryPolicy:
    """Configuration for retry behavior.

    ``max_attempts`` counts retries after the first try, so a unit is
    attempted at most ``max_attempts + 1`` times.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = 0.0
    max_backoff_seconds: float = DEFAULT_MAX_WAIT
    retry_on: tuple[type[Exception], ...] = TRANSIENT_ERRORS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    @classmethod
    def from_config(cls, config: CrawlConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            backoff_seconds=config.retry_backoff_seconds,
        )

    @property
    def total_attempts(self) -> int:
        return self.max_attempts + 1

    def wait_strategy(self) -> wait_base:
        if self.backoff_seconds <= 0:
            return wait_none()
        return wait_exponential(
            multiplier=self.backoff_seconds,
            min=self.backoff_seconds,
            max=self.max_backoff_seconds,
        )


@dataclass
class RetryState(Generic[T]):
    """Per-unit retry bookkeeping; final once SUCCEEDED or EXHAUSTED."""

    unit: str
    max_attempts: int
    attempts_used: int = 0
    phase: RetryPhase = RetryPhase.PENDING
    last_error: Exception | None = None
    result: T | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        """Attempts still available."""
        return max(0, self.max_attempts + 1 - self.attempts_used)

    @property
    def succeeded(self) -> bool:
        return self.phase is RetryPhase.SUCCEEDED

    @property
    def exhausted(self) -> bool:
        return self.phase is RetryPhase.EXHAUSTED


async def attempt_with_retry(
    unit: str,
    work: Callable[[BrowsingContext], Awaitable[T]],
    session: BrowserSession,
    policy: RetryPolicy | None = None,
    *,
    target: str | None = None,
) -> RetryState[T]:
    """Run ``work`` against fresh browsing contexts until it succeeds.

    Args:
        unit: Label of the crawl unit, used in logs
        work: Coroutine function receiving the attempt's browsing context
        session: Shared browser session used only to spawn contexts
        policy: Retry configuration
        target: Effective (proxied) URL, reported with each failure

    Returns:
        Final RetryState; ``result`` is set only when SUCCEEDED

    Raises:
        Exception: Errors outside ``policy.retry_on`` propagate unchanged
            after the attempt's context is released
    """
    if policy is None:
        policy = RetryPolicy()

    state: RetryState[T] = RetryState(unit=unit, max_attempts=policy.max_attempts)
    extra = {"unit": unit, "url": target}

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(policy.total_attempts),
            wait=policy.wait_strategy(),
            retry=retry_if_exception_type(policy.retry_on),
            reraise=True,
        ):
            with attempt:
                state.phase = RetryPhase.ATTEMPTING
                try:
                    async with session.spawn_context() as context:
                        result = await work(context)
                except Exception as e:
                    state.attempts_used += 1
                    state.last_error = e
                    state.errors.append(str(e))
                    state.phase = RetryPhase.PENDING
                    if isinstance(e, policy.retry_on):
                        logger.warning(
                            f"Error: {e}, tries left {state.remaining}, unit: {unit}"
                            + (f", url: {target}" if target else ""),
                            extra={**extra, "attempt": state.attempts_used},
                        )
                    raise

                state.attempts_used += 1
                state.result = result
                state.phase = RetryPhase.SUCCEEDED

    except policy.retry_on:
        state.phase = RetryPhase.EXHAUSTED
        logger.error(
            f"Giving up on {unit} after {state.attempts_used} attempts: {state.last_error}",
            extra=extra,
        )

    return state
