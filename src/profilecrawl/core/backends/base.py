"""
Backend base classes and errors.

Defines the contract between the crawl pipeline and a browser engine: one
long-lived ``BrowserSession`` per orchestrator run that spawns isolated,
single-owner ``BrowsingContext`` objects, one per attempt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator


class BrowsingContext(ABC):
    """An isolated page used for exactly one attempt."""

    @abstractmethod
    async def goto(self, url: str) -> int:
        """Navigate to ``url`` and return the response status code.

        Raises:
            NavigationFailure: If the page did not load
        """

    @abstractmethod
    async def content(self) -> str:
        """Return the current page HTML."""

    @abstractmethod
    async def close(self) -> None:
        """Release the context. Must be safe to call more than once."""


class BrowserSession(ABC):
    """Long-lived browser handle shared read-only by concurrent units.

    ``spawn_context`` may be called concurrently; each yielded context is
    owned by its caller alone and is closed when the block exits.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""

    async def start(self) -> None:
        """Acquire the underlying browser."""

    async def close(self) -> None:
        """Release the underlying browser."""

    @abstractmethod
    async def new_context(self) -> BrowsingContext:
        """Create a fresh, unshared browsing context."""

    @asynccontextmanager
    async def spawn_context(self) -> AsyncIterator[BrowsingContext]:
        """Yield a fresh browsing context, closing it on every exit path."""
        context = await self.new_context()
        try:
            yield context
        finally:
            await context.close()

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class NavigationFailure(BackendError):
    """Page did not load, timed out, or returned a non-success status."""
    pass


class BrowserLaunchError(BackendError):
    """Browser could not be started."""
    pass
