"""Backend implementations for rendering pages."""

from .base import (
    BackendError,
    BrowserLaunchError,
    BrowserSession,
    BrowsingContext,
    NavigationFailure,
)
from .playwright_backend import PlaywrightContext, PlaywrightSession

__all__ = [
    # Base classes
    "BrowserSession",
    "BrowsingContext",
    # Errors
    "BackendError",
    "BrowserLaunchError",
    "NavigationFailure",
    # Playwright backend
    "PlaywrightSession",
    "PlaywrightContext",
]
