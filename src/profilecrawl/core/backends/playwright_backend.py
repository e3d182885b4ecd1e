"""
Playwright backend implementation.

Provides one shared async browser per run and isolated per-attempt
browsing contexts with:
- Configurable engine (chromium, firefox, webkit)
- Stealth mode for bot detection avoidance
- Navigation timeout (0 disables it)
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from .base import (
    BackendError,
    BrowserLaunchError,
    BrowserSession,
    BrowsingContext,
    NavigationFailure,
)

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

    from profilecrawl.core.config.models import BrowserConfig

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


# =============================================================================
# Stealth Script
# =============================================================================


STEALTH_SCRIPT = """
// Override navigator.webdriver - primary detection method
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

// Override navigator.languages
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en']
});

// Add Chrome runtime
window.chrome = {
    runtime: {},
    loadTimes: function() {},
    csi: function() {},
    app: {}
};
"""

STEALTH_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-infobars",
    "--disable-extensions",
]


# =============================================================================
# Browsing context
# =============================================================================


class PlaywrightContext(BrowsingContext):
    """A Playwright browser context holding a single page."""

    def __init__(self, context: BrowserContext, page: Page, timeout_ms: int = 0):
        self._context = context
        self._page = page
        self._timeout_ms = timeout_ms
        self._closed = False

    async def goto(self, url: str) -> int:
        from playwright.async_api import Error as PlaywrightError

        try:
            response = await self._page.goto(url, timeout=self._timeout_ms)
        except PlaywrightError as e:
            # TimeoutError subclasses Error
            raise NavigationFailure(f"Navigation failed: {e}", url=url, cause=e) from e

        if response is None:
            raise NavigationFailure(f"No response from {url}", url=url)

        return response.status

    async def content(self) -> str:
        from playwright.async_api import Error as PlaywrightError

        try:
            return await self._page.content()
        except PlaywrightError as e:
            raise NavigationFailure(f"Could not read page content: {e}", url=self._page.url, cause=e) from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._context.close()
        except Exception as e:
            # Context may already be gone if the browser crashed
            logger.debug(f"Context close failed: {e}")


# =============================================================================
# PlaywrightSession Implementation
# =============================================================================


class PlaywrightSession(BrowserSession):
    """Playwright-based browser session.

    One browser is launched on ``start`` and closed on ``close``; every
    ``new_context`` call creates a separate ``BrowserContext`` so cookies
    and storage never leak between attempts.
    """

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        timeout_ms: int = 0,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        user_agent: str | None = None,
        stealth: bool = True,
    ):
        """Initialize Playwright session.

        Args:
            headless: Run browser in headless mode
            browser_type: Browser to use (chromium, firefox, webkit)
            timeout_ms: Navigation timeout in milliseconds (0 = none)
            viewport_width: Browser viewport width
            viewport_height: Browser viewport height
            user_agent: Custom user agent string
            stealth: Enable stealth mode for bot detection avoidance
        """
        self.headless = headless
        self.browser_type = browser_type
        self.timeout_ms = timeout_ms
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.stealth = stealth

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @classmethod
    def from_config(cls, config: BrowserConfig) -> "PlaywrightSession":
        """Build a session from the ``browser`` config section."""
        return cls(
            headless=config.headless,
            browser_type=config.browser.value,
            timeout_ms=config.navigation_timeout_ms,
            viewport_width=config.viewport_width,
            viewport_height=config.viewport_height,
            user_agent=config.user_agent,
            stealth=config.stealth,
        )

    @property
    def name(self) -> str:
        return "playwright"

    async def start(self) -> None:
        """Launch the browser if not already running."""
        if self._browser is not None and self._browser.is_connected():
            return

        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()

        if self.browser_type == "firefox":
            browser_launcher = self._playwright.firefox
        elif self.browser_type == "webkit":
            browser_launcher = self._playwright.webkit
        else:
            browser_launcher = self._playwright.chromium

        launch_args: list[str] = []
        if self.stealth and self.browser_type == "chromium":
            launch_args = STEALTH_LAUNCH_ARGS + [
                f"--window-size={self.viewport_width},{self.viewport_height}",
            ]

        try:
            self._browser = await browser_launcher.launch(
                headless=self.headless,
                args=launch_args,
            )
        except Exception as e:
            await self._playwright.stop()
            self._playwright = None
            raise BrowserLaunchError(
                f"Failed to launch {self.browser_type} browser. "
                f"Run: playwright install {self.browser_type}",
                cause=e,
            ) from e

        logger.info(f"Launched {self.browser_type} browser (headless={self.headless})")

    async def new_context(self) -> PlaywrightContext:
        if self._browser is None:
            raise BackendError("Browser session not started")

        context_options: dict[str, Any] = {
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "user_agent": self.user_agent,
            "locale": "en-US",
        }

        context = await self._browser.new_context(**context_options)
        try:
            if self.stealth:
                await context.add_init_script(STEALTH_SCRIPT)
            page = await context.new_page()
            page.set_default_navigation_timeout(self.timeout_ms)
        except Exception as e:
            await context.close()
            raise NavigationFailure(f"Could not open page: {e}", cause=e) from e

        return PlaywrightContext(context, page, timeout_ms=self.timeout_ms)

    async def close(self) -> None:
        """Close browser and clean up resources."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Playwright session closed")
