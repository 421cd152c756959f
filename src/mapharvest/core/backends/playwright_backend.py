"""
Playwright Backend implementation for browser automation.

Provides the production browsing engine:
- One browser plus one isolated context per backend instance
- Stealth mode for bot detection avoidance
- Engine timeouts translated into WaitTimeout / NavigationTimeout
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .base import (
    ActionFailed,
    Backend,
    BackendError,
    BrowserPage,
    ElementRef,
    NavigationTimeout,
    WaitTimeout,
)

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)


# =============================================================================
# Stealth Script
# =============================================================================


STEALTH_SCRIPT = """
// Override navigator.webdriver - primary detection method
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

// Override navigator.plugins to look like a real browser
Object.defineProperty(navigator, 'plugins', {
    get: () => [
        { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
        { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai' },
        { name: 'Native Client', filename: 'internal-nacl-plugin' }
    ]
});

// Override navigator.languages
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-AU', 'en']
});

// Add Chrome runtime
window.chrome = {
    runtime: {},
    loadTimes: function() {},
    csi: function() {},
    app: {}
};
"""


# =============================================================================
# Page adapter
# =============================================================================


class PlaywrightPage(BrowserPage):
    """BrowserPage over a Playwright ``Page``."""

    def __init__(self, page: Page, default_timeout_ms: int):
        self._page = page
        self.default_timeout_ms = default_timeout_ms

    def _timeout(self, timeout_ms: int | None) -> int:
        return self.default_timeout_ms if timeout_ms is None else timeout_ms

    async def goto(self, url: str, timeout_ms: int | None = None) -> None:
        try:
            await self._page.goto(
                url,
                timeout=self._timeout(timeout_ms),
                wait_until="domcontentloaded",
            )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Navigation timeout: {url}", url=url, cause=e) from e

    async def fill(self, selector: str, value: str, timeout_ms: int | None = None) -> None:
        try:
            await self._page.fill(selector, value, timeout=self._timeout(timeout_ms))
        except PlaywrightTimeoutError as e:
            raise ActionFailed(f"Fill timed out: {selector}", url=self._page.url, cause=e) from e

    async def click_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        try:
            await self._page.click(selector, timeout=self._timeout(timeout_ms))
        except PlaywrightTimeoutError as e:
            raise ActionFailed(f"Click timed out: {selector}", url=self._page.url, cause=e) from e

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        try:
            await self._page.wait_for_selector(
                selector,
                state="attached",
                timeout=self._timeout(timeout_ms),
            )
        except PlaywrightTimeoutError as e:
            raise WaitTimeout(f"Timed out waiting for {selector}", url=self._page.url, cause=e) from e

    async def wait_for_function(
        self,
        script: str,
        arg: Any = None,
        timeout_ms: int | None = None,
    ) -> None:
        try:
            await self._page.wait_for_function(
                script,
                arg=arg,
                timeout=self._timeout(timeout_ms),
            )
        except PlaywrightTimeoutError as e:
            raise WaitTimeout("Timed out waiting for page condition", url=self._page.url, cause=e) from e

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def query_all(self, selector: str) -> list[ElementRef]:
        return await self._page.query_selector_all(selector)

    async def evaluate_on(self, element: ElementRef, script: str) -> Any:
        return await element.evaluate(script)

    async def scroll_into_view(self, element: ElementRef) -> None:
        await element.evaluate("(el) => el.scrollIntoView()")

    async def click(self, element: ElementRef, timeout_ms: int | None = None) -> None:
        try:
            await element.click(timeout=self._timeout(timeout_ms))
        except PlaywrightTimeoutError as e:
            raise ActionFailed("Click timed out", url=self._page.url, cause=e) from e

    async def close(self) -> None:
        if not self._page.is_closed():
            await self._page.close()


# =============================================================================
# PlaywrightBackend Implementation
# =============================================================================


class PlaywrightBackend(Backend):
    """Playwright-based browsing engine.

    Each instance owns its own browser process and a single browsing
    context, so concurrent harvest sessions never share DOM state.
    """

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        viewport_width: int = 1080,
        viewport_height: int = 1024,
        user_agent: str | None = None,
        stealth: bool = True,
        locale: str = "en-AU",
        action_timeout_ms: int = 10000,
        navigation_timeout_ms: int = 30000,
    ):
        """Initialize Playwright backend.

        Args:
            headless: Run browser in headless mode
            browser_type: Browser to use (chromium, firefox, webkit)
            viewport_width: Browser viewport width
            viewport_height: Browser viewport height
            user_agent: Custom user agent string
            stealth: Enable stealth mode for bot detection avoidance
            locale: Browser locale
            action_timeout_ms: Default timeout for actions and waits
            navigation_timeout_ms: Default timeout for navigation
        """
        self.headless = headless
        self.browser_type = browser_type
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.stealth = stealth
        self.locale = locale
        self.action_timeout_ms = action_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms

        self.user_agent = user_agent or (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/124.0.0.0 Safari/537.36"
        )

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @classmethod
    def from_config(cls, config: Any) -> "PlaywrightBackend":
        """Build a backend from a ``BrowserConfig``."""
        return cls(
            headless=config.headless,
            browser_type=config.browser,
            viewport_width=config.viewport_width,
            viewport_height=config.viewport_height,
            user_agent=config.user_agent,
            stealth=config.stealth,
            locale=config.locale,
            action_timeout_ms=config.action_timeout_ms,
            navigation_timeout_ms=config.navigation_timeout_ms,
        )

    @property
    def name(self) -> str:
        return "playwright"

    async def _ensure_browser(self) -> None:
        """Initialize browser if not already running."""
        if self._browser is not None and self._browser.is_connected():
            return

        self._playwright = await async_playwright().start()

        if self.browser_type == "firefox":
            browser_launcher = self._playwright.firefox
        elif self.browser_type == "webkit":
            browser_launcher = self._playwright.webkit
        else:
            browser_launcher = self._playwright.chromium

        launch_args = []
        if self.stealth and self.browser_type == "chromium":
            launch_args = [
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
                "--no-sandbox",
                "--disable-infobars",
                "--disable-extensions",
                f"--window-size={self.viewport_width},{self.viewport_height}",
            ]

        try:
            self._browser = await browser_launcher.launch(
                headless=self.headless,
                args=launch_args,
            )
        except Exception as e:
            raise BackendError(
                f"Failed to launch {self.browser_type} browser. "
                f"Run: playwright install {self.browser_type}",
                cause=e,
            ) from e

        logger.debug(f"Launched {self.browser_type} browser (headless={self.headless})")

    async def _ensure_context(self) -> BrowserContext:
        """Get or create the isolated browser context."""
        await self._ensure_browser()

        if self._context is not None:
            return self._context

        self._context = await self._browser.new_context(  # type: ignore[union-attr]
            viewport={"width": self.viewport_width, "height": self.viewport_height},
            user_agent=self.user_agent,
            locale=self.locale,
        )

        if self.stealth:
            await self._context.add_init_script(STEALTH_SCRIPT)

        return self._context

    async def new_page(self) -> PlaywrightPage:
        """Open a page in this backend's context."""
        context = await self._ensure_context()
        page = await context.new_page()
        page.set_default_timeout(self.action_timeout_ms)
        page.set_default_navigation_timeout(self.navigation_timeout_ms)
        return PlaywrightPage(page, default_timeout_ms=self.action_timeout_ms)

    async def close(self) -> None:
        """Close browser and clean up resources."""
        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Playwright backend closed")
