"""Playwright browser management for fetching product pages.

``BrowserManager`` owns the Playwright process, one Chromium browser and
one browser context for the lifetime of a crawl. Request headers and the
user-agent are passed into the context explicitly from configuration
rather than kept as process-wide state, so two managers built from two
configs never share headers.

Anti-Bot Measures:
    - Disables the navigator.webdriver flag
    - Randomizes viewport dimensions within realistic bounds
    - Applies timing jitter before each navigation
    - Picks the user-agent from a configurable pool
"""

import asyncio
import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Self

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config.settings import GlobalConfig, get_config
from productscout.exceptions import BrowserInitializationError, NavigationError
from productscout.logger import get_logger

log = get_logger(__name__)

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
]

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
});
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en'],
});
window.chrome = {
    runtime: {},
};
"""


class BrowserManager:
    """Manages the Playwright browser used to fetch product pages.

    Attributes:
        config: GlobalConfig instance for runtime configuration.
        user_agent: User-agent string sent for this session.

    Example:
        async with BrowserManager.create() as browser:
            page = await browser.new_page()
            await browser.navigate(page, "https://www.amazon.com/dp/B000000000")
            html = await page.content()
    """

    def __init__(self, config: GlobalConfig) -> None:
        """Prefer ``create()``, which also launches and cleans up the browser."""
        self.config = config
        self.user_agent: str = random.choice(config.user_agents)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @classmethod
    @asynccontextmanager
    async def create(
        cls, config: GlobalConfig | None = None
    ) -> AsyncGenerator[Self, None]:
        """Launch a browser for the duration of the ``async with`` block.

        Args:
            config: Optional GlobalConfig. Uses singleton if not provided.

        Yields:
            Initialized BrowserManager instance.

        Raises:
            BrowserInitializationError: If browser launch fails.
        """
        if config is None:
            config = get_config()

        instance = cls(config)
        try:
            await instance._initialize()
            yield instance
        finally:
            await instance._cleanup()

    async def _initialize(self) -> None:
        """Start Playwright, launch Chromium and open the browser context.

        Raises:
            BrowserInitializationError: If any initialization step fails.
        """
        log.info("Initializing browser", headless=self.config.headless)

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=LAUNCH_ARGS,
            )
            self._context = await self._browser.new_context(
                viewport={
                    "width": random.randint(1280, 1920),
                    "height": random.randint(720, 1080),
                },
                user_agent=self.user_agent,
                extra_http_headers=dict(self.config.request_headers),
                locale="en-US",
                java_script_enabled=True,
            )
            await self._context.add_init_script(STEALTH_SCRIPT)
        except Exception as exc:
            await self._cleanup()
            raise BrowserInitializationError(
                reason=str(exc), browser_type="chromium"
            ) from exc

        log.info("Browser initialized", user_agent=self.user_agent[:50] + "...")

    async def new_page(self) -> Page:
        """Open a new tab in the shared browser context.

        Raises:
            BrowserInitializationError: If the context is not initialized.
        """
        if self._context is None:
            raise BrowserInitializationError(
                reason="Browser context not initialized", browser_type="chromium"
            )

        page = await self._context.new_page()
        page.set_default_timeout(self.config.request_timeout_ms)
        page.set_default_navigation_timeout(self.config.request_timeout_ms)
        return page

    async def navigate(
        self,
        page: Page,
        url: str,
        wait_until: str = "domcontentloaded",
    ) -> int:
        """Load ``url`` in ``page`` and require a successful response.

        Args:
            page: Playwright Page instance.
            url: Product link to load.
            wait_until: Navigation wait condition (load, domcontentloaded, networkidle).

        Returns:
            The HTTP status code of the response.

        Raises:
            NavigationError: On transport failure, timeout, missing
                response, or a non-2xx status.
        """
        jitter_ms = random.randint(
            self.config.navigation_jitter_min_ms, self.config.navigation_jitter_max_ms
        )
        await asyncio.sleep(jitter_ms / 1000)

        log.debug("Navigating to URL", url=url, wait_until=wait_until)

        try:
            response = await page.goto(url, wait_until=wait_until)
        except PlaywrightTimeoutError as exc:
            raise NavigationError(
                url=url,
                reason=f"Navigation timeout after {self.config.request_timeout_ms}ms",
            ) from exc
        except Exception as exc:
            raise NavigationError(url=url, reason=str(exc)) from exc

        if response is None:
            raise NavigationError(url=url, reason="No response received")

        status_code = response.status
        if not 200 <= status_code < 300:
            raise NavigationError(
                url=url,
                reason=f"HTTP {status_code}",
                status_code=status_code,
            )

        log.info("Navigation successful", url=url, status_code=status_code)
        return status_code

    async def _cleanup(self) -> None:
        """Close resources in reverse initialization order."""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:
                log.warning("Error closing context", error=str(exc))
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                log.warning("Error closing browser", error=str(exc))
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.warning("Error stopping playwright", error=str(exc))
            self._playwright = None

        log.info("Browser resources cleaned up")

    @property
    def is_initialized(self) -> bool:
        """Check if browser is fully initialized and ready."""
        return all([
            self._playwright is not None,
            self._browser is not None,
            self._context is not None,
        ])
