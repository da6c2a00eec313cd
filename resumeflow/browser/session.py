"""Headless browser lifecycle with one isolated context per task."""
import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from ..core.errors import SessionAcquisitionFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BrowserSessionManager:
    """Owns one Playwright browser and hands out per-task page contexts.

    Playwright's sync API is bound to the thread that started it, so each
    consumer thread constructs its own manager.
    """

    def __init__(
        self,
        headless: bool = True,
        cdp_url: Optional[str] = None,
        launch_retries: int = 3,
        retry_delay: float = 2.0,
        navigation_timeout_ms: int = 30000,
        user_agent: Optional[str] = None,
        playwright_factory: Callable[[], Playwright] = lambda: sync_playwright().start(),
    ) -> None:
        """Initialize session manager settings.

        Args:
            headless: Launch Chromium without a window.
            cdp_url: Attach to a running Chrome over CDP instead of launching.
            launch_retries: Maximum launch/connect attempts.
            retry_delay: Base delay between retries in seconds.
            navigation_timeout_ms: Default navigation timeout for new pages.
            user_agent: Optional user agent override for new contexts.
            playwright_factory: Starts the Playwright driver.
        """
        self.headless = headless
        self.cdp_url = cdp_url
        self.launch_retries = launch_retries
        self.retry_delay = retry_delay
        self.navigation_timeout_ms = navigation_timeout_ms
        self.user_agent = user_agent
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    def _launch(self) -> Browser:
        """Start or reuse the browser with exponential backoff retry.

        Raises:
            SessionAcquisitionFailure: If every attempt fails.
        """
        if self.is_running:
            return self._browser
        if self._playwright or self._browser:
            # Browser went away; only one sync driver may run per thread
            logger.warning("Browser disconnected, restarting")
            self._cleanup()

        last_error: Optional[Exception] = None
        for attempt in range(self.launch_retries):
            wait_time = min(self.retry_delay * (2**attempt), 30)
            try:
                self._playwright = self._playwright_factory()
                if self.cdp_url:
                    self._browser = self._playwright.chromium.connect_over_cdp(self.cdp_url)
                    logger.info(f"Connected to Chrome at {self.cdp_url}")
                else:
                    self._browser = self._playwright.chromium.launch(headless=self.headless)
                    logger.info("Launched Chromium")
                return self._browser
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Browser start attempt {attempt + 1}/{self.launch_retries} failed: {e}"
                )
                self._cleanup()
                if attempt < self.launch_retries - 1:
                    time.sleep(wait_time)

        logger.error("Failed to start browser after all retries")
        raise SessionAcquisitionFailure(f"Browser unavailable: {last_error}")

    def _new_context(self, browser: Browser) -> BrowserContext:
        try:
            if self.user_agent:
                return browser.new_context(user_agent=self.user_agent)
            return browser.new_context()
        except Exception as e:
            # A dead browser is relaunched on the next task
            self._cleanup()
            raise SessionAcquisitionFailure(f"Could not create browser context: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Page]:
        """Yield a fresh page in its own context; the context is always closed.

        Raises:
            SessionAcquisitionFailure: If the browser or context is unavailable.
        """
        browser = self._launch()
        context = self._new_context(browser)
        try:
            try:
                page = context.new_page()
            except Exception as e:
                raise SessionAcquisitionFailure(f"Could not open page: {e}") from e
            page.set_default_navigation_timeout(self.navigation_timeout_ms)
            yield page
        finally:
            try:
                context.close()
            except Exception as e:
                logger.debug(f"Context close error: {e}")

    def with_session(self, fn: Callable[[Page], T]) -> T:
        """Run fn(page) inside a scoped session."""
        with self.session() as page:
            return fn(page)

    def _cleanup(self) -> None:
        """Clean up playwright resources."""
        if self._browser:
            try:
                self._browser.close()
            except Exception as e:
                logger.debug(f"Browser close error: {e}")
        if self._playwright:
            try:
                self._playwright.stop()
            except Exception as e:
                logger.debug(f"Playwright stop error: {e}")
        self._playwright = None
        self._browser = None

    def close(self) -> None:
        """Shut down the browser."""
        if self._playwright or self._browser:
            logger.info("Closing browser")
        self._cleanup()

    def __enter__(self) -> "BrowserSessionManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
