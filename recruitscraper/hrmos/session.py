"""Headless browser session owning exactly one Playwright page.

Usage:
    with BrowserSession(SETTINGS) as session:
        login(session, credentials)
        jobs = list_jobs(session)

``stop`` is idempotent and never raises, so it is safe on every exit path.
"""
from __future__ import annotations
from typing import Any, Optional, TYPE_CHECKING
import logging

from playwright.sync_api import sync_playwright, TimeoutError as PlaywrightTimeoutError

from .errors import LaunchError, NavigationTimeout, NotInitialized
from .logging_config import log_event
from .settings import SETTINGS, Settings

if TYPE_CHECKING:  # pragma: no cover
    from playwright.sync_api import Browser, BrowserContext, Page, Playwright, Route

logger = logging.getLogger('session')

LAUNCH_ARGS = [
    '--start-maximized',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--disable-gpu',
    '--window-size=1920,1080',
]

READY_STATE_JS = "() => document.readyState === 'complete'"

# Resolves once the page has been scrolled to the bottom or max_px, whichever comes first
SCROLL_TO_BOTTOM_JS = """
async ([step, maxPx]) => {
  await new Promise((resolve) => {
    let total = 0;
    const timer = setInterval(() => {
      const height = document.body.scrollHeight;
      window.scrollBy(0, step);
      total += step;
      if (total >= height || total > maxPx) {
        clearInterval(timer);
        resolve();
      }
    }, 100);
  });
}
"""


class BrowserSession:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or SETTINGS
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._attached = False

    @classmethod
    def attach(cls, page: Any, settings: Optional[Settings] = None) -> 'BrowserSession':
        """Wrap a page owned by someone else; ``stop`` then only drops the reference."""
        session = cls(settings)
        session._page = page
        session._attached = True
        return session

    # ----- lifecycle -----
    def start(self) -> 'BrowserSession':
        if self._page is not None:
            return self
        s = self.settings
        logger.info(f"Launching browser headless={s.headless}")
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=s.headless, args=LAUNCH_ARGS)
            self._context = self._browser.new_context(
                viewport={'width': s.viewport_width, 'height': s.viewport_height},
                user_agent=s.user_agent,
                java_script_enabled=True,
            )
            self._context.set_default_timeout(s.nav_timeout_ms)
            self._context.set_default_navigation_timeout(s.nav_timeout_ms)
            self._page = self._context.new_page()
            if s.blocked_resource_types:
                self._page.route('**/*', self._filter_request)
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            log_event('error', stage='launch', message=str(e))
            self.stop()
            raise LaunchError(f"Failed to launch browser: {e}") from e
        log_event('session_start', headless=s.headless)
        logger.info("Browser ready")
        return self

    def stop(self):
        if self._attached:
            self._page = None
            return
        for name, closer in (
            ('page', lambda: self._page.close() if self._page else None),
            ('context', lambda: self._context.close() if self._context else None),
            ('browser', lambda: self._browser.close() if self._browser else None),
            ('playwright', lambda: self._playwright.stop() if self._playwright else None),
        ):
            try:
                closer()
            except Exception as e:
                logger.error(f"Error closing {name}: {e}")
        was_open = self._browser is not None
        self._page = self._context = self._browser = self._playwright = None
        if was_open:
            logger.info("Browser closed")
            log_event('session_stop')

    def __enter__(self) -> 'BrowserSession':
        return self.start()

    def __exit__(self, *exc):
        self.stop()
        return False

    @property
    def active(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> 'Page':
        if self._page is None:
            raise NotInitialized()
        return self._page

    def ensure_active(self):
        if self._page is None:
            raise NotInitialized()

    def _filter_request(self, route: 'Route'):
        try:
            if route.request.resource_type in self.settings.blocked_resource_types:
                route.abort()
            else:
                route.continue_()
        except Exception:
            logger.debug("Request filter failed", exc_info=True)

    # ----- navigation helpers -----
    def goto(self, url: str, timeout_ms: Optional[int] = None, wait_until: str = 'networkidle'):
        timeout_ms = timeout_ms or self.settings.nav_timeout_ms
        logger.debug(f"Navigating to {url}")
        try:
            self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(url, timeout_ms) from e
        logger.debug(f"Current URL: {self.page.url}")

    def settle(self, ms: Optional[int] = None):
        ms = self.settings.settle_ms if ms is None else ms
        if ms > 0:
            self.page.wait_for_timeout(ms)

    def wait_for_ready(self) -> bool:
        try:
            self.page.wait_for_function(READY_STATE_JS, timeout=self.settings.ready_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.warning("document.readyState never reached 'complete'")
            return False

    def scroll_to_bottom(self):
        s = self.settings
        try:
            self.page.evaluate(SCROLL_TO_BOTTOM_JS, [s.scroll_step_px, s.scroll_max_px])
        except Exception as e:
            logger.warning(f"Scrolling failed: {e}")
        self.settle(s.scroll_settle_ms)

    @property
    def url(self) -> str:
        return self.page.url
