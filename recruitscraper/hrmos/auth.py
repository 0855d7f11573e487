from __future__ import annotations
import logging

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .errors import MissingCredentials
from .logging_config import log_event
from .models import Credentials
from .session import BrowserSession

logger = logging.getLogger('auth')

EMAIL_INPUT = 'input[name="email"]'
PASSWORD_INPUT = 'input[name="password"]'
SUBMIT_BUTTON = 'button[type="submit"]'


def _on_login_page(url: str) -> bool:
    return '/login' in (url or '')


def login(session: BrowserSession, credentials: Credentials) -> bool:
    """Log in if the console redirects to its login form.

    Returns True when the session ends up authenticated. A failed or flaky login
    only logs and returns False: downstream extractors tolerate an anonymous
    session and simply find nothing.
    """
    if not credentials or not credentials.email or not credentials.password:
        raise MissingCredentials('email and password are required')
    s = session.settings
    page = session.page
    logger.info(f"Starting login via {s.listing_url}")
    try:
        session.goto(s.listing_url, timeout_ms=s.login_nav_timeout_ms)
        if not _on_login_page(session.url):
            logger.info("Already authenticated")
            log_event('login_skip')
            return True

        logger.info("Redirected to login form; submitting credentials")
        page.wait_for_selector(EMAIL_INPUT, state='visible', timeout=s.selector_timeout_ms)
        page.wait_for_selector(PASSWORD_INPUT, state='visible', timeout=s.selector_timeout_ms)
        session.settle(min(s.settle_ms, 1000))
        page.fill(EMAIL_INPUT, '')
        page.fill(PASSWORD_INPUT, '')
        page.type(EMAIL_INPUT, credentials.email, delay=s.typing_delay_ms)
        page.type(PASSWORD_INPUT, credentials.password, delay=s.typing_delay_ms)
        session.settle(min(s.settle_ms, 1000))
        page.click(SUBMIT_BUTTON)
        try:
            page.wait_for_url(lambda u: not _on_login_page(u), wait_until='networkidle', timeout=s.login_nav_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("No navigation away from the login form")
        logger.info(f"URL after login: {session.url}")
        if _on_login_page(session.url):
            logger.error("Login failed: credentials rejected or bot detection triggered; continuing unauthenticated")
            log_event('login_soft_failure', url=session.url)
            return False
        logger.info("Login completed")
        log_event('login_complete')
        return True
    except Exception as e:
        logger.error(f"Error during login, continuing unauthenticated: {e}")
        log_event('login_soft_failure', message=str(e))
        return False
