"""Global pytest fixtures.
 - Sets env vars to disable logging side effects before the package is imported.
 - Provides a FakePage emulating the slice of Playwright's sync Page the scraper uses.
 - Provides fast settings (no settle delays) pointed at a fake host.
"""
from __future__ import annotations
import os
import sys, pathlib
from dataclasses import replace

os.environ.setdefault('SCRAPER_DISABLE_FILE_LOGS', '1')
os.environ.setdefault('SCRAPER_DISABLE_EVENTS', '1')

# Add project root to sys.path for tests
ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

BASE = 'https://hrmos.test/agent'


class FakeElement:
    def __init__(self, text: str = '', attrs: dict | None = None):
        self.text = text
        self.attrs = attrs or {}

    def inner_text(self):
        return self.text

    def get_attribute(self, name):
        return self.attrs.get(name)


class FakeState:
    """What one URL renders: script results, selector matches, document title."""

    def __init__(self, scripts=None, elements=None, title='', redirect=None, error=None):
        self.scripts = scripts or {}
        self.elements = elements or {}
        self.title = title
        self.redirect = redirect
        self.error = error


class FakePage:
    def __init__(self):
        self.url = 'about:blank'
        self.states: dict[str, FakeState] = {}
        self.state = FakeState()
        self.visits: list[str] = []
        self.evaluated: list[str] = []
        self.typed: dict[str, str] = {}
        self.clicked: list[str] = []
        self.on_click: dict[str, str] = {}
        self.waited_ms = 0

    # configuration helpers
    def add(self, url, **kwargs) -> FakeState:
        st = FakeState(**kwargs)
        self.states[url] = st
        return st

    def _load(self, url):
        st = self.states.get(url, FakeState())
        if st.redirect:
            return self._load(st.redirect)
        self.url = url
        self.state = st

    # Playwright Page surface
    def goto(self, url, wait_until=None, timeout=None):
        self.visits.append(url)
        st = self.states.get(url)
        if st is not None and st.error is not None:
            raise st.error
        self._load(url)

    def wait_for_timeout(self, ms):
        self.waited_ms += ms

    def wait_for_function(self, script, timeout=None):
        return True

    def wait_for_load_state(self, state=None, timeout=None):
        return None

    def evaluate(self, script, arg=None):
        self.evaluated.append(script)
        value = self.state.scripts.get(script)
        if callable(value):
            return value(arg)
        return value

    def _matches(self, selector):
        value = self.state.elements.get(selector)
        if value is None:
            return []
        if isinstance(value, list):
            return [v if isinstance(v, FakeElement) else FakeElement(v) for v in value]
        return [value if isinstance(value, FakeElement) else FakeElement(value)]

    def query_selector(self, selector):
        found = self._matches(selector)
        return found[0] if found else None

    def query_selector_all(self, selector):
        return self._matches(selector)

    def wait_for_selector(self, selector, timeout=None, state=None):
        found = self.query_selector(selector)
        if found is None:
            raise PlaywrightTimeoutError(f'Timeout {timeout}ms exceeded waiting for {selector}')
        return found

    def title(self):
        return self.state.title

    def fill(self, selector, value):
        self.typed[selector] = value

    def type(self, selector, text, delay=None):
        self.typed[selector] = self.typed.get(selector, '') + text

    def click(self, selector):
        self.clicked.append(selector)
        target = self.on_click.get(selector)
        if target:
            self.goto(target)

    def wait_for_url(self, url, wait_until=None, timeout=None):
        ok = url(self.url) if callable(url) else self.url == url
        if not ok:
            raise PlaywrightTimeoutError(f'Timeout {timeout}ms exceeded waiting for URL')


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def test_settings(tmp_path):
    from recruitscraper.hrmos.settings import load_settings
    return replace(
        load_settings(),
        base_url=BASE,
        settle_ms=0,
        listing_settle_ms=0,
        scroll_settle_ms=0,
        typing_delay_ms=0,
        nav_list_timeout_ms=1,
        selector_timeout_ms=1,
        output_dir=tmp_path / 'exports',
    )


@pytest.fixture
def session(fake_page, test_settings):
    from recruitscraper.hrmos.session import BrowserSession
    return BrowserSession.attach(fake_page, test_settings)
