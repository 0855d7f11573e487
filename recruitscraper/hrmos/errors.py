"""Scraper error taxonomy.

Only the fatal set propagates to callers: NotInitialized, LaunchError and
MissingCredentials. NavigationTimeout is raised by the session's navigation
helper and caught by the extractors at the smallest enclosing loop scope.
"""
from __future__ import annotations


class ScraperError(Exception):
    """Base for all errors raised by the HRMOS scraping engine."""


class NotInitialized(ScraperError):
    def __init__(self, message: str = 'Browser not initialized'):
        super().__init__(message)


class LaunchError(ScraperError):
    pass


class MissingCredentials(ScraperError):
    pass


class NavigationTimeout(ScraperError):
    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Navigation to {url} timed out after {timeout_ms}ms")


__all__ = ['ScraperError', 'NotInitialized', 'LaunchError', 'MissingCredentials', 'NavigationTimeout']
