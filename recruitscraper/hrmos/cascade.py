"""Selector cascades.

A cascade is an ordered list of named strategies, each a zero-argument callable
returning a match or something falsy. ``first_match`` runs them in order and
returns the first non-empty result. A strategy that raises (missing element,
selector timeout, detached node) counts as "not found" and the next one runs.
"""
from __future__ import annotations
from typing import Any, Callable, Iterable, List, NamedTuple, Optional
import logging

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger('cascade')


class Strategy(NamedTuple):
    name: str
    run: Callable[[], Any]


def first_match(strategies: Iterable[Strategy], label: str = '') -> Optional[Any]:
    for strategy in strategies:
        try:
            result = strategy.run()
        except Exception as e:
            logger.debug(f"[{label}] strategy '{strategy.name}' failed: {e}")
            continue
        if result:
            logger.debug(f"[{label}] matched via '{strategy.name}'")
            return result
        logger.debug(f"[{label}] no match via '{strategy.name}'")
    return None


def safe_text(page, selector: str) -> str:
    try:
        el = page.query_selector(selector)
        if el:
            return (el.inner_text() or '').strip()
    except Exception:
        return ""
    return ""


def selector_strategies(page, selectors: List[str]) -> List[Strategy]:
    return [Strategy(sel, lambda sel=sel: safe_text(page, sel)) for sel in selectors]


def first_text(page, selectors: List[str], label: str = '') -> str:
    return first_match(selector_strategies(page, selectors), label=label) or ""


def wait_for_any(page, selectors: List[str], timeout_ms: int) -> Optional[str]:
    """Return the first selector that attaches within ``timeout_ms``; None when all time out."""
    for sel in selectors:
        try:
            if page.wait_for_selector(sel, timeout=timeout_ms, state='attached'):
                return sel
        except PlaywrightTimeoutError:
            logger.debug(f"Selector not found within {timeout_ms}ms: {sel}")
        except Exception as e:
            logger.debug(f"Selector wait failed for {sel}: {e}")
    return None


__all__ = ['Strategy', 'first_match', 'safe_text', 'selector_strategies', 'first_text', 'wait_for_any']
