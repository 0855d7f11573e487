"""Centralized settings with environment + runtime config overlay.
Provides typed accessors so timeouts and delays are not scattered as magic numbers.
"""
from __future__ import annotations
from pathlib import Path
import os, yaml
from dataclasses import dataclass
from typing import Optional

from .errors import MissingCredentials
from .models import Credentials

_RUNTIME_CACHE: dict | None = None

CONFIG_DIR = Path(__file__).resolve().parent.parent / 'config'

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

EMAIL_ENV = 'HRMOS_EMAIL'
PASSWORD_ENV = 'HRMOS_PASSWORD'


def _load_runtime() -> dict:
    global _RUNTIME_CACHE
    if _RUNTIME_CACHE is None:
        cfg_file = CONFIG_DIR / 'runtime.yml'
        if cfg_file.exists():
            try:
                _RUNTIME_CACHE = yaml.safe_load(cfg_file.read_text(encoding='utf-8')) or {}
            except Exception:
                _RUNTIME_CACHE = {}
        else:
            _RUNTIME_CACHE = {}
    return _RUNTIME_CACHE

def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is not None:
        try:
            return int(v)
        except ValueError:
            return default
    return int(_load_runtime().get(name.lower(), default))

def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is not None:
        return v
    return str(_load_runtime().get(name.lower(), default))

def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        v = _load_runtime().get(name.lower())
        if v is None:
            return default
        if isinstance(v, bool):
            return v
    return str(v).lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    base_url: str
    headless: bool
    nav_timeout_ms: int
    login_nav_timeout_ms: int
    company_nav_timeout_ms: int
    selector_timeout_ms: int
    nav_list_timeout_ms: int
    ready_timeout_ms: int
    settle_ms: int
    listing_settle_ms: int
    scroll_settle_ms: int
    typing_delay_ms: int
    scroll_step_px: int
    scroll_max_px: int
    viewport_width: int
    viewport_height: int
    user_agent: str
    blocked_resource_types: tuple
    output_dir: Path
    progress_log_max: int

    @property
    def listing_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/corporates"

    def company_jobs_url(self, company_id: str) -> str:
        return f"{self.listing_url}/{company_id}/jobs"

    def job_detail_url(self, company_id: str, job_id: str) -> str:
        return f"{self.company_jobs_url(company_id)}/{job_id}/detail"


def load_settings() -> Settings:
    blocked = _env_str('SCRAPER_BLOCKED_RESOURCES', 'image,media')
    return Settings(
        base_url=_env_str('HRMOS_BASE_URL', 'https://hrmos.co/agent'),
        headless=_env_bool('SCRAPER_HEADLESS', True),
        nav_timeout_ms=_env_int('SCRAPER_NAV_TIMEOUT_MS', 90000),
        login_nav_timeout_ms=_env_int('SCRAPER_LOGIN_NAV_TIMEOUT_MS', 60000),
        company_nav_timeout_ms=_env_int('SCRAPER_COMPANY_NAV_TIMEOUT_MS', 30000),
        selector_timeout_ms=_env_int('SCRAPER_SELECTOR_TIMEOUT_MS', 20000),
        nav_list_timeout_ms=_env_int('SCRAPER_NAV_LIST_TIMEOUT_MS', 10000),
        ready_timeout_ms=_env_int('SCRAPER_READY_TIMEOUT_MS', 60000),
        settle_ms=_env_int('SCRAPER_SETTLE_MS', 3000),
        listing_settle_ms=_env_int('SCRAPER_LISTING_SETTLE_MS', 8000),
        scroll_settle_ms=_env_int('SCRAPER_SCROLL_SETTLE_MS', 3000),
        typing_delay_ms=_env_int('SCRAPER_TYPING_DELAY_MS', 100),
        scroll_step_px=_env_int('SCRAPER_SCROLL_STEP_PX', 100),
        scroll_max_px=_env_int('SCRAPER_SCROLL_MAX_PX', 10000),
        viewport_width=_env_int('SCRAPER_VIEWPORT_WIDTH', 1920),
        viewport_height=_env_int('SCRAPER_VIEWPORT_HEIGHT', 1080),
        user_agent=_env_str('SCRAPER_USER_AGENT', DEFAULT_USER_AGENT),
        blocked_resource_types=tuple(t.strip() for t in blocked.split(',') if t.strip()),
        output_dir=Path(_env_str('SCRAPER_OUTPUT_DIR', 'recruitscraper/data/exports')),
        progress_log_max=_env_int('SCRAPER_PROGRESS_LOG_MAX', 200),
    )


def load_credentials(email: Optional[str] = None, password: Optional[str] = None) -> Credentials:
    """Resolve login credentials, explicit values first then the environment.

    Read at call time so a server picks up rotated values without restarting.
    Raises MissingCredentials when either value is absent.
    """
    email = email if email else os.getenv(EMAIL_ENV)
    password = password if password else os.getenv(PASSWORD_ENV)
    if not email or not password:
        raise MissingCredentials(
            f'ログイン情報が設定されていません。環境変数 {EMAIL_ENV} と {PASSWORD_ENV} を設定してください。'
        )
    return Credentials(email=email, password=password)


SETTINGS = load_settings()
