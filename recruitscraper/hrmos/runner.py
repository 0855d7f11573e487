"""One scoped scrape: acquire session, log in, extract, export, release.

The session is released on every exit path. Fatal errors (missing
credentials, browser launch failure) propagate to the caller; anything else
raised while scraping becomes a ``success=False`` result.
"""
from __future__ import annotations
from typing import Callable, Dict, Optional
import logging
import time

from .auth import login
from .candidates import all_candidates
from .detail import all_job_details
from .errors import ScraperError
from .exporter import Exporter
from .listing import list_jobs
from .logging_config import log_event
from .models import Credentials, ScrapeResult
from .progress import NullProgress, ProgressTracker
from .session import BrowserSession
from .settings import SETTINGS, Settings, load_credentials

logger = logging.getLogger('runner')

EXTRACTORS: Dict[str, Callable] = {
    'jobs': list_jobs,
    'details': all_job_details,
    'candidates': all_candidates,
}

SessionFactory = Callable[[Settings], BrowserSession]


def _success_message(kind: str, count: int) -> str:
    if kind == 'details':
        return f'{count}件の求人詳細のスクレイピングが完了しました'
    if kind == 'candidates':
        return '候補者情報のスクレイピングが完了しました'
    if count == 0:
        return '求人データが取得できませんでした'
    return 'スクレイピングが完了しました'


def run_scrape(
    kind: str,
    credentials: Optional[Credentials] = None,
    settings: Optional[Settings] = None,
    progress: Optional[ProgressTracker] = None,
    exporter: Optional[Exporter] = None,
    session_factory: SessionFactory = BrowserSession,
) -> ScrapeResult:
    if kind not in EXTRACTORS:
        raise ValueError(f"Unknown scrape kind: {kind}")
    settings = settings or SETTINGS
    progress = progress or NullProgress()
    # Checked before any browser work
    credentials = credentials or load_credentials()
    exporter = exporter or Exporter(settings.output_dir)
    started = time.perf_counter()
    logger.info(f"Starting {kind} scrape")
    log_event('scrape_start', kind=kind)
    progress.reset(status='ブラウザを初期化しています')
    try:
        with session_factory(settings) as session:
            progress.log('ログインを実行しています', status='ログイン中')
            login(session, credentials)
            records = EXTRACTORS[kind](session, progress=progress)
            csv_path = exporter.export(records, kind)
    except ScraperError:
        progress.log('致命的なエラーが発生しました', status='エラー')
        raise
    except Exception as e:
        logger.error(f"{kind} scrape failed: {e}")
        log_event('error', stage='run_scrape', kind=kind, message=str(e))
        progress.log(f'スクレイピング中にエラーが発生しました: {e}', status='エラー')
        return ScrapeResult(
            success=False,
            message='スクレイピング中にエラーが発生しました',
            error=str(e) or type(e).__name__,
            data=[],
            count=0,
        )
    elapsed = round(time.perf_counter() - started, 1)
    logger.info(f"{kind} scrape finished: {len(records)} records in {elapsed}s -> {csv_path}")
    log_event('scrape_complete', kind=kind, count=len(records), elapsed_s=elapsed)
    return ScrapeResult(
        success=True,
        message=_success_message(kind, len(records)),
        data=[r.model_dump(by_alias=True) for r in records],
        count=len(records),
        csv_path=str(csv_path),
    )
