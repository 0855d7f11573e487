from __future__ import annotations
from typing import List, Optional, Sequence
import logging

from .cascade import Strategy, first_match, first_text
from .logging_config import log_event
from .models import JobDetail, JobListing, NOT_RETRIEVED, UNKNOWN_TITLE
from .listing import list_jobs
from .progress import NullProgress, ProgressTracker
from .session import BrowserSession
from .text_infer import collapse_ws, today_str

logger = logging.getLogger('detail')

TITLE_SELECTORS = ['h1', '.job-title', '.title', '[data-test="job-title"]']
DESCRIPTION_SELECTORS = [
    '.job-description',
    '[data-test="job-description"]',
    'table tr:has(th:has-text("仕事内容")) td',
]
REQUIREMENTS_SELECTORS = [
    '.job-requirements',
    '[data-test="job-requirements"]',
    'table tr:has(th:has-text("応募要件")) td',
]

# field -> header labels tried in order
LABELED_FIELDS = {
    'work_location': ('勤務地',),
    'employment_type': ('雇用形態',),
    'salary': ('給与',),
    'working_hours': ('勤務時間',),
    'holidays': ('休日・休暇',),
    'benefits': ('待遇・福利厚生', '福利厚生'),
    'last_updated': ('更新日', '最終更新日'),
}

TABLE_EXACT_JS = """
(label) => {
  for (const row of document.querySelectorAll('tr')) {
    const th = row.querySelector('th');
    if (th && (th.textContent || '').trim() === label) {
      const td = row.querySelector('td');
      return td ? (td.textContent || '').trim() : '';
    }
  }
  return '';
}
"""

DATA_LABEL_JS = """
(label) => {
  for (const el of document.querySelectorAll('[data-label]')) {
    if ((el.getAttribute('data-label') || '').includes(label)) {
      return (el.textContent || '').trim();
    }
  }
  return '';
}
"""


def _xpath_sibling_cell(page, label: str) -> str:
    el = page.query_selector(f'xpath=//th[contains(normalize-space(.), "{label}")]/following-sibling::td')
    return (el.inner_text() or '').strip() if el else ""


def table_value(page, label: str) -> str:
    """Three-tier labeled lookup: exact header, XPath contains, then data-label attribute."""
    try:
        value = first_match([
            Strategy('exact_header', lambda: (page.evaluate(TABLE_EXACT_JS, label) or '').strip()),
            Strategy('xpath_header', lambda: _xpath_sibling_cell(page, label)),
            Strategy('data_label', lambda: (page.evaluate(DATA_LABEL_JS, label) or '').strip()),
        ], label=f'table:{label}')
    except Exception as e:
        logger.error(f"Failed to read table value '{label}': {e}")
        return ""
    return value or ""


def labeled_value(page, labels: Sequence[str]) -> str:
    for label in labels:
        value = table_value(page, label)
        if value:
            return value
    return ""


def _resolve_title(page) -> str:
    def _document_title():
        return (page.title() or '').strip()
    title = first_match([
        Strategy('selectors', lambda: first_text(page, TITLE_SELECTORS, label='title')),
        Strategy('document_title', _document_title),
    ], label='title')
    return collapse_ws(title) or UNKNOWN_TITLE


def job_detail(session: BrowserSession, company_id: str, job_id: str) -> Optional[JobDetail]:
    """Scrape one job detail page; None when the page itself could not be loaded."""
    page = session.page
    url = session.settings.job_detail_url(company_id, job_id)
    logger.info(f"Fetching job detail {url}")
    try:
        session.goto(url)
        session.settle()
    except Exception as e:
        logger.error(f"Could not open job detail {url}: {e}")
        log_event('error', stage='job_detail', url=url, message=str(e))
        return None
    fields = {name: labeled_value(page, labels) for name, labels in LABELED_FIELDS.items()}
    detail = JobDetail(
        title=_resolve_title(page),
        description=first_text(page, DESCRIPTION_SELECTORS, label='description'),
        requirements=first_text(page, REQUIREMENTS_SELECTORS, label='requirements'),
        **fields,
    )
    if not detail.last_updated:
        detail.last_updated = today_str()
    return detail


def sample_detail(error: bool = False) -> JobDetail:
    """Placeholder shown when no listing could be found at all."""
    if error:
        return JobDetail(
            title='サンプル求人タイトル (sample, エラー発生)',
            description='スクレイピング中にエラーが発生しました。',
            requirements='特になし',
            work_location='不明',
            employment_type='不明',
            salary='不明',
            working_hours='不明',
            holidays='不明',
            benefits='不明',
            last_updated=today_str(),
        )
    return JobDetail(
        title='サンプル求人タイトル (sample)',
        description='これはサンプルの仕事内容です。実際のデータが取得できませんでした。',
        requirements='特になし',
        work_location='東京都内',
        employment_type='正社員',
        salary='年収400万円〜600万円',
        working_hours='9:00-18:00（休憩1時間）',
        holidays='完全週休2日制（土日）、祝日',
        benefits='各種社会保険完備',
        last_updated=today_str(),
    )


def unretrieved_detail(listing: JobListing) -> JobDetail:
    return JobDetail(
        title=listing.title,
        description=NOT_RETRIEVED,
        requirements=NOT_RETRIEVED,
        work_location=NOT_RETRIEVED,
        employment_type=NOT_RETRIEVED,
        salary=NOT_RETRIEVED,
        working_hours=NOT_RETRIEVED,
        holidays=NOT_RETRIEVED,
        benefits=NOT_RETRIEVED,
        last_updated=listing.last_updated or today_str(),
    )


def all_job_details(session: BrowserSession, progress: Optional[ProgressTracker] = None) -> List[JobDetail]:
    """List every job, then fetch its detail page.

    Always returns at least one record: a marked placeholder stands in when no
    listing was found or everything failed.
    """
    session.ensure_active()
    progress = progress or NullProgress()
    details: List[JobDetail] = []
    try:
        listings = list_jobs(session, progress=progress)
        logger.info(f"Job details to fetch: {len(listings)}")
        if not listings:
            logger.warning("No job listings found; returning sample record")
            progress.log('求人が見つかりませんでした。サンプルデータを使用します。', status='完了')
            return [sample_detail()]
        progress.update(total_jobs=len(listings), processed_jobs=0, status='求人詳細を取得中')
        for i, listing in enumerate(listings, start=1):
            progress.update(current_job=listing.title)
            try:
                if not listing.company_id or not listing.job_id:
                    logger.warning(f"Job {i}/{len(listings)} is missing ids; skipping")
                    continue
                logger.info(f"Job {i}/{len(listings)}: {listing.title}")
                detail = None
                try:
                    detail = job_detail(session, listing.company_id, listing.job_id)
                except Exception as e:
                    logger.error(f"Job detail {listing.job_id} failed: {e}")
                if detail is None:
                    logger.warning(f"Using listing data only for {listing.url}")
                    detail = unretrieved_detail(listing)
                details.append(detail)
            finally:
                progress.update(processed_jobs=i)
        if not details:
            logger.warning("Every listing was skipped; returning sample record")
            details.append(sample_detail())
        logger.info(f"Collected {len(details)} job details")
        log_event('job_details_complete', count=len(details))
        progress.log(f'{len(details)}件の求人詳細を取得しました', status='完了')
        return details
    except Exception as e:
        logger.error(f"Job detail scrape failed: {e}")
        log_event('error', stage='all_job_details', message=str(e))
        progress.log(f'求人詳細の取得中にエラーが発生しました: {e}', status='エラー')
        if not details:
            return [sample_detail(error=True)]
        return details
