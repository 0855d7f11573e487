"""Candidate tree walker: company -> job -> candidate.

Each level prefers the console's navigation list and falls back to broader
selectors when it is missing. Relationships come only from href path
segments; the markup carries no ids.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from .cascade import Strategy, first_match, first_text, wait_for_any
from .logging_config import log_event
from .models import CandidateInfo, UNKNOWN_NAME
from .progress import NullProgress, ProgressTracker
from .session import BrowserSession
from .text_infer import collapse_ws
from .urls import parse_candidate_ids, parse_job_ids, unique_company_ids

logger = logging.getLogger('candidates')

NAV_LIST = 'ul.nav-list'

COMPANY_LINK_SELECTORS = [
    'ul.nav-list a[href*="/corporates/"]',
    'nav a[href*="/corporates/"]',
    'a[href*="/corporates/"]',
]
JOB_LINK_SELECTORS = [
    'ul.nav-list a[href*="/jobs/"]',
    'nav a[href*="/jobs/"]',
    'a[href*="/jobs/"]',
]
CANDIDATE_NAV_SELECTOR = 'ul.nav-list li.user-item a[href*="/candidates/"]'
CANDIDATE_ROW_SELECTOR = '[class*="candidate"] .user-row'
CANDIDATE_ANY_SELECTOR = 'a[href*="/candidates/"]'
CANDIDATE_NAME_SELECTORS = ['.candidate-name', '.user-name', 'h1']
CANDIDATE_TABLE_ROW_SELECTORS = [
    '.candidate-detail table tr',
    '.detail-table tr',
    'table tr',
    '[role="row"]',
]

# header text -> CandidateInfo field
CANDIDATE_LABELS = {
    '職種分類': 'job_category',
    '職種': 'job_category',
    '業務内容': 'job_description',
    '仕事内容': 'job_description',
    '応募要件': 'requirements',
    '必要スキル': 'requirements',
    '最終更新日': 'last_updated',
    '更新日': 'last_updated',
}

LINKS_JS = """
(selector) => Array.from(document.querySelectorAll(selector))
  .map(a => ({ href: a.href || '', text: a.textContent || '' }))
"""

# Rows are components, not anchors; href and name come from the nested <a>
USER_ROWS_JS = """
(selector) => Array.from(document.querySelectorAll(selector))
  .map(row => {
    const a = row.matches('a[href]') ? row : row.querySelector('a[href]');
    const label = a ? (a.textContent || '').trim() : '';
    return { href: a ? a.href : '', text: label || row.textContent || '' };
  })
  .filter(item => item.href)
"""

TABLE_ROWS_JS = """
(selector) => Array.from(document.querySelectorAll(selector))
  .map(row => {
    const head = row.querySelector('th, dt, .label, [role="rowheader"]');
    const cell = row.querySelector('td, dd, .value, [role="cell"]');
    return [head ? (head.textContent || '').trim() : '', cell ? (cell.textContent || '').trim() : ''];
  })
  .filter(pair => pair[0])
"""


def map_candidate_rows(rows: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Map (header, value) rows onto candidate fields; the first non-empty value per field wins."""
    out: Dict[str, str] = {}
    for row in rows or []:
        try:
            header, value = row[0], row[1]
        except (IndexError, TypeError):
            continue
        field = CANDIDATE_LABELS.get(collapse_ws(header))
        if not field or out.get(field):
            continue
        value = (value or '').strip()
        if value:
            out[field] = value
    return out


def _links(page, selector: str, js: str = LINKS_JS) -> List[Dict[str, str]]:
    return page.evaluate(js, selector) or []


def _links_cascade(page, selectors: List[str], accept, label: str) -> List[Dict[str, str]]:
    def _run(sel):
        return [link for link in _links(page, sel) if accept(link.get('href', ''))]
    return first_match([Strategy(sel, lambda sel=sel: _run(sel)) for sel in selectors], label=label) or []


def discover_companies(session: BrowserSession) -> List[str]:
    page = session.page
    session.goto(session.settings.listing_url)
    session.settle()
    if not wait_for_any(page, [NAV_LIST], session.settings.nav_list_timeout_ms):
        logger.warning("Company navigation list not found; falling back to broader selectors")
    links = _links_cascade(page, COMPANY_LINK_SELECTORS, lambda h: '/corporates/' in h, label='companies')
    return unique_company_ids([link['href'] for link in links], exclude_job_links=False)


def discover_jobs(session: BrowserSession, company_id: str) -> List[Tuple[str, str]]:
    """(job_id, label) pairs for one company, in page order."""
    page = session.page
    session.goto(session.settings.company_jobs_url(company_id))
    session.settle()
    if not wait_for_any(page, [NAV_LIST], session.settings.nav_list_timeout_ms):
        logger.warning(f"Job navigation list not found for company {company_id}")

    def _belongs(href: str) -> bool:
        cid, jid = parse_job_ids(href)
        return bool(jid) and cid in ('', company_id)

    jobs: List[Tuple[str, str]] = []
    seen = set()
    for link in _links_cascade(page, JOB_LINK_SELECTORS, _belongs, label=f'jobs:{company_id}'):
        _, jid = parse_job_ids(link['href'])
        if jid in seen:
            continue
        seen.add(jid)
        jobs.append((jid, collapse_ws(link.get('text')) or jid))
    return jobs


def discover_candidates(session: BrowserSession, company_id: str, job_id: str) -> List[Dict[str, str]]:
    """Candidate links for a job with their parsed ids, deduplicated by id pair."""
    page = session.page
    session.goto(session.settings.job_detail_url(company_id, job_id))
    session.settle()
    wait_for_any(page, [NAV_LIST], session.settings.nav_list_timeout_ms)

    def _has_candidate(href: str) -> bool:
        return bool(parse_candidate_ids(href)[0])

    def _user_rows():
        return [r for r in _links(page, CANDIDATE_ROW_SELECTOR, USER_ROWS_JS) if _has_candidate(r['href'])]

    links = first_match([
        Strategy('nav_user_items', lambda: [l for l in _links(page, CANDIDATE_NAV_SELECTOR) if _has_candidate(l['href'])]),
        Strategy('user_rows', _user_rows),
        Strategy('any_candidate_link', lambda: [l for l in _links(page, CANDIDATE_ANY_SELECTOR) if _has_candidate(l['href'])]),
    ], label=f'candidates:{job_id}') or []

    out: List[Dict[str, str]] = []
    seen = set()
    for link in links:
        cand_id, detail_id = parse_candidate_ids(link['href'])
        if (cand_id, detail_id) in seen:
            continue
        seen.add((cand_id, detail_id))
        out.append({
            'href': link['href'],
            'text': collapse_ws(link.get('text')),
            'candidate_id': cand_id,
            'candidate_detail_id': detail_id,
        })
    return out


def candidate_detail(session: BrowserSession, link: Dict[str, str], company_id: str, job_id: str) -> CandidateInfo:
    page = session.page
    session.goto(link['href'])
    session.settle()
    rows = first_match(
        [Strategy(sel, lambda sel=sel: page.evaluate(TABLE_ROWS_JS, sel)) for sel in CANDIDATE_TABLE_ROW_SELECTORS],
        label='candidate_table',
    ) or []
    fields = map_candidate_rows(rows)
    name = link.get('text') or first_text(page, CANDIDATE_NAME_SELECTORS, label='candidate_name') or UNKNOWN_NAME
    return CandidateInfo(
        name=collapse_ws(name),
        url=link['href'],
        company_id=company_id,
        job_id=job_id,
        candidate_id=link.get('candidate_id', ''),
        candidate_detail_id=link.get('candidate_detail_id', ''),
        **fields,
    )


def all_candidates(session: BrowserSession, progress: Optional[ProgressTracker] = None) -> List[CandidateInfo]:
    """Walk every company, job and candidate reachable from the listing root.

    Failures at any level skip that item and move to its next sibling.
    """
    session.ensure_active()
    progress = progress or NullProgress()
    results: List[CandidateInfo] = []
    try:
        progress.log('候補者情報の取得を開始します', status='企業一覧を取得中')
        company_ids = discover_companies(session)
        logger.info(f"Companies found: {len(company_ids)}")
        progress.update(total_companies=len(company_ids), processed_companies=0, status='候補者情報を取得中')
        total_jobs = 0
        processed_jobs = 0
        total_candidates = 0
        processed_candidates = 0
        for ci, company_id in enumerate(company_ids, start=1):
            progress.update(current_company=company_id)
            try:
                jobs = discover_jobs(session, company_id)
            except Exception as e:
                logger.error(f"Company {company_id} failed: {e}")
                progress.log(f'企業 {company_id} の処理に失敗しました')
                progress.update(processed_companies=ci)
                continue
            logger.info(f"Company {company_id}: {len(jobs)} jobs")
            total_jobs += len(jobs)
            progress.update(total_jobs=total_jobs)
            for job_id, job_label in jobs:
                progress.update(current_job=job_label)
                try:
                    links = discover_candidates(session, company_id, job_id)
                    logger.info(f"Job {company_id}/{job_id}: {len(links)} candidates")
                    total_candidates += len(links)
                    progress.update(total_candidates=total_candidates)
                    for link in links:
                        progress.update(current_candidate=link['text'] or link['candidate_id'])
                        try:
                            results.append(candidate_detail(session, link, company_id, job_id))
                        except Exception as e:
                            logger.error(f"Candidate {link['href']} failed: {e}")
                        finally:
                            processed_candidates += 1
                            progress.update(processed_candidates=processed_candidates)
                except Exception as e:
                    logger.error(f"Job {company_id}/{job_id} failed: {e}")
                finally:
                    processed_jobs += 1
                    progress.update(processed_jobs=processed_jobs)
            progress.update(processed_companies=ci)
            progress.log(f'企業 {company_id} の処理が完了しました')
    except Exception as e:
        logger.error(f"Candidate scrape failed: {e}")
        log_event('error', stage='all_candidates', message=str(e))
        progress.log(f'候補者情報の取得中にエラーが発生しました: {e}', status='エラー')
        return results
    logger.info(f"Collected {len(results)} candidates")
    log_event('candidates_complete', count=len(results))
    progress.log(f'{len(results)}件の候補者情報を取得しました', status='完了')
    return results
