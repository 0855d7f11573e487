"""Job listing extraction from the corporate listing root.

Three stages run as a cascade, each only when the previous produced nothing:
  A. anchor scan over the whole document
  B. table row scan
  C. per-company crawl of ``/corporates/{id}/jobs``
"""
from __future__ import annotations
from typing import Dict, List, Optional, Set
import logging

from .cascade import Strategy, first_match
from .errors import NavigationTimeout
from .logging_config import log_event
from .models import JobListing, UNKNOWN_TITLE
from .progress import NullProgress, ProgressTracker
from .session import BrowserSession
from .text_infer import infer_last_updated, infer_status, infer_title
from .urls import parse_job_ids, unique_company_ids

logger = logging.getLogger('listing')

# Probed before scrolling; only used for diagnostics
LISTING_PRESENCE_SELECTORS = [
    '.ng-star-inserted',
    'table tbody tr',
    '.job-list-item',
    '[data-test="job-list-item"]',
    'a[href*="/jobs/"]',
]

ANCHOR_SCAN_JS = """
() => Array.from(document.querySelectorAll('a'))
  .filter(a => (a.href || '').includes('/jobs/'))
  .map(a => {
    let context = '';
    let parent = a.parentElement;
    for (let i = 0; i < 3 && parent; i++) {
      context = parent.textContent || '';
      parent = parent.parentElement;
    }
    return { href: a.href, text: a.textContent || '', context };
  })
"""

TABLE_SCAN_JS = """
() => {
  const results = [];
  for (const table of document.querySelectorAll('table')) {
    for (const row of table.querySelectorAll('tr')) {
      for (const a of row.querySelectorAll('a[href*="/jobs/"]')) {
        results.push({ href: a.href, text: a.textContent || '', context: row.textContent || '' });
      }
    }
  }
  return results;
}
"""

CORPORATE_HREFS_JS = """
() => Array.from(document.querySelectorAll('a'))
  .map(a => a.href || '')
  .filter(href => href.includes('/corporates/'))
"""

JOB_LINKS_JS = """
() => Array.from(document.querySelectorAll('a[href*="/jobs/"]'))
  .map(a => ({ href: a.href, text: a.textContent || '', context: '' }))
"""


def build_listing(link: Dict[str, str], company_id: Optional[str] = None) -> Optional[JobListing]:
    """Turn one scanned link into a JobListing, or None when the URL has no job id."""
    url = link.get('href') or ''
    cid, job_id = parse_job_ids(url)
    if not job_id:
        return None
    text = link.get('text') or ''
    context = link.get('context') or ''
    combined = f"{text} {context}"
    return JobListing(
        title=infer_title(text, context, UNKNOWN_TITLE),
        url=url,
        status=infer_status(combined),
        last_updated=infer_last_updated(combined),
        company_id=company_id or cid,
        job_id=job_id,
    )


def collect_listings(links: List[Dict[str, str]], seen: Set[str], company_id: Optional[str] = None) -> List[JobListing]:
    """Build listings from raw links, skipping broken entries and URLs already in ``seen``."""
    out: List[JobListing] = []
    for link in links or []:
        try:
            listing = build_listing(link, company_id=company_id)
        except Exception as e:
            logger.warning(f"Failed to parse job link {link!r}: {e}")
            continue
        if listing is None or listing.url in seen:
            continue
        seen.add(listing.url)
        out.append(listing)
    return out


def _probe_listing_markup(session: BrowserSession):
    page = session.page
    for sel in LISTING_PRESENCE_SELECTORS:
        try:
            found = page.query_selector_all(sel)
        except Exception as e:
            logger.debug(f"Probe failed for '{sel}': {e}")
            continue
        if found:
            logger.info(f"Listing markup detected via '{sel}' ({len(found)} elements)")
            return
    logger.warning("No listing selector matched; the page structure may have changed")


def _anchor_scan(session: BrowserSession, seen: Set[str]) -> List[JobListing]:
    links = session.page.evaluate(ANCHOR_SCAN_JS)
    logger.info(f"Anchor scan found {len(links or [])} job links")
    return collect_listings(links, seen)


def _table_scan(session: BrowserSession, seen: Set[str]) -> List[JobListing]:
    logger.info("No job anchors; trying table rows")
    links = session.page.evaluate(TABLE_SCAN_JS)
    logger.info(f"Table scan found {len(links or [])} job links")
    return collect_listings(links, seen)


def _company_crawl(session: BrowserSession, seen: Set[str], progress: ProgressTracker) -> List[JobListing]:
    logger.info("No job links in tables; crawling company job pages")
    hrefs = session.page.evaluate(CORPORATE_HREFS_JS) or []
    company_ids = unique_company_ids(hrefs)
    logger.info(f"Company ids found: {len(company_ids)}")
    progress.update(total_companies=len(company_ids), processed_companies=0)
    out: List[JobListing] = []
    for i, cid in enumerate(company_ids, start=1):
        url = session.settings.company_jobs_url(cid)
        progress.update(current_company=cid)
        try:
            session.goto(url, timeout_ms=session.settings.company_nav_timeout_ms)
            session.settle()
            links = session.page.evaluate(JOB_LINKS_JS)
            found = collect_listings(links, seen, company_id=cid)
            logger.info(f"Company {cid}: {len(found)} job links")
            out.extend(found)
        except NavigationTimeout as e:
            logger.warning(f"Skipping company {cid}: {e}")
        except Exception as e:
            logger.error(f"Failed to list jobs for company {cid}: {e}")
        finally:
            progress.update(processed_companies=i)
    return out


def list_jobs(session: BrowserSession, progress: Optional[ProgressTracker] = None) -> List[JobListing]:
    """Scrape every job listing reachable from the corporate listing root.

    Never raises past this boundary except for an inactive session; an empty
    list is a valid outcome.
    """
    page = session.page
    progress = progress or NullProgress()
    s = session.settings
    progress.log('求人一覧の取得を開始します', status='求人一覧を取得中')
    seen: Set[str] = set()
    try:
        session.goto(s.listing_url)
        session.wait_for_ready()
        session.settle(s.listing_settle_ms)
        _probe_listing_markup(session)
        session.scroll_to_bottom()
        listings = first_match([
            Strategy('anchor_scan', lambda: _anchor_scan(session, seen)),
            Strategy('table_scan', lambda: _table_scan(session, seen)),
            Strategy('company_crawl', lambda: _company_crawl(session, seen, progress)),
        ], label='listing') or []
    except Exception as e:
        logger.error(f"Job listing scrape failed at {getattr(page, 'url', '')}: {e}")
        log_event('error', stage='list_jobs', message=str(e))
        progress.log(f'求人一覧の取得に失敗しました: {e}', status='エラー')
        return []
    logger.info(f"Collected {len(listings)} job listings")
    log_event('list_jobs_complete', count=len(listings))
    progress.log(f'{len(listings)}件の求人を取得しました', status='求人一覧の取得完了')
    return listings
