"""Id recovery from HRMOS URL path segments.

The console never exposes ids in the markup, only in hrefs shaped like
``/agent/corporates/{companyId}/jobs/{jobId}/candidates/{candidateId}/{detailId}``.
Every helper here returns empty strings when a segment is missing.
"""
from __future__ import annotations
from typing import List, Tuple
from urllib.parse import urlsplit

_DETAIL_WORDS = {'detail', 'details'}


def path_segments(url: str) -> List[str]:
    if not url:
        return []
    try:
        path = urlsplit(url).path
    except ValueError:
        return []
    return path.split('/')


def _after(parts: List[str], marker: str) -> str:
    try:
        idx = parts.index(marker)
    except ValueError:
        return ""
    if idx + 1 < len(parts):
        return parts[idx + 1]
    return ""


def company_id_from_url(url: str) -> str:
    return _after(path_segments(url), 'corporates')


def parse_job_ids(url: str) -> Tuple[str, str]:
    """Return (company_id, job_id) for a ``.../corporates/{c}/jobs/{j}`` URL.

    Without a ``jobs`` segment both ids are empty. The company id is read after
    ``corporates`` when present, otherwise from the segment preceding ``jobs``.
    """
    parts = path_segments(url)
    if 'jobs' not in parts:
        return "", ""
    idx = parts.index('jobs')
    job_id = parts[idx + 1] if idx + 1 < len(parts) else ""
    company_id = _after(parts, 'corporates')
    if not company_id and idx > 0:
        company_id = parts[idx - 1]
    return company_id, job_id


def parse_candidate_ids(url: str) -> Tuple[str, str]:
    """Return (candidate_id, candidate_detail_id); a literal detail/details segment is skipped."""
    parts = path_segments(url)
    if 'candidates' not in parts:
        return "", ""
    idx = parts.index('candidates')
    rest = [p for p in parts[idx + 1:] if p]
    candidate_id = rest[0] if rest else ""
    detail_parts = [p for p in rest[1:] if p.lower() not in _DETAIL_WORDS]
    return candidate_id, detail_parts[0] if detail_parts else ""


def unique_company_ids(hrefs: List[str], exclude_job_links: bool = True) -> List[str]:
    """Distinct company ids from ``/corporates/`` links, in first-seen order."""
    seen: List[str] = []
    for href in hrefs:
        href = href or ''
        if '/corporates/' not in href:
            continue
        if exclude_job_links and '/jobs/' in href:
            continue
        cid = company_id_from_url(href)
        if cid and cid not in seen:
            seen.append(cid)
    return seen
