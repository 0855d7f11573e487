"""Status and date inference from the free text surrounding a job link."""
from __future__ import annotations
from datetime import date
from typing import Optional
import re

CLOSED_KEYWORDS = ('終了', 'close', 'closed')

# Order matters: full dates before the bare month/day forms they contain
DATE_RGX = re.compile(r"\d{4}/\d{1,2}/\d{1,2}|\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{1,2}|\d{1,2}月\d{1,2}日")

TITLE_MAX = 100


def today_str(today: Optional[date] = None) -> str:
    d = today or date.today()
    return f"{d.year}/{d.month}/{d.day}"


def collapse_ws(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(text.split())


def infer_status(text: Optional[str]) -> str:
    lowered = (text or '').lower()
    if any(k in lowered for k in CLOSED_KEYWORDS):
        return 'CLOSE'
    return 'OPEN'


def find_date(text: Optional[str]) -> Optional[str]:
    m = DATE_RGX.search(text or '')
    return m.group(0) if m else None


def infer_last_updated(text: Optional[str], today: Optional[date] = None) -> str:
    """First date-looking fragment verbatim, else today's date."""
    return find_date(text) or today_str(today)


def infer_title(link_text: Optional[str], context_text: Optional[str], fallback: str) -> str:
    title = collapse_ws(link_text)
    if title:
        return title
    context = (context_text or '').strip()[:TITLE_MAX]
    return collapse_ws(context) or fallback
