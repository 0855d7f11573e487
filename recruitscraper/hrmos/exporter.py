from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
import csv
import logging
import os

import pandas as pd
from pydantic import BaseModel

from .settings import SETTINGS

logger = logging.getLogger('exporter')

# kind -> ordered (model field, CSV header) pairs; column order is part of the contract
COLUMNS: Dict[str, List[tuple]] = {
    'jobs': [
        ('title', '求人タイトル'),
        ('url', 'URL'),
        ('status', 'ステータス'),
        ('last_updated', '最終更新日'),
        ('company_id', '企業ID'),
        ('job_id', '求人ID'),
    ],
    'details': [
        ('title', '求人タイトル'),
        ('description', '仕事内容'),
        ('requirements', '応募要件'),
        ('work_location', '勤務地'),
        ('employment_type', '雇用形態'),
        ('salary', '給与'),
        ('working_hours', '勤務時間'),
        ('holidays', '休日・休暇'),
        ('benefits', '福利厚生'),
        ('last_updated', '最終更新日'),
    ],
    'candidates': [
        ('name', '候補者名'),
        ('url', 'URL'),
        ('job_category', '職種分類'),
        ('job_description', '業務内容'),
        ('requirements', '応募要件'),
        ('last_updated', '最終更新日'),
        ('company_id', '企業ID'),
        ('job_id', '求人ID'),
        ('candidate_id', '候補者ID'),
        ('candidate_detail_id', '候補者詳細ID'),
    ],
}

FILE_NAMES = {
    'jobs': 'harmos_jobs.csv',
    'details': 'job-details.csv',
    'candidates': 'candidate-info.csv',
}


def headers(kind: str) -> List[str]:
    return [h for _, h in COLUMNS[kind]]


def to_row(record, kind: str) -> Dict[str, str]:
    data = record.model_dump() if isinstance(record, BaseModel) else dict(record)
    return {header: '' if data.get(field) is None else str(data.get(field)) for field, header in COLUMNS[kind]}


def export_records(records: Sequence, path: Path, kind: str, stream: bool = False) -> Path:
    """Write records as CSV with the fixed header for ``kind``; zero records gives a header-only file."""
    if kind not in COLUMNS:
        raise ValueError(f"Unknown export kind: {kind}")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    cols = headers(kind)
    if stream:
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=cols)
            writer.writeheader()
            for r in records:
                writer.writerow(to_row(r, kind))
    else:
        df = pd.DataFrame([to_row(r, kind) for r in records], columns=cols, dtype=str)
        df.to_csv(path, index=False, encoding='utf-8')
    logger.info(f"Wrote {len(records)} {kind} rows to {path}")
    return path


class Exporter:
    """Export scrape results into ``output_dir``.

    Streaming mode (env SCRAPER_STREAM_EXPORT=1 or stream=True) writes rows with
    csv.DictWriter; otherwise a DataFrame is built and written by pandas.
    """

    def __init__(self, output_dir: Optional[Path] = None, stream: Optional[bool] = None):
        self.output_dir = Path(output_dir or SETTINGS.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if stream is None:
            env_v = os.getenv('SCRAPER_STREAM_EXPORT', '').lower()
            self.stream = env_v in ('1', 'true', 'yes', 'on')
        else:
            self.stream = bool(stream)

    def path_for(self, kind: str) -> Path:
        return self.output_dir / FILE_NAMES[kind]

    def export(self, records: Iterable, kind: str) -> Path:
        return export_records(list(records), self.path_for(kind), kind, stream=self.stream)
