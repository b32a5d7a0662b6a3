from __future__ import annotations

import json
import re
from pathlib import Path

from .models import ReportRecord


def safe_filename(s: str) -> str:
    return re.sub(r"[^\w.-]+", "_", s or "output")[:180]


def record_basename(record: ReportRecord) -> str:
    q = record.course_input
    return safe_filename(f"{q.subject}_{q.number}_{record.evaluation_row.term}")


def write_record(out_dir: str, record: ReportRecord) -> Path:
    """Write `record` as pretty-printed JSON under `out_dir`; return the file path."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{record_basename(record)}.json"
    path.write_text(json.dumps(record.to_json_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path
