from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import InputError


_COURSE_ARG_RE = re.compile(r"^([A-Z_]+)\s+([0-9]+(?:-[A-Z0-9]+)?)$")


class _Record(BaseModel):
    # Output JSON uses camelCase keys (scrapedAt, courseInput, ...); Python code uses snake_case.
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class CourseQuery(_Record):
    subject: str
    number: str

    @property
    def label(self) -> str:
        return f"{self.subject} {self.number}"


class EvaluationRow(_Record):
    term: str
    description: str = ""


class ReportRecord(_Record):
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    course_input: CourseQuery
    evaluation_row: EvaluationRow
    essay_chunk: Optional[str] = None

    # Filled in after the fact (via model_copy) by the optional summarizer.
    summary: Optional[Dict[str, Any]] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def parse_course_arg(raw: str) -> CourseQuery:
    """
    Parse inputs like:
    - "COMP_SCI 212"   -> COMP_SCI / 212-0
    - "COMP_SCI 212-1" -> COMP_SCI / 212-1
    """
    s = (raw or "").strip()
    if not s:
        raise InputError('Missing input. Example: "COMP_SCI 212"')

    m = _COURSE_ARG_RE.match(s)
    if not m:
        raise InputError(f'Invalid input: "{s}". Use "COMP_SCI 212" or "COMP_SCI 212-1".')

    subject, number = m.group(1), m.group(2)
    if "-" not in number:
        number = f"{number}-0"
    return CourseQuery(subject=subject, number=number)
