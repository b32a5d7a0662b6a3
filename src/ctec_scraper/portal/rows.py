from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from ..errors import NoEvaluationRow
from ..models import EvaluationRow
from ..util.text import norm


# Examples: "2016 Sprng", "2025 Wintr", "2024 Fall"
TERM_RE = re.compile(r"^\d{4}\s+(Fall|Wintr|Sprng|Summr)$", re.I)


@dataclass(frozen=True)
class CandidateRow:
    """
    One row of a rendered result table, alive only while a selection step runs.

    `action` is whatever gets clicked to follow the row (a Playwright ElementHandle in practice).
    """

    display_text: str
    action: Any = field(default=None, compare=False, repr=False)
    cells: tuple[str, ...] = ()


def looks_like_term(text: Optional[str]) -> bool:
    return bool(TERM_RE.match(norm(text)))


def matches_course_number(row_text: Optional[str], number: str) -> bool:
    # Prefix + colon, so "212-0" never matches "2120-0: ...".
    return norm(row_text).startswith(number + ":")


def find_course_row(rows: Iterable[CandidateRow], number: str) -> Optional[CandidateRow]:
    for row in rows:
        if matches_course_number(row.display_text, number):
            return row
    return None


def filter_evaluation_rows(rows: Iterable[CandidateRow]) -> list[tuple[EvaluationRow, CandidateRow]]:
    """
    Keep only rows whose first cell is a term like "2024 Fall", in document order.

    Header, filter and pagination rows carry the same link markup but are not evaluations.
    """
    out: list[tuple[EvaluationRow, CandidateRow]] = []
    for row in rows:
        if len(row.cells) < 1:
            continue
        term = norm(row.cells[0])
        if not looks_like_term(term):
            continue
        desc = norm(row.cells[1]) if len(row.cells) > 1 else ""
        out.append((EvaluationRow(term=term, description=desc), row))
    return out


def pick_first_real_row(rows: Sequence[CandidateRow]) -> tuple[EvaluationRow, CandidateRow]:
    real = filter_evaluation_rows(rows)
    if not real:
        raise NoEvaluationRow(rows_seen=len(rows))
    return real[0]
