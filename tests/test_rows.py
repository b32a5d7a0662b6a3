from __future__ import annotations

import pytest

from ctec_scraper.errors import NoEvaluationRow
from ctec_scraper.models import EvaluationRow
from ctec_scraper.portal.rows import (
    CandidateRow,
    filter_evaluation_rows,
    find_course_row,
    looks_like_term,
    matches_course_number,
    pick_first_real_row,
)


def _row(*cells: str) -> CandidateRow:
    return CandidateRow(display_text=" ".join(cells), action=object(), cells=tuple(cells))


@pytest.mark.parametrize("term", ["2024 Fall", "2025 Wintr", "2016 sprng", "2019  SUMMR", " 2020 Fall "])
def test_looks_like_term_accepts_real_terms(term: str) -> None:
    assert looks_like_term(term)


@pytest.mark.parametrize("term", ["Header", "Term", "Page 2 of 3", "24 Fall", "2024 Autumn", "2024 Fall Quarter", ""])
def test_looks_like_term_rejects_non_terms(term: str) -> None:
    assert not looks_like_term(term)


def test_filter_keeps_only_term_rows_in_document_order() -> None:
    rows = [_row("2024 Fall", "(A)"), _row("Header", "x"), _row("2025 Sprng", "(B)"), _row("Page 2 of 3")]
    picked = filter_evaluation_rows(rows)
    assert [ev.term for ev, _ in picked] == ["2024 Fall", "2025 Sprng"]
    assert picked[0][1] is rows[0]
    assert picked[1][1] is rows[2]


def test_pick_first_real_row_returns_first_match_with_normalized_cells() -> None:
    rows = [_row("Term", "Description"), _row(" 2023\nFall ", "  (J.   Smith) ")]
    ev, row = pick_first_real_row(rows)
    assert ev == EvaluationRow(term="2023 Fall", description="(J. Smith)")
    assert row is rows[1]


def test_pick_first_real_row_raises_when_no_real_rows() -> None:
    with pytest.raises(NoEvaluationRow) as ei:
        pick_first_real_row([_row("Header"), _row("Page 1 of 1")])
    assert ei.value.stage == "evaluation_rows"
    assert ei.value.rows_seen == 2


def test_course_number_requires_exact_prefix_and_colon() -> None:
    assert matches_course_number("212-0: Intro to Something", "212-0")
    assert matches_course_number("  212-0:  Intro", "212-0")
    assert not matches_course_number("2120-0: Advanced Something", "212-0")
    assert not matches_course_number("CS 212-0: Intro", "212-0")
    assert not matches_course_number("212-01: Other", "212-0")


def test_find_course_row_skips_longer_numbers() -> None:
    rows = [
        CandidateRow(display_text="2120-0: Advanced"),
        CandidateRow(display_text="212-0: Intro"),
    ]
    assert find_course_row(rows, "212-0") is rows[1]
    assert find_course_row(rows, "999-0") is None
