from __future__ import annotations

import asyncio
import logging

import pytest

from ctec_scraper.errors import CourseNotFound, NoEvaluationRow
from ctec_scraper.models import EvaluationRow, parse_course_arg
from ctec_scraper.portal.client import CtecPortalClient

from fake_site import FakeSite, FakeSleep


def _client(sleep: FakeSleep) -> CtecPortalClient:
    return CtecPortalClient(start_url="https://caesar.example/start", sleep=sleep)


def test_end_to_end_course_to_record() -> None:
    site = FakeSite(empty_frame_polls=2)
    sleep = FakeSleep()
    query = parse_course_arg("COMP_SCI 212")

    record = asyncio.run(_client(sleep).run(site.page, query))

    assert record.course_input.subject == "COMP_SCI"
    assert record.course_input.number == "212-0"
    assert record.evaluation_row == EvaluationRow(term="2023 Fall", description="(J. Smith)")
    assert record.essay_chunk == "Great class"

    data = record.to_json_dict()
    assert data["evaluationRow"] == {"term": "2023 Fall", "description": "(J. Smith)"}
    assert data["essayChunk"] == "Great class"
    assert data["scrapedAt"]

    assert site.page.goto_calls == ["https://caesar.example/start"]
    # Two empty frame polls before the search frame existed.
    assert sleep.calls == [0.25, 0.25]
    # The header row was skipped; the real evaluation row was clicked.
    assert [link.clicks for link in site.eval_links] == [0, 1]
    # The popup report window is released once its text is read.
    assert site.report_page.closed
    assert not site.page.closed


def test_end_to_end_same_page_report_behind_login() -> None:
    site = FakeSite(
        use_popup=False,
        report_samples=(
            ("Please sign in with your NetID", "https://prd.example.edu/idp/login"),
            ("Duo Push", "https://prd.example.edu/idp/login"),
            ("Course and Teacher Evaluations ESSAY QUESTIONS Hard but fair. DEMOGRAPHICS Year: 2", "https://ctec/r"),
        ),
    )
    sleep = FakeSleep()
    client = CtecPortalClient(start_url="https://caesar.example/start", report_poll_interval_ms=1000, sleep=sleep)

    record = asyncio.run(client.run(site.page, parse_course_arg("COMP_SCI 212-0")))

    assert record.essay_chunk == "Hard but fair."
    assert sleep.calls == [1.0, 1.0]
    assert not site.page.closed


def test_missing_essay_section_still_produces_record(caplog: pytest.LogCaptureFixture) -> None:
    site = FakeSite(report_samples=(("Student Report for COMP_SCI 212 Responses Received 12", "https://ctec/r"),))
    with caplog.at_level(logging.WARNING):
        record = asyncio.run(_client(FakeSleep()).run(site.page, parse_course_arg("COMP_SCI 212")))

    assert record.essay_chunk is None
    assert record.to_json_dict()["essayChunk"] is None
    assert any("ExtractionEmpty" in r.getMessage() for r in caplog.records)


def test_course_not_found_stops_before_evaluations() -> None:
    site = FakeSite(course_rows=("2120-0: Something Else",))
    with pytest.raises(CourseNotFound):
        asyncio.run(_client(FakeSleep()).run(site.page, parse_course_arg("COMP_SCI 212")))
    assert site.eval_links == []


def test_no_real_evaluation_row() -> None:
    site = FakeSite(eval_rows=(("Term", "Description"), ("Page 1 of 1", "")))
    with pytest.raises(NoEvaluationRow):
        asyncio.run(_client(FakeSleep()).run(site.page, parse_course_arg("COMP_SCI 212")))
    assert all(link.clicks == 0 for link in site.eval_links)


def test_list_courses_returns_first_rows() -> None:
    site = FakeSite(course_rows=("101-0: A", "110-0: B", "111-0: C"))
    rows = asyncio.run(_client(FakeSleep()).list_courses(site.page, "COMP_SCI", limit=2))
    assert rows == ["101-0: A Get List of CTECs", "110-0: B Get List of CTECs"]
