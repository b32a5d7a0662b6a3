from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from ctec_scraper import cli
from ctec_scraper.errors import CourseNotFound
from ctec_scraper.models import EvaluationRow, ReportRecord


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "ctec.log"))


class _Boom:
    def __init__(self, **_kwargs: Any) -> None:
        raise AssertionError("browser client must not be created for malformed input")


def test_malformed_course_fails_before_any_browser_work(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "CtecPortalClient", _Boom)
    assert cli.main(["fetch", "comp_sci", "212"]) == 2


def test_malformed_subject_for_list_courses(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "CtecPortalClient", _Boom)
    assert cli.main(["list-courses", "COMP-SCI"]) == 2


def test_fetch_writes_record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    seen: dict[str, Any] = {}

    class FakeClient:
        def __init__(self, **kwargs: Any) -> None:
            seen["init"] = kwargs

        async def fetch_report(self, query, **kwargs: Any) -> ReportRecord:
            seen["query"] = query
            seen["browser"] = kwargs
            return ReportRecord(
                course_input=query,
                evaluation_row=EvaluationRow(term="2023 Fall", description="(J. Smith)"),
                essay_chunk="Great class",
            )

    monkeypatch.setattr(cli, "CtecPortalClient", FakeClient)

    rc = cli.main(["fetch", "COMP_SCI", "212", "--headless", "--slowmo-ms", "0", "--out-dir", "out", "--print"])

    assert rc == 0
    assert seen["query"].number == "212-0"
    assert seen["browser"]["headless"] is True
    assert seen["browser"]["slow_mo_ms"] == 0
    written = tmp_path / "out" / "COMP_SCI_212-0_2023_Fall.json"
    data = json.loads(written.read_text(encoding="utf-8"))
    assert data["essayChunk"] == "Great class"
    assert data["summary"] is None
    assert json.loads(capsys.readouterr().out)["evaluationRow"]["term"] == "2023 Fall"


def test_fatal_pipeline_error_exits_one(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    class FailingClient:
        def __init__(self, **_kwargs: Any) -> None:
            pass

        async def fetch_report(self, query, **_kwargs: Any) -> ReportRecord:
            raise CourseNotFound(query.number, rows_seen=3)

    monkeypatch.setattr(cli, "CtecPortalClient", FailingClient)

    assert cli.main(["fetch", "COMP_SCI 212"]) == 1
    assert not (Path("data") / "raw").exists()
    # configure_logging() replaces root handlers, so read the stream handler output.
    assert "course_search failed" in capsys.readouterr().err
