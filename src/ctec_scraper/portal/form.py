from __future__ import annotations

import logging
from typing import Callable

from playwright.async_api import Frame

from ..errors import CourseNotFound, NoMatchingOption
from ..models import CourseQuery
from ..util.text import norm
from .rows import CandidateRow, find_course_row
from .selectors import CtecSelectors


logger = logging.getLogger(__name__)

_ROW_TEXT_JS = "(a) => { const tr = a.closest('tr'); return tr ? tr.innerText : ''; }"
_ROW_CELLS_JS = (
    "(a) => { const tr = a.closest('tr'); "
    "return tr ? Array.from(tr.querySelectorAll('td')).map((td) => td.innerText || '') : []; }"
)
_OPTION_COUNT_JS = "(sel) => { const s = document.querySelector(sel); return !!(s && s.options && s.options.length > 1); }"


async def select_by_label(frame: Frame, selector: str, predicate: Callable[[str], bool]) -> str:
    """
    Pick the first `<option>` whose normalized label satisfies `predicate`; return that label.

    Waits (no timeout) for the select to be visible. No match is a real mismatch (unknown subject,
    renamed career), so it raises NoMatchingOption instead of retrying.
    """
    await frame.wait_for_selector(selector, state="visible", timeout=0)
    seen: list[str] = []
    for opt in await frame.query_selector_all(f"{selector} option"):
        label = norm(await opt.inner_text())
        seen.append(label)
        if predicate(label):
            value = await opt.get_attribute("value")
            if value is None:
                await frame.select_option(selector, label=label)
            else:
                await frame.select_option(selector, value=value)
            return label
    raise NoMatchingOption(selector, seen)


async def wait_for_populated_options(frame: Frame, selector: str, *, poll_interval_ms: int = 250) -> None:
    # The subject list is filled in only after the career change round-trips to the server.
    await frame.wait_for_function(_OPTION_COUNT_JS, arg=selector, polling=poll_interval_ms, timeout=0)


async def collect_rows(frame: Frame, link_selector: str, *, with_cells: bool = False) -> list[CandidateRow]:
    rows: list[CandidateRow] = []
    for link in await frame.query_selector_all(link_selector):
        if with_cells:
            cells = tuple(await link.evaluate(_ROW_CELLS_JS) or ())
            rows.append(CandidateRow(display_text=norm(" ".join(cells)), action=link, cells=cells))
        else:
            rows.append(CandidateRow(display_text=norm(await link.evaluate(_ROW_TEXT_JS)), action=link))
    return rows


async def search_subject(
    frame: Frame,
    subject: str,
    *,
    selectors: CtecSelectors,
    poll_interval_ms: int = 250,
) -> list[CandidateRow]:
    """Career -> subject -> Search, then return every course result row."""
    career_wanted = selectors.career_label.lower()
    career = await select_by_label(frame, selectors.career_select, lambda label: label.lower() == career_wanted)
    logger.info("Set Academic Career = %s", career)

    await wait_for_populated_options(frame, selectors.subject_select, poll_interval_ms=poll_interval_ms)

    # Options look like: "COMP_SCI - Computer Science"
    subj = await select_by_label(frame, selectors.subject_select, lambda label: label.startswith(subject + " "))
    logger.info("Set Academic Subject = %s", subj)

    await frame.click(selectors.search_button)
    await frame.wait_for_selector(selectors.course_row_link, timeout=0)

    rows = await collect_rows(frame, selectors.course_row_link)
    logger.info("Found %d course rows.", len(rows))
    return rows


async def find_course(
    frame: Frame,
    query: CourseQuery,
    *,
    selectors: CtecSelectors,
    poll_interval_ms: int = 250,
) -> CandidateRow:
    rows = await search_subject(frame, query.subject, selectors=selectors, poll_interval_ms=poll_interval_ms)
    row = find_course_row(rows, query.number)
    if row is None:
        raise CourseNotFound(query.number, rows_seen=len(rows))
    logger.info("Matched course: %s", row.display_text)
    return row
