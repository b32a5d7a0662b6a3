from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..errors import CtecError
from ..models import CourseQuery, ReportRecord
from ..util.text import ESSAY_MARKER_CHAINS, MarkerChain, extract
from .form import collect_rows, find_course, search_subject
from .frames import resolve_frame
from .gate import ReportGate, open_and_await_report
from .rows import pick_first_real_row
from .selectors import DEFAULT_START_URL, CtecSelectors


logger = logging.getLogger(__name__)
T = TypeVar("T")


class CtecPortalClient:
    """
    CAESAR "Search CTECs" automation.

    `fetch_report()` owns the persistent browser profile for one run; `run()` is the pipeline
    itself and only needs an open page (so it can be driven against a fake site).
    """

    def __init__(
        self,
        *,
        start_url: str = DEFAULT_START_URL,
        selectors: Optional[CtecSelectors] = None,
        marker_chains: tuple[MarkerChain, ...] = ESSAY_MARKER_CHAINS,
        poll_interval_ms: int = 250,
        report_poll_interval_ms: int = 1000,
        notice_interval_s: float = 10.0,
        popup_timeout_ms: int = 10_000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.start_url = start_url
        self.selectors = selectors or CtecSelectors()
        self.marker_chains = marker_chains
        self.poll_interval_ms = int(poll_interval_ms)
        self.report_poll_interval_ms = int(report_poll_interval_ms)
        self.notice_interval_s = float(notice_interval_s)
        self.popup_timeout_ms = int(popup_timeout_ms)
        self._sleep = sleep

    # ---- pipeline -------------------------------------------------------------------------------

    def _new_gate(self) -> ReportGate:
        poll_s = self.report_poll_interval_ms / 1000
        return ReportGate(
            poll_interval_s=poll_s,
            notice_every=max(1, round(self.notice_interval_s / poll_s)) if poll_s > 0 else 1,
            selectors=self.selectors,
            sleep=self._sleep,
        )

    async def _open_search(self, page: Page):
        await page.goto(self.start_url, wait_until="domcontentloaded")
        logger.info(
            "If you see the Northwestern login, complete NetID + Duo in the browser. "
            "This continues automatically once the Search CTECs dropdowns exist."
        )
        frame = await resolve_frame(
            page,
            self.selectors.career_select,
            poll_interval_s=self.poll_interval_ms / 1000,
            sleep=self._sleep,
        )
        logger.info("Found Search CTECs frame (url=%s).", frame.url)
        return frame

    async def run(self, page: Page, query: CourseQuery) -> ReportRecord:
        frame = await self._open_search(page)

        course_row = await find_course(frame, query, selectors=self.selectors, poll_interval_ms=self.poll_interval_ms)

        await course_row.action.click()
        await frame.wait_for_selector(self.selectors.evaluation_row_link, timeout=0)
        candidates = await collect_rows(frame, self.selectors.evaluation_row_link, with_cells=True)
        evaluation_row, eval_row = pick_first_real_row(candidates)
        logger.info("Opening evaluation for: %s | %s", evaluation_row.term, evaluation_row.description)

        report_page, full_text = await open_and_await_report(
            page,
            eval_row.action.click,
            self._new_gate(),
            popup_timeout_ms=self.popup_timeout_ms,
        )
        try:
            essay_chunk = extract(full_text, self.marker_chains)
        finally:
            if report_page is not page:
                await _close_quietly(report_page)

        if essay_chunk is None:
            logger.warning(
                "ExtractionEmpty: could not find the ESSAY QUESTIONS section (report text length=%d); "
                "saving the record without it.",
                len(full_text),
            )

        return ReportRecord(
            course_input=query,
            evaluation_row=evaluation_row,
            essay_chunk=essay_chunk,
        )

    async def list_courses(self, page: Page, subject: str, *, limit: int = 5) -> list[str]:
        frame = await self._open_search(page)
        rows = await search_subject(frame, subject, selectors=self.selectors, poll_interval_ms=self.poll_interval_ms)
        return [r.display_text for r in rows[: max(0, limit)]]

    # ---- browser lifecycle ----------------------------------------------------------------------

    async def fetch_report(
        self,
        query: CourseQuery,
        *,
        profile_dir: str = "data/pw-profile",
        headless: bool = False,
        slow_mo_ms: int = 50,
        debug_dir: str = "data/debug",
    ) -> ReportRecord:
        return await self._with_page(
            lambda page: self.run(page, query),
            profile_dir=profile_dir,
            headless=headless,
            slow_mo_ms=slow_mo_ms,
            debug_dir=debug_dir,
            debug_name=f"failed_{query.subject}_{query.number}",
        )

    async def fetch_course_list(
        self,
        subject: str,
        *,
        limit: int = 5,
        profile_dir: str = "data/pw-profile",
        headless: bool = False,
        slow_mo_ms: int = 50,
        debug_dir: str = "data/debug",
    ) -> list[str]:
        return await self._with_page(
            lambda page: self.list_courses(page, subject, limit=limit),
            profile_dir=profile_dir,
            headless=headless,
            slow_mo_ms=slow_mo_ms,
            debug_dir=debug_dir,
            debug_name=f"failed_list_{subject}",
        )

    async def _with_page(
        self,
        body: Callable[[Page], Awaitable[T]],
        *,
        profile_dir: str,
        headless: bool,
        slow_mo_ms: int,
        debug_dir: str,
        debug_name: str,
    ) -> T:
        Path(profile_dir).mkdir(parents=True, exist_ok=True)
        async with async_playwright() as p:
            context = await _launch_persistent_context(p, profile_dir, headless=headless, slow_mo_ms=slow_mo_ms)
            try:
                page = context.pages[0] if context.pages else await context.new_page()
                try:
                    return await body(page)
                except CtecError:
                    await _save_debug(context, debug_dir=debug_dir, name_prefix=debug_name)
                    raise
            finally:
                await _close_quietly(context)


async def _launch_persistent_context(p, profile_dir: str, *, headless: bool, slow_mo_ms: int) -> BrowserContext:
    # The profile keeps the SSO/Duo cookies, so later runs often skip the login entirely.
    kwargs = {"headless": headless, "slow_mo": int(slow_mo_ms or 0)}
    try:
        return await p.chromium.launch_persistent_context(profile_dir, **kwargs)
    except PlaywrightError as e:
        msg = str(e)
        if "Executable doesn't exist" not in msg:
            raise

        logger.warning("Playwright Chromium executable missing; falling back to system browser channel. (%s)", msg)
        try:
            return await p.chromium.launch_persistent_context(profile_dir, channel="chrome", **kwargs)
        except PlaywrightError:
            return await p.chromium.launch_persistent_context(profile_dir, channel="msedge", **kwargs)


async def _close_quietly(target) -> None:
    try:
        await target.close()
    except PlaywrightError:
        logger.debug("Failed to close %r.", target, exc_info=True)


async def _save_debug(context: BrowserContext, *, debug_dir: str, name_prefix: str) -> None:
    """Best-effort screenshot + HTML + body text of the most recent page, for offline debugging."""
    pages = list(context.pages)
    if not pages:
        return
    page = pages[-1]
    safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name_prefix).strip("_")[:80] or "failed"
    try:
        out_dir = Path(debug_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(out_dir / f"{safe}.png"), full_page=True)
        (out_dir / f"{safe}.html").write_text(await page.content(), encoding="utf-8")
        try:
            (out_dir / f"{safe}.txt").write_text(await page.inner_text("body"), encoding="utf-8")
        except PlaywrightError:
            pass
        logger.info("Saved debug artifacts to %s/%s.*", out_dir, safe)
    except (PlaywrightError, OSError):
        logger.debug("Failed to save debug artifacts.", exc_info=True)
