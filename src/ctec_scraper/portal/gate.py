from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .selectors import CtecSelectors


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Sample = Callable[[], Awaitable[Tuple[str, str]]]

_DEFAULTS = CtecSelectors()


class GateState(str, Enum):
    PENDING = "pending"
    AUTH_INTERSTITIAL = "auth_interstitial"
    LOADED = "loaded"


def classify(
    text: Optional[str],
    url: Optional[str],
    *,
    report_markers: Sequence[str] = _DEFAULTS.report_markers,
    auth_text_markers: Sequence[str] = _DEFAULTS.auth_text_markers,
    auth_url_markers: Sequence[str] = _DEFAULTS.auth_url_markers,
) -> GateState:
    """
    Classify what the evaluation tab currently shows.

    Report markers are checked first: a loaded report may well mention "sign in" in its chrome,
    and must never be mistaken for the login page.
    """
    t = text or ""
    if any(m in t for m in report_markers):
        return GateState.LOADED

    tl = t.lower()
    ul = (url or "").lower()
    if any(m in tl for m in auth_text_markers) or any(m in ul for m in auth_url_markers):
        return GateState.AUTH_INTERSTITIAL

    return GateState.PENDING


class ReportGate:
    """
    Poll the active page until the report is rendered. There is no timeout: leaving the
    AUTH_INTERSTITIAL state needs a person to finish NetID + Duo.
    """

    def __init__(
        self,
        *,
        poll_interval_s: float = 1.0,
        notice_every: int = 10,
        selectors: Optional[CtecSelectors] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.poll_interval_s = poll_interval_s
        self.notice_every = max(1, int(notice_every))
        self.selectors = selectors or CtecSelectors()
        self._sleep = sleep

        self.state: GateState = GateState.PENDING
        self.history: list[GateState] = []

    def _classify(self, text: str, url: str) -> GateState:
        return classify(
            text,
            url,
            report_markers=self.selectors.report_markers,
            auth_text_markers=self.selectors.auth_text_markers,
            auth_url_markers=self.selectors.auth_url_markers,
        )

    async def wait(self, sample: Sample) -> str:
        """Block until `sample()` shows the report; return that rendered text."""
        self.state = GateState.PENDING
        self.history = []
        ticks_in_state = 0
        while True:
            text, url = await sample()
            new_state = self._classify(text, url)

            if new_state is GateState.LOADED:
                self._enter(new_state)
                logger.info("Evaluation report loaded (url=%s).", url)
                return text

            if new_state is not self.state or not self.history:
                self._enter(new_state)
                ticks_in_state = 0
                if new_state is GateState.AUTH_INTERSTITIAL:
                    logger.warning(
                        "Login screen detected in the evaluation tab. "
                        "Complete NetID + Duo in the browser window; the run resumes automatically."
                    )
                else:
                    logger.info("Waiting for evaluation report to finish loading...")
            elif new_state is GateState.PENDING and ticks_in_state % self.notice_every == 0:
                logger.info("Still waiting for evaluation report (url=%s)...", url)

            ticks_in_state += 1
            await self._sleep(self.poll_interval_s)

    def _enter(self, state: GateState) -> None:
        logger.debug("Report gate: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)


async def sample_page(page: Page) -> tuple[str, str]:
    # Mid-navigation the body may be missing or the execution context destroyed; read as blank.
    try:
        text = await page.inner_text("body", timeout=2_000)
    except PlaywrightError:
        text = ""
    return text, page.url


async def open_and_await_report(
    page: Page,
    trigger: Callable[[], Awaitable[None]],
    gate: ReportGate,
    *,
    popup_timeout_ms: int = 10_000,
) -> tuple[Page, str]:
    """
    Fire `trigger` (the "View Evaluation" click) and wait for the report it leads to.

    The report may open in a popup or replace the current page. The popup listener is registered
    before the click so a fast popup cannot be missed.
    """
    popup_task = asyncio.ensure_future(page.wait_for_event("popup", timeout=popup_timeout_ms))
    await asyncio.sleep(0)
    try:
        await trigger()
    except BaseException:
        popup_task.cancel()
        raise

    try:
        target = await popup_task
        logger.info("Evaluation opened in a new window.")
    except PlaywrightTimeoutError:
        target = page
        logger.info("No popup opened; reading the evaluation from the current page.")

    # Sampling before the new document exists would read about:blank.
    await target.wait_for_load_state("domcontentloaded", timeout=0)
    text = await gate.wait(lambda: sample_page(target))
    return target, text
