from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


async def find_frame_with_selector(page: Page, selector: str) -> Optional[Frame]:
    """
    Single pass over every frame the page currently knows about.

    Frames can detach or navigate between listing and querying; those are skipped, not fatal.
    """
    for frame in list(page.frames):
        try:
            el = await frame.query_selector(selector)
        except PlaywrightError:
            continue
        if el is None:
            continue
        try:
            await el.dispose()
        except PlaywrightError:
            logger.debug("Failed to dispose probe handle for %s.", selector, exc_info=True)
        return frame
    return None


async def resolve_frame(
    page: Page,
    selector: str,
    *,
    poll_interval_s: float = 0.25,
    sleep: Sleep = asyncio.sleep,
) -> Frame:
    """
    Wait (without a timeout) until some frame under `page` contains `selector`, and return it.

    CAESAR builds the search UI inside nested frames that populate in no fixed order, and the
    login flow may sit in front of it for as long as the user takes. All frames are rescanned on
    every tick because new ones appear between ticks.
    """
    ticks = 0
    while True:
        frame = await find_frame_with_selector(page, selector)
        if frame is not None:
            logger.debug("Found %s in frame url=%s after %d polls.", selector, frame.url, ticks)
            return frame
        ticks += 1
        await sleep(poll_interval_s)
