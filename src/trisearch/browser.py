"""Headless Chromium lifecycle on top of Playwright's async API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Browser, Error as PlaywrightError, async_playwright

from trisearch import config
from trisearch.errors import FailureCategory, SessionFatalError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def launch_browser(use_proxy: bool = False) -> AsyncIterator[Browser]:
    """Yield a launched Chromium; always closed on exit.

    With *use_proxy* the browser is launched with a per-context proxy
    placeholder so each session context can bring its own sticky proxy.
    """
    launch_options: dict = {
        "headless": config.HEADLESS,
        "args": list(config.BROWSER_ARGS),
        "timeout": config.NAV_TIMEOUT_MS,
    }
    if use_proxy:
        launch_options["proxy"] = {"server": "per-context"}

    async with async_playwright() as pw:
        try:
            browser = await pw.chromium.launch(**launch_options)
        except PlaywrightError as exc:
            logger.exception("Browser launch failed")
            raise SessionFatalError(
                f"Browser launch failed: {exc}",
                category=FailureCategory.BROWSER_LAUNCH,
            ) from exc

        logger.info("Browser launched (headless=%s)", config.HEADLESS)
        try:
            yield browser
        finally:
            await browser.close()
            logger.info("Browser closed")
