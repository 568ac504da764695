"""Collect a video's visible comments by listening to the page's comment API calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from playwright._impl._errors import TargetClosedError
from playwright.async_api import Error as PlaywrightError, Response

from trisearch import config
from trisearch.browser import launch_browser
from trisearch.errors import FailureCategory, SessionFatalError
from trisearch.fetch_loop import Sleep
from trisearch.identity import provision_identity

logger = logging.getLogger(__name__)


def comment_texts(payload: Any) -> list[str]:
    """Pull the non-empty ``comments[].text`` values out of one API payload."""
    if not isinstance(payload, dict):
        return []
    comments = payload.get("comments")
    if not isinstance(comments, list):
        return []
    return [
        c["text"]
        for c in comments
        if isinstance(c, dict) and isinstance(c.get("text"), str) and c["text"]
    ]


async def _scrape_once(video_url: str, sleep: Sleep) -> list[str]:
    comments: list[str] = []

    async def on_response(response: Response) -> None:
        if config.COMMENT_API_PATH not in response.url:
            return
        try:
            payload = await response.json()
        except (PlaywrightError, ValueError) as exc:
            logger.warning("Unreadable comment payload from %s: %s", response.url, exc)
            return
        comments.extend(comment_texts(payload))

    async with launch_browser() as browser:
        context = await browser.new_context(**provision_identity(0).context_options())
        try:
            page = await context.new_page()
            page.on("response", on_response)
            await page.goto(
                video_url, wait_until="networkidle", timeout=config.NAV_TIMEOUT_MS
            )
            # The comment panel only loads once scrolled into view.
            await page.evaluate("(px) => window.scrollBy(0, px)", config.COMMENT_SCROLL_PX)
            await sleep(config.COMMENT_WAIT)
        finally:
            await context.close()

    logger.info("Extracted %d comments from %s", len(comments), video_url)
    return comments


async def scrape_comments(video_url: str, *, sleep: Sleep = asyncio.sleep) -> list[str]:
    """Return the comment texts the video page loads on first scroll.

    A closed page or browser is retried ``COMMENT_RETRIES`` times. Browser
    errors that remain raise :class:`~trisearch.errors.SessionFatalError`.
    """
    video_url = video_url.strip()
    if not video_url.startswith(("http://", "https://")):
        raise ValueError(f"not a video URL: {video_url!r}")

    attempt = 0
    while True:
        try:
            return await _scrape_once(video_url, sleep)
        except TargetClosedError as exc:
            if attempt >= config.COMMENT_RETRIES:
                logger.error("Page closed while scraping %s; giving up", video_url)
                raise SessionFatalError(
                    f"Page closed while scraping comments: {exc}",
                    category=FailureCategory.NETWORK,
                ) from exc
            attempt += 1
            logger.warning(
                "Page closed while scraping %s, retrying (%d/%d)",
                video_url, attempt, config.COMMENT_RETRIES,
            )
            await sleep(config.COMMENT_RETRY_DELAY)
        except PlaywrightError as exc:
            logger.exception("Comment scrape failed for %s", video_url)
            raise SessionFatalError(
                f"Comment scrape failed: {exc}", category=FailureCategory.NETWORK
            ) from exc
