"""Orchestration: N sequential sessions, then the overlap analysis.

Sessions never run concurrently: parallel sessions against the same target
get rate-limited.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable

from playwright.async_api import Browser

from trisearch import config
from trisearch.analyze import analyze_sessions
from trisearch.browser import launch_browser
from trisearch.errors import SessionFatalError
from trisearch.fetch_loop import Sleep
from trisearch.identity import ProxyConfig, provision_identity, resolve_proxy
from trisearch.models import OverlapReport, ProgressEvent, SessionResult
from trisearch.session import SessionRunner

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


def _session_progress(
    progress: ProgressCallback | None, index: int, session_count: int
) -> Callable[[str, float], None]:
    """Map one session's local fraction onto the whole run's percentage."""

    def emit(message: str, fraction: float) -> None:
        if progress is None:
            return
        percent = (index + max(0.0, min(fraction, 1.0))) / session_count * 100
        progress(ProgressEvent(message=message, percent=round(percent, 1), session_index=index))

    return emit


async def run_sessions(
    browser: Browser,
    query: str,
    per_session_target: int,
    *,
    proxy: ProxyConfig | None = None,
    session_count: int = config.SESSION_COUNT,
    progress: ProgressCallback | None = None,
    sleep: Sleep = asyncio.sleep,
    rng: random.Random | None = None,
) -> list[SessionResult]:
    """Run sessions 0..N-1 in order on *browser*; any fatal error ends the run."""
    rng = rng or random.Random()
    results: list[SessionResult] = []
    for index in range(session_count):
        logger.info("Starting session %d/%d for %r", index + 1, session_count, query)
        identity = provision_identity(index, proxy)
        runner = SessionRunner(browser, identity, sleep=sleep, rng=rng)
        try:
            result = await runner.run(
                query,
                per_session_target,
                _session_progress(progress, index, session_count),
            )
        except SessionFatalError:
            logger.error(
                "Session %d/%d failed; aborting run (%d sessions completed)",
                index + 1, session_count, len(results),
            )
            raise
        results.append(result)

        if index < session_count - 1:
            gap = rng.uniform(config.SESSION_DELAY_MIN, config.SESSION_DELAY_MAX)
            logger.info("Waiting %.1fs before next session", gap)
            await sleep(gap)
    return results


async def run_triple_search(
    query: str,
    per_session_target: int = config.PER_SESSION_TARGET,
    progress: ProgressCallback | None = None,
) -> OverlapReport:
    """Search *query* through three isolated identities and analyse the overlap.

    Raises :class:`~trisearch.errors.ConfigurationError` before any browser
    work when the proxy settings are incomplete, and
    :class:`~trisearch.errors.SessionFatalError` when any session fails.
    """
    query = query.strip()
    if not query:
        raise ValueError("query must not be empty")

    proxy = resolve_proxy()
    logger.info("=== triple search start [query=%r, target=%d] ===", query, per_session_target)

    async with launch_browser(use_proxy=proxy is not None) as browser:
        sessions = await run_sessions(
            browser,
            query,
            per_session_target,
            proxy=proxy,
            progress=progress,
        )

    report = analyze_sessions(sessions, query=query)
    if progress is not None:
        progress(ProgressEvent(message="Analysis complete", percent=100.0))
    logger.info("=== triple search done [query=%r] ===", query)
    return report


async def run_single_search(
    query: str,
    per_session_target: int = config.PER_SESSION_TARGET,
    progress: ProgressCallback | None = None,
) -> SessionResult:
    """One session only, for callers that want a plain result list."""
    query = query.strip()
    if not query:
        raise ValueError("query must not be empty")

    proxy = resolve_proxy()
    async with launch_browser(use_proxy=proxy is not None) as browser:
        sessions = await run_sessions(
            browser,
            query,
            per_session_target,
            proxy=proxy,
            session_count=1,
            progress=progress,
        )
    return sessions[0]
