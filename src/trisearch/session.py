"""One isolated browsing session: context setup, warm-up, fetch loop, teardown."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, Route

from trisearch import config
from trisearch.errors import FailureCategory, SessionFatalError
from trisearch.fetch_loop import FetchLoop, RawResponse, Sleep
from trisearch.identity import Identity
from trisearch.models import SessionResult

logger = logging.getLogger(__name__)

# Session-local progress: (message, fraction of this session done, 0..1).
SessionProgress = Callable[[str, float], None]

# Runs inside the page so the request carries the context's cookies and tokens.
_FETCH_JS = """
async (url) => {
  try {
    const response = await fetch(url, { credentials: "include" });
    const body = await response.text();
    return { status: response.status, body: body };
  } catch (err) {
    return { error: String((err && err.message) || err) };
  }
}
"""

_IP_CHECK_JS = """
async (url) => {
  try {
    const response = await fetch(url);
    if (!response.ok) {
      return { error: `HTTP ${response.status}`, status: response.status };
    }
    return await response.json();
  } catch (err) {
    return { error: String((err && err.message) || err) };
  }
}
"""

_PROXY_STATUS_HINTS: dict[int, str] = {
    407: "proxy authentication required",
    403: "forbidden, exit IP blocked",
    502: "proxy service error",
    503: "proxy service error",
}


def build_search_api_url(query: str, offset: int, count: int) -> str:
    """Search API URL with the web client's standard query parameters."""
    lang = config.LOCALE
    params: dict[str, Any] = {
        "keyword": query,
        "offset": offset,
        "count": count,
        "search_source": "normal_search",
        "WebIdLastTime": int(time.time()),
        "aid": 1988,
        "app_language": lang,
        "app_name": "tiktok_web",
        "browser_language": lang,
        "browser_name": "Mozilla",
        "browser_online": "true",
        "browser_platform": "Win32",
        "channel": "tiktok_web",
        "cookie_enabled": "true",
        "device_platform": "web_pc",
        "focus_state": "true",
        "from_page": "search",
        "history_len": 3,
        "is_fullscreen": "false",
        "is_page_visible": "true",
        "os": "windows",
        "priority_region": config.REGION,
        "region": config.REGION,
        "screen_height": config.VIEWPORT["height"],
        "screen_width": config.VIEWPORT["width"],
        "webcast_language": lang,
    }
    return f"{config.SEARCH_API_URL}?{urlencode(params)}"


def should_block(resource_type: str, url: str) -> bool:
    """Request filter: keep page code and API traffic, drop heavy or tracking loads."""
    if any(host in url for host in config.TRACKING_HOSTS):
        return True
    if resource_type in config.ALLOWED_RESOURCE_TYPES:
        return False
    return resource_type in config.BLOCKED_RESOURCE_TYPES


async def _filter_route(route: Route) -> None:
    request = route.request
    if should_block(request.resource_type, request.url):
        await route.abort()
    else:
        await route.continue_()


class SessionRunner:
    """Own one browser context for one session index, from creation to close."""

    def __init__(
        self,
        browser: Browser,
        identity: Identity,
        *,
        page_size: int = config.PAGE_SIZE,
        max_retries: int = config.MAX_RETRIES,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._browser = browser
        self._identity = identity
        self._page_size = page_size
        self._max_retries = max_retries
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._label = f"[session {identity.session_index + 1}] "

    @property
    def index(self) -> int:
        return self._identity.session_index

    # ── public ──────────────────────────────────────────────────────────
    async def run(
        self,
        query: str,
        target: int,
        progress: SessionProgress | None = None,
    ) -> SessionResult:
        """Run the full session; the context is closed on every exit path."""
        emit = progress or (lambda _msg, _frac: None)
        context = await self._open_context()
        try:
            page = await context.new_page()
            await self._check_proxy(page, emit)
            await self._warm_up(page, query, emit)

            async def fetch_page(offset: int) -> RawResponse:
                return await self._fetch(page, query, offset)

            loop = FetchLoop(
                fetch_page,
                page_size=self._page_size,
                max_retries=self._max_retries,
                sleep=self._sleep,
                rng=self._rng,
                label=self._label,
            )
            outcome = await loop.run(
                target,
                on_page=lambda kept, tgt: emit(
                    f"Session {self.index + 1}: fetching items ({kept}/{tgt})",
                    0.2 + 0.8 * min(kept / tgt, 1.0),
                ),
            )
        except PlaywrightError as exc:
            logger.exception("%sBrowser error", self._label)
            raise SessionFatalError(
                f"Session {self.index + 1} browser error: {exc}",
                category=FailureCategory.NETWORK,
                session_index=self.index,
            ) from exc
        finally:
            await self._close(context)

        logger.info(
            "%sFetched %d items (%d raw), stop=%s",
            self._label, len(outcome.items), outcome.raw_seen, outcome.stop_reason.value,
        )
        emit(f"Session {self.index + 1}: done ({len(outcome.items)} items)", 1.0)
        return SessionResult(
            session_index=self.index,
            query=query,
            items=outcome.items,
            total_fetched=len(outcome.items),
            raw_seen=outcome.raw_seen,
            stop_reason=outcome.stop_reason,
            last_failure=outcome.last_failure,
            user_agent=self._identity.user_agent,
        )

    # ── private ─────────────────────────────────────────────────────────
    async def _open_context(self) -> BrowserContext:
        try:
            context = await self._browser.new_context(**self._identity.context_options())
            await context.route("**/*", _filter_route)
        except PlaywrightError as exc:
            logger.exception("%sCould not create browser context", self._label)
            raise SessionFatalError(
                f"Session {self.index + 1} context creation failed: {exc}",
                category=FailureCategory.BROWSER_LAUNCH,
                session_index=self.index,
            ) from exc
        if self._identity.proxy_session:
            logger.info("%sProxy sticky session %s", self._label, self._identity.proxy_session)
        logger.info("%sContext ready (request filter on)", self._label)
        return context

    async def _close(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except PlaywrightError:
            logger.warning("%sContext close failed", self._label, exc_info=True)

    async def _check_proxy(self, page: Page, emit: SessionProgress) -> None:
        """Log the exit IP the session is routed through; never fatal."""
        if not (self._identity.proxy and config.PROXY_CHECK_URL):
            return
        emit(f"Session {self.index + 1}: checking proxy connection", 0.05)
        try:
            info = await page.evaluate(_IP_CHECK_JS, config.PROXY_CHECK_URL)
        except PlaywrightError as exc:
            logger.warning("%sProxy check failed: %s", self._label, exc)
            return
        if not isinstance(info, dict):
            logger.warning("%sProxy check returned %r", self._label, info)
        elif info.get("error"):
            hint = _PROXY_STATUS_HINTS.get(info.get("status") or 0, "")
            logger.error("%sProxy connection error: %s %s", self._label, info["error"], hint)
        else:
            logger.info(
                "%sProxy exit ip=%s country=%s",
                self._label, info.get("ip"), info.get("country"),
            )

    async def _warm_up(self, page: Page, query: str, emit: SessionProgress) -> None:
        """Visit home then search page so the context holds the site's cookies."""
        search_url = f"{config.SEARCH_PAGE_URL}?{urlencode({'q': query})}"
        steps = [("home page", config.SITE_HOME_URL, 0.1), ("search page", search_url, 0.2)]
        for name, url, fraction in steps:
            emit(f"Session {self.index + 1}: opening {name}", fraction)
            logger.info("%sNavigating to %s", self._label, url)
            try:
                await page.goto(
                    url, wait_until="domcontentloaded", timeout=config.NAV_TIMEOUT_MS
                )
            except PlaywrightError as exc:
                logger.exception("%sNavigation to %s failed", self._label, name)
                raise SessionFatalError(
                    f"Session {self.index + 1} could not load the {name}: {exc}",
                    category=FailureCategory.NETWORK,
                    session_index=self.index,
                ) from exc
            await self._sleep(self._rng.uniform(config.SETTLE_DELAY_MIN, config.SETTLE_DELAY_MAX))

    async def _fetch(self, page: Page, query: str, offset: int) -> RawResponse:
        url = build_search_api_url(query, offset, self._page_size)
        try:
            result = await page.evaluate(_FETCH_JS, url)
        except PlaywrightError as exc:
            return RawResponse(error=str(exc))
        if not isinstance(result, dict):
            return RawResponse(error=f"unexpected evaluate result: {type(result).__name__}")
        if result.get("error"):
            return RawResponse(error=str(result["error"]))
        return RawResponse(body=result.get("body"), status=int(result.get("status") or 0))
