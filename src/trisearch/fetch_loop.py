"""Paginated fetch loop: one identity, repeated offset queries, local retries."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from trisearch import config
from trisearch.classify import Success, TransientFetchFailure, classify_response
from trisearch.errors import FailureCategory
from trisearch.models import SearchItem, StopReason
from trisearch.records import extract_entries, parse_entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """What one in-page fetch produced: a body and status, or an error string."""

    body: str | None = None
    status: int = 0
    error: str | None = None


@dataclass
class FetchOutcome:
    items: list[SearchItem] = field(default_factory=list)
    raw_seen: int = 0
    stop_reason: StopReason = StopReason.NO_MORE_RESULTS
    last_failure: FailureCategory | None = None


FetchPage = Callable[[int], Awaitable[RawResponse]]
Sleep = Callable[[float], Awaitable[None]]


class FetchLoop:
    """Accumulate unique items from *fetch_page* until a target or a stop condition.

    Failures are retried at the same offset after a fixed backoff. Once
    *max_retries* consecutive failures pile up the loop gives up and returns
    what it has; a short result is a valid result.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        page_size: int = config.PAGE_SIZE,
        max_retries: int = config.MAX_RETRIES,
        delay_min: float = config.REQUEST_DELAY_MIN,
        delay_max: float = config.REQUEST_DELAY_MAX,
        backoff: float = config.RETRY_BACKOFF,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
        label: str = "",
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._max_retries = max_retries
        self._delay_min = delay_min
        self._delay_max = delay_max
        self._backoff = backoff
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._label = label

    # ── public ──────────────────────────────────────────────────────────
    async def run(
        self,
        target: int,
        on_page: Callable[[int, int], None] | None = None,
    ) -> FetchOutcome:
        """Fetch until *target* unique items are held.

        *on_page* receives ``(kept, target)`` after every successful page.
        """
        outcome = FetchOutcome()
        if target <= 0:
            outcome.stop_reason = StopReason.TARGET_REACHED
            return outcome

        seen: set[str] = set()
        offset = 0
        failures = 0
        stalls = 0

        while True:
            logger.info(
                "%sFetching offset=%d (%d/%d)", self._label, offset, len(outcome.items), target
            )
            raw = await self._fetch_page(offset)
            result = classify_response(raw.body, raw.status, raw.error)

            if isinstance(result, TransientFetchFailure):
                failures += 1
                outcome.last_failure = result.category
                logger.warning(
                    "%sAttempt %d/%d at offset=%d failed: %s",
                    self._label, failures, self._max_retries, offset, result.describe(),
                )
                if failures >= self._max_retries:
                    logger.error(
                        "%sGiving up at offset=%d after %d failures; keeping %d items",
                        self._label, offset, failures, len(outcome.items),
                    )
                    outcome.stop_reason = StopReason.RETRIES_EXHAUSTED
                    return outcome
                await self._sleep(self._backoff)
                continue

            assert isinstance(result, Success)
            failures = 0
            entries = extract_entries(result.payload)
            if not entries:
                logger.info("%sNo more results at offset=%d", self._label, offset)
                outcome.stop_reason = StopReason.NO_MORE_RESULTS
                return outcome

            outcome.raw_seen += len(entries)
            before = len(outcome.items)
            reached = self._accumulate(entries, seen, outcome.items, target)
            self._notify(on_page, outcome, target)
            if reached:
                outcome.stop_reason = StopReason.TARGET_REACHED
                return outcome

            # Pages of repeats only: the backend is looping, not paginating.
            stalls = stalls + 1 if len(outcome.items) == before else 0
            if stalls >= self._max_retries:
                logger.warning("%sNo new items in %d pages; stopping", self._label, stalls)
                outcome.stop_reason = StopReason.NO_MORE_RESULTS
                return outcome

            if "has_more" in result.payload and not result.payload["has_more"]:
                logger.info("%sBackend reports has_more=false", self._label)
                outcome.stop_reason = StopReason.NO_MORE_RESULTS
                return outcome

            offset += self._page_size
            await self._sleep(self._rng.uniform(self._delay_min, self._delay_max))

    # ── private ─────────────────────────────────────────────────────────
    def _accumulate(
        self,
        entries: list,
        seen: set[str],
        items: list[SearchItem],
        target: int,
    ) -> bool:
        """Append unseen items in order; return True once *target* is hit."""
        for entry in entries:
            item = parse_entry(entry)
            if item is None or item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
            if len(items) >= target:
                return True
        return False

    @staticmethod
    def _notify(
        on_page: Callable[[int, int], None] | None, outcome: FetchOutcome, target: int
    ) -> None:
        if on_page is not None:
            on_page(len(outcome.items), target)
