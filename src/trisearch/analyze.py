"""Cross-session overlap and rank-dominance analysis.

Pure functions over completed sessions: no I/O, and the same input always
yields the same report.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from trisearch.models import AppearanceTally, OverlapReport, SearchItem, SessionResult

logger = logging.getLogger(__name__)


def primary_metric(item: SearchItem) -> int:
    """Engagement metric used for variant selection and partition order."""
    return item.metrics.view_count


def dedupe_session(items: Sequence[SearchItem]) -> list[SearchItem]:
    """Drop repeats within one session, keeping first occurrences in order."""
    seen: set[str] = set()
    unique: list[SearchItem] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


def tally_appearances(sessions: Sequence[SessionResult]) -> dict[str, AppearanceTally]:
    """Count distinct-session appearances and record per-session ranks.

    The kept record for each id is the variant with the highest primary
    metric; on a tie the earliest seen stays.
    """
    n = len(sessions)
    tallies: dict[str, AppearanceTally] = {}
    for slot, session in enumerate(sessions):
        for rank, item in enumerate(dedupe_session(session.items), start=1):
            tally = tallies.get(item.id)
            if tally is None:
                tally = AppearanceTally(item=item, ranks=[None] * n)
                tallies[item.id] = tally
            elif primary_metric(item) > primary_metric(tally.item):
                tally.item = item
            tally.count += 1
            tally.ranks[slot] = rank
    return tallies


def dominance_score(ranks: Sequence[int | None], session_count: int) -> float:
    """``sum(1 / rank) / N * 100`` over the sessions where the item appeared."""
    if session_count <= 0:
        return 0.0
    total = sum(1.0 / r for r in ranks if r)
    return total / session_count * 100


def _by_metric(items: list[SearchItem]) -> list[SearchItem]:
    return sorted(items, key=primary_metric, reverse=True)


def analyze_sessions(sessions: Sequence[SessionResult], query: str = "") -> OverlapReport:
    """Merge N session results into an :class:`OverlapReport`."""
    n = len(sessions)
    tallies = tally_appearances(sessions)

    in_all: list[SearchItem] = []
    in_some: list[SearchItem] = []
    once: list[SearchItem] = []
    for tally in tallies.values():
        if tally.count == n:
            in_all.append(tally.item)
        elif tally.count >= 2:
            in_some.append(tally.item)
        else:
            once.append(tally.item)

    in_all, in_some, once = _by_metric(in_all), _by_metric(in_some), _by_metric(once)

    repeated = sum(1 for t in tallies.values() if t.count >= 2)
    overlap_rate = repeated / len(tallies) * 100 if tallies else 0.0

    dominance = {item_id: dominance_score(t.ranks, n) for item_id, t in tallies.items()}

    report = OverlapReport(
        query=query or (sessions[0].query if sessions else ""),
        session_count=n,
        appeared_in_all=in_all,
        appeared_in_some=in_some,
        appeared_once=once,
        all_unique=in_all + in_some + once,
        overlap_rate=overlap_rate,
        dominance=dominance,
        sessions=list(sessions),
    )
    logger.info(
        "Overlap: %d unique, all=%d some=%d once=%d, rate=%.1f%%",
        len(tallies), len(in_all), len(in_some), len(once), overlap_rate,
    )
    return report


def top_dominant(report: OverlapReport, limit: int = 10) -> list[tuple[SearchItem, float]]:
    """Items ordered by dominance score, highest first."""
    ranked = sorted(
        report.all_unique,
        key=lambda item: report.dominance.get(item.id, 0.0),
        reverse=True,
    )
    return [(item, report.dominance.get(item.id, 0.0)) for item in ranked[:limit]]
