"""Shared builders for tests."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

from trisearch.models import Author, ItemMetrics, SearchItem, SessionResult


def make_item(item_id: str, views: int = 0, desc: str = "") -> SearchItem:
    return SearchItem(
        id=item_id,
        desc=desc or f"video {item_id}",
        author=Author(author_id=f"a-{item_id}", unique_id=f"user_{item_id}"),
        metrics=ItemMetrics(view_count=views),
    )


def make_session(index: int, ids: list[str], views: dict[str, int] | None = None) -> SessionResult:
    views = views or {}
    items = [make_item(i, views.get(i, 0)) for i in ids]
    return SessionResult(
        session_index=index,
        query="test",
        items=items,
        total_fetched=len(items),
    )


def raw_entry(item_id: str, views: int = 100) -> dict:
    return {
        "type": 1,
        "item": {
            "id": item_id,
            "desc": f"video {item_id}",
            "createTime": 1700000000,
            "video": {"duration": 15},
            "author": {"id": f"a-{item_id}", "uniqueId": f"user_{item_id}"},
            "authorStats": {"followerCount": 10},
            "stats": {"playCount": views, "diggCount": 3},
            "challenges": [{"title": "tag"}],
        },
    }


def payload(ids: list[str], has_more: int = 1) -> str:
    return json.dumps(
        {"status_code": 0, "data": [raw_entry(i) for i in ids], "has_more": has_more}
    )


async def no_sleep(_seconds: float) -> None:
    return None


def fake_context(evaluate_results: list) -> tuple[MagicMock, MagicMock]:
    """A Playwright-like context whose page.evaluate yields *evaluate_results* in order."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(side_effect=evaluate_results)
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.route = AsyncMock()
    context.close = AsyncMock()
    return context, page


def api_ok(ids: list[str], has_more: int = 1) -> dict:
    return {"status": 200, "body": payload(ids, has_more)}
