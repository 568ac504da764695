"""Classify raw search-API responses before any JSON reaches the pipeline.

Every outcome is a value. Nothing in this module raises, so the fetch loop
can branch on the result type without catching exceptions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from trisearch.errors import FailureCategory

logger = logging.getLogger(__name__)

_SNIPPET_LEN = 100
_HTML_MARKERS = ("<html", "<!doctype")
_HTML_HEAD_LEN = 16


@dataclass(frozen=True)
class Success:
    payload: dict[str, Any]


@dataclass(frozen=True)
class TransientFetchFailure:
    """Base for classifications the fetch loop recovers from by retrying."""

    category: ClassVar[FailureCategory] = FailureCategory.NETWORK

    def describe(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class BlockedEmpty(TransientFetchFailure):
    status: int = 0
    category: ClassVar[FailureCategory] = FailureCategory.BLOCKED

    def describe(self) -> str:
        return f"empty response (status {self.status}), likely blocked by anti-bot"


@dataclass(frozen=True)
class BlockedChallenge(TransientFetchFailure):
    status: int = 0
    category: ClassVar[FailureCategory] = FailureCategory.CHALLENGE

    def describe(self) -> str:
        return f"HTML instead of JSON (status {self.status}), likely CAPTCHA or interstitial"


@dataclass(frozen=True)
class MalformedJson(TransientFetchFailure):
    snippet: str = ""
    category: ClassVar[FailureCategory] = FailureCategory.MALFORMED

    def describe(self) -> str:
        return f"unparseable body: {self.snippet!r}"


@dataclass(frozen=True)
class ApiError(TransientFetchFailure):
    status_code: int = 0
    message: str = ""
    category: ClassVar[FailureCategory] = FailureCategory.BLOCKED

    def describe(self) -> str:
        return f"API error status_code={self.status_code}: {self.message or 'unknown'}"


@dataclass(frozen=True)
class NetworkError(TransientFetchFailure):
    message: str = ""
    category: ClassVar[FailureCategory] = FailureCategory.NETWORK

    def describe(self) -> str:
        return f"fetch failed: {self.message}"


Classification = Success | TransientFetchFailure


def classify_response(
    body: str | None, status: int = 0, error: str | None = None
) -> Classification:
    """Categorise one search-API response.

    *error* is set when the fetch itself threw (timeout, DNS, aborted) and
    wins over whatever body came back.
    """
    if error is not None:
        return NetworkError(message=error)

    if body is None or body.strip() == "":
        return BlockedEmpty(status=status)

    # Only the document head: JSON string values may quote markup.
    head = body.lstrip()[:_HTML_HEAD_LEN].lower()
    if head.startswith(_HTML_MARKERS):
        return BlockedChallenge(status=status)

    try:
        payload = json.loads(body)
    except ValueError:
        return MalformedJson(snippet=body[:_SNIPPET_LEN])

    if not isinstance(payload, dict):
        return MalformedJson(snippet=body[:_SNIPPET_LEN])

    code = payload.get("status_code", 0)
    if code not in (0, None, "0"):
        try:
            code = int(code)
        except (TypeError, ValueError):
            return MalformedJson(snippet=body[:_SNIPPET_LEN])
        return ApiError(status_code=code, message=str(payload.get("status_msg") or ""))

    return Success(payload=payload)
