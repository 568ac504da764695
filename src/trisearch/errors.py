"""Error taxonomy shared by every layer of the search engine."""

from __future__ import annotations

from enum import Enum


class FailureCategory(str, Enum):
    """Cause categories surfaced to callers instead of raw technical detail."""

    BLOCKED = "blocked"
    CHALLENGE = "challenge"
    MALFORMED = "malformed"
    NETWORK = "network"
    BROWSER_LAUNCH = "browser_launch"
    CONFIGURATION = "configuration"


_USER_MESSAGES: dict[FailureCategory, str] = {
    FailureCategory.BLOCKED: "The search backend rate-limited or blocked the request.",
    FailureCategory.CHALLENGE: "The search backend served a challenge page (CAPTCHA).",
    FailureCategory.MALFORMED: "The search backend returned data that could not be read.",
    FailureCategory.NETWORK: "A network or transport error interrupted the search.",
    FailureCategory.BROWSER_LAUNCH: "The headless browser could not be started.",
    FailureCategory.CONFIGURATION: "The proxy configuration is incomplete.",
}


def describe_category(category: FailureCategory) -> str:
    return _USER_MESSAGES[category]


class TriSearchError(Exception):
    """Base class for errors that end a search run."""

    category: FailureCategory = FailureCategory.NETWORK

    @property
    def user_message(self) -> str:
        return describe_category(self.category)


class ConfigurationError(TriSearchError):
    """Raised pre-flight when proxy settings are only partially present."""

    category = FailureCategory.CONFIGURATION


class SessionFatalError(TriSearchError):
    """Raised when one session's browser context or navigation fails.

    ``session_index`` is ``None`` when the failure happened before any
    session started (browser launch).
    """

    def __init__(
        self,
        message: str,
        *,
        category: FailureCategory = FailureCategory.NETWORK,
        session_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.session_index = session_index
