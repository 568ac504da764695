"""Domain models used across the search engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trisearch.errors import FailureCategory


class ItemMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    share_count: int = Field(default=0, ge=0)
    save_count: int = Field(default=0, ge=0)


class Author(BaseModel):
    model_config = ConfigDict(frozen=True)

    author_id: str = ""
    unique_id: str = ""
    nickname: str = ""
    follower_count: int = Field(default=0, ge=0)
    following_count: int = Field(default=0, ge=0)
    heart_count: int = Field(default=0, ge=0)
    video_count: int = Field(default=0, ge=0)
    avatar_url: str = ""


class SearchItem(BaseModel):
    """One search result as captured by a single session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    desc: str = ""
    create_time: int = 0
    duration: int = Field(default=0, ge=0)
    cover_url: str = ""
    play_url: str = ""
    author: Author = Field(default_factory=Author)
    metrics: ItemMetrics = Field(default_factory=ItemMetrics)
    hashtags: list[str] = Field(default_factory=list)

    @field_validator("hashtags")
    @classmethod
    def _unique_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(t for t in tags if t))


class StopReason(str, Enum):
    TARGET_REACHED = "target_reached"
    NO_MORE_RESULTS = "no_more_results"
    RETRIES_EXHAUSTED = "retries_exhausted"


class SessionResult(BaseModel):
    """Output of one completed session; item position + 1 is its rank."""

    model_config = ConfigDict(frozen=True)

    session_index: int = Field(ge=0)
    query: str = ""
    items: list[SearchItem] = Field(default_factory=list)
    total_fetched: int = 0
    raw_seen: int = 0
    stop_reason: StopReason = StopReason.NO_MORE_RESULTS
    last_failure: FailureCategory | None = None
    user_agent: str = ""


class AppearanceTally(BaseModel):
    """Per-id appearance count and per-session ranks (``None`` = absent)."""

    item: SearchItem
    count: int = 0
    ranks: list[int | None] = Field(default_factory=list)


class OverlapReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    session_count: int = 0
    appeared_in_all: list[SearchItem] = Field(default_factory=list)
    appeared_in_some: list[SearchItem] = Field(default_factory=list)
    appeared_once: list[SearchItem] = Field(default_factory=list)
    all_unique: list[SearchItem] = Field(default_factory=list)
    overlap_rate: float = 0.0
    dominance: dict[str, float] = Field(default_factory=dict)
    sessions: list[SessionResult] = Field(default_factory=list)


class ProgressEvent(BaseModel):
    """Advisory status update for UI display."""

    message: str
    percent: float = Field(default=0.0, ge=0.0, le=100.0)
    session_index: int | None = None
