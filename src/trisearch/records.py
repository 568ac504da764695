"""Narrow, validated view of the search API's raw item records."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from trisearch.models import Author, ItemMetrics, SearchItem

logger = logging.getLogger(__name__)

# Raw entries of this type carry a video; other types are users, lives, etc.
_VIDEO_ENTRY_TYPE = 1


class _RawModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON null means absent: let the field default apply.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class _RawVideo(_RawModel):
    duration: int = Field(default=0, ge=0)
    cover: str = ""
    play_addr: str = Field(default="", alias="playAddr")


class _RawAuthor(_RawModel):
    id: str = ""
    unique_id: str = Field(default="", alias="uniqueId")
    nickname: str = ""
    avatar_thumb: str = Field(default="", alias="avatarThumb")


class _RawAuthorStats(_RawModel):
    follower_count: int = Field(default=0, ge=0, alias="followerCount")
    following_count: int = Field(default=0, ge=0, alias="followingCount")
    heart_count: int = Field(default=0, ge=0, alias="heartCount")
    video_count: int = Field(default=0, ge=0, alias="videoCount")


class _RawStats(_RawModel):
    play_count: int = Field(default=0, ge=0, alias="playCount")
    digg_count: int = Field(default=0, ge=0, alias="diggCount")
    comment_count: int = Field(default=0, ge=0, alias="commentCount")
    share_count: int = Field(default=0, ge=0, alias="shareCount")
    collect_count: int = Field(default=0, ge=0, alias="collectCount")


class _RawChallenge(_RawModel):
    title: str = ""


class RawItemRecord(_RawModel):
    """One ``item`` object from a search response, before it becomes a SearchItem."""

    id: str = Field(min_length=1)
    desc: str = ""
    create_time: int = Field(default=0, alias="createTime")
    video: _RawVideo = Field(default_factory=_RawVideo)
    author: _RawAuthor = Field(default_factory=_RawAuthor)
    author_stats: _RawAuthorStats = Field(default_factory=_RawAuthorStats, alias="authorStats")
    stats: _RawStats = Field(default_factory=_RawStats)
    challenges: list[_RawChallenge] = Field(default_factory=list)

    @field_validator("challenges", mode="before")
    @classmethod
    def _only_objects(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [c for c in value if isinstance(c, dict)]
        return value

    def to_item(self) -> SearchItem:
        return SearchItem(
            id=self.id.strip(),
            desc=self.desc,
            create_time=self.create_time,
            duration=self.video.duration,
            cover_url=self.video.cover,
            play_url=self.video.play_addr,
            author=Author(
                author_id=self.author.id,
                unique_id=self.author.unique_id,
                nickname=self.author.nickname,
                follower_count=self.author_stats.follower_count,
                following_count=self.author_stats.following_count,
                heart_count=self.author_stats.heart_count,
                video_count=self.author_stats.video_count,
                avatar_url=self.author.avatar_thumb,
            ),
            metrics=ItemMetrics(
                view_count=self.stats.play_count,
                like_count=self.stats.digg_count,
                comment_count=self.stats.comment_count,
                share_count=self.stats.share_count,
                save_count=self.stats.collect_count,
            ),
            hashtags=[c.title for c in self.challenges],
        )


def parse_entry(entry: Any) -> SearchItem | None:
    """Turn one ``data[]`` entry into a SearchItem, or ``None`` if it is noise."""
    if not isinstance(entry, dict):
        return None
    entry_type = entry.get("type", _VIDEO_ENTRY_TYPE)
    if entry_type != _VIDEO_ENTRY_TYPE:
        return None
    raw = entry.get("item")
    if not isinstance(raw, dict):
        return None
    try:
        record = RawItemRecord.model_validate(raw)
        if not record.id.strip():
            return None
        return record.to_item()
    except ValidationError as exc:
        logger.debug("Skipping invalid record %r: %s", raw.get("id"), exc.error_count())
        return None


def extract_entries(payload: dict[str, Any]) -> list[Any] | None:
    """Return the top-level ``data`` list, or ``None`` when the container is missing."""
    data = payload.get("data")
    if not isinstance(data, list):
        return None
    return data
