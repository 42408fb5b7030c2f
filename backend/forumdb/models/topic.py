"""Topic models for request/response validation."""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union
from datetime import datetime
from enum import Enum

from forumdb.models.common import CamelModel, EntityStatus


class TopicSort(str, Enum):
    """Topic listing orders."""
    LATEST = "latest"
    HOT = "hot"
    OFFICIAL = "official"

    @classmethod
    def coerce(cls, value: Union["TopicSort", str, None]) -> "TopicSort":
        """Unknown or missing sort modes fall back to ``latest``."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.LATEST
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LATEST


class TopicFilters(BaseModel):
    """Optional listing filters; blank values count as absent."""
    category: Optional[str] = None
    tag: Optional[Union[int, str]] = None
    search: Optional[str] = None

    @field_validator("category", "tag", "search", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Topic(CamelModel):
    """Public topic representation."""
    id: int
    title: str
    content: str
    category: str
    author_id: int
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    status: EntityStatus = EntityStatus.ACTIVE
    views: int = 0
    likes_count: int = 0
    comments_count: int = 0
    is_hot: bool = False
    is_official: bool = False
    is_liked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class TopicCreate(BaseModel):
    """Topic creation request."""
    title: str
    content: str
    category: str
    author_id: int
    tags: List[Union[int, str]] = Field(default_factory=list)


class TopicUpdate(BaseModel):
    """Partial topic update; ``tags=None`` leaves tags untouched, ``[]`` clears them."""
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[Union[int, str]]] = None


class TopicListResponse(CamelModel):
    """Topic listing page."""
    topics: List[Topic]
    total_count: int
    page_count: int
