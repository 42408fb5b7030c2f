"""Comment models."""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from forumdb.models.common import CamelModel, EntityStatus


class Comment(CamelModel):
    """Public comment representation."""
    id: int
    topic_id: int
    author_id: int
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    content: str
    parent_id: Optional[int] = None
    status: EntityStatus = EntityStatus.ACTIVE
    likes_count: int = 0
    is_liked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentCreate(BaseModel):
    """Comment creation request."""
    topic_id: int
    author_id: int
    content: str
    parent_id: Optional[int] = None


class CommentListResponse(CamelModel):
    """Comment listing page."""
    comments: List[Comment]
    total_count: int
    page_count: int
