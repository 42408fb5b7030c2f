"""Public data models."""
from forumdb.models.common import CamelModel, EntityStatus
from forumdb.models.topic import (
    Topic,
    TopicCreate,
    TopicUpdate,
    TopicFilters,
    TopicSort,
    TopicListResponse,
)
from forumdb.models.comment import Comment, CommentCreate, CommentListResponse
from forumdb.models.category import Category, CategoryCreate, CategoryUpdate
from forumdb.models.tag import Tag, TagSummary, TagById, TagByName, TagRef, parse_tag_refs
from forumdb.models.like import LikesCount

__all__ = [
    "CamelModel",
    "EntityStatus",
    "Topic",
    "TopicCreate",
    "TopicUpdate",
    "TopicFilters",
    "TopicSort",
    "TopicListResponse",
    "Comment",
    "CommentCreate",
    "CommentListResponse",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "Tag",
    "TagSummary",
    "TagById",
    "TagByName",
    "TagRef",
    "parse_tag_refs",
    "LikesCount",
]
