"""
Correlated aggregate expressions for topic and comment rows.

Each function returns a scalar expression correlated to the outer row of the
statement it is placed in. Counts come from the association tables, never
from the denormalized ``likes_count`` / ``comments_count`` columns, and are 0
when nothing matches.
"""
from sqlalchemy import func, select
from sqlalchemy.sql.elements import ColumnElement

from forumdb.db.models import (
    CategoryORM,
    CommentLikeORM,
    CommentORM,
    TagORM,
    TopicLikeORM,
    TopicORM,
    TopicTagORM,
)
from forumdb.models.common import EntityStatus


def topic_likes_count() -> ColumnElement[int]:
    return (
        select(func.count())
        .select_from(TopicLikeORM)
        .where(TopicLikeORM.topic_id == TopicORM.id)
        .correlate(TopicORM)
        .scalar_subquery()
    )


def topic_comments_count() -> ColumnElement[int]:
    """Active comments only."""
    return (
        select(func.count())
        .select_from(CommentORM)
        .where(CommentORM.topic_id == TopicORM.id, CommentORM.status == EntityStatus.ACTIVE)
        .correlate(TopicORM)
        .scalar_subquery()
    )


def topic_liked_by(viewer_id: int) -> ColumnElement[bool]:
    """Whether ``viewer_id`` liked the outer topic."""
    return (
        select(TopicLikeORM.id)
        .where(TopicLikeORM.topic_id == TopicORM.id, TopicLikeORM.user_id == viewer_id)
        .correlate(TopicORM)
        .exists()
    )


def comment_likes_count() -> ColumnElement[int]:
    return (
        select(func.count())
        .select_from(CommentLikeORM)
        .where(CommentLikeORM.comment_id == CommentORM.id)
        .correlate(CommentORM)
        .scalar_subquery()
    )


def comment_liked_by(viewer_id: int) -> ColumnElement[bool]:
    """Whether ``viewer_id`` liked the outer comment."""
    return (
        select(CommentLikeORM.id)
        .where(CommentLikeORM.comment_id == CommentORM.id, CommentLikeORM.user_id == viewer_id)
        .correlate(CommentORM)
        .exists()
    )


def tag_topics_count() -> ColumnElement[int]:
    """Active topics carrying the outer tag."""
    return (
        select(func.count())
        .select_from(TopicTagORM)
        .join(TopicORM, TopicTagORM.topic_id == TopicORM.id)
        .where(TopicTagORM.tag_id == TagORM.id, TopicORM.status == EntityStatus.ACTIVE)
        .correlate(TagORM)
        .scalar_subquery()
    )


def category_topics_count() -> ColumnElement[int]:
    """Active topics filed under the outer category's name."""
    return (
        select(func.count())
        .select_from(TopicORM)
        .where(TopicORM.category == CategoryORM.name, TopicORM.status == EntityStatus.ACTIVE)
        .correlate(CategoryORM)
        .scalar_subquery()
    )
