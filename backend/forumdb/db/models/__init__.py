"""Database ORM models."""
from forumdb.db.models.user import UserORM
from forumdb.db.models.topic import TopicORM
from forumdb.db.models.comment import CommentORM
from forumdb.db.models.category import CategoryORM
from forumdb.db.models.tag import TagORM, TopicTagORM
from forumdb.db.models.like import TopicLikeORM, CommentLikeORM

__all__ = [
    "UserORM",
    "TopicORM",
    "CommentORM",
    "CategoryORM",
    "TagORM",
    "TopicTagORM",
    "TopicLikeORM",
    "CommentLikeORM",
]
