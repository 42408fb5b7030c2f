"""Database repositories."""
from forumdb.db.repositories.tag import TagRepository
from forumdb.db.repositories.topic import TopicRepository
from forumdb.db.repositories.comment import CommentRepository
from forumdb.db.repositories.category import CategoryRepository
from forumdb.db.repositories.like import LikeRepository, LikeTarget, TOPIC_LIKES, COMMENT_LIKES

__all__ = [
    "TagRepository",
    "TopicRepository",
    "CommentRepository",
    "CategoryRepository",
    "LikeRepository",
    "LikeTarget",
    "TOPIC_LIKES",
    "COMMENT_LIKES",
]
