"""Store facade wiring every repository to one database context."""
from typing import Optional

from forumdb.core.config import Settings, get_settings
from forumdb.core.logging import configure_logging, get_logger
from forumdb.db.repositories import (
    COMMENT_LIKES,
    TOPIC_LIKES,
    CategoryRepository,
    CommentRepository,
    LikeRepository,
    TagRepository,
    TopicRepository,
)
from forumdb.db.session import Database

logger = get_logger(__name__)


class ForumStore:
    """Repositories of the forum data layer, sharing one ``Database``."""

    def __init__(self, database: Database, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.database = database
        self.tags = TagRepository(database)
        self.topics = TopicRepository(
            database,
            tags=self.tags,
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
        )
        self.comments = CommentRepository(
            database,
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
        )
        self.categories = CategoryRepository(database)
        self.topic_likes = LikeRepository(database, TOPIC_LIKES, atomic=settings.atomic_like_refresh)
        self.comment_likes = LikeRepository(database, COMMENT_LIKES, atomic=settings.atomic_like_refresh)

    async def close(self) -> None:
        """Release pooled connections."""
        await self.database.dispose()
        logger.info("store_closed")


def create_store(settings: Optional[Settings] = None) -> ForumStore:
    """Build the engine from settings and return a ready store."""
    settings = settings or get_settings()
    configure_logging(settings)
    database = Database.from_settings(settings)
    logger.info("store_created", backend=database.engine.url.get_backend_name(), query_timeout=settings.query_timeout)
    return ForumStore(database, settings)
