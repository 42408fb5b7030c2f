"""Topic repository for database operations."""
from datetime import datetime
from typing import Any, List, Optional, Union

from sqlalchemy import select, update

from forumdb.core.errors import BaseServiceError
from forumdb.core.logging import get_logger, log_error
from forumdb.db.models import TopicORM, UserORM
from forumdb.db.query.aggregates import topic_comments_count, topic_liked_by, topic_likes_count
from forumdb.db.query.listing import ListingQuery, run_listing, topic_ordering
from forumdb.db.query.pagination import Pagination
from forumdb.db.query.predicates import Join, build_topic_predicate
from forumdb.db.repositories.tag import TagRepository
from forumdb.db.session import Database
from forumdb.models.common import EntityStatus
from forumdb.models.topic import (
    Topic,
    TopicCreate,
    TopicFilters,
    TopicListResponse,
    TopicSort,
    TopicUpdate,
)

logger = get_logger(__name__)

# Result labels of the live aggregates; distinct from the stored columns
LIKES_LABEL = "like_total"
COMMENTS_LABEL = "comment_total"
LIKED_LABEL = "liked_by_viewer"

AUTHOR_JOIN = Join(UserORM, TopicORM.author_id == UserORM.id)


class TopicRepository:
    """Repository for Topic database operations."""

    def __init__(
        self,
        database: Database,
        tags: Optional[TagRepository] = None,
        default_page_size: int = 10,
        max_page_size: Optional[int] = 100,
    ) -> None:
        """Initialize repository with the shared database context."""
        self._db = database
        self._tags = tags or TagRepository(database)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _columns(self, viewer_id: Optional[int]) -> List[Any]:
        columns = [
            TopicORM,
            UserORM.username.label("author_username"),
            UserORM.avatar.label("author_avatar"),
            topic_likes_count().label(LIKES_LABEL),
            topic_comments_count().label(COMMENTS_LABEL),
        ]
        if viewer_id is not None:
            columns.append(topic_liked_by(viewer_id).label(LIKED_LABEL))
        return columns

    def build_listing(
        self,
        filters: Optional[TopicFilters] = None,
        sort: Union[TopicSort, str, None] = None,
        page: Any = None,
        page_size: Any = None,
        viewer_id: Optional[int] = None,
    ) -> ListingQuery:
        """Assemble the data and count statements of a topic listing."""
        columns = self._columns(viewer_id)
        likes = columns[3]
        return ListingQuery(
            entity=TopicORM,
            columns=columns,
            predicate=build_topic_predicate(filters),
            pagination=Pagination.coerce(page, page_size, self.default_page_size, self.max_page_size),
            order_by=topic_ordering(TopicSort.coerce(sort), likes),
            base_joins=(AUTHOR_JOIN,),
        )

    async def list_topics(
        self,
        filters: Optional[TopicFilters] = None,
        sort: Union[TopicSort, str, None] = None,
        page: Any = None,
        page_size: Any = None,
        viewer_id: Optional[int] = None,
    ) -> TopicListResponse:
        """
        One page of active topics with live like/comment counts and tags.

        Args:
            filters: Optional category / tag / search filters
            sort: latest, hot or official; anything else means latest
            page: 1-based page number; malformed values mean 1
            page_size: Items per page; malformed values mean the default
            viewer_id: When given, ``is_liked`` reflects this user's likes

        Returns:
            TopicListResponse with the page, total matching rows and page count
        """
        query = self.build_listing(filters, sort, page, page_size, viewer_id)

        async with self._db.session() as session:
            rows, total = await run_listing(self._db, session, query, operation="topics.list")
            tag_names = await self._tags.names_for_topics(session, [row.TopicORM.id for row in rows])

        topics = [
            self._row_to_model(row, tag_names.get(row.TopicORM.id, []), viewer_id is not None)
            for row in rows
        ]
        logger.info(
            "topics_listed",
            count=len(topics),
            total_count=total,
            page=query.pagination.page,
            sort=TopicSort.coerce(sort).value,
        )
        return TopicListResponse(
            topics=topics,
            total_count=total,
            page_count=query.pagination.page_count(total),
        )

    async def get_by_id(self, topic_id: int, viewer_id: Optional[int] = None) -> Optional[Topic]:
        """Get an active topic by ID."""
        statement = (
            select(*self._columns(viewer_id))
            .select_from(TopicORM)
            .outerjoin(UserORM, TopicORM.author_id == UserORM.id)
            .where(TopicORM.id == topic_id, TopicORM.status == EntityStatus.ACTIVE)
        )
        async with self._db.session() as session:
            row = (await self._db.execute(session, statement, operation="topics.get_by_id")).one_or_none()
            if row is None:
                logger.info("topic_not_found", topic_id=topic_id)
                return None
            tag_names = await self._tags.names_for_topics(session, [topic_id])

        return self._row_to_model(row, tag_names.get(topic_id, []), viewer_id is not None)

    async def create(self, topic_create: TopicCreate) -> Topic:
        """Create a topic and attach its tags in one transaction."""
        try:
            async with self._db.transaction("topics.create") as session:
                topic_orm = TopicORM(
                    title=topic_create.title,
                    content=topic_create.content,
                    category=topic_create.category,
                    author_id=topic_create.author_id,
                )
                session.add(topic_orm)
                await self._db.flush(session, operation="topics.create.insert")
                topic_id = topic_orm.id

                if topic_create.tags:
                    await self._tags.sync_tags(topic_id, topic_create.tags, session=session)
        except BaseServiceError as e:
            log_error(logger, e, {"author_id": topic_create.author_id})
            raise

        logger.info("topic_created", topic_id=topic_id, author_id=topic_create.author_id)
        return await self.get_by_id(topic_id)

    async def update(self, topic_id: int, topic_update: TopicUpdate) -> Optional[Topic]:
        """
        Update topic fields and, when ``tags`` is given, resync its tags.

        Returns None when the topic does not exist or is deleted.
        """
        fields = topic_update.model_dump(exclude_unset=True, exclude_none=True, exclude={"tags"})

        try:
            async with self._db.transaction("topics.update") as session:
                found = await self._db.execute(
                    session,
                    select(TopicORM.id).where(TopicORM.id == topic_id, TopicORM.status == EntityStatus.ACTIVE),
                    operation="topics.update.lookup",
                )
                if found.scalar_one_or_none() is None:
                    logger.info("topic_not_found", topic_id=topic_id)
                    return None

                if fields:
                    await self._db.execute(
                        session,
                        update(TopicORM)
                        .where(TopicORM.id == topic_id)
                        .values(**fields, updated_at=datetime.now())
                        .execution_options(synchronize_session=False),
                        operation="topics.update",
                    )

                if topic_update.tags is not None:
                    await self._tags.sync_tags(topic_id, topic_update.tags, session=session)
        except BaseServiceError as e:
            log_error(logger, e, {"topic_id": topic_id})
            raise

        logger.info("topic_updated", topic_id=topic_id, fields=sorted(fields))
        return await self.get_by_id(topic_id)

    async def delete(self, topic_id: int) -> bool:
        """Soft-delete a topic (status becomes ``deleted``)."""
        async with self._db.transaction("topics.delete") as session:
            result = await self._db.execute(
                session,
                update(TopicORM)
                .where(TopicORM.id == topic_id)
                .values(status=EntityStatus.DELETED)
                .execution_options(synchronize_session=False),
                operation="topics.delete",
            )
            affected = result.rowcount
        deleted = affected > 0
        logger.info("topic_deleted", topic_id=topic_id, affected=affected)
        return deleted

    async def increment_views(self, topic_id: int) -> None:
        """Add one view; failures are logged and never raised."""
        try:
            async with self._db.transaction("topics.increment_views") as session:
                await self._db.execute(
                    session,
                    update(TopicORM)
                    .where(TopicORM.id == topic_id)
                    .values(views=TopicORM.views + 1)
                    .execution_options(synchronize_session=False),
                    operation="topics.increment_views",
                )
        except BaseServiceError as e:
            logger.warning("topic_view_increment_failed", topic_id=topic_id, code=e.code.value)
            return
        logger.debug("topic_view_incremented", topic_id=topic_id)

    async def check_permission(self, topic_id: int, user_id: int) -> bool:
        """Whether ``user_id`` authored the topic (deleted topics included)."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                select(TopicORM.author_id).where(TopicORM.id == topic_id),
                operation="topics.check_permission",
            )
            author_id = result.scalar_one_or_none()

        if author_id is None:
            logger.info("topic_not_found", topic_id=topic_id)
            return False
        is_author = author_id == user_id
        logger.info("topic_permission_checked", topic_id=topic_id, user_id=user_id, is_author=is_author)
        return is_author

    @staticmethod
    def _row_to_model(row, tags: List[str], has_viewer: bool) -> Topic:
        """Convert a listing/detail row to the public model."""
        topic_orm: TopicORM = row.TopicORM
        mapping = row._mapping
        return Topic(
            id=topic_orm.id,
            title=topic_orm.title,
            content=topic_orm.content,
            category=topic_orm.category,
            author_id=topic_orm.author_id,
            author_name=mapping["author_username"],
            author_avatar=mapping["author_avatar"],
            status=topic_orm.status,
            views=topic_orm.views or 0,
            likes_count=mapping[LIKES_LABEL] or 0,
            comments_count=mapping[COMMENTS_LABEL] or 0,
            is_hot=bool(topic_orm.is_hot),
            is_official=bool(topic_orm.is_official),
            is_liked=bool(mapping[LIKED_LABEL]) if has_viewer else False,
            created_at=topic_orm.created_at,
            updated_at=topic_orm.updated_at,
            tags=tags,
        )
