"""Comment repository for database operations."""
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from forumdb.core.errors import BaseServiceError
from forumdb.core.logging import get_logger, log_error
from forumdb.db.models import CommentORM, TopicORM, UserORM
from forumdb.db.query.aggregates import comment_liked_by, comment_likes_count, topic_comments_count
from forumdb.db.query.listing import ListingQuery, run_listing
from forumdb.db.query.pagination import Pagination
from forumdb.db.query.predicates import Join, build_comment_predicate
from forumdb.db.session import Database
from forumdb.models.comment import Comment, CommentCreate, CommentListResponse
from forumdb.models.common import EntityStatus

logger = get_logger(__name__)

LIKES_LABEL = "like_total"
LIKED_LABEL = "liked_by_viewer"

AUTHOR_JOIN = Join(UserORM, CommentORM.author_id == UserORM.id)

# Newest first; id breaks timestamp ties
COMMENT_ORDER = (CommentORM.created_at.desc(), CommentORM.id.desc())


class CommentRepository:
    """Repository for Comment database operations."""

    def __init__(
        self,
        database: Database,
        default_page_size: int = 10,
        max_page_size: Optional[int] = 100,
    ) -> None:
        """Initialize repository with the shared database context."""
        self._db = database
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _columns(self, viewer_id: Optional[int]) -> List[Any]:
        columns = [
            CommentORM,
            UserORM.username.label("author_username"),
            UserORM.avatar.label("author_avatar"),
            comment_likes_count().label(LIKES_LABEL),
        ]
        if viewer_id is not None:
            columns.append(comment_liked_by(viewer_id).label(LIKED_LABEL))
        return columns

    def build_listing(
        self,
        topic_id: int,
        page: Any = None,
        page_size: Any = None,
        viewer_id: Optional[int] = None,
    ) -> ListingQuery:
        """Assemble the data and count statements of a comment listing."""
        return ListingQuery(
            entity=CommentORM,
            columns=self._columns(viewer_id),
            predicate=build_comment_predicate(topic_id),
            pagination=Pagination.coerce(page, page_size, self.default_page_size, self.max_page_size),
            order_by=COMMENT_ORDER,
            base_joins=(AUTHOR_JOIN,),
        )

    async def list_comments(
        self,
        topic_id: int,
        page: Any = None,
        page_size: Any = None,
        viewer_id: Optional[int] = None,
    ) -> CommentListResponse:
        """One page of a topic's active comments, newest first."""
        query = self.build_listing(topic_id, page, page_size, viewer_id)

        async with self._db.session() as session:
            rows, total = await run_listing(self._db, session, query, operation="comments.list")

        comments = [self._row_to_model(row, viewer_id is not None) for row in rows]
        logger.info(
            "comments_listed",
            topic_id=topic_id,
            count=len(comments),
            total_count=total,
            page=query.pagination.page,
        )
        return CommentListResponse(
            comments=comments,
            total_count=total,
            page_count=query.pagination.page_count(total),
        )

    async def get_by_id(self, comment_id: int, viewer_id: Optional[int] = None) -> Optional[Comment]:
        """Get an active comment by ID."""
        statement = (
            select(*self._columns(viewer_id))
            .select_from(CommentORM)
            .outerjoin(UserORM, CommentORM.author_id == UserORM.id)
            .where(CommentORM.id == comment_id, CommentORM.status == EntityStatus.ACTIVE)
        )
        async with self._db.session() as session:
            row = (await self._db.execute(session, statement, operation="comments.get_by_id")).one_or_none()

        if row is None:
            logger.info("comment_not_found", comment_id=comment_id)
            return None
        return self._row_to_model(row, viewer_id is not None)

    async def create(self, comment_create: CommentCreate) -> Comment:
        """Insert a comment and refresh its topic's ``comments_count``."""
        try:
            async with self._db.transaction("comments.create") as session:
                comment_orm = CommentORM(
                    topic_id=comment_create.topic_id,
                    author_id=comment_create.author_id,
                    content=comment_create.content,
                    parent_id=comment_create.parent_id,
                )
                session.add(comment_orm)
                await self._db.flush(session, operation="comments.create.insert")
                comment_id = comment_orm.id
                await self._refresh_comments_count(session, comment_create.topic_id)
        except BaseServiceError as e:
            log_error(logger, e, {"topic_id": comment_create.topic_id})
            raise

        logger.info("comment_created", comment_id=comment_id, topic_id=comment_create.topic_id)
        return await self.get_by_id(comment_id)

    async def delete(self, comment_id: int) -> bool:
        """
        Soft-delete a comment and refresh its topic's ``comments_count``.

        The owning topic is resolved first, regardless of the comment's status.
        Returns False when the comment does not exist.
        """
        async with self._db.transaction("comments.delete") as session:
            found = await self._db.execute(
                session,
                select(CommentORM.topic_id).where(CommentORM.id == comment_id),
                operation="comments.delete.lookup",
            )
            topic_id = found.scalar_one_or_none()
            if topic_id is None:
                logger.warning("comment_delete_missing", comment_id=comment_id)
                return False

            result = await self._db.execute(
                session,
                update(CommentORM)
                .where(CommentORM.id == comment_id)
                .values(status=EntityStatus.DELETED)
                .execution_options(synchronize_session=False),
                operation="comments.delete",
            )
            affected = result.rowcount
            if affected > 0:
                await self._refresh_comments_count(session, topic_id)

        logger.info("comment_deleted", comment_id=comment_id, topic_id=topic_id, affected=affected)
        return affected > 0

    async def check_permission(self, comment_id: int, user_id: int) -> bool:
        """Whether ``user_id`` authored the comment."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                select(CommentORM.author_id).where(CommentORM.id == comment_id),
                operation="comments.check_permission",
            )
            author_id = result.scalar_one_or_none()

        if author_id is None:
            logger.info("comment_not_found", comment_id=comment_id)
            return False
        return author_id == user_id

    async def _refresh_comments_count(self, session: AsyncSession, topic_id: int) -> None:
        await self._db.execute(
            session,
            update(TopicORM)
            .where(TopicORM.id == topic_id)
            .values(comments_count=topic_comments_count())
            .execution_options(synchronize_session=False),
            operation="comments.refresh_topic_count",
        )

    @staticmethod
    def _row_to_model(row, has_viewer: bool) -> Comment:
        comment_orm: CommentORM = row.CommentORM
        mapping = row._mapping
        return Comment(
            id=comment_orm.id,
            topic_id=comment_orm.topic_id,
            author_id=comment_orm.author_id,
            author_name=mapping["author_username"],
            author_avatar=mapping["author_avatar"],
            content=comment_orm.content,
            parent_id=comment_orm.parent_id,
            status=comment_orm.status,
            likes_count=mapping[LIKES_LABEL] or 0,
            is_liked=bool(mapping[LIKED_LABEL]) if has_viewer else False,
            created_at=comment_orm.created_at,
            updated_at=comment_orm.updated_at,
        )
