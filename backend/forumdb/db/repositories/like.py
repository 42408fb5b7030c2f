"""Like toggle repository for topics and comments."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from forumdb.core.errors import BaseServiceError
from forumdb.core.logging import get_logger, log_error
from forumdb.db.models import CommentLikeORM, CommentORM, TopicLikeORM, TopicORM
from forumdb.db.session import Database
from forumdb.models.like import LikesCount

logger = get_logger(__name__)


@dataclass(frozen=True)
class LikeTarget:
    """A likeable entity: its table, its likes table and the linking column."""

    name: str
    entity: Any
    like_model: Any
    entity_key: str

    @property
    def key_column(self):
        return getattr(self.like_model, self.entity_key)


TOPIC_LIKES = LikeTarget("topic", TopicORM, TopicLikeORM, "topic_id")
COMMENT_LIKES = LikeTarget("comment", CommentORM, CommentLikeORM, "comment_id")


class LikeRepository:
    """
    Like/unlike with refresh of the denormalized ``likes_count`` column.

    With ``atomic=True`` the association change and the recount commit
    together, so ``likes_count`` never lags the likes table. With
    ``atomic=False`` the change commits first and the recount runs in its own
    transaction; a failure in between leaves the count stale until the next
    ``get_likes_count``.
    """

    def __init__(self, database: Database, target: LikeTarget, atomic: bool = True) -> None:
        self._db = database
        self.target = target
        self.atomic = atomic

    def _op(self, action: str) -> str:
        return f"{self.target.name}_likes.{action}"

    async def like(self, entity_id: int, user_id: int) -> LikesCount:
        """Add the user's like unless it already exists; return the settled count."""
        return await self._toggle(entity_id, user_id, liked=True)

    async def unlike(self, entity_id: int, user_id: int) -> LikesCount:
        """Remove the user's like if present; return the settled count."""
        return await self._toggle(entity_id, user_id, liked=False)

    async def get_likes_count(self, entity_id: int) -> LikesCount:
        """Recount likes from the likes table and store the result on the entity."""
        async with self._db.transaction(self._op("refresh")) as session:
            return await self._refresh(session, entity_id)

    async def is_liked(self, entity_id: int, user_id: int) -> bool:
        """Whether ``user_id`` currently likes the entity."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                select(self.target.like_model.id).where(
                    self.target.key_column == entity_id,
                    self.target.like_model.user_id == user_id,
                ),
                operation=self._op("is_liked"),
            )
            return result.first() is not None

    async def _toggle(self, entity_id: int, user_id: int, liked: bool) -> LikesCount:
        action = "like" if liked else "unlike"
        context = {f"{self.target.name}_id": entity_id, "user_id": user_id}
        try:
            if self.atomic:
                async with self._db.transaction(self._op(action)) as session:
                    changed = await self._mutate(session, entity_id, user_id, liked)
                    count = await self._refresh(session, entity_id)
            else:
                async with self._db.transaction(self._op(action)) as session:
                    changed = await self._mutate(session, entity_id, user_id, liked)
                count = await self.get_likes_count(entity_id)
        except BaseServiceError as e:
            log_error(logger, e, context)
            raise

        logger.info(
            f"{self.target.name}_{action}d" if changed else f"{self.target.name}_{action}_noop",
            likes_count=count.likes_count,
            **context,
        )
        return count

    def _insert_ignore(self, values: dict):
        """INSERT that leaves an existing (entity, user) row untouched."""
        like_model = self.target.like_model
        dialect = self._db.engine.dialect.name
        if dialect == "sqlite":
            return sqlite_insert(like_model).values(**values).on_conflict_do_nothing(
                index_elements=[self.target.entity_key, "user_id"]
            )
        if dialect == "postgresql":
            return postgresql_insert(like_model).values(**values).on_conflict_do_nothing(
                index_elements=[self.target.entity_key, "user_id"]
            )
        if dialect in ("mysql", "mariadb"):
            return mysql_insert(like_model).values(**values).prefix_with("IGNORE")
        raise NotImplementedError(f"like insert not supported for dialect {dialect!r}")

    async def _mutate(self, session: AsyncSession, entity_id: int, user_id: int, liked: bool) -> bool:
        like_model = self.target.like_model
        if not liked:
            result = await self._db.execute(
                session,
                delete(like_model)
                .where(self.target.key_column == entity_id, like_model.user_id == user_id)
                .execution_options(synchronize_session=False),
                operation=self._op("unlike.delete"),
            )
            return result.rowcount > 0

        result = await self._db.execute(
            session,
            self._insert_ignore({self.target.entity_key: entity_id, "user_id": user_id, "created_at": datetime.now()}),
            operation=self._op("like.insert"),
        )
        return result.rowcount > 0

    async def _refresh(self, session: AsyncSession, entity_id: int) -> LikesCount:
        # write first so the transaction takes the write lock before reading
        entity = self.target.entity
        recount = (
            select(func.count())
            .select_from(self.target.like_model)
            .where(self.target.key_column == entity_id)
            .scalar_subquery()
        )
        await self._db.execute(
            session,
            update(entity)
            .where(entity.id == entity_id)
            .values(likes_count=recount)
            .execution_options(synchronize_session=False),
            operation=self._op("store_count"),
        )
        stored = await self._db.execute(
            session,
            select(entity.likes_count).where(entity.id == entity_id),
            operation=self._op("count"),
        )
        return LikesCount(likes_count=int(stored.scalar_one_or_none() or 0))
