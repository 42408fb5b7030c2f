"""Tag repository for database operations."""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from forumdb.core.errors import BaseServiceError, ConflictError, DuplicateNameError, InvalidNameError
from forumdb.core.logging import get_logger, log_error
from forumdb.db.models import TagORM, TopicTagORM
from forumdb.db.query.aggregates import tag_topics_count
from forumdb.db.session import Database
from forumdb.models.tag import Tag, TagById, TagRef, TagSummary, parse_tag_refs

logger = get_logger(__name__)


class TagRepository:
    """Repository for tags and topic-tag associations."""

    def __init__(self, database: Database) -> None:
        """Initialize repository with the shared database context."""
        self._db = database

    def _select_tags(self):
        return select(TagORM, tag_topics_count().label("topics_count"))

    async def list_all(self) -> List[Tag]:
        """All tags by name, with active topic counts."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session, self._select_tags().order_by(TagORM.name.asc()), operation="tags.list"
            )
            return [self._row_to_model(row) for row in result.all()]

    async def get_by_id(self, tag_id: int) -> Optional[Tag]:
        """Get tag by ID."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session, self._select_tags().where(TagORM.id == tag_id), operation="tags.get_by_id"
            )
            row = result.one_or_none()
        return self._row_to_model(row) if row else None

    async def get_by_name(self, name: str) -> Optional[Tag]:
        """Get tag by exact name."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session, self._select_tags().where(TagORM.name == name), operation="tags.get_by_name"
            )
            row = result.one_or_none()
        return self._row_to_model(row) if row else None

    async def create(self, name: str) -> Tag:
        """Create a tag; an existing name is rejected."""
        name = name.strip()
        if not name:
            raise InvalidNameError("tag", operation="tags.create")
        try:
            async with self._db.transaction("tags.create") as session:
                existing = await self._db.execute(
                    session, select(TagORM.id).where(TagORM.name == name), operation="tags.create.lookup"
                )
                if existing.scalar_one_or_none() is not None:
                    raise DuplicateNameError("tag", name, operation="tags.create")
                tag_orm = TagORM(name=name)
                session.add(tag_orm)
                await self._db.flush(session, operation="tags.create.insert")
                tag_id = tag_orm.id
        except ConflictError as e:
            # lost a race against another writer inserting the same name
            raise DuplicateNameError("tag", name, operation="tags.create") from e

        logger.info("tag_created", tag_id=tag_id)
        return await self.get_by_id(tag_id)

    async def delete(self, tag_id: int) -> bool:
        """Delete a tag and its topic associations."""
        async with self._db.transaction("tags.delete") as session:
            await self._db.execute(
                session,
                delete(TopicTagORM).where(TopicTagORM.tag_id == tag_id).execution_options(synchronize_session=False),
                operation="tags.delete.associations",
            )
            result = await self._db.execute(
                session,
                delete(TagORM).where(TagORM.id == tag_id).execution_options(synchronize_session=False),
                operation="tags.delete",
            )
            deleted = result.rowcount > 0

        logger.info("tag_deleted" if deleted else "tag_delete_missing", tag_id=tag_id)
        return deleted

    async def get_topic_tags(self, topic_id: int) -> List[TagSummary]:
        """Tags attached to a topic, by name."""
        async with self._db.session() as session:
            return await self._topic_tags(session, topic_id)

    async def names_for_topics(self, session: AsyncSession, topic_ids: Sequence[int]) -> Dict[int, List[str]]:
        """Tag names per topic id, each list sorted by name."""
        if not topic_ids:
            return {}
        result = await self._db.execute(
            session,
            select(TopicTagORM.topic_id, TagORM.name)
            .join(TagORM, TopicTagORM.tag_id == TagORM.id)
            .where(TopicTagORM.topic_id.in_(list(topic_ids)))
            .order_by(TopicTagORM.topic_id, TagORM.name.asc()),
            operation="tags.names_for_topics",
        )
        names: Dict[int, List[str]] = defaultdict(list)
        for topic_id, name in result.all():
            names[topic_id].append(name)
        return dict(names)

    async def sync_tags(
        self,
        topic_id: int,
        tag_refs: Iterable[Union[TagRef, int, str]],
        session: Optional[AsyncSession] = None,
    ) -> List[TagSummary]:
        """
        Replace a topic's tags with exactly ``tag_refs``.

        Existing associations are removed, every reference is resolved to a
        tag id (unknown ids are skipped with a warning, unknown names are
        created) and the new associations are inserted, all in one
        transaction. When ``session`` is given the work joins the caller's
        transaction and the caller commits.

        Args:
            topic_id: Topic whose tags are replaced
            tag_refs: Tag ids and/or names; duplicates collapse
            session: Optional session of an enclosing transaction

        Returns:
            The topic's tags after the sync, ordered by name

        Raises:
            ConflictError: a concurrent writer inserted the same association
                or tag name; the whole sync is rolled back and may be retried
        """
        refs = parse_tag_refs(tag_refs)

        if session is not None:
            return await self._sync(session, topic_id, refs)

        try:
            async with self._db.transaction("tags.sync") as own_session:
                tags = await self._sync(own_session, topic_id, refs)
        except BaseServiceError as e:
            log_error(logger, e, {"topic_id": topic_id, "ref_count": len(refs)})
            raise

        logger.info("tags_synced", topic_id=topic_id, tag_ids=[t.id for t in tags])
        return tags

    async def _sync(self, session: AsyncSession, topic_id: int, refs: List[TagRef]) -> List[TagSummary]:
        await self._db.execute(
            session,
            delete(TopicTagORM).where(TopicTagORM.topic_id == topic_id).execution_options(synchronize_session=False),
            operation="tags.sync.clear",
        )

        tag_ids: List[int] = []
        for ref in refs:
            tag_id = await self._resolve(session, topic_id, ref)
            if tag_id is not None and tag_id not in tag_ids:
                tag_ids.append(tag_id)

        if tag_ids:
            session.add_all([TopicTagORM(topic_id=topic_id, tag_id=tag_id) for tag_id in tag_ids])
            await self._db.flush(session, operation="tags.sync.associate")

        return await self._topic_tags(session, topic_id)

    async def _resolve(self, session: AsyncSession, topic_id: int, ref: TagRef) -> Optional[int]:
        """Tag id for a reference, creating named tags that do not exist yet."""
        if isinstance(ref, TagById):
            result = await self._db.execute(
                session, select(TagORM.id).where(TagORM.id == ref.id), operation="tags.sync.lookup_id"
            )
            tag_id = result.scalar_one_or_none()
            if tag_id is None:
                logger.warning("tag_not_found_skipped", topic_id=topic_id, tag_id=ref.id)
            return tag_id

        result = await self._db.execute(
            session, select(TagORM.id).where(TagORM.name == ref.name), operation="tags.sync.lookup_name"
        )
        tag_id = result.scalar_one_or_none()
        if tag_id is not None:
            return tag_id

        tag_orm = TagORM(name=ref.name)
        session.add(tag_orm)
        await self._db.flush(session, operation="tags.sync.create")
        logger.info("tag_created", tag_id=tag_orm.id, topic_id=topic_id)
        return tag_orm.id

    async def _topic_tags(self, session: AsyncSession, topic_id: int) -> List[TagSummary]:
        result = await self._db.execute(
            session,
            select(TagORM.id, TagORM.name)
            .join(TopicTagORM, TopicTagORM.tag_id == TagORM.id)
            .where(TopicTagORM.topic_id == topic_id)
            .order_by(TagORM.name.asc()),
            operation="tags.topic_tags",
        )
        return [TagSummary(id=row.id, name=row.name) for row in result.all()]

    @staticmethod
    def _row_to_model(row) -> Tag:
        """Convert a (TagORM, topics_count) row to the public model."""
        tag_orm = row.TagORM
        return Tag(
            id=tag_orm.id,
            name=tag_orm.name,
            topics_count=row.topics_count or 0,
            created_at=tag_orm.created_at,
        )
