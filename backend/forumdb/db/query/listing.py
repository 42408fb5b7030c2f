"""Paginated listing statements and their execution."""
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from forumdb.core.errors import BaseServiceError
from forumdb.core.logging import get_logger, log_error
from forumdb.db.models import TopicORM
from forumdb.db.query.pagination import Pagination
from forumdb.db.query.predicates import Join, Predicate
from forumdb.models.topic import TopicSort

logger = get_logger(__name__)


def topic_ordering(sort: TopicSort, likes_count: Any) -> List[Any]:
    """
    ORDER BY terms for a topic sort mode.

    Each level only breaks ties of the previous one; ``id`` is the final
    tie-break so pages stay stable when timestamps collide.
    """
    if sort is TopicSort.HOT:
        terms = [TopicORM.is_hot.desc(), likes_count.desc(), TopicORM.created_at.desc()]
    elif sort is TopicSort.OFFICIAL:
        terms = [TopicORM.is_official.desc(), TopicORM.created_at.desc()]
    else:
        terms = [TopicORM.created_at.desc()]
    terms.append(TopicORM.id.desc())
    return terms


@dataclass
class ListingQuery:
    """A data statement and its matching count statement."""

    entity: Any
    columns: Sequence[Any]
    predicate: Predicate
    pagination: Pagination
    order_by: Sequence[Any] = ()
    base_joins: Sequence[Join] = field(default_factory=tuple)

    def _with_from(self, statement: Select) -> Select:
        statement = statement.select_from(self.entity)
        for join in self.base_joins:
            statement = statement.join(join.target, join.onclause)
        return self.predicate.apply(statement)

    def data_statement(self) -> Select:
        statement = self._with_from(select(*self.columns))
        if self.predicate.needs_group_by:
            statement = statement.group_by(self.entity.id)
        return (
            statement.order_by(*self.order_by)
            .limit(self.pagination.limit)
            .offset(self.pagination.offset)
        )

    def count_statement(self) -> Select:
        if self.predicate.needs_group_by:
            # the tag join may repeat a row; count each entity once
            total = func.count(distinct(self.entity.id))
        else:
            total = func.count()
        return self._with_from(select(total.label("total")))


async def run_listing(
    database: Any,
    session: AsyncSession,
    query: ListingQuery,
    *,
    operation: str,
) -> Tuple[Sequence[Row], int]:
    """
    Execute the data and count statements of ``query`` in one session.

    The two reads are not isolated from concurrent writers; a total that
    drifts by a row or two against the page is accepted.

    Returns:
        (rows, total_count)
    """
    data_statement = query.data_statement()
    count_statement = query.count_statement()

    logger.debug(
        "listing_statement",
        operation=operation,
        page=query.pagination.page,
        page_size=query.pagination.page_size,
    )

    try:
        rows = (await database.execute(session, data_statement, operation=f"{operation}.rows")).all()
        total = (await database.execute(session, count_statement, operation=f"{operation}.count")).scalar_one()
    except BaseServiceError as e:
        log_error(logger, e, {"listing": operation})
        raise

    return rows, int(total or 0)
