"""
WHERE-clause builder for topic and comment listings.

A ``Predicate`` is the only place listing conditions live. Every condition is
a SQLAlchemy clause that carries its own bound values, so a fragment and its
parameters are appended together and cannot drift apart. The data statement
and the count statement are both produced by ``Predicate.apply`` on the same
instance, which keeps their joins, conditions and parameter order identical.

Parameter order in a compiled data statement is: SELECT-list parameters
(aggregate filters and the viewer id of the liked-by fragment), then the WHERE
parameters in the order the conditions were added, then LIMIT/OFFSET. The
count statement has no viewer fragment, so it only carries the WHERE
parameters.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from sqlalchemy import Select, and_, or_
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import ColumnElement

from forumdb.db.models import CommentORM, TagORM, TopicORM, TopicTagORM
from forumdb.db.query.render import render
from forumdb.models.common import EntityStatus
from forumdb.models.tag import is_numeric_text
from forumdb.models.topic import TopicFilters

LIKE_ESCAPE = "/"

# Comparison values for the inactive branch of the tag condition
NO_TAG_ID = 0
NO_TAG_NAME = ""


@dataclass(frozen=True)
class Join:
    target: Any
    onclause: ColumnElement[bool]


@dataclass
class Predicate:
    """Ordered joins and conditions shared by a data and a count statement."""

    conditions: List[ColumnElement[bool]] = field(default_factory=list)
    joins: List[Join] = field(default_factory=list)
    # True when a join can repeat an entity row
    needs_group_by: bool = False

    def where(self, condition: ColumnElement[bool]) -> "Predicate":
        self.conditions.append(condition)
        return self

    def join(self, target: Any, onclause: ColumnElement[bool]) -> "Predicate":
        self.joins.append(Join(target, onclause))
        return self

    def apply(self, statement: Select) -> Select:
        """Add the joins, then the conditions, to ``statement``."""
        for join in self.joins:
            statement = statement.join(join.target, join.onclause)
        return statement.where(*self.conditions)

    def clause(self) -> ColumnElement[bool]:
        return and_(*self.conditions)

    def compile(self, dialect: Dialect) -> Tuple[str, List[Any]]:
        """WHERE clause text and its parameters in placeholder order."""
        return render(self.clause(), dialect)


def is_numeric_ref(value: Union[int, str, None]) -> bool:
    """Integers and all-digit strings address a tag by id."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, str):
        return is_numeric_text(value.strip())
    return False


def like_pattern(text: str) -> str:
    """Wrap ``text`` in wildcards, escaping LIKE metacharacters."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def build_topic_predicate(filters: Optional[TopicFilters] = None) -> Predicate:
    """Conditions for a topic listing: active rows plus the given filters."""
    filters = filters or TopicFilters()
    predicate = Predicate()
    predicate.where(TopicORM.status == EntityStatus.ACTIVE)

    if filters.tag is not None:
        if is_numeric_ref(filters.tag):
            tag_id, tag_name = int(str(filters.tag).strip()), NO_TAG_NAME
        else:
            tag_id, tag_name = NO_TAG_ID, str(filters.tag)
        predicate.join(TopicTagORM, TopicTagORM.topic_id == TopicORM.id)
        predicate.join(TagORM, TopicTagORM.tag_id == TagORM.id)
        predicate.where(or_(TagORM.id == tag_id, TagORM.name == tag_name))
        predicate.needs_group_by = True

    if filters.category is not None:
        predicate.where(TopicORM.category == filters.category)

    if filters.search is not None:
        pattern = like_pattern(filters.search)
        predicate.where(
            or_(
                TopicORM.title.ilike(pattern, escape=LIKE_ESCAPE),
                TopicORM.content.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    return predicate


def build_comment_predicate(topic_id: int) -> Predicate:
    """Active comments of one topic."""
    return (
        Predicate()
        .where(CommentORM.topic_id == topic_id)
        .where(CommentORM.status == EntityStatus.ACTIVE)
    )
