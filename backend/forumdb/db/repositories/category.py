"""Category repository for database operations."""
from typing import List, Optional

from sqlalchemy import delete, select, update

from forumdb.core.errors import ConflictError, DuplicateNameError, EmptyUpdateError, InvalidNameError
from forumdb.core.logging import get_logger
from forumdb.db.models import CategoryORM
from forumdb.db.query.aggregates import category_topics_count
from forumdb.db.session import Database
from forumdb.models.category import Category, CategoryCreate, CategoryUpdate

logger = get_logger(__name__)


class CategoryRepository:
    """Repository for Category database operations."""

    def __init__(self, database: Database) -> None:
        """Initialize repository with the shared database context."""
        self._db = database

    def _select_categories(self):
        return select(CategoryORM, category_topics_count().label("topics_count"))

    async def list_all(self) -> List[Category]:
        """All categories by display order, then name."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                self._select_categories().order_by(CategoryORM.display_order.asc(), CategoryORM.name.asc()),
                operation="categories.list",
            )
            return [self._row_to_model(row) for row in result.all()]

    async def get_by_id(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                self._select_categories().where(CategoryORM.id == category_id),
                operation="categories.get_by_id",
            )
            row = result.one_or_none()
        return self._row_to_model(row) if row else None

    async def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by exact name."""
        async with self._db.session() as session:
            result = await self._db.execute(
                session,
                self._select_categories().where(CategoryORM.name == name),
                operation="categories.get_by_name",
            )
            row = result.one_or_none()
        return self._row_to_model(row) if row else None

    async def create(self, category_create: CategoryCreate) -> Category:
        """Create a category; an existing name is rejected."""
        name = category_create.name.strip()
        if not name:
            raise InvalidNameError("category", operation="categories.create")
        try:
            async with self._db.transaction("categories.create") as session:
                existing = await self._db.execute(
                    session,
                    select(CategoryORM.id).where(CategoryORM.name == name),
                    operation="categories.create.lookup",
                )
                if existing.scalar_one_or_none() is not None:
                    raise DuplicateNameError("category", name, operation="categories.create")
                category_orm = CategoryORM(
                    name=name,
                    description=category_create.description,
                    display_order=category_create.display_order,
                )
                session.add(category_orm)
                await self._db.flush(session, operation="categories.create.insert")
                category_id = category_orm.id
        except ConflictError as e:
            raise DuplicateNameError("category", name, operation="categories.create") from e

        logger.info("category_created", category_id=category_id)
        return await self.get_by_id(category_id)

    async def update(self, category_id: int, category_update: CategoryUpdate) -> Optional[Category]:
        """
        Partially update a category.

        Raises:
            EmptyUpdateError: no field was provided
            DuplicateNameError: the new name belongs to another category
        """
        fields = category_update.model_dump(exclude_unset=True)
        # name and display_order are NOT NULL; only description may be cleared
        fields = {k: v for k, v in fields.items() if v is not None or k == "description"}
        if not fields:
            raise EmptyUpdateError("categories.update", entity_id=category_id)
        if "name" in fields:
            fields["name"] = fields["name"].strip()
            if not fields["name"]:
                raise InvalidNameError("category", operation="categories.update")

        try:
            async with self._db.transaction("categories.update") as session:
                result = await self._db.execute(
                    session,
                    update(CategoryORM)
                    .where(CategoryORM.id == category_id)
                    .values(**fields)
                    .execution_options(synchronize_session=False),
                    operation="categories.update",
                )
                affected = result.rowcount
        except ConflictError as e:
            raise DuplicateNameError("category", fields.get("name", ""), operation="categories.update") from e

        if affected == 0:
            logger.info("category_not_found", category_id=category_id)
            return None
        logger.info("category_updated", category_id=category_id, fields=sorted(fields))
        return await self.get_by_id(category_id)

    async def delete(self, category_id: int) -> bool:
        """Delete a category; topics keep their category name."""
        async with self._db.transaction("categories.delete") as session:
            result = await self._db.execute(
                session,
                delete(CategoryORM).where(CategoryORM.id == category_id).execution_options(synchronize_session=False),
                operation="categories.delete",
            )
            affected = result.rowcount

        logger.info("category_deleted", category_id=category_id, affected=affected)
        return affected > 0

    @staticmethod
    def _row_to_model(row) -> Category:
        category_orm = row.CategoryORM
        return Category(
            id=category_orm.id,
            name=category_orm.name,
            description=category_orm.description,
            display_order=category_orm.display_order,
            topics_count=row.topics_count or 0,
            created_at=category_orm.created_at,
        )
