"""
카테고리 리포지토리 통합 테스트.
"""
import pytest

from forumdb.core.errors import DuplicateNameError, EmptyUpdateError, InvalidNameError
from forumdb.models import CategoryCreate, CategoryUpdate


class TestCategoryRepository:
    """카테고리 CRUD 테스트."""

    async def test_list_order_and_counts(self, category_repo, topic_repo, make_topic):
        await category_repo.create(CategoryCreate(name="news", display_order=2))
        await category_repo.create(CategoryCreate(name="dev", display_order=1))
        await category_repo.create(CategoryCreate(name="art", display_order=2))
        await make_topic(category="dev")
        await make_topic(category="dev")
        deleted = await make_topic(category="news")
        await topic_repo.delete(deleted)

        categories = await category_repo.list_all()

        assert [(c.name, c.topics_count) for c in categories] == [("dev", 2), ("art", 0), ("news", 0)]

    async def test_lookup(self, category_repo):
        created = await category_repo.create(CategoryCreate(name="dev", description="code"))

        assert (await category_repo.get_by_id(created.id)).description == "code"
        assert (await category_repo.get_by_name("dev")).id == created.id
        assert await category_repo.get_by_name("missing") is None

    async def test_duplicate_name(self, category_repo):
        await category_repo.create(CategoryCreate(name="dev"))
        with pytest.raises(DuplicateNameError):
            await category_repo.create(CategoryCreate(name="dev"))

    async def test_blank_name_rejected(self, category_repo):
        with pytest.raises(InvalidNameError):
            await category_repo.create(CategoryCreate(name="  "))

        created = await category_repo.create(CategoryCreate(name="dev"))
        with pytest.raises(InvalidNameError):
            await category_repo.update(created.id, CategoryUpdate(name=""))
        assert (await category_repo.get_by_id(created.id)).name == "dev"

    async def test_partial_update(self, category_repo):
        created = await category_repo.create(CategoryCreate(name="dev", description="code", display_order=3))

        updated = await category_repo.update(created.id, CategoryUpdate(display_order=1))

        assert updated.display_order == 1
        assert updated.name == "dev"
        assert updated.description == "code"

    async def test_empty_update_rejected(self, category_repo):
        created = await category_repo.create(CategoryCreate(name="dev"))
        with pytest.raises(EmptyUpdateError):
            await category_repo.update(created.id, CategoryUpdate())

    async def test_rename_to_existing_name(self, category_repo):
        await category_repo.create(CategoryCreate(name="dev"))
        other = await category_repo.create(CategoryCreate(name="ops"))

        with pytest.raises(DuplicateNameError):
            await category_repo.update(other.id, CategoryUpdate(name="dev"))

    async def test_update_and_delete_missing(self, category_repo):
        assert await category_repo.update(999, CategoryUpdate(name="x")) is None
        assert await category_repo.delete(999) is False

    async def test_delete(self, category_repo):
        created = await category_repo.create(CategoryCreate(name="dev"))
        assert await category_repo.delete(created.id) is True
        assert await category_repo.get_by_id(created.id) is None
