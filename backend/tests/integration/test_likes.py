"""
좋아요 토글 및 카운트 갱신 통합 테스트.
"""
import asyncio

import pytest
from sqlalchemy import func, select, update

from forumdb.core.config import Settings
from forumdb.db.models import CommentORM, TopicLikeORM, TopicORM, UserORM
from forumdb.db.repositories import COMMENT_LIKES, TOPIC_LIKES, LikeRepository
from forumdb.db.session import Database
from forumdb.models import CommentCreate


async def _stored_likes(database, model, entity_id):
    async with database.session() as session:
        result = await session.execute(select(model.likes_count).where(model.id == entity_id))
        return result.scalar_one()


@pytest.fixture(params=[True, False], ids=["atomic", "two_step"])
def likes(request, database) -> LikeRepository:
    return LikeRepository(database, TOPIC_LIKES, atomic=request.param)


# =============================================================================
# 토픽 좋아요 테스트
# =============================================================================
class TestTopicLikes:
    """like / unlike / get_likes_count 테스트."""

    async def test_like_is_idempotent(self, likes, database, make_topic, users):
        topic_id = await make_topic()

        first = await likes.like(topic_id, users[0])
        second = await likes.like(topic_id, users[0])

        assert first.likes_count == 1
        assert second.likes_count == 1
        assert await _stored_likes(database, TopicORM, topic_id) == 1

    async def test_like_unlike_round_trip(self, likes, database, make_topic, users):
        topic_id = await make_topic()
        await likes.like(topic_id, users[1])
        before = (await likes.get_likes_count(topic_id)).likes_count

        await likes.like(topic_id, users[0])
        after = await likes.unlike(topic_id, users[0])

        assert after.likes_count == before == 1
        assert await _stored_likes(database, TopicORM, topic_id) == 1

    async def test_unlike_without_like(self, likes, make_topic, users):
        topic_id = await make_topic()
        assert (await likes.unlike(topic_id, users[0])).likes_count == 0

    async def test_is_liked(self, likes, make_topic, users):
        topic_id = await make_topic()
        await likes.like(topic_id, users[2])

        assert await likes.is_liked(topic_id, users[2]) is True
        assert await likes.is_liked(topic_id, users[0]) is False

    async def test_get_likes_count_repairs_stale_column(self, likes, database, make_topic, users):
        topic_id = await make_topic()
        await likes.like(topic_id, users[0])
        async with database.transaction("test.corrupt") as session:
            await session.execute(update(TopicORM).where(TopicORM.id == topic_id).values(likes_count=42))

        count = await likes.get_likes_count(topic_id)

        assert count.likes_count == 1
        assert await _stored_likes(database, TopicORM, topic_id) == 1

    async def test_count_dumps_camel_case(self, likes, make_topic, users):
        topic_id = await make_topic()
        count = await likes.like(topic_id, users[0])
        assert count.model_dump(by_alias=True) == {"likesCount": 1}


# =============================================================================
# 댓글 좋아요 테스트
# =============================================================================
class TestCommentLikes:
    """댓글 좋아요 테스트."""

    async def test_comment_like_cycle(self, database, comment_repo, make_topic, users):
        topic_id = await make_topic()
        comment = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content="hi"))
        likes = LikeRepository(database, COMMENT_LIKES)

        await likes.like(comment.id, users[1])
        await likes.like(comment.id, users[2])
        assert await _stored_likes(database, CommentORM, comment.id) == 2

        result = await likes.unlike(comment.id, users[1])
        assert result.likes_count == 1

        listed = await comment_repo.list_comments(topic_id, viewer_id=users[2])
        assert listed.comments[0].likes_count == 1
        assert listed.comments[0].is_liked is True

    async def test_topic_and_comment_likes_are_separate(self, database, topic_likes, comment_likes, comment_repo, make_topic, users):
        topic_id = await make_topic()
        comment = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content="hi"))

        await topic_likes.like(topic_id, users[0])

        assert (await comment_likes.get_likes_count(comment.id)).likes_count == 0
        assert (await topic_likes.get_likes_count(topic_id)).likes_count == 1


# =============================================================================
# 동시 좋아요 테스트
# =============================================================================
class TestConcurrentLikes:
    """같은 사용자의 동시 like 호출 테스트 (파일 기반 SQLite)."""

    @pytest.fixture
    async def file_database(self, tmp_path):
        settings = Settings(_env_file=None, database_url=f"sqlite+aiosqlite:///{tmp_path}/likes.db")
        db = Database.from_settings(settings)
        await db.create_all()
        yield db
        await db.dispose()

    async def test_concurrent_likes_store_single_row(self, file_database):
        """동시에 5번 like 해도 충돌 없이 카운트는 1이어야 합니다."""
        async with file_database.transaction("seed") as session:
            user = UserORM(username="dave")
            session.add(user)
            await session.flush()
            topic = TopicORM(title="t", content="c", category="general", author_id=user.id)
            session.add(topic)
            await session.flush()
            user_id, topic_id = user.id, topic.id

        likes = LikeRepository(file_database, TOPIC_LIKES)
        results = await asyncio.gather(*[likes.like(topic_id, user_id) for _ in range(5)])

        assert [r.likes_count for r in results] == [1] * 5
        assert await _stored_likes(file_database, TopicORM, topic_id) == 1
        async with file_database.session() as session:
            rows = await session.execute(select(func.count()).select_from(TopicLikeORM))
            assert rows.scalar_one() == 1
