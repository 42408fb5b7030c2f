"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from forumdb.core.config import Settings
from forumdb.db.models import TopicORM, UserORM
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
from forumdb.store import ForumStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# =============================================================================
# Database Fixtures
# =============================================================================
@pytest.fixture(scope="function")
def settings() -> Settings:
    """테스트용 설정 (.env 무시)."""
    return Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[Database]:
    """
    테스트용 Database 컨텍스트.

    각 테스트 함수마다 독립된 인메모리 DB를 사용합니다.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine, query_timeout=5.0)
    await db.create_all()

    yield db

    await db.dispose()


@pytest.fixture(scope="function")
async def users(database) -> list[int]:
    """작성자/조회자로 쓰이는 사용자 3명."""
    async with database.transaction("seed.users") as session:
        rows = [
            UserORM(username="alice", avatar="a.png"),
            UserORM(username="bob", avatar=None),
            UserORM(username="carol", avatar="c.png"),
        ]
        session.add_all(rows)
        await session.flush()
        return [u.id for u in rows]


@pytest.fixture(scope="function")
def make_topic(database, users):
    """
    토픽 직접 삽입 헬퍼.

    created_at을 고정값으로 넣어 정렬 테스트가 결정적이도록 합니다.
    """

    async def _make(
        title: str = "topic",
        content: str = "body",
        category: str = "general",
        author_id: int | None = None,
        minutes: int = 0,
        **fields,
    ) -> int:
        async with database.transaction("seed.topic") as session:
            topic = TopicORM(
                title=title,
                content=content,
                category=category,
                author_id=author_id or users[0],
                created_at=BASE_TIME + timedelta(minutes=minutes),
                updated_at=BASE_TIME + timedelta(minutes=minutes),
                **fields,
            )
            session.add(topic)
            await session.flush()
            return topic.id

    return _make


# =============================================================================
# Repository Fixtures
# =============================================================================
@pytest.fixture
def tag_repo(database) -> TagRepository:
    return TagRepository(database)


@pytest.fixture
def topic_repo(database, tag_repo) -> TopicRepository:
    return TopicRepository(database, tags=tag_repo)


@pytest.fixture
def comment_repo(database) -> CommentRepository:
    return CommentRepository(database)


@pytest.fixture
def category_repo(database) -> CategoryRepository:
    return CategoryRepository(database)


@pytest.fixture
def topic_likes(database) -> LikeRepository:
    return LikeRepository(database, TOPIC_LIKES)


@pytest.fixture
def comment_likes(database) -> LikeRepository:
    return LikeRepository(database, COMMENT_LIKES)


@pytest.fixture
def store(database, settings) -> ForumStore:
    return ForumStore(database, settings)
