"""
댓글 리포지토리 통합 테스트.
"""
from sqlalchemy import select

from forumdb.db.models import TopicORM
from forumdb.models import CommentCreate


async def _stored_comments(database, topic_id):
    async with database.session() as session:
        result = await session.execute(select(TopicORM.comments_count).where(TopicORM.id == topic_id))
        return result.scalar_one()


class TestCommentRepository:
    """댓글 생성/조회/삭제/리스팅 테스트."""

    async def test_create_refreshes_topic_count(self, comment_repo, database, make_topic, users):
        topic_id = await make_topic()

        comment = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[1], content="first"))

        assert comment.content == "first"
        assert comment.author_name == "bob"
        assert comment.likes_count == 0
        assert await _stored_comments(database, topic_id) == 1

    async def test_reply_keeps_parent(self, comment_repo, make_topic, users):
        topic_id = await make_topic()
        parent = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content="q"))

        reply = await comment_repo.create(
            CommentCreate(topic_id=topic_id, author_id=users[1], content="a", parent_id=parent.id)
        )

        assert reply.parent_id == parent.id

    async def test_list_newest_first_and_paged(self, comment_repo, make_topic, users):
        topic_id = await make_topic()
        other_topic = await make_topic()
        created = []
        for i in range(5):
            c = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content=str(i)))
            created.append(c.id)
        await comment_repo.create(CommentCreate(topic_id=other_topic, author_id=users[0], content="x"))

        page1 = await comment_repo.list_comments(topic_id, page=1, page_size=2)
        page3 = await comment_repo.list_comments(topic_id, page=3, page_size=2)

        assert page1.total_count == 5
        assert page1.page_count == 3
        assert [c.id for c in page1.comments] == created[::-1][:2]
        assert [c.id for c in page3.comments] == [created[0]]
        assert all(c.is_liked is False for c in page1.comments)

    async def test_delete_is_soft_and_refreshes_count(self, comment_repo, database, make_topic, users):
        topic_id = await make_topic()
        keep = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content="keep"))
        gone = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[0], content="gone"))

        assert await comment_repo.delete(gone.id) is True

        assert await comment_repo.get_by_id(gone.id) is None
        listed = await comment_repo.list_comments(topic_id)
        assert [c.id for c in listed.comments] == [keep.id]
        assert await _stored_comments(database, topic_id) == 1
        # deleted comments still resolve for permission checks
        assert await comment_repo.check_permission(gone.id, users[0]) is True

    async def test_delete_missing(self, comment_repo, users):
        assert await comment_repo.delete(4040) is False

    async def test_check_permission(self, comment_repo, make_topic, users):
        topic_id = await make_topic()
        comment = await comment_repo.create(CommentCreate(topic_id=topic_id, author_id=users[2], content="c"))

        assert await comment_repo.check_permission(comment.id, users[2]) is True
        assert await comment_repo.check_permission(comment.id, users[0]) is False
        assert await comment_repo.check_permission(999, users[2]) is False
