"""Topic ORM model."""
from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from forumdb.db.session import Base
from forumdb.models.common import EntityStatus


def status_column():
    """status ENUM('active', 'deleted') DEFAULT 'active'."""
    return mapped_column(
        Enum(
            EntityStatus,
            name="entity_status",
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        nullable=False,
        default=EntityStatus.ACTIVE,
    )


class TopicORM(Base):
    """Topics table."""
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Category name, deliberately not a foreign key
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[EntityStatus] = status_column()

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Denormalized counters, refreshed from topic_likes / comments
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_hot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_official: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)
