"""Like models."""
from forumdb.models.common import CamelModel


class LikesCount(CamelModel):
    """Settled like count of a topic or comment."""
    likes_count: int
