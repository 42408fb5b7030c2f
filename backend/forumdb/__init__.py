"""Relational data layer for a discussion forum."""
from forumdb.store import ForumStore, create_store

__version__ = "1.0.0"

__all__ = ["ForumStore", "create_store", "__version__"]
