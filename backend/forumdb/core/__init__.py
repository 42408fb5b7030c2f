"""Core module for configuration, errors and logging."""
from forumdb.core.config import Settings, get_settings
from forumdb.core.logging import configure_logging, get_logger

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
