"""Category models."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from forumdb.models.common import CamelModel


class Category(CamelModel):
    """Category with the number of active topics filed under it."""
    id: int
    name: str
    description: Optional[str] = None
    display_order: int = 0
    topics_count: int = 0
    created_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    display_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    display_order: Optional[int] = None
