"""Tag models and tag references."""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union
from datetime import datetime

from forumdb.models.common import CamelModel


@dataclass(frozen=True)
class TagById:
    """Reference to an existing tag by id."""
    id: int


@dataclass(frozen=True)
class TagByName:
    """Reference to a tag by name; created on first use."""
    name: str


TagRef = Union[TagById, TagByName]


def is_numeric_text(text: str) -> bool:
    """ASCII digits only; other Unicode digits are tag names."""
    return text.isascii() and text.isdigit()


def parse_tag_ref(value: Union[TagRef, int, str]) -> Optional[TagRef]:
    """
    Resolve a raw tag reference.

    Integers and all-digit strings refer to tag ids, anything else is a tag
    name. Blank names yield ``None``.
    """
    if isinstance(value, (TagById, TagByName)):
        return value
    if isinstance(value, bool):
        raise TypeError("tag reference must be an int or a str")
    if isinstance(value, int):
        return TagById(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if is_numeric_text(text):
            return TagById(int(text))
        return TagByName(text)
    raise TypeError(f"unsupported tag reference: {type(value).__name__}")


def parse_tag_refs(values: Iterable[Union[TagRef, int, str]]) -> List[TagRef]:
    """Parse every reference, dropping blanks."""
    refs = []
    for value in values:
        ref = parse_tag_ref(value)
        if ref is not None:
            refs.append(ref)
    return refs


class TagSummary(CamelModel):
    """Tag as attached to a topic."""
    id: int
    name: str


class Tag(CamelModel):
    """Tag with the number of active topics carrying it."""
    id: int
    name: str
    topics_count: int = 0
    created_at: Optional[datetime] = None
