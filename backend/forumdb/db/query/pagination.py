"""Page/size coercion for listing calls."""
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def _positive_int(value: Any, default: int) -> int:
    """
    Parse the leading integer of ``value``, clamped to >= 1.

    "2.5" reads as 2 and "12abc" as 12; input with no leading digits
    yields ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    match = _LEADING_INT.match(str(value))
    if match is None:
        return default
    return max(int(match.group(1)), 1)


def page_count(total_count: int, page_size: int) -> int:
    """ceil(total / size); an empty result has zero pages."""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return math.ceil(total_count / page_size)


@dataclass(frozen=True)
class Pagination:
    """A coerced (page, page_size) pair."""

    page: int = 1
    page_size: int = 10

    @classmethod
    def coerce(
        cls,
        page: Any = None,
        page_size: Any = None,
        default_size: int = 10,
        max_size: Optional[int] = None,
    ) -> "Pagination":
        size = _positive_int(page_size, default_size)
        if max_size is not None:
            size = min(size, max_size)
        return cls(page=_positive_int(page, 1), page_size=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def page_count(self, total_count: int) -> int:
        return page_count(total_count, self.page_size)
