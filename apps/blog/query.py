"""
List query normalization.

Turns raw pagination/filter parameters into a NormalizedQuery. Never
rejects input: bad values are clamped or replaced by defaults.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# Largest OFFSET a 64-bit SQL integer can hold
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class NormalizedQuery:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    author: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass
class PostPage:
    """One page of posts plus the size of the whole filtered set."""
    items: list = field(default_factory=list)
    total_count: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_query(page: Any = None, page_size: Any = None, author: Optional[str] = None) -> NormalizedQuery:
    """
    Clamp pagination and clean up the author filter.

    - page: absent, unparseable or < 1 becomes 1
      (and is capped so the row offset fits a 64-bit integer)
    - page_size: absent, unparseable or < 1 becomes 10; > 100 becomes 100
    - author: None, empty or whitespace-only means no filter
    """
    page_number = _to_int(page)
    if page_number is None or page_number < 1:
        page_number = DEFAULT_PAGE

    size = _to_int(page_size)
    if size is None or size < 1:
        size = DEFAULT_PAGE_SIZE
    size = min(size, MAX_PAGE_SIZE)
    page_number = min(page_number, MAX_OFFSET // size + 1)

    author_filter = author.strip() if isinstance(author, str) else None

    return NormalizedQuery(
        page=page_number,
        page_size=size,
        author=author_filter or None,
    )
