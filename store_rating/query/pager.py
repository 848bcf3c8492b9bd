import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from store_rating.query.predicates import parse_int

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def coerce_positive(raw: Any, default: int) -> int:
    value = parse_int(raw) if raw is not None else None
    if value is None or value < 1:
        return default
    return value


@dataclass(frozen=True)
class PageInfo:
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool

    def as_dict(self, total_key: str = "totalCount") -> Dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            total_key: self.total_count,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class Pager:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_query(
        cls,
        page: Any = None,
        limit: Any = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: Optional[int] = None,
    ) -> "Pager":
        """Unparseable or non-positive values fall back to the defaults."""
        page = coerce_positive(page, DEFAULT_PAGE)
        limit = coerce_positive(limit, default_limit)
        if max_limit is not None:
            limit = min(limit, max_limit)
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def paginate(self, total_count: int) -> PageInfo:
        total_pages = math.ceil(total_count / self.limit)
        return PageInfo(
            current_page=self.page,
            total_pages=total_pages,
            total_count=total_count,
            has_next=self.page < total_pages,
            has_prev=self.page > 1,
        )
