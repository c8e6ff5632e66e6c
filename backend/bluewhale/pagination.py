"""
Page/limit pagination shared by every list endpoint.

Response shape: {"total": n, "page": p, "pages": ceil(n / limit)}
"""

import math
from typing import List, Sequence, TypeVar

from bluewhale.schemas.common import Pagination

T = TypeVar("T")


def page_offset(page: int, limit: int) -> int:
    """Rows to skip before `page` (1-based)."""
    return (max(page, 1) - 1) * limit


def page_count(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    return Pagination(total=total, page=page, pages=page_count(total, limit))


def paginate_list(items: Sequence[T], page: int, limit: int) -> List[T]:
    """In-memory slice for result sets merged in Python (personalized feed)."""
    start = page_offset(page, limit)
    return list(items[start:start + limit])
