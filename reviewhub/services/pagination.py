"""
Pagination helpers shared by every feed and list endpoint.

Contract: page >= 1 and size >= 1; items are taken at offset
(page - 1) * size; total_page = ceil(total / size), 0 for an empty result.
The total always comes from a count query with the same filter as the
page query.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import Session

from reviewhub.exceptions import BadRequestError

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise BadRequestError("page must be >= 1")
        if not 1 <= self.size <= MAX_PAGE_SIZE:
            raise BadRequestError(f"size must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if total > 0 else 0


def fetch_page(
    db: Session,
    stmt: Select,
    count_stmt: Select,
    page: PageRequest,
) -> tuple[list[Any], int]:
    """
    Run a page query and its count query.

    Args:
        stmt: Ordered SELECT of the entities
        count_stmt: SELECT count(...) with the same filter
        page: Page request

    Returns:
        (items on the page, total_page)
    """
    total = db.execute(count_stmt).scalar_one()
    items = db.execute(stmt.offset(page.offset).limit(page.size)).scalars().unique().all()
    return list(items), total_pages(total, page.size)


def slice_page(items: Sequence[Any], page: PageRequest) -> tuple[list[Any], int]:
    """In-memory pagination over an already ordered sequence."""
    return (
        list(items[page.offset:page.offset + page.size]),
        total_pages(len(items), page.size),
    )
