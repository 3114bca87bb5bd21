"""Offset pagination shared by the list endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_admin.errors import FieldError, ValidationError

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageRequest:
    """Validated page/limit pair."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        errors = []
        if self.page < 1:
            errors.append(FieldError("page", "page must be at least 1"))
        if not 1 <= self.limit <= MAX_LIMIT:
            errors.append(FieldError("limit", f"limit must be between 1 and {MAX_LIMIT}"))
        if errors:
            raise ValidationError(errors)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the totals needed to navigate."""

    items: Sequence[T]
    total: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


async def paginate(session: AsyncSession, query: Select, request: PageRequest) -> Page:
    """Run ``query`` for one page of ORM entities, with a total count."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await session.scalar(count_query) or 0

    result = await session.execute(query.offset(request.offset).limit(request.limit))
    items = result.scalars().all()

    return Page(items=items, total=total, current_page=request.page, limit=request.limit)


def search_pattern(search: str | None) -> str | None:
    """Case-insensitive substring pattern for ILIKE, or None to skip filtering."""
    if search is None or not search.strip():
        return None
    escaped = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
