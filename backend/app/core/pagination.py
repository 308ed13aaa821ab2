"""Pagination and filter-building helpers shared by list endpoints."""

import math
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.config import get_settings

settings = get_settings()

ALL = "ALL"


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for `total` rows."""
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def offset_for(page: int, page_size: int) -> int:
    return max(page - 1, 0) * page_size


def is_set(value: Optional[str]) -> bool:
    """True when a filter value should narrow the query ("ALL" and blanks do not)."""
    return value is not None and value != "" and str(value).upper() != ALL


def ilike_any(term: str, *columns: Any) -> ColumnElement[bool]:
    """Case-insensitive substring match on any of the given columns."""
    pattern = f"%{term.strip()}%"
    return or_(*[column.ilike(pattern) for column in columns])


async def count_rows(db: AsyncSession, stmt: Select) -> int:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    result = await db.execute(count_stmt)
    return result.scalar() or 0


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int,
    page_size: int,
    scalars: bool = True,
) -> tuple[Sequence[Any], int]:
    """Run `stmt` for one page and return (rows, total)."""
    total = await count_rows(db, stmt)
    result = await db.execute(stmt.offset(offset_for(page, page_size)).limit(page_size))
    rows = result.scalars().all() if scalars else result.all()
    return rows, total


class PageParams(BaseModel):
    """Query parameters shared by paginated list endpoints."""

    page: int = Field(1, ge=1)
    page_size: int = Field(settings.default_page_size, ge=1, le=settings.max_page_size)

    @property
    def offset(self) -> int:
        return offset_for(self.page, self.page_size)
