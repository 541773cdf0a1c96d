"""Page parameter normalisation and paginated SELECT execution."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

DEFAULT_PAGE = 1


def _positive_int(value: object, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number >= 1 else default


@dataclass(frozen=True, slots=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = 10

    @classmethod
    def normalize(cls, page: object = None, limit: object = None) -> PageParams:
        """Build params from raw input; anything missing, non-numeric or < 1 uses the default."""

        return cls(
            page=_positive_int(page, DEFAULT_PAGE),
            limit=_positive_int(limit, settings.default_page_limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


async def count_rows(session: AsyncSession, stmt: Select[Any]) -> int:
    """Count the rows a filtered SELECT would return."""

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    return int(await session.scalar(count_stmt) or 0)


async def fetch_page(session: AsyncSession, stmt: Select[Any], params: PageParams) -> tuple[list[Any], int]:
    """Run ``stmt`` for one page and return ``(rows, total)``.

    ``stmt`` must already carry a deterministic ORDER BY.
    """

    total = await count_rows(session, stmt)
    if params.offset >= total:
        return [], total
    result = await session.execute(stmt.offset(params.offset).limit(params.limit))
    return list(result.all()), total
