"""Offset/limit pagination over SQLAlchemy ``select`` statements."""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy import Select, func
from sqlalchemy.orm import Session

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def pagination_params(page: int | None = None, limit: int | None = None) -> tuple[int, int]:
    """Clamp raw page/limit values into a usable pair."""

    page = page or DEFAULT_PAGE
    limit = limit or DEFAULT_LIMIT
    if page < 1:
        page = DEFAULT_PAGE
    if limit < 1:
        limit = DEFAULT_LIMIT
    if limit > MAX_LIMIT:
        limit = MAX_LIMIT
    return page, limit


def page_meta(total: int, page: int, limit: int) -> dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "isFirstPage": page <= 1,
        "isLastPage": page >= total_pages,
    }


def paginate(db: Session, stmt: Select, page: int | None = None, limit: int | None = None) -> tuple[list[Any], dict[str, Any]]:
    """Run ``stmt`` for one page and count the full result set.

    ``stmt`` must select a single ORM entity; the count keeps its FROM and
    WHERE clauses but drops ordering and eager loads.
    """

    page, limit = pagination_params(page, limit)
    count_stmt = stmt.with_only_columns(func.count(), maintain_column_froms=True).order_by(None)
    total = db.execute(count_stmt).scalar_one()
    rows = db.execute(stmt.limit(limit).offset((page - 1) * limit)).unique().scalars().all()
    return list(rows), page_meta(total, page, limit)
