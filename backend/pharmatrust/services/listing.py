"""Shared list-endpoint helpers: substring search and page/limit pagination."""
import math
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query

from pharmatrust.core.config import settings
from pharmatrust.schemas.common import Pagination


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_filter(term: Optional[str], *columns):
    """Case-insensitive substring match of ``term`` against any of ``columns``."""
    if not term or not term.strip():
        return None
    pattern = f"%{escape_like(term.strip())}%"
    return or_(*[col.ilike(pattern, escape="\\") for col in columns])


def clamp_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else settings.DEFAULT_PAGE_SIZE
    return page, min(limit, settings.MAX_PAGE_SIZE)


def paginate(query: Query, page: Optional[int], limit: Optional[int], *order_by) -> Tuple[List, Pagination]:
    """Run ``query`` for one page; ``order_by`` is applied before slicing."""
    page, limit = clamp_page(page, limit)
    total = query.order_by(None).count()
    rows = (
        query.order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = Pagination(
        current_page=page,
        total_pages=math.ceil(total / limit) if total else 0,
        total_items=total,
        items_per_page=limit,
    )
    return rows, pagination
