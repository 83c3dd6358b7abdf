"""Offset pagination for list endpoints."""

import math
from typing import Any, Callable, Optional

from sqlalchemy.orm import Query

from servicedesk.config import settings


def clamp_page(page: Optional[int], limit: Optional[int]):
    page = max(1, page or 1)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
    return page, limit


def paginate(query: Query, page: Optional[int], limit: Optional[int], transform: Optional[Callable[[Any], Any]] = None) -> dict:
    """
    Slice an ordered query into a page.

    Returns:
        {"data": [...], "pagination": {"page", "limit", "total", "pages"}}
    """
    page, limit = clamp_page(page, limit)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    if transform is not None:
        rows = [transform(row) for row in rows]
    return {
        "data": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }

