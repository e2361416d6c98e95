"""Response envelope and pagination helpers shared by every router"""

import math
from typing import Any, Optional

from fastapi import Query
from sqlalchemy.orm import Query as SQLQuery

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class PageParams:
    """Dependency collecting ?page=&limit= query values"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginate(query: SQLQuery, params: PageParams) -> tuple[list, dict]:
    """Run a query for one page and build {page, limit, total, pages} metadata"""
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.limit).all()
    pagination = {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "pages": math.ceil(total / params.limit) if total else 0,
    }
    return items, pagination


def success_response(
    data: Any = None, message: Optional[str] = None, pagination: Optional[dict] = None
) -> dict:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}
