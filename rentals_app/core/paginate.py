import math

from fastapi import Query
from pydantic import BaseModel


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PageRequest:
    def __init__(self, page: int, limit: int):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageParams:
    """Query dependency turning ``page``/``limit`` into offset/limit."""

    def __init__(self, default_limit: int = 20, max_limit: int = 100):
        self.default_limit = default_limit
        self.max_limit = max_limit

    def __call__(
        self,
        page: int = Query(1, ge=1),
        limit: int | None = Query(None, ge=1),
    ) -> PageRequest:
        limit = min(limit or self.default_limit, self.max_limit)
        return PageRequest(page=page, limit=limit)


class PaginatePage:
    def meta(self, page_request: PageRequest, total: int) -> PaginationMeta:
        return PaginationMeta(
            page=page_request.page,
            limit=page_request.limit,
            total=total,
            pages=math.ceil(total / page_request.limit),
        )

    def page_response(
        self, key: str, items: list[dict], page_request: PageRequest, total: int
    ) -> dict:
        return {
            key: items,
            "pagination": self.meta(page_request, total).model_dump(),
        }
