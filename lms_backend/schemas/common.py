import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Query

T = TypeVar('T')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ORMModel(BaseModel):
    class Config:
        from_attributes = True


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class Page(BaseModel, Generic[T]):
    success: bool = True
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def ok(data: Any) -> dict:
    return {'success': True, 'data': data}


def paginate(query: Query, page: int, limit: int) -> tuple[list, int]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def page_response(items: list, total: int, page: int, limit: int) -> dict:
    return {
        'success': True,
        'data': items,
        'total': total,
        'page': page,
        'limit': limit,
        'total_pages': math.ceil(total / limit) if limit else 0,
    }
