from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int
    isFirstPage: bool
    isLastPage: bool


class Page(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta


class MessageResponse(BaseModel):
    message: str
