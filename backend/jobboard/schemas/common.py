from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T | None = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
