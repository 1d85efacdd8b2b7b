"""Common Pydantic schemas shared across the API."""

from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, Field


T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Paging block returned alongside list data."""

    page: int = Field(ge=1, description="Current page number")
    limit: int = Field(ge=1, description="Items per page")
    total: int = Field(ge=0, description="Total number of items across all pages")
    total_pages: int = Field(ge=0, description="Total number of pages")


class PaginatedResponse(BaseModel, Generic[T]):
    """List response wrapper."""

    data: list[T] = Field(description="Items for this page")
    pagination: PaginationMeta


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ErrorDetail(BaseModel):
    code: str = Field(description="Error code for programmatic handling")
    message: str
    path: str
    method: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error response envelope."""

    error: ErrorDetail
