"""Common schemas for cursor pagination."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class CursorPage(BaseModel, Generic[T]):
    """Generic cursor-paginated response wrapper."""

    items: list[T]
    next_cursor: str | None = Field(
        default=None, description="Opaque token for the next page, null on the last page"
    )
    has_more: bool = False

    @classmethod
    def from_page(cls, page) -> "CursorPage[T]":
        """Build the response from a repository Page."""
        return cls(items=page.items, next_cursor=page.next_cursor, has_more=page.has_more)
