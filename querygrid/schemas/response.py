from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from querygrid.core.errors import ArgumentError

T = TypeVar("T")


def count_pages(total_count: int, page_size: int) -> int:
    if total_count < 0:
        raise ArgumentError("Total count cannot be negative.")
    if page_size < 0:
        raise ArgumentError("Page size cannot be negative.")
    if total_count == 0:
        return 0
    if page_size == 0:
        raise ArgumentError("Page size must be greater than zero when rows are present.")
    return (total_count + page_size - 1) // page_size


class PaginationInfo(BaseModel):
    """Pagination metadata of a result. ``current_page`` is 0-based."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    current_page: int = Field(alias="currentPage", ge=0)
    page_size: int = Field(alias="pageSize", ge=0)
    total_count: int = Field(alias="totalCount", ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)

    @classmethod
    def build(cls, current_page: int, page_size: int, total_count: int) -> "PaginationInfo":
        total_pages = count_pages(total_count, page_size)
        return cls(
            current_page=max(current_page, 0),
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
        )


class PagedResponse(BaseModel, Generic[T]):
    data: List[T] = Field(default_factory=list)
    pagination: PaginationInfo

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
