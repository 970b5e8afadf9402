from querygrid.core.errors import ArgumentError
from querygrid.schemas.response import PaginationInfo, count_pages


def calculate_pagination(total_count: int, page_size: int, page: int) -> PaginationInfo:
    """Pagination metadata for ``total_count`` rows split in pages of ``page_size``.

    ``page`` is the requested 1-based page. The reported ``current_page`` is
    the requested page unless it lies at or past the end, in which case it is
    clamped to ``total_pages - 1`` (and to 0 for an empty result).
    """
    total_pages = count_pages(total_count, page_size)
    current_page = total_pages - 1 if page >= total_pages else page
    return PaginationInfo.build(current_page, page_size, total_count)


def page_offset(page: int, rows: int) -> int:
    """Row offset of the 1-based ``page``."""
    if rows < 0:
        raise ArgumentError("Rows per page cannot be negative.")
    return max(page - 1, 0) * rows
