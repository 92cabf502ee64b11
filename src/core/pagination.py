"""Pagination - drives one provider across pages.

The fetch capability is injected, so this module stays free of I/O.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from src.core.earthquake import CanonicalRecord


logger = logging.getLogger(__name__)


# Default page size requested from each provider
DEFAULT_PAGE_SIZE = 100


# fetch_page(date_start, date_end, page_size, offset) -> records
FetchPage = Callable[[str, Optional[str], int, int], list[CanonicalRecord]]


@dataclass
class PaginationResult:
    """Everything one provider returned for a date window.

    Attributes:
        records: Concatenated records, in page order
        calls: Number of page requests made
        error: Exception that stopped the loop early, if any
    """
    records: list[CanonicalRecord] = field(default_factory=list)
    calls: int = 0
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def fetch_all_pages(
    fetch_page: FetchPage,
    date_start: str,
    date_end: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginationResult:
    """Request successive pages until an empty or short page.

    Offsets grow by page_size on every call, and the loop ends on the first
    empty or undersized page, so it always terminates. Pages are never
    retried. An exception from fetch_page ends the loop as if no more data
    were available: the records gathered so far are kept and the exception
    is stored on the result.

    Args:
        fetch_page: Adapter fetch capability
        date_start: Window start (YYYY-MM-DD)
        date_end: Window end (YYYY-MM-DD) or None for open-ended
        page_size: Records requested per page

    Returns:
        PaginationResult with all records, the call count and any error

    Raises:
        ValueError: If page_size is not positive
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    result = PaginationResult()
    offset = 0

    while True:
        result.calls += 1
        try:
            page = fetch_page(date_start, date_end, page_size, offset)
        except Exception as e:
            logger.warning(
                "Page at offset %d failed, keeping %d records: %s",
                offset,
                len(result.records),
                e,
            )
            result.error = e
            break

        if not page:
            break

        result.records.extend(page)

        if len(page) < page_size:
            break

        offset += page_size

    logger.debug(
        "Paginated %d records in %d calls",
        len(result.records),
        result.calls,
    )

    return result
