"""Earthquake Archive Client - Imperative Shell.

This module handles HTTP communication with the provider archive API.
All I/O is contained here; payload parsing is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from src.core.config import ProviderConfig
from src.core.earthquake import CanonicalRecord, Source
from src.core.providers import parse_page


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


@dataclass
class ArchiveQueryParams:
    """Parameters for one archive page request.

    Attributes:
        date: Window start (YYYY-MM-DD)
        date_end: Window end (YYYY-MM-DD); None means "this date onward"
        limit: Page size
        skip: Offset of the first record
    """
    date: str
    date_end: str | None = None
    limit: int = 100
    skip: int = 0


class ArchiveClient:
    """Provider adapter for one archive endpoint.

    This is part of the imperative shell - it handles HTTP I/O.
    fetch_page never raises: any transport or decoding failure is logged
    and reported as an empty page.
    """

    def __init__(
        self,
        source: Source,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize archive client.

        Args:
            source: Provider served by base_url
            base_url: Archive endpoint URL
            timeout: Request timeout in seconds
            session: HTTP session (a new one if not provided)
        """
        self.source = source
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return self.source.value

    def _build_params(self, query: ArchiveQueryParams) -> dict[str, str]:
        """Build query parameters for an archive request.

        Args:
            query: Query parameters

        Returns:
            Dict of URL query parameters
        """
        params: dict[str, str] = {
            "date": query.date,
            "limit": str(query.limit),
            "skip": str(query.skip),
        }

        if query.date_end is not None:
            params["date_end"] = query.date_end

        return params

    def fetch_raw(self, query: ArchiveQueryParams) -> dict[str, Any]:
        """Fetch one raw archive page.

        This method performs HTTP I/O.

        Args:
            query: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            requests.RequestException: If the request fails
            ValueError: If the body is not JSON
        """
        params = self._build_params(query)

        logger.debug(
            "Fetching %s archive page",
            self.name,
            extra={"params": params},
        )

        response = self.session.get(
            self.base_url,
            params=params,
            timeout=self.timeout,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()

        return response.json()

    def fetch_page(
        self,
        date_start: str,
        date_end: str | None,
        page_size: int,
        offset: int,
    ) -> list[CanonicalRecord]:
        """Fetch and normalize one page of records.

        Args:
            date_start: Window start (YYYY-MM-DD)
            date_end: Window end (YYYY-MM-DD) or None
            page_size: Records requested
            offset: Records to skip

        Returns:
            Parsed records; empty on any failure
        """
        query = ArchiveQueryParams(
            date=date_start,
            date_end=date_end,
            limit=page_size,
            skip=offset,
        )

        try:
            payload = self.fetch_raw(query)
            records = parse_page(payload, self.source)
        except (requests.RequestException, ValueError, OverflowError) as e:
            logger.warning(
                "Failed to fetch %s page at offset %d: %s",
                self.name,
                offset,
                e,
            )
            return []

        logger.info(
            "Fetched %d %s records at offset %d",
            len(records),
            self.name,
            offset,
        )

        return records


def create_archive_clients(
    providers: list[ProviderConfig],
    timeout: int = DEFAULT_TIMEOUT,
) -> list[ArchiveClient]:
    """Create one client per enabled provider, keeping configured order."""
    return [
        ArchiveClient(
            source=Source(provider.name),
            base_url=provider.base_url,
            timeout=timeout,
        )
        for provider in providers
        if provider.enabled
    ]
