"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components:

    providers -> paginator -> aggregator -> result store -> viewport filter

Aggregation never raises. Every cycle works on its own accumulators and
only the finished result is published; results from a cycle that was
overtaken by a newer one are dropped at publish time.
"""

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from src.core.config import Config
from src.core.date_range import DateWindow, resolve_preset
from src.core.dedup import (
    DEFAULT_GRANULARITY,
    DedupGranularity,
    remove_duplicates,
    sort_newest_first,
)
from src.core.earthquake import CanonicalRecord, LoadingStatus
from src.core.geo import TURKEY_BOUNDS, BoundingBox, filter_by_bounds
from src.core.pagination import DEFAULT_PAGE_SIZE, FetchPage, PaginationResult, fetch_all_pages
from src.core.viewport import DEFAULT_POLICY, DensityPolicy, filter_for_display
from src.shell.archive_client import create_archive_clients


logger = logging.getLogger(__name__)


StatusMap = dict[str, LoadingStatus]
Paginate = Callable[[FetchPage, str, Optional[str], int], PaginationResult]
ProgressCallback = Callable[[StatusMap], None]


class Provider(Protocol):
    """Anything with a name and a paginated fetch capability."""

    name: str

    def fetch_page(
        self,
        date_start: str,
        date_end: str | None,
        page_size: int,
        offset: int,
    ) -> list[CanonicalRecord]:
        ...


@dataclass(frozen=True)
class AggregationResult:
    """Result of one aggregation cycle.

    Attributes:
        records: Admitted, deduplicated records, newest first
        status: Per-provider loading status
        request_id: Monotonic ID of the cycle
        fetched_at: When the cycle finished (UTC)
    """
    records: list[CanonicalRecord]
    status: StatusMap
    request_id: int
    fetched_at: datetime

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def success(self) -> bool:
        """Returns True if every provider loaded."""
        return all(s == LoadingStatus.LOADED for s in self.status.values())

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        states = ", ".join(f"{name}={state.value}" for name, state in self.status.items())
        return f"Request {self.request_id}: {self.count} earthquakes ({states})"

    def to_dict(self, records: list[CanonicalRecord] | None = None) -> dict[str, Any]:
        """Build the response body, optionally with a narrowed record list."""
        selected = self.records if records is None else records
        return {
            "earthquakes": [r.to_dict() for r in selected],
            "status": {name: state.value for name, state in self.status.items()},
            "last_update": self.fetched_at.isoformat(),
            "count": len(selected),
            "request_id": self.request_id,
        }


class Aggregator:
    """Fans out to all providers and merges their records.

    Providers are paginated concurrently, one worker each; every
    provider's own pages are fetched sequentially.
    """

    def __init__(
        self,
        providers: list[Provider],
        admission_bounds: BoundingBox = TURKEY_BOUNDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        granularity: DedupGranularity = DEFAULT_GRANULARITY,
        paginate: Paginate = fetch_all_pages,
    ) -> None:
        """Initialize aggregator.

        Args:
            providers: Provider adapters, in concatenation order
            admission_bounds: Records outside this box are discarded
            page_size: Records requested per page
            granularity: Dedup key granularity
            paginate: Pagination strategy
        """
        self.providers = list(providers)
        self.admission_bounds = admission_bounds
        self.page_size = page_size
        self.granularity = granularity
        self.paginate = paginate
        self._request_ids = itertools.count(1)
        self._request_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "Aggregator":
        """Build an aggregator with HTTP archive clients from config."""
        return cls(
            providers=create_archive_clients(
                config.enabled_providers,
                timeout=config.request_timeout_seconds,
            ),
            admission_bounds=config.admission_bounds,
            page_size=config.page_size,
            granularity=config.dedup,
        )

    def next_request_id(self) -> int:
        with self._request_lock:
            return next(self._request_ids)

    def _fetch_all(
        self,
        date_start: str,
        date_end: str | None,
        status: StatusMap,
        on_progress: ProgressCallback | None,
    ) -> list[list[CanonicalRecord]]:
        """Paginate every provider concurrently.

        Returns:
            One record list per provider, in provider order
        """
        results: dict[str, list[CanonicalRecord]] = {}

        with ThreadPoolExecutor(max_workers=max(1, len(self.providers))) as pool:
            futures = {
                pool.submit(
                    self.paginate,
                    provider.fetch_page,
                    date_start,
                    date_end,
                    self.page_size,
                ): provider
                for provider in self.providers
            }

            for future in as_completed(futures):
                provider = futures[future]
                try:
                    pagination = future.result()
                except Exception:
                    logger.exception("Provider %s failed", provider.name)
                    results[provider.name] = []
                    status[provider.name] = LoadingStatus.ERROR
                else:
                    results[provider.name] = pagination.records
                    if pagination.failed:
                        status[provider.name] = LoadingStatus.ERROR
                        logger.warning(
                            "Provider %s failed after %d calls, keeping %d records",
                            provider.name,
                            pagination.calls,
                            len(pagination.records),
                        )
                    else:
                        status[provider.name] = LoadingStatus.LOADED
                        logger.info(
                            "Provider %s loaded %d records in %d calls",
                            provider.name,
                            len(pagination.records),
                            pagination.calls,
                        )

                if on_progress is not None:
                    on_progress(dict(status))

        return [results[provider.name] for provider in self.providers]

    def aggregate(
        self,
        date_start: str,
        date_end: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AggregationResult:
        """Run one aggregation cycle.

        Never raises: an unexpected failure yields an empty record set with
        every still-pending provider marked as errored.

        Args:
            date_start: Window start (YYYY-MM-DD)
            date_end: Window end (YYYY-MM-DD) or None for open-ended
            on_progress: Called with a status snapshot on every change

        Returns:
            AggregationResult
        """
        request_id = self.next_request_id()
        status: StatusMap = {p.name: LoadingStatus.PENDING for p in self.providers}

        logger.info(
            "Starting aggregation %d for %s..%s",
            request_id,
            date_start,
            date_end or "",
        )

        try:
            if on_progress is not None:
                on_progress(dict(status))

            per_provider = self._fetch_all(date_start, date_end, status, on_progress)
            merged = [record for records in per_provider for record in records]

            admitted = filter_by_bounds(merged, self.admission_bounds)
            unique = remove_duplicates(admitted, self.granularity)
            records = sort_newest_first(unique)

            logger.info(
                "Aggregation %d: %d fetched, %d admitted, %d after dedup",
                request_id,
                len(merged),
                len(admitted),
                len(records),
            )
        except Exception:
            logger.exception("Aggregation %d failed", request_id)
            for name, state in status.items():
                if state == LoadingStatus.PENDING:
                    status[name] = LoadingStatus.ERROR
            records = []
            if on_progress is not None:
                try:
                    on_progress(dict(status))
                except Exception:
                    logger.exception("Progress callback failed")

        return AggregationResult(
            records=records,
            status=status,
            request_id=request_id,
            fetched_at=datetime.now(timezone.utc),
        )


class ResultStore:
    """Holds the most recently published aggregation result.

    A result is published only if its request ID is newer than the one
    already held, so a slow older cycle cannot overwrite a newer one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: AggregationResult | None = None

    @property
    def latest(self) -> AggregationResult | None:
        with self._lock:
            return self._latest

    def publish(self, result: AggregationResult) -> bool:
        """Publish a result; returns False if it was stale and dropped."""
        with self._lock:
            if self._latest is not None and result.request_id <= self._latest.request_id:
                logger.info(
                    "Dropping stale result %d (published: %d)",
                    result.request_id,
                    self._latest.request_id,
                )
                return False
            self._latest = result
            return True


@dataclass
class VisibleRecords:
    """Records chosen for rendering.

    Attributes:
        records: Visible subset
        total: Size of the record set it was chosen from
    """
    records: list[CanonicalRecord] = field(default_factory=list)
    total: int = 0


class EarthquakeFeed:
    """Keeps the current date window, its latest result, and refreshes it.

    User requests (load) and timer ticks (refresh) may overlap; both go
    through the result store, so the newest cycle always wins.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        store: ResultStore | None = None,
        density: DensityPolicy = DEFAULT_POLICY,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        """Initialize feed.

        Args:
            aggregator: Aggregation pipeline
            store: Result store (created if not provided)
            density: Viewport density thresholds
            clock: Current time source
        """
        self.aggregator = aggregator
        self.store = store or ResultStore()
        self.density = density
        self.clock = clock
        self._window: DateWindow | None = None
        self._window_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "EarthquakeFeed":
        return cls(Aggregator.from_config(config), density=config.density)

    @property
    def window(self) -> DateWindow:
        """Current window; today's when nothing was requested yet."""
        with self._window_lock:
            if self._window is not None:
                return self._window
        return resolve_preset("today", self.clock())

    def load(
        self,
        window: DateWindow,
        on_progress: ProgressCallback | None = None,
    ) -> AggregationResult:
        """Make window current, aggregate it and publish the result.

        Returns:
            The result of this cycle, whether or not it was published
        """
        with self._window_lock:
            self._window = window

        result = self.aggregator.aggregate(window.start, window.end, on_progress)
        self.store.publish(result)
        logger.info("Completed: %s", result.summary)
        return result

    def refresh(self) -> AggregationResult:
        """Re-aggregate the current window (timer tick)."""
        window = self.window
        result = self.aggregator.aggregate(window.start, window.end)
        self.store.publish(result)
        logger.info("Refreshed: %s", result.summary)
        return result

    def latest(self) -> AggregationResult | None:
        return self.store.latest

    def visible(self, zoom: float, bounds: BoundingBox) -> VisibleRecords:
        """Run the viewport filter over the last published result."""
        latest = self.store.latest
        if latest is None:
            return VisibleRecords()

        return VisibleRecords(
            records=filter_for_display(latest.records, zoom, bounds, self.density),
            total=latest.count,
        )
