"""Paginated, version-tagged feed state."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol

from loguru import logger

from storyfeed.feed.criteria import FilterCriteria
from storyfeed.feed.errors import ErrorKind, ValidationError, classify_error, message_for

DEFAULT_PAGE_SIZE = 12


@dataclass(frozen=True)
class Page:
    offset: int
    limit: int
    items: tuple
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DataSource(Protocol):
    async def fetch_page(self, filter: FilterCriteria, offset: int, limit: int) -> Page: ...


@dataclass(frozen=True)
class PageRequest:
    """A single page fetch, tagged with the filter version it was issued for."""

    filter: FilterCriteria
    offset: int
    limit: int
    version: int


@dataclass(frozen=True)
class FetchFailure:
    kind: ErrorKind
    message: str
    request: PageRequest

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def scope(self) -> str:
        """``"feed"`` when the first page failed, ``"load_more"`` otherwise."""
        return "feed" if self.request.offset == 0 else "load_more"


@dataclass(frozen=True)
class FeedState:
    items: tuple = ()
    has_more: bool = True
    is_loading: bool = False
    is_fetching_more: bool = False
    filter_version: int = 0
    filter: Optional[FilterCriteria] = None
    last_error: Optional[FetchFailure] = None

    @property
    def is_busy(self) -> bool:
        return self.is_loading or self.is_fetching_more

    @property
    def can_load_more(self) -> bool:
        # A failed page blocks further loading until it is retried or the feed is reset.
        return self.has_more and not self.is_busy and self.last_error is None


def item_id(item: Any) -> Any:
    try:
        if isinstance(item, dict):
            return item["id"]
        return item.id
    except (KeyError, AttributeError) as e:
        raise ValidationError(f"Feed item without an id: {item!r}") from e


Listener = Callable[[FeedState], None]


class FeedStateStore:
    """Owns pagination and item accumulation for one feed.

    Every fetch is tagged with the filter version active when it was issued.
    A completion carrying an older version is discarded, which is what lets
    ``reset`` supersede an in-flight fetch. At most one fetch is in flight:
    ``load_next_page`` and ``retry`` return the running task instead of
    starting another one.
    """

    def __init__(
        self,
        source: DataSource,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        hard_cancel: bool = True,
        key: Callable[[Any], Any] = item_id,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._source = source
        self._page_size = page_size
        self._hard_cancel = hard_cancel
        self._key = key
        self._state = FeedState(has_more=False)
        self._seen_ids: set = set()
        self._inflight: Optional[asyncio.Task] = None
        self._listeners: list[Listener] = []
        self.fetch_count = 0

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def inflight(self) -> Optional[asyncio.Task]:
        return self._inflight

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Operations

    def reset(self, filter: FilterCriteria) -> asyncio.Task:
        """Start a fresh feed for ``filter`` and fetch its first page."""
        version = self._state.filter_version + 1
        superseded = self._inflight
        self._seen_ids = set()
        self._set_state(
            FeedState(
                items=(),
                has_more=True,
                is_loading=True,
                is_fetching_more=False,
                filter_version=version,
                filter=filter,
            )
        )
        if superseded is not None and not superseded.done() and self._hard_cancel:
            logger.debug(f"Cancelling fetch superseded by filter version {version}")
            superseded.cancel()

        logger.debug(f"Feed reset to version {version} with {filter}")
        return self._issue(PageRequest(filter, 0, self._page_size, version))

    def load_next_page(self) -> Awaitable[FeedState]:
        """Fetch the page after the accumulated items, unless one is pending or none remain."""
        state = self._state
        if state.filter is None or not state.can_load_more:
            return self._pending_result()

        self._set_state(replace(state, is_fetching_more=True))
        request = PageRequest(state.filter, len(state.items), self._page_size, state.filter_version)
        return self._issue(request)

    def retry(self) -> Awaitable[FeedState]:
        """Re-issue the exact request that failed last, if it may be retried."""
        failure = self._state.last_error
        if failure is None or self._state.is_busy:
            return self._pending_result()
        if not failure.retryable:
            logger.info(f"Not retrying {failure.kind.value}: {failure.message}")
            return self._pending_result()
        if failure.request.version != self._state.filter_version:
            return self._pending_result()

        first_page = failure.request.offset == 0
        self._set_state(
            replace(
                self._state,
                is_loading=first_page,
                is_fetching_more=not first_page,
                last_error=None,
            )
        )
        logger.debug(f"Retrying page at offset {failure.request.offset}")
        return self._issue(failure.request)

    # Fetch lifecycle

    def _issue(self, request: PageRequest) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        self.fetch_count += 1
        logger.debug(
            f"Fetching offset={request.offset} limit={request.limit} version={request.version}"
        )
        task = loop.create_task(self._run(request))
        self._inflight = task
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _run(self, request: PageRequest) -> FeedState:
        try:
            page = await self._source.fetch_page(request.filter, request.offset, request.limit)
            self._on_page(request, page)
        except asyncio.CancelledError:
            logger.debug(f"Fetch for version {request.version} cancelled")
            raise
        except Exception as e:
            self._on_failure(request, e)
        return self._state

    def _is_stale(self, request: PageRequest) -> bool:
        if request.version != self._state.filter_version:
            logger.debug(
                f"{ErrorKind.STALE_RESPONSE.value}: version {request.version} "
                f"superseded by {self._state.filter_version}"
            )
            return True
        return False

    def _on_page(self, request: PageRequest, page: Page) -> None:
        if self._is_stale(request):
            return

        # Keys first, so a bad item fails the page before anything is recorded.
        keys = [self._key(item) for item in page.items]
        fresh = []
        for key, item in zip(keys, page.items):
            if key in self._seen_ids:
                continue
            self._seen_ids.add(key)
            fresh.append(item)

        returned = len(page.items)
        logger.debug(
            f"Merged {len(fresh)} of {returned} items at offset {request.offset} "
            f"(version {request.version})"
        )
        self._set_state(
            replace(
                self._state,
                items=self._state.items + tuple(fresh),
                has_more=returned >= request.limit,
                is_loading=False,
                is_fetching_more=False,
                last_error=None,
            )
        )

    def _on_failure(self, request: PageRequest, error: Exception) -> None:
        if self._is_stale(request):
            return

        kind = classify_error(error)
        logger.warning(f"{kind.value} at offset {request.offset}: {error}")
        self._set_state(
            replace(
                self._state,
                is_loading=False,
                is_fetching_more=False,
                last_error=FetchFailure(kind, message_for(kind), request),
            )
        )

    # Helpers

    def _pending_result(self) -> Awaitable[FeedState]:
        if self._inflight is not None:
            return self._inflight
        future = asyncio.get_running_loop().create_future()
        future.set_result(self._state)
        return future

    def _set_state(self, state: FeedState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
