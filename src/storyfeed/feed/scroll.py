"""Sentinel visibility tracking and scroll-driven page loading."""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from storyfeed.feed.store import FeedState, FeedStateStore

DEFAULT_ROOT_MARGIN = 10
DEFAULT_THRESHOLD = 0.1


@dataclass
class Sentinel:
    """Marker placed after the last item. ``top`` moves as the list grows."""

    top: int = 0
    height: int = 1


@dataclass(frozen=True)
class Viewport:
    top: int
    height: int

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class IntersectionEntry:
    target: Sentinel
    ratio: float
    is_intersecting: bool


class ViewportObserver:
    """Reports when observed sentinels cross the (margin-extended) viewport.

    The callback receives one entry per target whose intersecting state
    changed since the last update. ``root_margin`` extends the viewport
    downwards so the sentinel is reported before it is physically visible.
    """

    def __init__(
        self,
        callback: Callable[[list[IntersectionEntry]], None],
        *,
        root_margin: int = DEFAULT_ROOT_MARGIN,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self._callback = callback
        self.root_margin = root_margin
        self.threshold = threshold
        self._targets: dict[int, Sentinel] = {}
        self._intersecting: dict[int, bool] = {}
        self._viewport: Optional[Viewport] = None

    @property
    def targets(self) -> list[Sentinel]:
        return list(self._targets.values())

    def observe(self, target: Sentinel) -> None:
        self._targets[id(target)] = target
        self._intersecting.pop(id(target), None)
        if self._viewport is not None:
            self.update(self._viewport)

    def unobserve(self, target: Sentinel) -> None:
        self._targets.pop(id(target), None)
        self._intersecting.pop(id(target), None)

    def disconnect(self) -> None:
        self._targets.clear()
        self._intersecting.clear()
        self._viewport = None

    def update(self, viewport: Viewport) -> None:
        """Recompute intersections for ``viewport`` and report changes."""
        self._viewport = viewport
        changed = []
        for key, target in list(self._targets.items()):
            entry = self._measure(target, viewport)
            if self._intersecting.get(key) != entry.is_intersecting:
                self._intersecting[key] = entry.is_intersecting
                changed.append(entry)
        if changed:
            self._callback(changed)

    def refresh(self) -> None:
        """Report the current state of every target, changed or not."""
        if self._viewport is None or not self._targets:
            return
        entries = [self._measure(target, self._viewport) for target in self._targets.values()]
        for key, entry in zip(self._targets, entries):
            self._intersecting[key] = entry.is_intersecting
        self._callback(entries)

    def _measure(self, target: Sentinel, viewport: Viewport) -> IntersectionEntry:
        top = max(target.top, viewport.top)
        bottom = min(target.top + target.height, viewport.bottom + self.root_margin)
        overlap = max(0, bottom - top)
        if target.height <= 0:
            ratio = 1.0 if viewport.top <= target.top <= viewport.bottom + self.root_margin else 0.0
        else:
            ratio = overlap / target.height
        is_intersecting = ratio > 0 and ratio >= self.threshold
        return IntersectionEntry(target, ratio, is_intersecting)


class ScrollTrigger:
    """Asks the store for the next page when the end-of-list sentinel shows up.

    ``is_fetching`` latches from the moment a load is requested until it
    settles, so a second observer callback cannot issue another request in
    between. Mounting twice or unmounting an unmounted trigger is safe.

    While mounted the trigger follows the store. Whenever a state allows
    another page, the sentinel is measured again after the next viewport
    update, so a sentinel that stayed visible through a load still fires.
    """

    def __init__(
        self,
        store: FeedStateStore,
        *,
        root_margin: int = DEFAULT_ROOT_MARGIN,
        threshold: float = DEFAULT_THRESHOLD,
        on_load_more: Optional[Callable[[], None]] = None,
    ):
        self._store = store
        self._root_margin = root_margin
        self._threshold = threshold
        self._on_load_more = on_load_more
        self._observer: Optional[ViewportObserver] = None
        self._sentinel: Optional[Sentinel] = None
        self._is_fetching = False
        self._pending = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._recheck = False
        self._layout_current = False

    @property
    def is_fetching(self) -> bool:
        return self._is_fetching

    @property
    def is_mounted(self) -> bool:
        return self._observer is not None

    @property
    def observer(self) -> Optional[ViewportObserver]:
        return self._observer

    def mount(self, sentinel: Sentinel) -> None:
        if self._observer is not None:
            self.unmount()
        self._sentinel = sentinel
        self._observer = ViewportObserver(
            self._handle_entries, root_margin=self._root_margin, threshold=self._threshold
        )
        self._observer.observe(sentinel)
        self._unsubscribe = self._store.subscribe(self._on_state)

    def unmount(self) -> None:
        if self._observer is None:
            return
        self._observer.disconnect()
        self._observer = None
        self._sentinel = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._recheck = False

    def update_viewport(self, viewport: Viewport) -> None:
        if self._observer is None:
            return
        self._layout_current = True
        self._observer.update(viewport)
        self._recheck_if_needed()

    def _on_state(self, state: FeedState) -> None:
        if state.can_load_more:
            # The sentinel moves with the items; measure it once the new layout is reported.
            self._recheck = True
            self._layout_current = False

    def _recheck_if_needed(self) -> None:
        if not self._recheck or not self._layout_current or self._is_fetching:
            return
        if self._observer is None:
            return
        self._recheck = False
        self._observer.refresh()

    def _handle_entries(self, entries: list[IntersectionEntry]) -> None:
        if not any(entry.is_intersecting for entry in entries):
            return
        state = self._store.state
        if self._is_fetching or not state.can_load_more:
            return

        self._is_fetching = True
        self._recheck = False
        logger.debug(f"Sentinel visible, loading more after {len(state.items)} items")
        if self._on_load_more is not None:
            self._on_load_more()
        pending = self._store.load_next_page()
        self._pending = pending
        pending.add_done_callback(self._settle)

    def _settle(self, future: asyncio.Future) -> None:
        if future is not self._pending:
            return
        self._pending = None
        self._is_fetching = False
        self._recheck_if_needed()
