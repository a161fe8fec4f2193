"""Fixed-height list virtualization.

Only the items intersecting the viewport (plus ``overscan`` on each side)
are rendered. Positions are computed from the index, so render cost does
not depend on how many items the feed holds.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from storyfeed.feed.errors import render_safely

DEFAULT_OVERSCAN = 2


@dataclass(frozen=True)
class ViewportWindow:
    scroll_offset: int
    container_height: int
    item_height: int
    overscan: int = DEFAULT_OVERSCAN

    def __post_init__(self):
        if self.item_height <= 0:
            raise ValueError("item_height must be positive")
        if self.overscan < 0:
            raise ValueError("overscan must not be negative")

    def visible_range(self, count: int) -> Optional["VisibleRange"]:
        """Return the index range to render for ``count`` items, or None when empty."""
        if count <= 0:
            return None

        last = count - 1
        start = math.floor(self.scroll_offset / self.item_height) - self.overscan
        end = math.ceil((self.scroll_offset + self.container_height) / self.item_height) + self.overscan
        return VisibleRange(_clamp(start, 0, last), _clamp(end, 0, last))

    def total_height(self, count: int) -> int:
        return max(count, 0) * self.item_height


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


@dataclass(frozen=True)
class VisibleRange:
    """Inclusive index range ``[start, end]``."""

    start: int
    end: int

    def __iter__(self):
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, index: int) -> bool:
        return self.start <= index <= self.end


@dataclass(frozen=True)
class PositionStyle:
    top: int
    height: int


@dataclass(frozen=True)
class RenderedSlot:
    index: int
    position: PositionStyle
    value: Any
    failed: bool = False


@dataclass(frozen=True)
class RenderedWindow:
    visible_range: Optional[VisibleRange]
    total_height: int
    slots: tuple = ()

    def slot_at(self, index: int) -> Optional[RenderedSlot]:
        if self.visible_range is None or index not in self.visible_range:
            return None
        return self.slots[index - self.visible_range.start]


def placeholder(item: Any, position: PositionStyle, error: Exception) -> str:
    return "This post could not be displayed."


class WindowRenderer:
    """Renders the visible slice of a list through ``render_item``.

    Args:
        render_item: Callable ``(item, PositionStyle) -> renderable``.
        fallback: Callable ``(item, PositionStyle, error) -> renderable`` used
            for items whose ``render_item`` call raised.
        on_visible_range_change: Called with the new ``VisibleRange`` (or None)
            whenever it differs from the previous render.
    """

    def __init__(
        self,
        render_item: Callable[[Any, PositionStyle], Any],
        *,
        fallback: Callable[[Any, PositionStyle, Exception], Any] = placeholder,
        on_visible_range_change: Optional[Callable[[Optional[VisibleRange]], None]] = None,
    ):
        self._render_item = render_item
        self._fallback = fallback
        self._on_visible_range_change = on_visible_range_change
        self._last_range: Optional[VisibleRange] = None
        self._cache_key = None
        self._cached_items = None
        self._cached: Optional[RenderedWindow] = None
        self.render_count = 0

    @property
    def last_range(self) -> Optional[VisibleRange]:
        return self._last_range

    def invalidate(self) -> None:
        """Forget the cached window so the next render rebuilds every slot."""
        self._cache_key = None
        self._cached_items = None
        self._cached = None

    def render(self, items: Sequence[Any], window: ViewportWindow) -> RenderedWindow:
        # Recompute only when scroll offset, container, item height, overscan or items change.
        key = (window, len(items))
        if self._cached is not None and key == self._cache_key and items is self._cached_items:
            return self._cached

        started = time.perf_counter()
        visible = window.visible_range(len(items))
        slots = []
        if visible is not None:
            for index in visible:
                position = PositionStyle(top=index * window.item_height, height=window.item_height)
                outcome = render_safely(self._render_item, items[index], position, self._fallback)
                slots.append(RenderedSlot(index, position, outcome.value, outcome.failed))

        rendered = RenderedWindow(visible, window.total_height(len(items)), tuple(slots))
        self._cache_key = key
        self._cached_items = items
        self._cached = rendered
        self.render_count += 1
        logger.debug(
            f"Render #{self.render_count}: {len(slots)} of {len(items)} items "
            f"in {(time.perf_counter() - started) * 1000:.2f}ms"
        )

        if visible != self._last_range:
            self._last_range = visible
            if self._on_visible_range_change is not None:
                self._on_visible_range_change(visible)
        return rendered
