"""Filter criteria and the debounced controller that produces them."""

import asyncio
from dataclasses import dataclass, replace
from typing import Callable, Optional

from loguru import logger

DEFAULT_DEBOUNCE_SECONDS = 0.3

SORT_KEYS = ("newest", "oldest", "title")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class FilterCriteria:
    """Immutable description of which posts the feed shows."""

    category_id: Optional[str] = None
    search_text: Optional[str] = None
    sort_key: Optional[str] = None

    def __post_init__(self):
        # Blank fields mean "no constraint" and must compare equal to None.
        object.__setattr__(self, "category_id", _clean(self.category_id))
        object.__setattr__(self, "search_text", _clean(self.search_text))
        object.__setattr__(self, "sort_key", _clean(self.sort_key))
        if self.sort_key is not None and self.sort_key not in SORT_KEYS:
            raise ValueError(f"Invalid sort key '{self.sort_key}'. Allowed: {', '.join(SORT_KEYS)}")

    def to_variables(self) -> dict:
        """Build the GraphQL ``PostFilter`` input, omitting empty fields."""
        variables = {}
        if self.category_id:
            variables["categoryId"] = self.category_id
        if self.search_text:
            variables["searchText"] = self.search_text
        if self.sort_key:
            variables["sortKey"] = self.sort_key
        return variables


class FilterController:
    """Coalesces raw filter input into distinct ``FilterCriteria`` emissions.

    Every update restarts a quiet-period timer. When the timer fires, the
    latest input becomes the effective criteria, and ``on_change`` is called
    only if it differs from the previously emitted value. ``base_category_id``
    is used whenever no category is selected.
    """

    def __init__(
        self,
        on_change: Callable[[FilterCriteria], object],
        *,
        base_category_id: Optional[str] = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        initial: Optional[FilterCriteria] = None,
    ):
        self._on_change = on_change
        self._debounce = debounce
        self._base_category_id = _clean(base_category_id)
        self._search_text: Optional[str] = None
        self._selected_category_id: Optional[str] = None
        self._sort_key: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._emitted = initial if initial is not None else self.pending

    @property
    def emitted(self) -> FilterCriteria:
        """The last criteria handed to ``on_change`` (or the initial one)."""
        return self._emitted

    @property
    def pending(self) -> FilterCriteria:
        """The criteria the current raw input would produce."""
        return FilterCriteria(
            category_id=self._selected_category_id or self._base_category_id,
            search_text=self._search_text,
            sort_key=self._sort_key,
        )

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def set_search_text(self, text: Optional[str]) -> None:
        self._search_text = text
        self._schedule()

    def set_category(self, category_id: Optional[str]) -> None:
        self._selected_category_id = _clean(category_id)
        self._schedule()

    def set_sort_key(self, sort_key: Optional[str]) -> None:
        # Validate eagerly so a bad key fails at the call site, not in the timer.
        replace(self.pending, sort_key=sort_key)
        self._sort_key = sort_key
        self._schedule()

    def flush(self) -> bool:
        """Emit the pending criteria now. Returns whether a change was emitted."""
        self._cancel_timer()
        criteria = self.pending
        if criteria == self._emitted:
            logger.debug(f"Filter unchanged after quiet period: {criteria}")
            return False

        self._emitted = criteria
        logger.debug(f"Filter changed: {criteria}")
        self._on_change(criteria)
        return True

    def close(self) -> None:
        """Drop any pending update without emitting it."""
        self._cancel_timer()

    def _schedule(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._on_quiet_period)

    def _on_quiet_period(self) -> None:
        self._timer = None
        self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
