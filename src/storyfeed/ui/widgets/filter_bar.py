from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Input, Select, Static

from storyfeed.feed.errors import FeedError
from storyfeed.services.feed_list import CategoryDirectory
from storyfeed.ui.constants import SORT_OPTIONS


class FilterBarIDs:
    """Constants for UI element IDs."""

    SEARCH_INPUT = "search-input"
    CATEGORY_SELECT = "category-select"
    SORT_SELECT = "sort-select"


FIELD_BY_ID = {
    FilterBarIDs.SEARCH_INPUT: "search_text",
    FilterBarIDs.CATEGORY_SELECT: "category_id",
    FilterBarIDs.SORT_SELECT: "sort_key",
}


class FilterBar(Static):
    """Search box, category and sort selectors. Reports raw edits as they happen."""

    class Changed(Message):
        """Message sent when one filter field changes."""

        def __init__(self, field: str, value: str | None) -> None:
            super().__init__()
            self.field = field
            self.value = value

    class Submitted(Message):
        """Message sent when the search box is submitted with Enter."""

    def __init__(self, directory: CategoryDirectory | None = None, **kwargs):
        super().__init__(**kwargs)
        self._directory = directory or CategoryDirectory()

    def compose(self) -> ComposeResult:
        with Horizontal(id="filter-bar-container"):
            yield Input(placeholder="Search posts...", id=FilterBarIDs.SEARCH_INPUT)
            yield Select([], prompt="All Categories", id=FilterBarIDs.CATEGORY_SELECT)
            yield Select(SORT_OPTIONS, prompt="Sort", id=FilterBarIDs.SORT_SELECT)

    def on_mount(self) -> None:
        """Load category options after the UI is ready."""
        self.load_categories()

    @work(exclusive=True, thread=True)
    def load_categories(self) -> None:
        """Fetch the category directory in a background thread."""
        try:
            options = self._directory.options()
        except FeedError as e:
            self.app.call_from_thread(self.notify, f"Error loading categories: {e}", severity="error")
            return
        self.app.call_from_thread(self._set_category_options, options)

    def _set_category_options(self, options: list[tuple[str, str]]) -> None:
        self.query_one(f"#{FilterBarIDs.CATEGORY_SELECT}", Select).set_options(options)

    def focus_search(self) -> None:
        self.query_one(f"#{FilterBarIDs.SEARCH_INPUT}", Input).focus()

    # Event handlers
    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.Changed(FIELD_BY_ID[FilterBarIDs.SEARCH_INPUT], event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.post_message(self.Submitted())

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        field = FIELD_BY_ID.get(event.select.id)
        if field is None:
            return
        value = None if event.value is Select.BLANK else str(event.value)
        self.post_message(self.Changed(field, value))
