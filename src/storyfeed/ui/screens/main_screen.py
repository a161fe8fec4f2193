from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Footer

from storyfeed.config import FeedConfig
from storyfeed.feed.criteria import FilterController, FilterCriteria
from storyfeed.feed.errors import ErrorKind
from storyfeed.feed.scroll import ScrollTrigger
from storyfeed.feed.store import DataSource, FeedState, FetchFailure, FeedStateStore
from storyfeed.services.feed_list import CategoryDirectory, PostFeedSource
from storyfeed.ui.widgets.feed_view import FeedView
from storyfeed.ui.widgets.filter_bar import FilterBar
from storyfeed.ui.widgets.post_list import PostList
from storyfeed.ui.widgets.title_bar import TitleBar


class MainScreen(Screen):
    """Main screen: filter bar on top of the incrementally loaded feed."""

    BINDINGS = [
        Binding("q", "app.quit", "Quit"),
        Binding("r", "retry", "Retry"),
        Binding("ctrl+r", "reload", "Reload"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "focus_feed", "Feed", show=False),
    ]

    def __init__(
        self,
        config: FeedConfig,
        source: DataSource | None = None,
        directory: CategoryDirectory | None = None,
    ):
        super().__init__()
        self.config = config
        self._directory = directory
        self.store = FeedStateStore(
            source or PostFeedSource(),
            page_size=config.page_size,
            hard_cancel=config.hard_cancel,
        )
        self.filter_controller = FilterController(
            self.store.reset,
            base_category_id=config.category_id,
            debounce=config.debounce_seconds,
        )
        self.scroll_trigger = ScrollTrigger(
            self.store,
            root_margin=config.root_margin,
            threshold=config.threshold,
        )
        self._unsubscribe = None
        self._shown_version = 0
        self._reported_error: FetchFailure | None = None

    def compose(self) -> ComposeResult:
        """Create the layout for the main screen."""
        with Container(id="main-container"):
            yield TitleBar(self.config.endpoint_url, id="title-bar")
            yield FilterBar(self._directory, id="filter-bar")
            yield FeedView(item_height=self.config.item_height, overscan=self.config.overscan, id="feed-view")
            yield Footer(id="main-footer")

    def on_mount(self) -> None:
        """Wire the store to the widgets and load the first page."""
        feed_view = self.query_one("#feed-view", FeedView)
        feed_view.post_list.attach_trigger(self.scroll_trigger)
        self._unsubscribe = self.store.subscribe(self._on_state_changed)
        self.store.reset(self.filter_controller.emitted)
        feed_view.post_list.focus()

    def on_unmount(self) -> None:
        self.filter_controller.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # Store updates

    def _on_state_changed(self, state: FeedState) -> None:
        # Applied on the next tick so a load started while rendering sees the newest state.
        self.call_later(self._apply_state)

    def _apply_state(self) -> None:
        if not self.is_mounted:
            return
        state = self.store.state
        feed_view = self.query_one("#feed-view", FeedView)
        if state.filter_version != self._shown_version:
            self._shown_version = state.filter_version
            feed_view.post_list.scroll_home(animate=False)
        feed_view.apply_state(state)

        title_bar = self.query_one("#title-bar", TitleBar)
        failure = state.last_error
        title_bar.connection_error = failure is not None and failure.kind is ErrorKind.TRANSIENT_FETCH
        if failure is not None and failure is not self._reported_error:
            self._reported_error = failure
            self.notify(failure.message, severity="error")

    def on_post_list_visible_range_changed(self, message: PostList.VisibleRangeChanged) -> None:
        visible_range = message.visible_range
        if visible_range is None:
            self.sub_title = ""
            return
        self.sub_title = f"{visible_range.start + 1}-{visible_range.end + 1} of {len(self.store.state.items)}"

    # Filter updates

    def on_filter_bar_changed(self, message: FilterBar.Changed) -> None:
        """Feed raw filter edits to the debouncing controller"""
        if message.field == "search_text":
            self.filter_controller.set_search_text(message.value)
        elif message.field == "category_id":
            self.filter_controller.set_category(message.value)
        elif message.field == "sort_key":
            self.filter_controller.set_sort_key(message.value)

    def on_filter_bar_submitted(self, message: FilterBar.Submitted) -> None:
        """Apply the search immediately on Enter"""
        self.filter_controller.flush()
        self.action_focus_feed()

    # Actions

    def action_retry(self) -> None:
        """Retry the failed page, if the failure allows it"""
        failure = self.store.state.last_error
        if failure is None:
            self.notify("Nothing to retry", severity="information")
            return
        if not failure.retryable:
            self.notify(failure.message, severity="warning")
            return
        self.store.retry()

    def action_reload(self) -> None:
        """Reload the feed from the first page"""
        self.store.reset(self.store.state.filter or FilterCriteria())

    def action_focus_search(self) -> None:
        self.query_one("#filter-bar", FilterBar).focus_search()

    def action_focus_feed(self) -> None:
        self.query_one("#feed-view", FeedView).post_list.focus()
