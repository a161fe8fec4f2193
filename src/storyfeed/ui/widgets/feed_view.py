from textual.app import ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import LoadingIndicator, Static

from storyfeed.feed.store import FeedState
from storyfeed.ui.widgets.post_list import PostList

EMPTY_MESSAGE = "No posts found."
RETRY_HINT = "Press r to retry."


class FeedView(Static):
    """Feed panel: heading, first-page loading/error states and the post list."""

    def __init__(self, *, item_height: int, overscan: int, **kwargs):
        super().__init__(**kwargs)
        self._item_height = item_height
        self._overscan = overscan

    def compose(self) -> ComposeResult:
        with Vertical(id="feed-container"):
            yield Static("Latest Stories", id="feed-title")
            yield LoadingIndicator(id="feed-loading")
            yield Static("", id="feed-message")
            yield PostList(item_height=self._item_height, overscan=self._overscan, id="post-list")

    @property
    def post_list(self) -> PostList:
        return self.query_one("#post-list", PostList)

    def apply_state(self, state: FeedState) -> None:
        """Show ``state``: a feed-level loading/error/empty state or the post list."""
        try:
            title = self.query_one("#feed-title", Static)
            loading_indicator = self.query_one("#feed-loading", LoadingIndicator)
            message = self.query_one("#feed-message", Static)
            post_list = self.post_list
        except NoMatches:
            # Widgets not composed yet
            return

        title.update(f"Latest Stories ({len(state.items)})")
        failure = state.last_error
        feed_message = ""
        if state.is_loading:
            pass
        elif failure is not None and failure.scope == "feed":
            feed_message = failure.message if not failure.retryable else f"{failure.message} {RETRY_HINT}"
        elif not state.items and not state.has_more:
            feed_message = EMPTY_MESSAGE

        loading_indicator.display = state.is_loading
        message.display = bool(feed_message)
        message.update(feed_message)
        message.set_class(failure is not None and failure.scope == "feed", "-error")
        post_list.display = not state.is_loading and not feed_message

        post_list.set_status(*self._status_line(state))
        post_list.set_posts(state.items)

    def _status_line(self, state: FeedState) -> tuple[str, bool]:
        failure = state.last_error
        if failure is not None and failure.scope == "load_more":
            if failure.retryable:
                return f"{failure.message} {RETRY_HINT}", True
            return failure.message, True
        if state.is_fetching_more:
            return "Loading more...", False
        if not state.has_more:
            return "End of feed", False
        return "", False
