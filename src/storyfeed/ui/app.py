"""Main storyfeed application."""

from textual.app import App
from textual.binding import Binding

from storyfeed.config import FeedConfig
from storyfeed.feed.store import DataSource
from storyfeed.gateways.graphql import PostsAPI
from storyfeed.services.feed_list import CategoryDirectory
from storyfeed.ui.screens.main_screen import MainScreen
from storyfeed.ui.themes import register_themes


class FeedBrowser(App):
    """Terminal story feed browser."""

    TITLE = "Story Feed"
    CSS_PATH = "app.tcss"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        config: FeedConfig | None = None,
        source: DataSource | None = None,
        directory: CategoryDirectory | None = None,
        **kwargs,
    ):
        """Initialize the feed browser.

        Args:
            config: Feed settings; defaults are used when omitted.
            source: Page data source. Defaults to the GraphQL-backed source.
            directory: Category directory for the filter bar.
        """
        super().__init__(**kwargs)
        self.config = config or FeedConfig()
        self._source = source
        self._directory = directory

        # Point the gateway at the configured backend
        PostsAPI.set_endpoint_url(self.config.endpoint_url)
        PostsAPI.set_timeout(self.config.request_timeout)

    def on_mount(self) -> None:
        """Called when app starts."""
        register_themes(self)
        self.theme = self.config.theme
        self.push_screen(MainScreen(self.config, self._source, self._directory))
