from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import Static


class TitleBar(Static):
    """Title bar with the backend endpoint and a connection indicator"""

    connection_error: bool = reactive(False)

    def __init__(self, endpoint_url: str = "", **kwargs):
        super().__init__(**kwargs)
        self._endpoint_url = endpoint_url

    def compose(self) -> ComposeResult:
        with Horizontal(id="title-bar-container"):
            yield Static("Story Feed", id="title")
            with Horizontal(id="status-container"):
                yield Static("●", id="connected-indicator")
                yield Static(f"endpoint: {self._endpoint_url}", id="endpoint-info")

    def watch_connection_error(self, connection_error: bool) -> None:
        """Turn the indicator red while the backend is unreachable."""
        if not self.is_mounted:
            return
        self.query_one("#connected-indicator", Static).set_class(connection_error, "-error")
