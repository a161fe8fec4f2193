from rich.segment import Segment
from rich.style import Style
from textual import events
from textual.binding import Binding
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip

from storyfeed.feed.scroll import ScrollTrigger, Sentinel, Viewport
from storyfeed.feed.window import PositionStyle, ViewportWindow, VisibleRange, WindowRenderer
from storyfeed.models import Post
from storyfeed.ui.constants import POST_ITEM_HEIGHT, POST_OVERSCAN, SENTINEL_HEIGHT
from storyfeed.ui.utils import format_categories, format_post_date, truncate_excerpt, wrap_lines

PLACEHOLDER_TEXT = "⚠ This post could not be displayed."


class PostList(ScrollView, can_focus=True):
    """Virtualized list of post cards.

    Cards have a fixed height, so only the cards intersecting the viewport are
    built; every other row is computed from its index. A one-row sentinel
    follows the last card and drives loading of the next page.
    """

    BINDINGS = [
        Binding("up", "scroll_up", "Up", show=False),
        Binding("down", "scroll_down", "Down", show=False),
        Binding("pageup", "page_up", "Page Up", show=False),
        Binding("pagedown", "page_down", "Page Down", show=False),
        Binding("home", "scroll_home", "Top", show=False),
        Binding("end", "scroll_end", "Bottom", show=False),
    ]

    COMPONENT_CLASSES = {
        "post-list--title",
        "post-list--meta",
        "post-list--excerpt",
        "post-list--divider",
        "post-list--placeholder",
        "post-list--status",
        "post-list--error",
    }

    DEFAULT_CSS = """
    PostList {
        overflow-x: hidden;
    }
    PostList > .post-list--title {
        text-style: bold;
    }
    PostList > .post-list--meta {
        color: $text-muted;
    }
    PostList > .post-list--divider {
        color: $panel;
    }
    PostList > .post-list--placeholder {
        color: $warning;
    }
    PostList > .post-list--status {
        color: $text-muted;
        text-style: italic;
    }
    PostList > .post-list--error {
        color: $error;
    }
    """

    class VisibleRangeChanged(Message):
        """Message sent when the rendered index range changes."""

        def __init__(self, visible_range: VisibleRange | None) -> None:
            super().__init__()
            self.visible_range = visible_range

    def __init__(self, *, item_height: int = POST_ITEM_HEIGHT, overscan: int = POST_OVERSCAN, **kwargs):
        super().__init__(**kwargs)
        self.item_height = item_height
        self.overscan = overscan
        self.sentinel = Sentinel(top=0, height=SENTINEL_HEIGHT)
        self._posts: tuple = ()
        self._status = ""
        self._status_is_error = False
        self._trigger: ScrollTrigger | None = None
        self._renderer = WindowRenderer(
            self._render_post,
            fallback=self._render_placeholder,
            on_visible_range_change=self._on_visible_range_change,
        )

    # Public methods

    @property
    def posts(self) -> tuple:
        return self._posts

    @property
    def renderer(self) -> WindowRenderer:
        return self._renderer

    @property
    def window(self) -> ViewportWindow:
        return ViewportWindow(
            scroll_offset=int(self.scroll_offset.y),
            container_height=self.size.height,
            item_height=self.item_height,
            overscan=self.overscan,
        )

    def attach_trigger(self, trigger: ScrollTrigger) -> None:
        """Let ``trigger`` observe this list's sentinel while the list is mounted."""
        if self._trigger is not None:
            self._trigger.unmount()
        self._trigger = trigger
        if self.is_mounted:
            trigger.mount(self.sentinel)
            self._sync_viewport()

    def set_posts(self, posts: tuple) -> None:
        if posts is not self._posts:
            self._posts = posts
            self.sentinel.top = len(posts) * self.item_height
            self._update_virtual_size()
            self.refresh()
        # Report the layout even when the posts are unchanged so the trigger re-measures the sentinel.
        self._sync_viewport()

    def set_status(self, text: str, is_error: bool = False) -> None:
        """Set the text shown in the sentinel row after the last card."""
        if (text, is_error) == (self._status, self._status_is_error):
            return
        self._status = text
        self._status_is_error = is_error
        self.refresh()

    # Lifecycle

    def on_mount(self) -> None:
        self._update_virtual_size()
        if self._trigger is not None:
            self._trigger.mount(self.sentinel)

    def on_unmount(self) -> None:
        if self._trigger is not None:
            self._trigger.unmount()

    def on_resize(self, event: events.Resize) -> None:
        # Card strips depend on the width.
        self._renderer.invalidate()
        self._update_virtual_size()
        self._sync_viewport()

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self._sync_viewport()

    # Rendering

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        line = scroll_y + y
        width = self.size.width
        total = len(self._posts) * self.item_height

        if line < total:
            rendered = self._renderer.render(self._posts, self.window)
            slot = rendered.slot_at(line // self.item_height)
            if slot is None:
                return Strip.blank(width, self.rich_style)
            strips = slot.value
            row = line - slot.position.top
            strip = strips[row] if row < len(strips) else Strip.blank(width, self.rich_style)
        elif line < total + SENTINEL_HEIGHT:
            component = "post-list--error" if self._status_is_error else "post-list--status"
            strip = self._text_strip(self._status, component, width)
        else:
            return Strip.blank(width, self.rich_style)

        return strip.crop(scroll_x, scroll_x + width)

    def _render_post(self, post: Post, position: PositionStyle) -> list[Strip]:
        width = self.size.width
        meta = " · ".join(part for part in (format_post_date(post.published_at), format_categories(post.categories)) if part)
        excerpt_rows = max(position.height - 3, 0)
        lines = [(post.title or "(untitled)", "post-list--title"), (meta, "post-list--meta")]
        excerpt = truncate_excerpt(post.excerpt or post.content)
        lines.extend((line, "post-list--excerpt") for line in wrap_lines(excerpt, width, excerpt_rows))
        return self._card(lines, position.height, width)

    def _render_placeholder(self, post, position: PositionStyle, error: Exception) -> list[Strip]:
        return self._card([(PLACEHOLDER_TEXT, "post-list--placeholder")], position.height, self.size.width)

    def _card(self, lines: list[tuple[str, str]], height: int, width: int) -> list[Strip]:
        body = lines[: max(height - 1, 0)]
        strips = [self._text_strip(text, component, width) for text, component in body]
        while len(strips) < height - 1:
            strips.append(Strip.blank(width, self.rich_style))
        if height > 0:
            strips.append(self._text_strip("─" * width, "post-list--divider", width))
        return strips[:height]

    def _text_strip(self, text: str, component: str, width: int) -> Strip:
        style: Style = self.rich_style + self.get_component_rich_style(component)
        return Strip([Segment(f" {text}", style)]).adjust_cell_length(width, self.rich_style)

    # Viewport tracking

    def _update_virtual_size(self) -> None:
        total = len(self._posts) * self.item_height + SENTINEL_HEIGHT
        self.virtual_size = Size(self.size.width, total)

    def _sync_viewport(self) -> None:
        if not self.is_mounted:
            return
        self._renderer.render(self._posts, self.window)
        if self._trigger is not None:
            self._trigger.update_viewport(Viewport(top=int(self.scroll_offset.y), height=self.size.height))

    def _on_visible_range_change(self, visible_range: VisibleRange | None) -> None:
        self.post_message(self.VisibleRangeChanged(visible_range))
