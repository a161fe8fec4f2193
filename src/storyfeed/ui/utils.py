import re
import textwrap
from datetime import datetime

from storyfeed.ui.constants import EXCERPT_LENGTH

_TAG_RE = re.compile(r"<[^>]+>")


def strip_markup(text: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", text).split())


def truncate_excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """Shorten post content for a card.

    Args:
        text: Post content, possibly containing HTML
        length: Maximum number of characters kept before the ellipsis

    Returns:
        Plain text of at most ``length`` characters plus "..." when cut
    """
    plain = strip_markup(text)
    if len(plain) > length:
        return plain[:length] + "..."
    return plain


def format_post_date(value: datetime | None) -> str:
    """Format a publish date as YYYY-MM-DD, or an empty string."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def format_categories(categories) -> str:
    return ", ".join(category.name for category in categories if category.name)


def wrap_lines(text: str, width: int, max_lines: int) -> list[str]:
    """Wrap text to ``width`` and keep at most ``max_lines`` lines."""
    if width <= 0 or max_lines <= 0:
        return []
    lines = textwrap.wrap(text, width=width) or [""]
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        last = lines[-1]
        lines[-1] = (last[: max(width - 3, 0)] + "...") if len(last) + 3 > width else last + "..."
    return lines
