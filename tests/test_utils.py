from datetime import datetime

from storyfeed.models import CategoryRef
from storyfeed.ui.utils import format_categories, format_post_date, strip_markup, truncate_excerpt, wrap_lines


def test_strip_markup():
    assert strip_markup("<p>Hello <b>world</b></p>\n\n<br/>again") == "Hello world again"


def test_truncate_excerpt_keeps_short_text():
    assert truncate_excerpt("<p>Short</p>") == "Short"


def test_truncate_excerpt_cuts_at_length():
    text = "x" * 200

    excerpt = truncate_excerpt(text)

    assert excerpt == "x" * 120 + "..."


def test_format_post_date():
    assert format_post_date(datetime(2024, 5, 1, 10, 30)) == "2024-05-01"
    assert format_post_date(None) == ""


def test_format_categories_skips_unnamed():
    categories = (CategoryRef("1", "News"), CategoryRef("2", ""), CategoryRef("3", "Youth"))

    assert format_categories(categories) == "News, Youth"


def test_wrap_lines_limits_line_count():
    lines = wrap_lines("one two three four five six seven", width=10, max_lines=2)

    assert len(lines) == 2
    assert lines[-1].endswith("...")
    assert all(len(line) <= 10 for line in lines)


def test_wrap_lines_without_room():
    assert wrap_lines("anything", width=0, max_lines=2) == []
    assert wrap_lines("", width=10, max_lines=2) == [""]
