"""Pilot tests for the feed browser.

The app runs against an in-memory source so no backend is needed.
"""

import pytest
from textual.widgets import Input

from storyfeed.config import FeedConfig
from storyfeed.feed.criteria import FilterCriteria
from storyfeed.feed.errors import NetworkError
from storyfeed.models import Post
from storyfeed.ui.app import FeedBrowser
from storyfeed.ui.screens.main_screen import MainScreen
from storyfeed.ui.themes import register_themes
from storyfeed.ui.widgets.feed_view import FeedView

from .conftest import FakeSource

TOTAL_POSTS = 10


def make_posts(filter, offset, limit):
    count = max(min(limit, TOTAL_POSTS - offset), 0)
    return [
        Post(id=f"p-{offset + i}", title=f"Story {offset + i}", content="Lorem ipsum dolor sit amet")
        for i in range(count)
    ]


class FakeDirectory:
    def options(self):
        return [("Men", "C1"), ("  Shoes", "C2")]


def make_app(source):
    config = FeedConfig(page_size=4, debounce_ms=10)
    return FeedBrowser(config, source=source, directory=FakeDirectory())


async def scroll_to_end(pilot, screen, times=5):
    post_list = screen.query_one("#feed-view", FeedView).post_list
    for _ in range(times):
        post_list.scroll_end(animate=False)
        await pilot.pause(0.05)


@pytest.mark.asyncio
async def test_first_page_loads_on_mount():
    source = FakeSource(make_posts)
    app = make_app(source)

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen

        assert isinstance(screen, MainScreen)
        assert source.offsets[0] == 0
        assert len(screen.store.state.items) >= 4
        assert not screen.store.state.is_loading
        assert screen.query_one("#feed-view", FeedView).post_list.posts == screen.store.state.items
        assert screen.sub_title.startswith("1-")


@pytest.mark.asyncio
async def test_scrolling_loads_until_the_feed_ends():
    source = FakeSource(make_posts)
    app = make_app(source)

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen
        await scroll_to_end(pilot, screen)

        state = screen.store.state
        assert [post.id for post in state.items] == [f"p-{i}" for i in range(TOTAL_POSTS)]
        assert not state.has_more
        assert source.offsets == [0, 4, 8]


@pytest.mark.asyncio
async def test_tall_terminal_keeps_loading_while_the_end_is_visible():
    source = FakeSource(make_posts)
    app = make_app(source)

    async with app.run_test(size=(80, 80)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen
        await scroll_to_end(pilot, screen)

        state = screen.store.state
        assert source.offsets == [0, 4, 8]
        assert len(state.items) == TOTAL_POSTS
        assert not state.has_more


@pytest.mark.asyncio
async def test_failed_first_page_can_be_retried():
    failures = []

    def flaky(filter, offset, limit):
        if not failures:
            failures.append(offset)
            raise NetworkError("connection reset")
        return make_posts(filter, offset, limit)

    source = FakeSource(flaky)
    app = make_app(source)

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen
        feed_view = screen.query_one("#feed-view", FeedView)

        assert screen.store.state.last_error is not None
        assert screen.store.state.last_error.retryable
        assert feed_view.query_one("#feed-message").display
        assert not feed_view.post_list.display

        screen.action_retry()
        await pilot.pause(0.1)

        assert screen.store.state.last_error is None
        assert len(screen.store.state.items) >= 4
        assert feed_view.post_list.display


@pytest.mark.asyncio
async def test_empty_feed_shows_message():
    source = FakeSource(lambda filter, offset, limit: [])
    app = make_app(source)

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen
        feed_view = screen.query_one("#feed-view", FeedView)

        assert screen.store.state.items == ()
        assert not screen.store.state.has_more
        assert feed_view.query_one("#feed-message").display
        assert source.offsets == [0]


@pytest.mark.asyncio
async def test_search_input_reloads_from_first_page():
    source = FakeSource(make_posts)
    app = make_app(source)

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause(0.1)
        screen = app.screen

        screen.query_one("#search-input", Input).value = "story"
        await pilot.pause(0.2)

        assert (FilterCriteria(search_text="story"), 0, 4) in source.calls
        assert screen.store.state.filter == FilterCriteria(search_text="story")


@pytest.mark.asyncio
async def test_themes_register_once():
    app = make_app(FakeSource(make_posts))

    async with app.run_test(size=(80, 40)) as pilot:
        await pilot.pause()

        assert app.theme == "Newsprint"
        assert register_themes(app) is False
