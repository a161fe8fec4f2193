import pytest

from storyfeed.feed.criteria import FilterCriteria
from storyfeed.feed.errors import NetworkError
from storyfeed.feed.scroll import ScrollTrigger, Sentinel, Viewport, ViewportObserver
from storyfeed.feed.store import FeedStateStore

from .conftest import FakeSource, make_items, settle


class TestViewportObserver:
    def test_reports_only_changes(self):
        batches = []
        observer = ViewportObserver(batches.append, root_margin=0, threshold=0.1)
        sentinel = Sentinel(top=1000, height=1)
        observer.observe(sentinel)

        observer.update(Viewport(top=0, height=500))
        observer.update(Viewport(top=100, height=500))
        observer.update(Viewport(top=600, height=500))

        assert [[entry.is_intersecting for entry in batch] for batch in batches] == [[False], [True]]

    def test_root_margin_reports_before_physically_visible(self):
        batches = []
        sentinel = Sentinel(top=1010, height=1)

        near = ViewportObserver(batches.append, root_margin=20)
        near.observe(sentinel)
        near.update(Viewport(top=0, height=1000))
        assert batches[-1][0].is_intersecting

        far = ViewportObserver(batches.append, root_margin=0)
        far.observe(sentinel)
        far.update(Viewport(top=0, height=1000))
        assert not batches[-1][0].is_intersecting

    def test_threshold_requires_enough_of_the_target(self):
        batches = []
        observer = ViewportObserver(batches.append, root_margin=0, threshold=0.6)
        observer.observe(Sentinel(top=95, height=10))

        observer.update(Viewport(top=0, height=100))
        assert batches[-1][0].ratio == pytest.approx(0.5)
        assert not batches[-1][0].is_intersecting

        observer.update(Viewport(top=0, height=102))
        assert batches[-1][0].is_intersecting

    def test_refresh_repeats_current_state(self):
        batches = []
        observer = ViewportObserver(batches.append, root_margin=0)
        observer.observe(Sentinel(top=10, height=1))
        observer.update(Viewport(top=0, height=100))

        observer.refresh()

        assert len(batches) == 2
        assert batches[1][0].is_intersecting

    def test_disconnect_stops_reports(self):
        batches = []
        observer = ViewportObserver(batches.append)
        observer.observe(Sentinel(top=10, height=1))

        observer.disconnect()
        observer.update(Viewport(top=0, height=100))

        assert batches == []
        assert observer.targets == []

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            ViewportObserver(lambda entries: None, threshold=1.5)


class TestScrollTrigger:
    @pytest.mark.asyncio
    async def test_end_to_end_pagination(self):
        source = FakeSource(lambda filter, offset, limit: make_items(12 if offset == 0 else 5, offset))
        store = FeedStateStore(source, page_size=12)
        loads = []
        trigger = ScrollTrigger(store, root_margin=0, on_load_more=lambda: loads.append(True))
        sentinel = Sentinel(top=0, height=1)
        trigger.mount(sentinel)

        state = await store.reset(FilterCriteria(category_id="C1"))
        assert state.has_more is True
        assert len(state.items) == 12

        sentinel.top = len(state.items) * 100
        trigger.update_viewport(Viewport(top=500, height=800))
        assert trigger.is_fetching
        state = await store.inflight
        await settle()

        assert source.offsets == [0, 12]
        assert state.has_more is False
        assert len(state.items) == 17
        assert not trigger.is_fetching

        sentinel.top = len(state.items) * 100
        trigger.update_viewport(Viewport(top=100, height=800))
        trigger.update_viewport(Viewport(top=1000, height=800))
        trigger.observer.refresh()
        await settle()

        assert source.offsets == [0, 12]
        assert loads == [True]

    @pytest.mark.asyncio
    async def test_latch_blocks_repeated_callbacks_until_settled(self):
        source = FakeSource(hold=True)
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store, root_margin=0)
        sentinel = Sentinel(top=10_000, height=1)
        trigger.mount(sentinel)

        first = store.reset(FilterCriteria())
        await settle()
        source.release(0)
        await first

        sentinel.top = 400
        trigger.update_viewport(Viewport(top=0, height=500))
        for _ in range(3):
            trigger.observer.refresh()
        await settle()

        assert source.offsets == [0, 4]
        assert trigger.is_fetching

        # Sentinel still visible after the page lands: the next layout report loads again.
        source.release(1)
        await settle()
        assert source.offsets == [0, 4]
        trigger.update_viewport(Viewport(top=0, height=500))
        await settle()
        assert source.offsets == [0, 4, 8]

        trigger.unmount()
        source.release(2)
        await settle()

    @pytest.mark.asyncio
    async def test_does_not_fire_while_first_page_is_loading(self):
        source = FakeSource(hold=True)
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store, root_margin=0)
        trigger.mount(Sentinel(top=0, height=1))

        store.reset(FilterCriteria())
        await settle()
        trigger.update_viewport(Viewport(top=0, height=100))

        assert not trigger.is_fetching
        assert source.offsets == [0]
        source.release(0)
        await settle()

    @pytest.mark.asyncio
    async def test_mount_and_unmount_are_idempotent(self, source):
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store)
        sentinel = Sentinel()

        trigger.mount(sentinel)
        first_observer = trigger.observer
        trigger.mount(sentinel)

        assert first_observer.targets == []
        assert trigger.observer is not first_observer
        assert trigger.observer.targets == [sentinel]

        trigger.unmount()
        trigger.unmount()
        assert not trigger.is_mounted

        await store.reset(FilterCriteria())
        trigger.update_viewport(Viewport(top=0, height=100))
        await settle()
        assert source.offsets == [0]

    @pytest.mark.asyncio
    async def test_sentinel_visible_through_first_load_requests_next_page(self):
        source = FakeSource(hold=True)
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store, root_margin=0)
        sentinel = Sentinel(top=0, height=1)
        trigger.mount(sentinel)

        first = store.reset(FilterCriteria())
        await settle()
        trigger.update_viewport(Viewport(top=0, height=100))
        source.release(0)
        await first
        assert source.offsets == [0]

        sentinel.top = 4
        trigger.update_viewport(Viewport(top=0, height=100))
        await settle()

        assert source.offsets == [0, 4]
        assert trigger.is_fetching

        trigger.unmount()
        source.release(1)
        await settle()

    @pytest.mark.asyncio
    async def test_sentinel_visible_after_successful_retry_requests_next_page(self):
        attempts = []

        def flaky(filter, offset, limit):
            attempts.append(offset)
            if len(attempts) == 1:
                raise NetworkError("connection reset")
            return make_items(limit, offset)

        source = FakeSource(flaky)
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store, root_margin=0)
        sentinel = Sentinel(top=0, height=1)
        trigger.mount(sentinel)

        await store.reset(FilterCriteria())
        trigger.update_viewport(Viewport(top=0, height=100))
        assert store.state.last_error is not None
        assert source.offsets == [0]

        await store.retry()
        sentinel.top = 4
        trigger.update_viewport(Viewport(top=0, height=100))
        await settle()

        assert source.offsets == [0, 0, 4]
        trigger.unmount()

    @pytest.mark.asyncio
    async def test_unmounted_trigger_stops_following_the_store(self, source):
        store = FeedStateStore(source, page_size=4)
        trigger = ScrollTrigger(store, root_margin=0)
        trigger.mount(Sentinel(top=0, height=1))
        trigger.unmount()

        await store.reset(FilterCriteria())
        trigger.update_viewport(Viewport(top=0, height=100))
        await settle()

        assert source.offsets == [0]
