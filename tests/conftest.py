import asyncio

import pytest

from storyfeed.feed.store import Page


def make_items(count: int, start: int = 0, prefix: str = "post") -> list[dict]:
    """Generate feed items with sequential ids."""
    return [{"id": f"{prefix}-{start + i}", "title": f"Post {start + i}"} for i in range(count)]


async def settle(rounds: int = 10) -> None:
    """Let pending tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeSource:
    """In-memory data source.

    ``responder(filter, offset, limit)`` returns the items for a page or raises.
    With ``hold=True`` every fetch waits until ``release(index)`` is called.
    """

    def __init__(self, responder=None, *, hold: bool = False):
        self.responder = responder or (lambda filter, offset, limit: make_items(limit, offset))
        self.hold = hold
        self.calls = []
        self.gates = []
        self.on_call = None

    async def fetch_page(self, filter, offset, limit):
        self.calls.append((filter, offset, limit))
        if self.on_call is not None:
            self.on_call(filter, offset, limit)
        if self.hold:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        items = self.responder(filter, offset, limit)
        return Page(offset=offset, limit=limit, items=tuple(items))

    def release(self, index: int = -1) -> None:
        self.gates[index].set()

    @property
    def offsets(self) -> list[int]:
        return [offset for _, offset, _ in self.calls]


@pytest.fixture
def source():
    return FakeSource()
