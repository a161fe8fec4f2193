"""Incremental feed loading and list windowing, independent of any UI toolkit."""

from .criteria import FilterController, FilterCriteria
from .errors import ErrorKind, FeedError, NetworkError, NotFoundError, ServerError, ValidationError
from .scroll import ScrollTrigger, Sentinel, Viewport, ViewportObserver
from .store import FeedState, FeedStateStore, FetchFailure, Page, PageRequest
from .window import PositionStyle, ViewportWindow, VisibleRange, WindowRenderer

__all__ = [
    "ErrorKind",
    "FeedError",
    "FeedState",
    "FeedStateStore",
    "FetchFailure",
    "FilterController",
    "FilterCriteria",
    "NetworkError",
    "NotFoundError",
    "Page",
    "PageRequest",
    "PositionStyle",
    "ScrollTrigger",
    "Sentinel",
    "ServerError",
    "ValidationError",
    "Viewport",
    "ViewportObserver",
    "ViewportWindow",
    "VisibleRange",
    "WindowRenderer",
]
