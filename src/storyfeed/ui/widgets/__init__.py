from .feed_view import FeedView
from .filter_bar import FilterBar
from .post_list import PostList
from .title_bar import TitleBar

__all__ = ["FeedView", "FilterBar", "PostList", "TitleBar"]
