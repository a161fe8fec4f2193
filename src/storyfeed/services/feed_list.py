import asyncio

from storyfeed.feed.criteria import FilterCriteria
from storyfeed.feed.store import Page
from storyfeed.gateways.graphql import PostsAPI
from storyfeed.models import Category, Post


class FeedListService:
    @classmethod
    def list_posts(cls, filter: FilterCriteria, offset: int = 0, limit: int = 12) -> list[Post]:
        """List one page of posts for the given filter."""

        raw_posts = PostsAPI.list_posts(filter=filter.to_variables(), limit=limit, offset=offset)
        return [Post.from_api(post) for post in raw_posts]

    @classmethod
    def list_categories(cls) -> list[Category]:
        """List all categories."""

        return [Category.from_api(category) for category in PostsAPI.list_categories()]


class PostFeedSource:
    """Page-oriented data source backed by the GraphQL API.

    The gateway is blocking, so each page is fetched in a worker thread.
    """

    async def fetch_page(self, filter: FilterCriteria, offset: int, limit: int) -> Page:
        posts = await asyncio.to_thread(FeedListService.list_posts, filter, offset, limit)
        return Page(offset=offset, limit=limit, items=tuple(posts))


class CategoryDirectory:
    """Category options for the filter bar, parents first with children beneath them."""

    def list_categories(self) -> list[Category]:
        return FeedListService.list_categories()

    def options(self) -> list[tuple[str, str]]:
        """Return ``(label, id)`` pairs with subcategories indented under their parent."""
        categories = self.list_categories()
        by_id = {category.id: category for category in categories}
        options = []
        seen = set()

        def add(category: Category, depth: int) -> None:
            if category.id in seen:
                return
            seen.add(category.id)
            options.append((f"{'  ' * depth}{category.name}", category.id))
            for child_id in category.subcategory_ids:
                if child_id in by_id:
                    add(by_id[child_id], depth + 1)

        for category in categories:
            if category.parent_id is None or category.parent_id not in by_id:
                add(category, 0)
        # Anything only reachable through a cycle still gets listed.
        for category in categories:
            add(category, 0)
        return options
