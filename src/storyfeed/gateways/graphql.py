from functools import wraps

import requests
from loguru import logger

from storyfeed.feed.errors import NetworkError, NotFoundError, ServerError, ValidationError

DEFAULT_ENDPOINT_URL = "http://localhost:4000/graphql/v1"
DEFAULT_TIMEOUT = 15

GET_POSTS = """
query GetPosts($filter: PostFilter, $limit: Int, $offset: Int) {
  filteredPosts(filter: $filter, limit: $limit, offset: $offset) {
    id
    title
    content
    slug
    excerpt
    imageUrl
    publishedAt
    updatedAt
    status
    categories {
      id
      name
    }
  }
}
"""

GET_CATEGORIES = """
query GetCategories {
  categories {
    id
    name
    slug
    description
    parent {
      id
      name
    }
    subcategories {
      id
      name
    }
  }
}
"""


class PostsAPI:
    _endpoint_url: str = DEFAULT_ENDPOINT_URL
    _timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def set_endpoint_url(cls, endpoint_url: str | None) -> None:
        cls._endpoint_url = endpoint_url or DEFAULT_ENDPOINT_URL

    @classmethod
    def set_timeout(cls, timeout: float | None) -> None:
        cls._timeout = timeout or DEFAULT_TIMEOUT

    @staticmethod
    def get_session(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if kwargs.get("session"):
                return func(*args, **kwargs)
            # Create a short-lived session if none was provided
            with requests.Session() as session:
                kwargs["session"] = session
                return func(*args, **kwargs)

        return wrapper

    @classmethod
    def execute(cls, session: requests.Session, query: str, variables: dict | None = None) -> dict:
        """Run a GraphQL operation and return its ``data`` member.

        Raises:
            NetworkError: The endpoint could not be reached or timed out.
            NotFoundError: The endpoint answered 404.
            ServerError: Any other HTTP error status.
            ValidationError: The response carried GraphQL errors or was not JSON.
        """
        try:
            response = session.post(
                cls._endpoint_url,
                json={"query": query, "variables": variables or {}},
                timeout=cls._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NetworkError(f"Could not reach {cls._endpoint_url}: {e}") from e
        except requests.RequestException as e:
            raise NetworkError(f"Request to {cls._endpoint_url} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"{cls._endpoint_url} returned 404")
        if response.status_code >= 400:
            raise ServerError(
                f"{cls._endpoint_url} returned HTTP {response.status_code}", response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ValidationError(f"Response from {cls._endpoint_url} is not JSON") from e

        if payload.get("errors"):
            messages = "; ".join(error.get("message", str(error)) for error in payload["errors"])
            raise ValidationError(messages)
        return payload.get("data") or {}

    # -------------------------Posts------------------------- #

    @get_session
    @staticmethod
    def list_posts(session: requests.Session = None, *, filter: dict, limit: int, offset: int) -> list[dict]:
        """List one page of posts matching ``filter``."""
        logger.info(f"Listing posts with filter {filter} (offset={offset}, limit={limit})")
        data = PostsAPI.execute(
            session, GET_POSTS, {"filter": filter, "limit": limit, "offset": offset}
        )
        posts = data.get("filteredPosts")
        if posts is None:
            raise ValidationError("Response has no filteredPosts")
        return posts

    # -------------------------Categories------------------------- #

    @get_session
    @staticmethod
    def list_categories(session: requests.Session = None) -> list[dict]:
        """List every category with its parent and subcategories."""
        logger.info("Listing categories")
        data = PostsAPI.execute(session, GET_CATEGORIES)
        return data.get("categories") or []
