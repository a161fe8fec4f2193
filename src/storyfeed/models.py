"""Value types parsed from the content API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from storyfeed.feed.errors import ValidationError


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as some GraphQL date scalars serialize them.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class CategoryRef:
    id: str
    name: str


@dataclass(frozen=True)
class Post:
    id: str
    title: str = ""
    content: str = ""
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[str] = None
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    categories: tuple = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: dict) -> "Post":
        """Build a post from a ``filteredPosts`` entry.

        Only ``id`` is required. An entry without one raises ``ValidationError``,
        which fails the whole page. Other fields are kept as found and default
        to empty values.
        """
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise ValidationError(f"Post without an id in response: {data!r}")

        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            content=data.get("content") or "",
            slug=data.get("slug"),
            excerpt=data.get("excerpt"),
            status=data.get("status"),
            image_url=data.get("imageUrl"),
            published_at=_parse_timestamp(data.get("publishedAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
            categories=tuple(
                CategoryRef(str(category["id"]), category.get("name", ""))
                for category in data.get("categories") or []
                if isinstance(category, dict) and category.get("id") is not None
            ),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None
    subcategory_ids: tuple = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: dict) -> "Category":
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise ValidationError(f"Category without an id in response: {data!r}")

        parent = data.get("parent") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            slug=data.get("slug"),
            description=data.get("description"),
            parent_id=str(parent["id"]) if parent.get("id") is not None else None,
            subcategory_ids=tuple(
                str(sub["id"]) for sub in data.get("subcategories") or [] if sub.get("id") is not None
            ),
        )
