from datetime import datetime, timezone

import pytest

from storyfeed.feed.errors import ValidationError
from storyfeed.models import Category, Post


class TestPost:
    def test_from_api(self):
        post = Post.from_api(
            {
                "id": 42,
                "title": "Launch",
                "content": "<p>Hello</p>",
                "imageUrl": "https://cdn.example.com/a.png",
                "publishedAt": "2024-05-01T10:00:00Z",
                "categories": [{"id": "C1", "name": "News"}, {"name": "no id"}],
            }
        )

        assert post.id == "42"
        assert post.image_url == "https://cdn.example.com/a.png"
        assert post.published_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert [category.name for category in post.categories] == ["News"]

    def test_epoch_millisecond_dates(self):
        post = Post.from_api({"id": "1", "publishedAt": 1714557600000})

        assert post.published_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_unparseable_date_is_dropped(self):
        assert Post.from_api({"id": "1", "publishedAt": "yesterday"}).published_at is None

    def test_missing_fields_default_to_empty(self):
        post = Post.from_api({"id": "1", "title": None, "content": None})

        assert post.title == ""
        assert post.content == ""
        assert post.categories == ()

    @pytest.mark.parametrize("data", [{}, {"id": ""}, {"id": None}, "not a post"])
    def test_id_is_required(self, data):
        with pytest.raises(ValidationError):
            Post.from_api(data)


class TestCategory:
    def test_from_api(self):
        category = Category.from_api(
            {
                "id": 2,
                "name": "Shoes",
                "parent": {"id": 1, "name": "Men"},
                "subcategories": [{"id": 5}, {"id": 6}],
            }
        )

        assert category.id == "2"
        assert category.parent_id == "1"
        assert category.subcategory_ids == ("5", "6")

    def test_top_level_category(self):
        category = Category.from_api({"id": "1", "name": "Men", "parent": None})

        assert category.parent_id is None
        assert category.subcategory_ids == ()
