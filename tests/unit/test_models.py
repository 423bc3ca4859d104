"""Tests for domain models and payload conversion."""

import pytest

from hackstack.core.text.render import TextStyle
from hackstack.models.category import Category
from hackstack.models.item import (
    Comment,
    SearchHit,
    Story,
    comment_from_payload,
    decode_child_ids,
    encode_child_ids,
    story_from_payload,
)


@pytest.mark.parametrize("ids", [[], [7], [3, 1, 2]])
def test_child_ids_survive_encoding(ids: list[int]) -> None:
    assert decode_child_ids(encode_child_ids(ids)) == ids


def test_decode_child_ids_skips_junk() -> None:
    assert decode_child_ids("1, ,x,2,") == [1, 2]
    assert decode_child_ids("1,--5,\u00b2,-3") == [1, -3]
    assert decode_child_ids(None) == []


def test_story_from_payload_maps_fields() -> None:
    story = story_from_payload(
        {
            "id": 1,
            "title": "Show HN: thing",
            "by": "alice",
            "score": 42,
            "time": 1_700_000_000,
            "descendants": 3,
            "kids": [10, 11],
            "url": "https://example.com",
        }
    )
    assert story.author == "alice"
    assert story.comment_count == 3
    assert story.child_ids == [10, 11]
    assert story.relative_time.endswith("ago")
    assert not story.is_favorite


def test_story_from_payload_without_descendants() -> None:
    """Job posts have no descendants or kids."""
    story = story_from_payload({"id": 2, "title": "Hiring", "time": 1_700_000_000})
    assert story.comment_count == 0
    assert story.child_ids == []
    assert story.author == "[unknown]"


def test_story_from_payload_requires_time() -> None:
    with pytest.raises(KeyError):
        story_from_payload({"id": 3, "title": "no time"})


def test_refresh_from_keeps_local_flags() -> None:
    stored = Story(id=1, title="Old", author="a", score=1, timestamp=100, is_favorite=True, is_read=True)
    fresh = Story(id=1, title="New", author="a", score=99, timestamp=100, child_ids=[5])

    stored.refresh_from(fresh)

    assert stored.title == "New"
    assert stored.score == 99
    assert stored.child_ids == [5]
    assert stored.is_favorite
    assert stored.is_read


def test_comment_from_payload_deleted_keeps_replies() -> None:
    comment = comment_from_payload(
        {"id": 5, "deleted": True, "time": 1_700_000_000, "kids": [6]}, level=1, story_id=1
    )
    assert comment.body_text == "[deleted]"
    assert comment.author == "[unknown]"
    assert comment.child_ids == [6]
    assert comment.level == 1
    assert comment.is_visible


def test_comment_from_payload_dead_leaf_is_hidden() -> None:
    comment = comment_from_payload({"id": 5, "dead": True, "time": 1_700_000_000})
    assert comment.body_text == "[dead]"
    assert not comment.is_visible


def test_comment_from_payload_missing_text() -> None:
    comment = comment_from_payload({"id": 5, "by": "bob", "time": 1_700_000_000})
    assert comment.body_text == "[no content]"
    assert comment.author == "bob"


def test_rendered_text_follows_body_text() -> None:
    comment = Comment(id=1, author="a", timestamp=0, body_text="<i>hi</i>")
    assert comment.rendered_text == "_hi_"

    comment.body_text = "<b>bye</b>"
    assert comment.rendered_text == "**bye**"


def test_rendered_text_uses_comment_style() -> None:
    style = TextStyle(italic_marker="*")
    comment = Comment(id=1, author="a", timestamp=0, body_text="<i>hi</i>", style=style)
    assert comment.rendered_text == "*hi*"


def test_search_hit_to_story_fills_defaults() -> None:
    hit = SearchHit(id=9, author="carol", created_at=1_700_000_000)
    story = hit.to_story()
    assert story.title == "[No Title]"
    assert story.score == 0
    assert story.comment_count == 0
    assert story.child_ids == []


def test_category_endpoints() -> None:
    assert Category.TOP.endpoint == "topstories"
    assert Category.JOB.endpoint == "jobstories"
    assert Category.FAVORITES.endpoint is None
    assert Category.SEARCH.endpoint is None


def test_category_api_order() -> None:
    assert {c for c in Category if c.keeps_api_order} == {Category.TOP, Category.ASK, Category.SHOW}
