"""Tests for SqliteStore."""

import sqlite3

import pytest

from hackstack.core.database.store import SqliteStore
from hackstack.errors import PersistenceFailure
from hackstack.models.item import Comment, ReadState, Story
from hackstack.protocols import StoreProtocol


def _story(story_id: int, **kwargs) -> Story:
    fields = {"title": f"Story {story_id}", "author": "a", "score": 1, "timestamp": 1000.0 + story_id}
    fields.update(kwargs)
    return Story(id=story_id, **fields)


def _comment(comment_id: int, **kwargs) -> Comment:
    fields = {"author": "c", "timestamp": 1000.0, "body_text": f"text {comment_id}", "story_id": 1}
    fields.update(kwargs)
    return Comment(id=comment_id, **fields)


def test_store_satisfies_protocol(store: SqliteStore) -> None:
    assert isinstance(store, StoreProtocol)


def test_save_and_fetch_stories(store: SqliteStore) -> None:
    store.save_stories([_story(1, child_ids=[10, 11], url="https://x.test"), _story(2)])

    fetched = {s.id: s for s in store.fetch_stories([1])}

    assert set(fetched) == {1}
    assert fetched[1].child_ids == [10, 11]
    assert fetched[1].url == "https://x.test"


def test_fetch_stories_includes_all_favorites(store: SqliteStore) -> None:
    store.save_stories([_story(1), _story(2, is_favorite=True), _story(3)])

    assert {s.id for s in store.fetch_stories([1])} == {1, 2}
    assert {s.id for s in store.fetch_stories([])} == {2}


def test_save_stories_updates_existing_row(store: SqliteStore) -> None:
    store.save_stories([_story(1, score=1)])
    store.save_stories([_story(1, score=50, is_favorite=True)])

    [story] = store.fetch_stories([1])
    assert story.score == 50
    assert story.is_favorite


def test_fetch_favorites_newest_first(store: SqliteStore) -> None:
    store.save_stories(
        [
            _story(1, timestamp=100.0, is_favorite=True),
            _story(2, timestamp=300.0, is_favorite=True),
            _story(3, timestamp=200.0),
        ]
    )

    assert [s.id for s in store.fetch_favorites()] == [2, 1]


def test_insert_and_fetch_comments(store: SqliteStore) -> None:
    store.insert_comments(
        [_comment(10, child_ids=[11], level=0, fetched_at=5.0), _comment(11, level=1, is_dead=True)]
    )

    fetched = {c.id: c for c in store.fetch_comments([10, 11, 99])}

    assert set(fetched) == {10, 11}
    assert fetched[10].child_ids == [11]
    assert fetched[10].fetched_at == 5.0
    assert fetched[11].level == 1
    assert fetched[11].is_dead


def test_fetch_comments_with_no_ids(store: SqliteStore) -> None:
    assert store.fetch_comments([]) == []


def test_delete_comments_for_story(store: SqliteStore) -> None:
    store.insert_comments([_comment(10, story_id=1), _comment(11, story_id=1), _comment(20, story_id=2)])

    assert store.delete_comments_for_story(1) == 2
    assert [c.id for c in store.fetch_comments([10, 11, 20])] == [20]


def test_delete_comments_older_than(store: SqliteStore) -> None:
    store.insert_comments([_comment(10, timestamp=100.0), _comment(11, timestamp=500.0)])

    assert store.delete_comments_older_than(200.0) == 1
    assert [c.id for c in store.fetch_comments([10, 11])] == [11]


def test_insert_read_state_is_idempotent(store: SqliteStore, conn: sqlite3.Connection) -> None:
    assert store.insert_read_state(ReadState(story_id=1, marked_at=10.0))
    assert not store.insert_read_state(ReadState(story_id=1, marked_at=20.0))

    assert store.read_story_ids() == {1}
    assert conn.execute("SELECT marked_at FROM read_states").fetchall() == [(10.0,)]


def test_metadata(store: SqliteStore) -> None:
    assert store.get_metadata("k") is None
    store.set_metadata("k", "v")
    assert store.get_metadata("k") == "v"


def test_sqlite_errors_become_persistence_failures(store: SqliteStore, conn: sqlite3.Connection) -> None:
    conn.execute("DROP TABLE stories")

    with pytest.raises(PersistenceFailure, match="Failed to save stories"):
        store.save_stories([_story(1)])
