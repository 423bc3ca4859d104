"""Protocols for dependency injection in the loading engine."""

from typing import Any, Protocol, runtime_checkable

from hackstack.models.item import Comment, ReadState, SearchHit, Story


@runtime_checkable
class ItemSourceProtocol(Protocol):
    """Protocol for the remote Hacker News data source.

    Calls block; the engine runs them in worker threads.
    """

    def get_item(self, item_id: int) -> dict[str, Any] | None:
        """Fetch a single story or comment payload; None if it does not exist."""
        ...

    def get_id_list(self, endpoint: str) -> list[int]:
        """Fetch the ranked id list of a category endpoint (e.g. 'topstories')."""
        ...

    def search(self, query: str, *, min_comments: int, max_hits: int) -> list[SearchHit]:
        """Run a full-text story search."""
        ...


@runtime_checkable
class StoreProtocol(Protocol):
    """Protocol for the durable local store.

    Failures are raised as PersistenceFailure.
    """

    def fetch_stories(self, ids: list[int]) -> list[Story]:
        """Return stored stories with the given ids plus every favorite."""
        ...

    def fetch_favorites(self) -> list[Story]:
        """Return favorited stories, newest first."""
        ...

    def save_stories(self, stories: list[Story]) -> None:
        """Insert or update stories."""
        ...

    def fetch_comments(self, ids: list[int]) -> list[Comment]:
        """Return stored comments with the given ids (any order)."""
        ...

    def insert_comments(self, comments: list[Comment]) -> None:
        """Insert or replace comments."""
        ...

    def delete_comments_for_story(self, story_id: int) -> int:
        """Delete all comments of a story, returning the count."""
        ...

    def delete_comments_older_than(self, cutoff: float) -> int:
        """Delete comments written before ``cutoff``, returning the count."""
        ...

    def read_story_ids(self) -> set[int]:
        """Return ids of all stories with a read marker."""
        ...

    def insert_read_state(self, state: ReadState) -> bool:
        """Store a read marker; False if one already existed."""
        ...

    def get_metadata(self, key: str) -> str | None:
        """Read a metadata value."""
        ...

    def set_metadata(self, key: str, value: str) -> None:
        """Write a metadata value."""
        ...
