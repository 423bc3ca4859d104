"""Time-bounded in-process cache in front of the remote API."""

import time
from collections.abc import Callable, Hashable

from hackstack.config import COMMENT_CACHE_TTL, STORY_CACHE_TTL
from hackstack.models.item import Comment, Story


class RemoteCache:
    """Story lists per category and comments per id, each with a TTL.

    Entries are ``(value, stamped_at)`` pairs. Expiry is checked on read
    only; nothing is evicted otherwise. Owned by a single event loop, so no
    locking.
    """

    def __init__(
        self,
        *,
        story_ttl: float = STORY_CACHE_TTL,
        comment_ttl: float = COMMENT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.story_ttl = story_ttl
        self.comment_ttl = comment_ttl
        self._clock = clock
        self._stories: dict[Hashable, tuple[list[Story], float]] = {}
        self._comments: dict[int, tuple[Comment, float]] = {}

    def _fresh(self, stamped_at: float, ttl: float) -> bool:
        return self._clock() - stamped_at < ttl

    def get_stories(self, category: Hashable) -> list[Story] | None:
        entry = self._stories.get(category)
        if entry is None:
            return None
        stories, stamped_at = entry
        if not self._fresh(stamped_at, self.story_ttl):
            return None
        return list(stories)

    def put_stories(self, category: Hashable, stories: list[Story]) -> None:
        self._stories[category] = (list(stories), self._clock())

    def invalidate_stories(self, category: Hashable) -> None:
        self._stories.pop(category, None)

    def get_comment(self, comment_id: int) -> Comment | None:
        entry = self._comments.get(comment_id)
        if entry is None:
            return None
        comment, stamped_at = entry
        if not self._fresh(stamped_at, self.comment_ttl):
            return None
        return comment

    def put_comment(self, comment_id: int, comment: Comment) -> None:
        self._comments[comment_id] = (comment, self._clock())

    def invalidate_all_comments(self) -> None:
        self._comments.clear()
