"""Async access to the remote data source through the in-process cache."""

import asyncio

from loguru import logger

from hackstack.config import (
    MAX_CONCURRENT_REQUESTS,
    SEARCH_MAX_HITS,
    SEARCH_MIN_COMMENTS,
    STORY_LIST_LIMIT,
)
from hackstack.core.cache import RemoteCache
from hackstack.errors import DecodeFailure, HackstackError
from hackstack.models.category import Category
from hackstack.models.item import Comment, Story, comment_from_payload, story_from_payload
from hackstack.protocols import ItemSourceProtocol


class HackerNewsService:
    """Coordinates the blocking item source with the remote cache.

    Source calls run in worker threads via ``asyncio.to_thread``; their
    results are merged into the cache back on the event loop, which is the
    only place cache state is touched.
    """

    def __init__(
        self,
        source: ItemSourceProtocol,
        cache: RemoteCache | None = None,
        *,
        max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS,
    ) -> None:
        self.source = source
        self.cache = cache or RemoteCache()
        self.max_concurrent_requests = max_concurrent_requests

    async def fetch_stories(
        self,
        category: Category,
        *,
        limit: int = STORY_LIST_LIMIT,
        force_fresh: bool = False,
    ) -> list[Story]:
        """Return the stories of a category, ranked for display.

        Stories that fail to load are left out. Raises when the id list itself
        cannot be fetched.
        """
        endpoint = category.endpoint
        if endpoint is None:
            return []

        if not force_fresh:
            cached = self.cache.get_stories(category)
            if cached is not None:
                logger.debug("Stories for {} served from cache", category)
                return cached

        ids = await asyncio.to_thread(self.source.get_id_list, endpoint)
        ids = ids[:limit]

        by_id: dict[int, Story] = {}
        for start in range(0, len(ids), self.max_concurrent_requests):
            batch = ids[start : start + self.max_concurrent_requests]
            for story in await asyncio.gather(*(self.fetch_story(i) for i in batch)):
                if story is not None:
                    by_id[story.id] = story

        if category.keeps_api_order:
            stories = [by_id[i] for i in ids if i in by_id]
        else:
            stories = sorted(by_id.values(), key=lambda s: s.score, reverse=True)

        logger.debug("Fetched {} of {} stories for {}", len(stories), len(ids), category)
        self.cache.put_stories(category, stories)
        return stories

    async def fetch_story(self, story_id: int) -> Story | None:
        """Fetch one story; any failure is logged and yields None."""
        try:
            payload = await asyncio.to_thread(self.source.get_item, story_id)
            if payload is None:
                return None
            return story_from_payload(payload)
        except (HackstackError, KeyError, TypeError, ValueError) as e:
            logger.warning("Failed to fetch story {}: {}", story_id, e)
            return None

    async def fetch_comments(
        self,
        ids: list[int],
        *,
        level: int,
        story_id: int | None,
        force_fresh: bool = False,
    ) -> list[Comment]:
        """Fetch comments concurrently, returned in the order of ``ids``.

        Dead or deleted comments without replies are dropped. A comment whose
        payload cannot be decoded is left out; a network failure fails the
        whole batch.
        """
        fetched = await asyncio.gather(
            *(
                self._fetch_comment(i, level=level, story_id=story_id, force_fresh=force_fresh)
                for i in ids
            )
        )
        by_id = {c.id: c for c in fetched if c is not None and c.is_visible}
        return [by_id[i] for i in ids if i in by_id]

    async def _fetch_comment(
        self,
        comment_id: int,
        *,
        level: int,
        story_id: int | None,
        force_fresh: bool,
    ) -> Comment | None:
        if not force_fresh:
            cached = self.cache.get_comment(comment_id)
            if cached is not None:
                return cached

        try:
            payload = await asyncio.to_thread(self.source.get_item, comment_id)
        except DecodeFailure as e:
            logger.warning("Skipping undecodable comment {}: {}", comment_id, e)
            return None
        if payload is None:
            return None

        try:
            comment = comment_from_payload(payload, level=level, story_id=story_id)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed comment {}: {}", comment_id, e)
            return None

        self.cache.put_comment(comment_id, comment)
        return comment

    async def search_stories(self, query: str) -> list[Story]:
        """Full-text search; hits are resolved to full stories.

        Sorted by score, then by comment count, both descending.
        """
        if not query:
            return []

        hits = await asyncio.to_thread(
            self.source.search,
            query,
            min_comments=SEARCH_MIN_COMMENTS,
            max_hits=SEARCH_MAX_HITS,
        )
        logger.debug("Search {!r}: {} hits", query, len(hits))

        results = await asyncio.gather(*(self.fetch_story(hit.id) for hit in hits))
        stories = [s for s in results if s is not None]
        stories.sort(key=lambda s: (s.score, s.comment_count), reverse=True)
        return stories

    def invalidate_story_cache(self, category: Category) -> None:
        self.cache.invalidate_stories(category)

    def invalidate_comment_cache(self) -> None:
        # Comment ids are story-scoped, so switching threads clears everything.
        self.cache.invalidate_all_comments()
