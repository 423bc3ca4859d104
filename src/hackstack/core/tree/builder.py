"""Incremental, cache-aware comment tree loading.

Top-level comments are paged in from the story's kid list; replies are
pre-fetched one level ahead through a small work queue. Everything here runs
on one event loop, so tree state, the queue and its active count are never
touched concurrently.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable, Coroutine
from typing import Any

from loguru import logger

from hackstack.config import (
    COMMENT_CACHE_VALIDITY,
    COMMENT_PAGE_SIZE,
    LOAD_THROTTLE_INTERVAL,
    MAX_COMMENTS_TO_LOAD,
    MAX_CONCURRENT_REPLIES,
    MAX_REPLY_RETRIES,
    REPLY_RETRY_DELAY,
)
from hackstack.core.remote import HackerNewsService
from hackstack.core.tree.node import CommentNode
from hackstack.errors import HackstackError, PersistenceFailure
from hackstack.models.item import Comment, Story
from hackstack.protocols import StoreProtocol


class CommentTreeBuilder:
    """Builds the comment forest of one story."""

    def __init__(
        self,
        story: Story,
        service: HackerNewsService,
        store: StoreProtocol,
        *,
        page_size: int = COMMENT_PAGE_SIZE,
        max_comments: int = MAX_COMMENTS_TO_LOAD,
        cache_validity: float = COMMENT_CACHE_VALIDITY,
        throttle_interval: float = LOAD_THROTTLE_INTERVAL,
        max_concurrent_replies: int = MAX_CONCURRENT_REPLIES,
        max_retries: int = MAX_REPLY_RETRIES,
        retry_delay: float = REPLY_RETRY_DELAY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.story = story
        self.service = service
        self.store = store
        self.page_size = page_size
        self.max_comments = max_comments
        self.cache_validity = cache_validity
        self.throttle_interval = throttle_interval
        self.max_concurrent_replies = max_concurrent_replies
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._clock = clock

        self.tree: list[CommentNode] = []
        self.loaded_ids: set[int] = set()
        self.current_page = 0
        self.collapsed: set[int] = set()
        self.is_loading = False
        self.error: str | None = None

        self._index: dict[int, CommentNode] = {}
        self._is_fetching_more = False
        self._last_load_time = float("-inf")
        # Bumped by every reset; loads started under an older value are dropped.
        self._generation = 0

        # Reply expansion: pending (node, retry_count) pairs, running count,
        # and ids that are queued, running or waiting out a retry delay.
        self._queue: deque[tuple[CommentNode, int]] = deque()
        self._active = 0
        self._pending: set[int] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    # -- pagination ---------------------------------------------------------

    @property
    def has_more_comments(self) -> bool:
        """More top-level ids remain and the load ceiling is not reached."""
        total = len(self.story.child_ids)
        paged = min(self.current_page * self.page_size, total)
        return paged < total and paged < self.max_comments

    async def load_more(self) -> None:
        """Load the next page, unless busy, exhausted or called too soon."""
        now = self._clock()
        if (
            self.is_loading
            or self._is_fetching_more
            or not self.has_more_comments
            or now - self._last_load_time < self.throttle_interval
        ):
            return

        generation = self._generation
        self._is_fetching_more = True
        self._last_load_time = now
        try:
            await self.fetch_page(self.current_page)
        finally:
            if generation == self._generation:
                self._is_fetching_more = False

    async def fetch_page(self, page: int, *, force_fresh: bool = False) -> None:
        """Fetch one page of top-level comments and append it to the tree.

        On failure ``error`` is set and the tree is left as it was.
        """
        start = page * self.page_size
        end = min(start + self.page_size, self.max_comments)
        page_ids = self.story.child_ids[start:end]
        if not page_ids:
            logger.debug("No comments on page {} of story {}", page, self.story.id)
            return

        logger.debug(
            "Loading comments page {} (indices {}..{}) of story {}",
            page, start, start + len(page_ids), self.story.id,
        )
        generation = self._generation
        try:
            comments = await self._resolve(page_ids, level=0, force_fresh=force_fresh)
        except HackstackError as e:
            if generation != self._generation:
                return
            logger.warning("Failed to load comments page {}: {}", page, e)
            self.error = f"Failed to load comments: {e}"
            return

        if generation != self._generation:
            logger.debug("Dropping page {} loaded before a reset", page)
            return

        nodes = self._attach(comments, parent=None)
        self.tree.extend(nodes)
        self.current_page = page + 1
        self.error = None
        logger.debug("Added {} comments to tree (total: {})", len(nodes), len(self.tree))

        for node in nodes:
            if node.has_replies:
                self.expand(node)

    async def reset(self, *, force_fresh: bool = False, load_all: bool = False) -> None:
        """Drop the tree and load it again from page 0.

        ``force_fresh`` also discards the stored and cached comments first;
        ``load_all`` keeps paging until nothing more may be loaded.
        """
        self._generation += 1
        generation = self._generation
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._queue.clear()
        self._active = 0
        self._pending.clear()

        self.is_loading = True
        self.error = None
        self.tree = []
        self._index = {}
        self.loaded_ids = set()
        self.current_page = 0
        self.collapsed = set()
        self._is_fetching_more = False
        self._last_load_time = float("-inf")

        logger.debug("Resetting comments of story {} (force fresh: {})", self.story.id, force_fresh)
        if force_fresh:
            try:
                removed = self.store.delete_comments_for_story(self.story.id)
                logger.debug("Deleted {} stored comments", removed)
            except PersistenceFailure:
                logger.exception("Failed to clear stored comments of story {}", self.story.id)
            self.service.invalidate_comment_cache()

        try:
            if not self.story.child_ids:
                logger.debug("Story {} has no comments", self.story.id)
                return
            if load_all:
                while self.has_more_comments:
                    page = self.current_page
                    await self.fetch_page(page, force_fresh=force_fresh)
                    if self.current_page == page or generation != self._generation:
                        break
            else:
                await self.fetch_page(0, force_fresh=force_fresh)
        finally:
            if generation == self._generation:
                self.is_loading = False

    async def set_story(self, story: Story) -> None:
        """Switch to another story; a no-op for the same id."""
        if story.id == self.story.id:
            return
        self.story = story
        await self.reset()

    # -- reply expansion ----------------------------------------------------

    def expand(self, node: CommentNode) -> None:
        """Queue loading of a node's replies; returns without waiting."""
        if node.has_loaded_children or node.is_loading_replies or node.id in self._pending:
            return
        self._pending.add(node.id)
        self._queue.append((node, 0))
        self._pump()

    load_children = expand

    def toggle(self, comment_id: int) -> None:
        """Collapse or expand a comment; expanding loads replies if needed."""
        if comment_id in self.collapsed:
            self.collapsed.discard(comment_id)
            node = self.find_node(comment_id)
            if node is not None and not node.has_loaded_children:
                self.expand(node)
        else:
            self.collapsed.add(comment_id)

    def find_node(self, comment_id: int) -> CommentNode | None:
        return self._index.get(comment_id)

    async def wait_idle(self) -> None:
        """Return once no expansion is queued, running or waiting to retry."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _pump(self) -> None:
        while self._active < self.max_concurrent_replies and self._queue:
            node, retry_count = self._queue.popleft()
            self._active += 1
            node.is_loading_replies = True
            node.load_error = None
            self._spawn(self._run_expansion(node, retry_count))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_expansion(self, node: CommentNode, retry_count: int) -> None:
        generation = self._generation
        try:
            await self._load_children(node, generation)
        except Exception as e:
            if generation != self._generation:
                return
            self._active -= 1
            node.is_loading_replies = False
            if retry_count < self.max_retries:
                logger.debug("Retrying replies of comment {}, attempt {}", node.id, retry_count + 1)
                self._pump()
                await asyncio.sleep(self.retry_delay)
                if generation != self._generation:
                    return
                self._queue.append((node, retry_count + 1))
            else:
                logger.warning("Giving up on replies of comment {}: {}", node.id, e)
                node.load_error = "Failed to load replies"
                self._pending.discard(node.id)
            self._pump()
            return

        if generation != self._generation:
            return
        self._active -= 1
        node.is_loading_replies = False
        self._pending.discard(node.id)
        self._pump()

    async def _load_children(self, node: CommentNode, generation: int) -> None:
        if node.has_loaded_children:
            return
        comments = await self._resolve(
            node.comment.child_ids, level=node.comment.level + 1, force_fresh=False
        )
        if generation != self._generation:
            logger.debug("Dropping replies of comment {} loaded before a reset", node.id)
            return
        node.children = self._attach(comments, parent=node)
        node.has_loaded_children = True

        # Pre-fetch one level ahead.
        for child in node.children:
            if child.has_replies:
                self.expand(child)

    # -- cache/network merge ------------------------------------------------

    def _attach(self, comments: list[Comment], *, parent: CommentNode | None) -> list[CommentNode]:
        nodes: list[CommentNode] = []
        for comment in comments:
            if comment.id in self._index:
                continue
            node = CommentNode(comment, parent=parent)
            self._index[comment.id] = node
            nodes.append(node)
        self.loaded_ids.update(n.id for n in nodes)
        return nodes

    def _load_cached(self, ids: list[int]) -> dict[int, Comment]:
        try:
            stored = self.store.fetch_comments(ids)
        except PersistenceFailure:
            logger.exception("Comment cache lookup failed, fetching from network")
            return {}

        # Aged by when each comment was fetched, not when it was posted.
        now = self._clock()
        valid = {
            c.id: c
            for c in stored
            if now - c.fetched_at < self.cache_validity and c.is_visible
        }
        stale = len(stored) - len(valid)
        if stale:
            logger.debug("Ignoring {} stale or hidden cached comments", stale)
        return valid

    async def _resolve(self, ids: list[int], *, level: int, force_fresh: bool) -> list[Comment]:
        """Stored comments first, the rest from the network; in ``ids`` order."""
        cached: dict[int, Comment] = {} if force_fresh else self._load_cached(ids)
        missing = [i for i in ids if i not in cached]
        if cached:
            logger.debug("Found {} of {} comments in local cache", len(cached), len(ids))

        fresh: list[Comment] = []
        if missing:
            logger.debug("Fetching {} comments from API", len(missing))
            fresh = await self.service.fetch_comments(
                missing, level=level, story_id=self.story.id, force_fresh=force_fresh
            )
            if fresh:
                try:
                    self.store.insert_comments(fresh)
                except PersistenceFailure:
                    logger.exception("Failed to store {} fetched comments", len(fresh))

        merged = {c.id: c for c in fresh}
        merged.update(cached)
        return [merged[i] for i in ids if i in merged]
