"""Story listings: category/sort state, merge with local favorite and read state."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from enum import StrEnum

from loguru import logger

from hackstack.config import COMMENT_RETENTION
from hackstack.core.remote import HackerNewsService
from hackstack.errors import HackstackError, PersistenceFailure
from hackstack.models.category import Category
from hackstack.models.item import ReadState, Story
from hackstack.protocols import StoreProtocol

LAST_CLEANUP_KEY = "last_cleanup_date"


class SortMode(StrEnum):
    DEFAULT = "default"
    DATE = "date"
    POINTS = "points"
    FAVORITES = "favorites"


_DEFAULT_SORT: dict[Category, SortMode] = {
    Category.TOP: SortMode.DEFAULT,
    Category.ASK: SortMode.DEFAULT,
    Category.SHOW: SortMode.DEFAULT,
    Category.SEARCH: SortMode.DEFAULT,
    Category.FAVORITES: SortMode.DEFAULT,
    Category.BEST: SortMode.POINTS,
    Category.NEW: SortMode.DATE,
    Category.JOB: SortMode.DATE,
}


def default_sort_for(category: Category) -> SortMode:
    return _DEFAULT_SORT[category]


def sort_stories(stories: list[Story], mode: SortMode, category: Category) -> list[Story]:
    """Return ``stories`` ordered for ``mode``; ties keep their relative order."""
    if mode is SortMode.DATE:
        return sorted(stories, key=lambda s: s.timestamp, reverse=True)
    if mode is SortMode.POINTS:
        return sorted(stories, key=lambda s: s.score, reverse=True)
    if mode is SortMode.FAVORITES:
        return sorted(stories, key=lambda s: (not s.is_favorite, -s.timestamp))
    if category is Category.FAVORITES:
        return sorted(stories, key=lambda s: s.timestamp, reverse=True)
    return list(stories)


class StoryListController:
    """Holds the story list for the selected category and sort mode.

    ``error_message`` is set only on failure; an empty ``stories`` list with
    no error means there is simply nothing to show.
    """

    def __init__(
        self,
        service: HackerNewsService,
        store: StoreProtocol,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.service = service
        self.store = store
        self._clock = clock

        self.stories: list[Story] = []
        self.category = Category.TOP
        self.sort_mode = default_sort_for(Category.TOP)
        self.search_text = ""
        self.is_loading = False
        self.error_message: str | None = None

        # API order of the last category fetch, restored by the default sort on top.
        self._original: list[Story] = []
        self._search_task: asyncio.Task[None] | None = None
        self._read_ids = self._load_read_states()

    def _load_read_states(self) -> set[int]:
        try:
            return self.store.read_story_ids()
        except PersistenceFailure:
            logger.exception("Failed to load read states")
            return set()

    # -- category and sort ------------------------------------------------------

    async def select_category(self, category: Category) -> None:
        """Switch category; resets the sort mode and refetches, except for search."""
        if category is self.category:
            return
        self.category = category
        if category is Category.SEARCH:
            return
        self.search_text = ""
        self.sort_mode = default_sort_for(category)
        await self.fetch()

    def set_sort_mode(self, mode: SortMode) -> None:
        self.sort_mode = mode
        if mode is SortMode.DEFAULT and self.category is Category.TOP:
            self.stories = list(self._original)
        else:
            self.stories = sort_stories(self.stories, mode, self.category)

    def _apply_sort(self, stories: list[Story]) -> list[Story]:
        if self.sort_mode is SortMode.DEFAULT and self.category is Category.TOP:
            return list(stories)
        return sort_stories(stories, self.sort_mode, self.category)

    # -- fetching -----------------------------------------------------------------

    async def fetch(self, *, force_fresh: bool = False) -> None:
        """Load the current category, keeping local favorite/read state.

        Search results are only produced by ``search``; fetching while in
        the search category does nothing.
        """
        if self.category is Category.SEARCH:
            return

        self.is_loading = True
        self.error_message = None
        try:
            if self.category is Category.FAVORITES:
                self.stories = self._load_favorites()
                return

            try:
                fresh = await self.service.fetch_stories(self.category, force_fresh=force_fresh)
                merged = self._merge(fresh, keep_favorites=True)
            except HackstackError as e:
                logger.warning("Error fetching/updating stories: {}", e)
                self.error_message = f"Failed to load stories: {e}"
                return

            self._original = merged
            self.stories = self._apply_sort(merged)
        finally:
            self.is_loading = False

    def _load_favorites(self) -> list[Story]:
        try:
            favorites = self.store.fetch_favorites()
        except PersistenceFailure:
            logger.exception("Failed to fetch favorites")
            return []
        for story in favorites:
            story.is_read = story.id in self._read_ids
        return favorites

    def _merge(self, fresh: list[Story], *, keep_favorites: bool) -> list[Story]:
        """Fold fresh stories into the stored ones and persist the result.

        Stored entities are updated in place (keeping ``is_favorite``); new
        ones are inserted. With ``keep_favorites``, stored favorites missing
        from ``fresh`` are appended so they never drop out of the store.
        """
        existing = {s.id: s for s in self.store.fetch_stories([s.id for s in fresh])}

        merged: list[Story] = []
        seen: set[int] = set()
        for story in fresh:
            current = existing.get(story.id)
            if current is not None:
                current.refresh_from(story)
            else:
                current = replace(story)
            current.is_read = story.id in self._read_ids
            merged.append(current)
            seen.add(story.id)

        if keep_favorites:
            merged.extend(s for s in existing.values() if s.is_favorite and s.id not in seen)

        try:
            self.store.save_stories(merged)
        except PersistenceFailure:
            logger.exception("Failed to save {} stories", len(merged))
        return merged

    async def refresh_current_view(self) -> None:
        """Clear the search, drop the cached list and fetch fresh."""
        self.search_text = ""
        self.service.invalidate_story_cache(self.category)
        await self.fetch(force_fresh=True)

    # -- search -------------------------------------------------------------------

    async def search(self, query: str) -> None:
        """Search stories, cancelling any search still in flight.

        A superseded search ends quietly; only the latest one updates state.
        """
        self.search_text = query
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()

        task = asyncio.create_task(self._run_search(query))
        self._search_task = task
        try:
            await task
        except asyncio.CancelledError:
            if task is self._search_task:
                raise
            logger.debug("Search {!r} superseded", query)

    async def _run_search(self, query: str) -> None:
        if not query:
            logger.debug("Empty search text, restoring original stories")
            self.stories = self._apply_sort(list(self._original))
            return

        self.is_loading = True
        self.error_message = None
        try:
            results = await self.service.search_stories(query)
            merged = self._merge(results, keep_favorites=False)
            self.category = Category.SEARCH
            self.stories = self._apply_sort(merged)
            logger.debug("Search {!r} produced {} stories", query, len(merged))
        except HackstackError as e:
            logger.warning("Search error: {}", e)
            self.error_message = f"Search failed: {e}"
        finally:
            if self._search_task is asyncio.current_task():
                self.is_loading = False

    # -- local state ----------------------------------------------------------------

    def toggle_favorite(self, story: Story) -> None:
        story.is_favorite = not story.is_favorite
        try:
            self.store.save_stories([story])
        except PersistenceFailure:
            logger.exception("Failed to save favorite state of story {}", story.id)
            return
        if self.category is Category.FAVORITES:
            self.stories = self._load_favorites()

    def mark_read(self, story: Story) -> None:
        """Record that a story was opened. Safe to call repeatedly."""
        if story.id not in self._read_ids:
            try:
                self.store.insert_read_state(ReadState(story_id=story.id, marked_at=self._clock()))
            except PersistenceFailure:
                logger.exception("Failed to save read state of story {}", story.id)
            else:
                self._read_ids.add(story.id)
        story.is_read = True

    def cleanup(self) -> int | None:
        """Delete stored comments older than the retention window.

        Runs at most once per calendar day. Returns the number of comments
        removed, or None when it already ran today (or could not run).
        """
        now = self._clock()
        today = date.fromtimestamp(now).isoformat()
        try:
            if self.store.get_metadata(LAST_CLEANUP_KEY) == today:
                return None
            removed = self.store.delete_comments_older_than(now - COMMENT_RETENTION)
            self.store.set_metadata(LAST_CLEANUP_KEY, today)
        except PersistenceFailure:
            logger.exception("Failed to cleanup old data")
            return None
        logger.info("Removed {} comments older than 7 days", removed)
        return removed
