"""Hacker News client engine: cached story listings and comment trees."""

from hackstack.api import HackerNewsApi
from hackstack.core.cache import RemoteCache
from hackstack.core.database.store import SqliteStore
from hackstack.core.remote import HackerNewsService
from hackstack.core.stories.controller import SortMode, StoryListController
from hackstack.core.tree.builder import CommentTreeBuilder
from hackstack.models.category import Category
from hackstack.protocols import ItemSourceProtocol, StoreProtocol

__all__ = [
    "Category",
    "CommentTreeBuilder",
    "HackerNewsApi",
    "HackerNewsService",
    "ItemSourceProtocol",
    "RemoteCache",
    "SortMode",
    "SqliteStore",
    "StoreProtocol",
    "StoryListController",
]
