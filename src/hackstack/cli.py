"""CLI for hackstack (story listings, comment threads, search, favorites)."""

import asyncio
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from hackstack.api import HackerNewsApi
from hackstack.config import DATABASE_FILENAME, resolve_data_directory
from hackstack.core.database.schema import open_database
from hackstack.core.database.store import SqliteStore
from hackstack.core.remote import HackerNewsService
from hackstack.core.stories.controller import SortMode, StoryListController, default_sort_for
from hackstack.core.tree.builder import CommentTreeBuilder
from hackstack.core.tree.markdown import render_tree_as_markdown
from hackstack.logging_config import configure_logging
from hackstack.models.category import Category
from hackstack.models.item import Story

app = typer.Typer(help="Browse Hacker News stories and comment threads.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory holding the local database"),
]
CacheOption = Annotated[
    bool,
    typer.Option(
        "--cache",
        "-C",
        help="Cache raw API responses on disk and replay them. Returns stale data, "
        "but prevents ratelimits while developing",
    ),
]


@dataclass
class _Session:
    conn: sqlite3.Connection
    store: SqliteStore
    service: HackerNewsService


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


@contextmanager
def _session(data_dir: Path | None, *, cache: bool = False) -> Iterator[_Session]:
    db_path = (data_dir or resolve_data_directory()) / DATABASE_FILENAME
    conn = open_database(db_path)
    try:
        yield _Session(
            conn=conn,
            store=SqliteStore(conn),
            service=HackerNewsService(HackerNewsApi(from_cache=cache)),
        )
    finally:
        conn.close()


def _echo_stories(stories: list[Story], *, limit: int) -> None:
    for rank, story in enumerate(stories[:limit], start=1):
        flags = ("*" if story.is_favorite else " ") + (" " if story.is_read else "N")
        typer.echo(f"{rank:3}. [{flags}] {story.title}")
        typer.echo(
            f"       {story.score} points by {story.author} {story.relative_time}"
            f" | {story.comment_count} comments  [id={story.id}]"
        )


@app.command()
def stories(
    category: Annotated[Category, typer.Argument(help="Story category")] = Category.TOP,
    sort: Annotated[
        SortMode | None,
        typer.Option("--sort", "-s", help="Sort mode (defaults per category)"),
    ] = None,
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Bypass caches"),
    limit: int = typer.Option(30, "--limit", "-n", help="Max stories shown"),
    data_dir: DataDirOption = None,
    cache: CacheOption = False,
) -> None:
    """List the stories of a category."""
    if category is Category.SEARCH:
        typer.echo("Use the 'search' command for search results.")
        raise typer.Exit(1)

    with _session(data_dir, cache=cache) as s:
        controller = StoryListController(s.service, s.store)
        controller.category = category
        controller.sort_mode = sort or default_sort_for(category)
        asyncio.run(controller.refresh_current_view() if refresh else controller.fetch())

        if controller.error_message:
            typer.echo(controller.error_message)
            raise typer.Exit(1)
        if not controller.stories:
            typer.echo("No stories.")
            return
        _echo_stories(controller.stories, limit=limit)


@app.command()
def comments(
    story_id: int = typer.Argument(..., help="Story id"),
    load_all: bool = typer.Option(False, "--all", "-a", help="Load every page"),
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Discard cached comments"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max reply levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
    cache: CacheOption = False,
) -> None:
    """Show a story's comment thread as markdown."""
    with _session(data_dir, cache=cache) as s:
        stored = [st for st in s.store.fetch_stories([story_id]) if st.id == story_id]

        async def run() -> CommentTreeBuilder | None:
            story = stored[0] if stored else await s.service.fetch_story(story_id)
            if story is None:
                return None
            StoryListController(s.service, s.store).mark_read(story)
            builder = CommentTreeBuilder(story, s.service, s.store)
            await builder.reset(force_fresh=refresh, load_all=load_all)
            await builder.wait_idle()
            return builder

        builder = asyncio.run(run())
        if builder is None:
            typer.echo(f"Story {story_id} not found.")
            raise typer.Exit(1)

        typer.echo(f"# {builder.story.title}\n")
        if builder.error:
            typer.echo(builder.error)
        typer.echo(render_tree_as_markdown(builder.tree, max_depth=max_depth), nl=False)
        if builder.has_more_comments:
            total = len(builder.story.child_ids)
            remaining = total - min(builder.current_page * builder.page_size, total)
            typer.echo(f"\n({remaining} more top-level comments, use --all)")
        logger.debug("Rendered {} comments", len(builder.loaded_ids))


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(30, "--limit", "-n", help="Max stories shown"),
    data_dir: DataDirOption = None,
    cache: CacheOption = False,
) -> None:
    """Full-text search over stories."""
    with _session(data_dir, cache=cache) as s:
        controller = StoryListController(s.service, s.store)
        asyncio.run(controller.search(query))
        if controller.error_message:
            typer.echo(controller.error_message)
            raise typer.Exit(1)
        typer.echo(f"Found {len(controller.stories)} stories:\n")
        _echo_stories(controller.stories, limit=limit)


@app.command()
def favorite(
    story_id: int = typer.Argument(..., help="Story id"),
    data_dir: DataDirOption = None,
    cache: CacheOption = False,
) -> None:
    """Toggle the favorite flag of a story."""
    with _session(data_dir, cache=cache) as s:
        stored = [st for st in s.store.fetch_stories([story_id]) if st.id == story_id]
        story = stored[0] if stored else asyncio.run(s.service.fetch_story(story_id))
        if story is None:
            typer.echo(f"Story {story_id} not found.")
            raise typer.Exit(1)
        StoryListController(s.service, s.store).toggle_favorite(story)
        state = "Added to" if story.is_favorite else "Removed from"
        typer.echo(f"{state} favorites: {story.title}")


@app.command()
def favorites(
    limit: int = typer.Option(100, "--limit", "-n", help="Max stories shown"),
    data_dir: DataDirOption = None,
) -> None:
    """List favorited stories, newest first."""
    with _session(data_dir) as s:
        controller = StoryListController(s.service, s.store)
        asyncio.run(controller.select_category(Category.FAVORITES))
        if not controller.stories:
            typer.echo("No favorites yet.")
            return
        _echo_stories(controller.stories, limit=limit)


@app.command()
def cleanup(data_dir: DataDirOption = None) -> None:
    """Remove stored comments older than 7 days (once per day)."""
    with _session(data_dir) as s:
        removed = StoryListController(s.service, s.store).cleanup()
        if removed is None:
            typer.echo("Cleanup already ran today.")
        else:
            typer.echo(f"Removed {removed} old comments.")
