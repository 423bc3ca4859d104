"""SQLite-backed store for stories, comments and read markers."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from hackstack.core.database import schema
from hackstack.errors import PersistenceFailure
from hackstack.models.item import Comment, ReadState, Story, decode_child_ids, encode_child_ids

_STORY_COLUMNS = (
    "id, title, url, author, score, timestamp, relative_time, comment_count, "
    "kids, body_text, is_read, is_favorite"
)

_COMMENT_COLUMNS = (
    "id, story_id, author, timestamp, relative_time, body_text, kids, level, "
    "is_deleted, is_dead, fetched_at"
)


def _row_to_story(row: tuple) -> Story:
    return Story(
        id=row[0], title=row[1], url=row[2], author=row[3], score=row[4],
        timestamp=row[5], relative_time=row[6], comment_count=row[7],
        child_ids=decode_child_ids(row[8]), body_text=row[9],
        is_read=bool(row[10]), is_favorite=bool(row[11]),
    )


def _row_to_comment(row: tuple) -> Comment:
    return Comment(
        id=row[0], story_id=row[1], author=row[2], timestamp=row[3],
        relative_time=row[4], body_text=row[5], child_ids=decode_child_ids(row[6]),
        level=row[7], is_deleted=bool(row[8]), is_dead=bool(row[9]), fetched_at=row[10],
    )


class SqliteStore:
    """Single-writer store over one SQLite connection.

    Every write commits immediately. Any sqlite3 error rolls back and is
    re-raised as PersistenceFailure.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    @contextmanager
    def _transaction(self, what: str) -> Iterator[sqlite3.Connection]:
        try:
            yield self.conn
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            msg = f"Failed to {what}: {e}"
            raise PersistenceFailure(msg) from e

    def fetch_stories(self, ids: list[int]) -> list[Story]:
        with self._transaction("fetch stories") as conn:
            placeholders = ",".join("?" * len(ids))
            where = f"id IN ({placeholders}) OR is_favorite = 1" if ids else "is_favorite = 1"
            rows = conn.execute(
                f"SELECT {_STORY_COLUMNS} FROM stories WHERE {where}", ids
            ).fetchall()
        return [_row_to_story(r) for r in rows]

    def fetch_favorites(self) -> list[Story]:
        with self._transaction("fetch favorites") as conn:
            rows = conn.execute(
                f"SELECT {_STORY_COLUMNS} FROM stories WHERE is_favorite = 1 "
                "ORDER BY timestamp DESC"
            ).fetchall()
        return [_row_to_story(r) for r in rows]

    def save_stories(self, stories: list[Story]) -> None:
        with self._transaction("save stories") as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO stories ({_STORY_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        s.id, s.title, s.url, s.author, s.score, s.timestamp,
                        s.relative_time, s.comment_count, encode_child_ids(s.child_ids),
                        s.body_text, int(s.is_read), int(s.is_favorite),
                    )
                    for s in stories
                ],
            )
        logger.debug("Saved {} stories", len(stories))

    def fetch_comments(self, ids: list[int]) -> list[Comment]:
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        with self._transaction("fetch comments") as conn:
            rows = conn.execute(
                f"SELECT {_COMMENT_COLUMNS} FROM comments WHERE id IN ({placeholders})",
                ids,
            ).fetchall()
        return [_row_to_comment(r) for r in rows]

    def insert_comments(self, comments: list[Comment]) -> None:
        with self._transaction("save comments") as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO comments ({_COMMENT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        c.id, c.story_id, c.author, c.timestamp, c.relative_time,
                        c.body_text, encode_child_ids(c.child_ids), c.level,
                        int(c.is_deleted), int(c.is_dead), c.fetched_at,
                    )
                    for c in comments
                ],
            )

    def delete_comments_for_story(self, story_id: int) -> int:
        with self._transaction("clear story comments") as conn:
            cur = conn.execute("DELETE FROM comments WHERE story_id = ?", (story_id,))
        return cur.rowcount

    def delete_comments_older_than(self, cutoff: float) -> int:
        with self._transaction("clean up old comments") as conn:
            cur = conn.execute("DELETE FROM comments WHERE timestamp < ?", (cutoff,))
        return cur.rowcount

    def read_story_ids(self) -> set[int]:
        with self._transaction("load read states") as conn:
            rows = conn.execute("SELECT story_id FROM read_states").fetchall()
        return {r[0] for r in rows}

    def insert_read_state(self, state: ReadState) -> bool:
        with self._transaction("save read state") as conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO read_states (story_id, marked_at) VALUES (?, ?)",
                (state.story_id, state.marked_at),
            )
        return cur.rowcount > 0

    def get_metadata(self, key: str) -> str | None:
        with self._transaction("read metadata"):
            return schema.get_metadata(self.conn, key)

    def set_metadata(self, key: str, value: str) -> None:
        with self._transaction("write metadata"):
            schema.set_metadata(self.conn, key, value)
