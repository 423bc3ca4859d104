"""Tests for database schema."""

import sqlite3
from pathlib import Path

from hackstack.core.database.schema import (
    create_schema,
    get_metadata,
    get_schema_version,
    migrate_schema,
    open_database,
    set_metadata,
)


def test_create_schema_creates_tables() -> None:
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    tables = {
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }
    assert {"stories", "comments", "read_states", "metadata"} <= tables


def test_create_schema_indexes_comments_by_story() -> None:
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    indexes = {
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index'"
        ).fetchall()
    }
    assert "idx_comments_story" in indexes
    assert "idx_comments_timestamp" in indexes


def test_migrate_schema_on_empty_db_creates_schema_and_sets_version() -> None:
    conn = sqlite3.connect(":memory:")
    assert get_schema_version(conn) is None
    migrate_schema(conn)
    assert get_schema_version(conn) == 1


def test_migrate_schema_is_idempotent() -> None:
    conn = sqlite3.connect(":memory:")
    migrate_schema(conn)
    conn.execute("INSERT INTO read_states (story_id, marked_at) VALUES (1, 0)")
    conn.commit()

    migrate_schema(conn)

    assert conn.execute("SELECT COUNT(*) FROM read_states").fetchone()[0] == 1


def test_metadata_round_trip() -> None:
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    assert get_metadata(conn, "last_cleanup_date") is None

    set_metadata(conn, "last_cleanup_date", "2024-01-02")
    set_metadata(conn, "last_cleanup_date", "2024-01-03")

    assert get_metadata(conn, "last_cleanup_date") == "2024-01-03"


def test_open_database_creates_parent_directory(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "dir" / "hackstack.db"
    conn = open_database(db_path)
    try:
        assert db_path.exists()
        assert get_schema_version(conn) == 1
    finally:
        conn.close()
