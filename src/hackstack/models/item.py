"""Domain models for stories, comments and read markers."""

import time
from dataclasses import dataclass, field
from typing import Any

from hackstack.core.text.render import DEFAULT_STYLE, TextStyle, render_markup
from hackstack.timefmt import relative_time


def encode_child_ids(child_ids: list[int]) -> str:
    """Serialize child ids into the comma-delimited column format."""
    return ",".join(str(i) for i in child_ids)


def decode_child_ids(raw: str | None) -> list[int]:
    """Parse a comma-delimited id string, skipping blanks and junk."""
    if not raw:
        return []
    ids: list[int] = []
    for token in raw.split(","):
        try:
            ids.append(int(token))
        except ValueError:
            continue
    return ids


@dataclass
class Story:
    """A story as shown in a listing."""

    id: int
    title: str
    author: str
    score: int
    timestamp: float
    comment_count: int = 0
    url: str | None = None
    child_ids: list[int] = field(default_factory=list)
    body_text: str | None = None
    is_read: bool = False
    is_favorite: bool = False
    relative_time: str = ""

    def __post_init__(self) -> None:
        if not self.relative_time:
            self.relative_time = relative_time(self.timestamp)

    def refresh_from(self, other: "Story") -> None:
        """Take every field from a fresh fetch, keeping the favorite flag."""
        self.title = other.title
        self.url = other.url
        self.author = other.author
        self.score = other.score
        self.timestamp = other.timestamp
        self.relative_time = relative_time(other.timestamp)
        self.comment_count = other.comment_count
        self.child_ids = list(other.child_ids)
        self.body_text = other.body_text


@dataclass
class Comment:
    """A single comment. ``level`` is the depth below the story (0 = top-level)."""

    id: int
    author: str
    timestamp: float
    body_text: str
    child_ids: list[int] = field(default_factory=list)
    level: int = 0
    is_deleted: bool = False
    is_dead: bool = False
    story_id: int | None = None
    fetched_at: float = field(default_factory=time.time)
    relative_time: str = ""
    style: TextStyle = field(default=DEFAULT_STYLE, repr=False, compare=False)
    _rendered: tuple[str, str] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.relative_time:
            self.relative_time = relative_time(self.timestamp)

    @property
    def rendered_text(self) -> str:
        # Cached against the source text it was rendered from.
        if self._rendered is None or self._rendered[0] != self.body_text:
            self._rendered = (self.body_text, render_markup(self.body_text, self.style))
        return self._rendered[1]

    @property
    def is_visible(self) -> bool:
        """Dead or deleted leaves are dropped from trees; anything with replies stays."""
        return bool(self.child_ids) or not (self.is_deleted or self.is_dead)


@dataclass(frozen=True)
class ReadState:
    """Marker that a story has been opened."""

    story_id: int
    marked_at: float


@dataclass(frozen=True)
class SearchHit:
    """A lightweight full-text search result."""

    id: int
    author: str
    created_at: float
    title: str | None = None
    url: str | None = None
    points: int | None = None
    comment_count: int | None = None
    child_ids: tuple[int, ...] | None = None
    body_text: str | None = None

    def to_story(self) -> Story:
        return Story(
            id=self.id,
            title=self.title or "[No Title]",
            url=self.url,
            author=self.author,
            score=self.points or 0,
            timestamp=self.created_at,
            comment_count=self.comment_count or 0,
            child_ids=list(self.child_ids or ()),
            body_text=self.body_text,
        )


def story_from_payload(data: dict[str, Any]) -> Story:
    """Build a Story from a Firebase item payload.

    Raises:
        KeyError, TypeError, ValueError: on malformed payloads.
    """
    return Story(
        id=int(data["id"]),
        title=data.get("title") or "[No Title]",
        url=data.get("url"),
        author=data.get("by") or "[unknown]",
        score=int(data.get("score") or 0),
        timestamp=float(data["time"]),
        # Job posts have no descendants field.
        comment_count=int(data.get("descendants") or 0),
        child_ids=[int(k) for k in data.get("kids") or []],
        body_text=data.get("text"),
    )


def comment_from_payload(
    data: dict[str, Any],
    *,
    level: int = 0,
    story_id: int | None = None,
    fetched_at: float | None = None,
) -> Comment:
    """Build a Comment from a Firebase item payload.

    Deleted and dead comments keep their replies but get placeholder text.
    """
    deleted = bool(data.get("deleted"))
    dead = bool(data.get("dead"))
    if deleted or dead:
        text = "[deleted]" if deleted else "[dead]"
        author = "[unknown]"
    else:
        text = data.get("text") or "[no content]"
        author = data.get("by") or "[unknown]"

    return Comment(
        id=int(data["id"]),
        author=author,
        timestamp=float(data["time"]),
        body_text=text,
        child_ids=[int(k) for k in data.get("kids") or []],
        level=level,
        is_deleted=deleted,
        is_dead=dead,
        story_id=story_id,
        fetched_at=time.time() if fetched_at is None else fetched_at,
    )
