"""Human-readable relative timestamps."""

import time
from datetime import UTC, datetime


def relative_time(timestamp: float, *, now: float | None = None) -> str:
    """Format an epoch timestamp relative to ``now`` ("3h ago", "just now")."""
    if now is None:
        now = time.time()
    then = datetime.fromtimestamp(timestamp, tz=UTC)
    current = datetime.fromtimestamp(now, tz=UTC)
    if current <= then:
        return "just now"

    # Calendar years/months, then the remainder as a plain duration.
    months = (current.year - then.year) * 12 + (current.month - then.month)
    if (current.day, current.time()) < (then.day, then.time()):
        months -= 1
    if months >= 12:
        return f"{months // 12}y ago"
    if months > 0:
        return f"{months}mo ago"

    seconds = int((current - then).total_seconds())
    if seconds >= 86400:
        return f"{seconds // 86400}d ago"
    if seconds >= 3600:
        return f"{seconds // 3600}h ago"
    if seconds >= 60:
        return f"{seconds // 60}m ago"
    return "just now"
