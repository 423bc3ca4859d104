"""Tests for relative timestamps."""

from datetime import UTC, datetime

import pytest

from hackstack.timefmt import relative_time

BASE = 1_700_000_000


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (0, "just now"),
        (59, "just now"),
        (120, "2m ago"),
        (3 * 3600 + 59, "3h ago"),
        (2 * 86400, "2d ago"),
        (-500, "just now"),
    ],
)
def test_relative_time_short_spans(elapsed: int, expected: str) -> None:
    assert relative_time(BASE, now=BASE + elapsed) == expected


def _ts(*args: int) -> float:
    return datetime(*args, tzinfo=UTC).timestamp()


def test_relative_time_months() -> None:
    assert relative_time(_ts(2024, 1, 15), now=_ts(2024, 3, 20)) == "2mo ago"


def test_relative_time_incomplete_month_counts_days() -> None:
    assert relative_time(_ts(2024, 1, 31), now=_ts(2024, 2, 29)) == "29d ago"


def test_relative_time_years() -> None:
    assert relative_time(_ts(2022, 1, 1), now=_ts(2024, 6, 1)) == "2y ago"
