"""Story listing categories."""

from enum import StrEnum


class Category(StrEnum):
    TOP = "top"
    NEW = "new"
    BEST = "best"
    ASK = "ask"
    SHOW = "show"
    JOB = "job"
    FAVORITES = "favorites"
    SEARCH = "search"

    @property
    def endpoint(self) -> str | None:
        """Remote id-list endpoint; None for categories resolved locally."""
        if self in (Category.FAVORITES, Category.SEARCH):
            return None
        return f"{self.value}stories"

    @property
    def keeps_api_order(self) -> bool:
        """Whether the API ranking is shown as-is rather than by score."""
        return self in (Category.TOP, Category.ASK, Category.SHOW)
