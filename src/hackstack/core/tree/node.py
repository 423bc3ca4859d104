"""In-memory comment tree nodes."""

import weakref

from hackstack.models.item import Comment


class CommentNode:
    """A comment placed in a thread, with its loading state.

    The parent link is weak: nodes are owned by their parent's ``children``
    list (or the builder's top-level list), never by their children.
    """

    def __init__(self, comment: Comment, parent: "CommentNode | None" = None) -> None:
        self.comment = comment
        self.children: list[CommentNode] = []
        self.has_loaded_children = False
        self.is_loading_replies = False
        self.load_error: str | None = None
        self._parent_ref: weakref.ref[CommentNode] | None = None
        self.parent = parent

    @property
    def id(self) -> int:
        return self.comment.id

    @property
    def parent(self) -> "CommentNode | None":
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, node: "CommentNode | None") -> None:
        self._parent_ref = weakref.ref(node) if node is not None else None

    @property
    def has_replies(self) -> bool:
        return bool(self.comment.child_ids)

    def walk(self):
        """Yield this node and its loaded descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        return (
            f"CommentNode(id={self.id}, children={len(self.children)}, "
            f"loaded={self.has_loaded_children}, loading={self.is_loading_replies})"
        )
