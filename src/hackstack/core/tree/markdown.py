"""Render loaded comment trees as markdown."""

import io
from collections.abc import Iterable

from hackstack.core.tree.node import CommentNode


def render_tree_as_markdown(
    nodes: Iterable[CommentNode],
    *,
    collapsed: set[int] | frozenset[int] = frozenset(),
    max_depth: int | None = None,
) -> str:
    """Render comment nodes and their loaded replies as indented markdown.

    Args:
        nodes: Top-level nodes, in display order.
        collapsed: Ids whose replies are hidden.
        max_depth: Max reply levels below the top level to include (None = unlimited).

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    out = io.StringIO()
    todo: list[tuple[CommentNode, int]] = [(n, 0) for n in nodes]
    while todo:
        node, depth = todo.pop(0)
        indent = "    " * depth
        comment = node.comment

        out.write(f"{indent}- **{comment.author}** {comment.relative_time}\n")
        for line in comment.rendered_text.split("\n"):
            out.write(f"{indent}  {line}\n" if line else "\n")

        if node.load_error:
            out.write(f"{indent}  > {node.load_error}\n")

        reply_count = len(comment.child_ids)
        hidden = node.id in collapsed or (max_depth is not None and depth >= max_depth)
        if reply_count and (hidden or not node.has_loaded_children):
            noun = "reply" if reply_count == 1 else "replies"
            out.write(f"{indent}    - ... ({reply_count} {noun}, id={node.id})\n")
            continue

        todo = [(child, depth + 1) for child in node.children] + todo

    return out.getvalue()
