"""Compose a flat comment list into a reply tree.

Comments only need ``id``, ``parent_comment_id`` and ``created_at``
attributes, so ORM rows and plain objects work alike. Every level is
ordered newest first. A comment whose parent is not part of the input (or
is itself unreachable) is never rendered.

Reply chains can be arbitrarily deep, so nothing here recurses on the
Python stack.
"""
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class CommentNode:
    """A comment placed in the tree at a given depth."""
    comment: Any
    depth: int = 0
    children: list['CommentNode'] = field(default_factory=list, repr=False)

    @property
    def id(self) -> int:
        return self.comment.id


def group_by_parent(comments: Sequence[Any]) -> dict[Any, list[Any]]:
    """Map parent id to its direct replies, newest first.

    ``list.sort`` stays stable with ``reverse=True``, so equal timestamps
    keep their input order.
    """
    groups: dict[Any, list[Any]] = {}
    for c in comments:
        groups.setdefault(c.parent_comment_id, []).append(c)
    for siblings in groups.values():
        siblings.sort(key=lambda c: c.created_at, reverse=True)
    return groups


def render_comments(
    comments: Sequence[Any],
    parent_id: int | None = None,
    depth: int = 0,
) -> list[CommentNode]:
    """Children of ``parent_id`` newest first, each with its own subtree."""
    groups = group_by_parent(comments)
    placed = set()

    def place(parent_key, child_depth: int) -> list[CommentNode]:
        nodes = []
        for c in groups.get(parent_key, ()):
            # a comment reached twice means a cycle or a duplicate row
            if c.id in placed:
                continue
            placed.add(c.id)
            nodes.append(CommentNode(comment=c, depth=child_depth))
        return nodes

    roots = place(parent_id, depth)
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.children = place(node.id, node.depth + 1)
        stack.extend(node.children)
    return roots


def iter_comments(nodes: Sequence[CommentNode]) -> Iterator[tuple[Any, int]]:
    """Depth-first walk yielding (comment, depth) in display order."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node.comment, node.depth
        stack.extend(reversed(node.children))


def count_rendered(nodes: Sequence[CommentNode]) -> int:
    return sum(1 for _ in iter_comments(nodes))
