"""Ordered, nested view of a flat comment set.

The projection is rebuilt from scratch after every change:
1. One pass indexes records by parent id (arena + index, no per-node filtering).
2. Roots and, at every depth, siblings are ordered pinned first, then newest
   first; equal keys keep their original relative order.
3. Nodes are expanded iteratively, so nesting depth is unbounded.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .models import Comment, CommentId, CommentNode


def build_children_index(
    comments: Iterable[Comment],
) -> dict[CommentId | None, list[Comment]]:
    """Map each parent id (None for roots) to its children, in input order."""
    index: dict[CommentId | None, list[Comment]] = defaultdict(list)
    for comment in comments:
        index[comment.parent_id].append(comment)
    return index


def order_siblings(comments: Iterable[Comment]) -> list[Comment]:
    """Pinned before unpinned, then newest first.

    ``sorted`` is stable even with ``reverse=True``, which matters because
    several comments can share a timestamp.
    """
    return sorted(comments, key=lambda c: (c.is_pinned, c.created_at), reverse=True)


@dataclass
class Projection:
    """The forest a renderer walks."""

    roots: list[CommentNode] = field(default_factory=list)
    # Records whose ancestor chain never reaches a root in the current set
    orphans: list[Comment] = field(default_factory=list)

    def walk(self) -> Iterator[CommentNode]:
        """Yield nodes depth-first in display order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.replies))

    def find(self, comment_id: CommentId) -> CommentNode | None:
        return next((n for n in self.walk() if n.id == comment_id), None)

    def ids(self) -> list[CommentId]:
        """Display order of every reachable comment."""
        return [n.id for n in self.walk()]

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())


def project_comments(comments: Iterable[Comment]) -> Projection:
    """Build the ordered forest from a flat set."""
    comments = list(comments)
    index = build_children_index(comments)

    roots = [CommentNode(comment=c) for c in order_siblings(index.get(None, []))]
    # Each record is placed at most once, which also stops duplicate-id cycles
    placed = {id(node.comment) for node in roots}

    stack = list(roots)
    while stack:
        node = stack.pop()
        for child in order_siblings(index.get(node.id, [])):
            if id(child) in placed:
                continue
            placed.add(id(child))
            child_node = CommentNode(comment=child, depth=node.depth + 1)
            node.replies.append(child_node)
            stack.append(child_node)

    orphans = [c for c in comments if id(c) not in placed]
    return Projection(roots=roots, orphans=orphans)
