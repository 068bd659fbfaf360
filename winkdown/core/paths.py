from __future__ import annotations

"""Path helpers for addressing nodes in the document tree.

A path is a tuple of child indices starting at the document root, e.g.
``(2, 0, 1)`` is the second child of the first child of the third top-level
block. The empty tuple addresses the root itself.
"""

from typing import Sequence, Tuple

__all__ = [
    "Path",
    "path_equals",
    "path_compare",
    "is_ancestor",
    "is_before",
    "next_path",
    "previous_path",
    "parent_path",
]

Path = Tuple[int, ...]


def path_equals(a: Sequence[int], b: Sequence[int]) -> bool:
    return tuple(a) == tuple(b)


def path_compare(a: Sequence[int], b: Sequence[int]) -> int:
    """Compare two paths in document order.

    Returns -1 if *a* comes before *b*, 1 if after, 0 if *a* and *b* are equal
    or one is an ancestor of the other.
    """
    for x, y in zip(a, b):
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


def is_ancestor(ancestor: Sequence[int], path: Sequence[int]) -> bool:
    """Return True if *ancestor* is a strict ancestor of *path*."""
    return len(ancestor) < len(path) and tuple(path[: len(ancestor)]) == tuple(ancestor)


def is_before(a: Sequence[int], b: Sequence[int]) -> bool:
    return path_compare(a, b) == -1


def parent_path(path: Sequence[int]) -> Path:
    if not path:
        raise ValueError("The root path has no parent")
    return tuple(path[:-1])


def next_path(path: Sequence[int]) -> Path:
    if not path:
        raise ValueError("The root path has no sibling")
    return tuple(path[:-1]) + (path[-1] + 1,)


def previous_path(path: Sequence[int]) -> Path:
    if not path or path[-1] <= 0:
        raise ValueError(f"Path {list(path)} has no previous sibling")
    return tuple(path[:-1]) + (path[-1] - 1,)
