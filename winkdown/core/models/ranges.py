from __future__ import annotations

"""Cursor positions and ranges inside the document tree."""

from dataclasses import dataclass
from typing import Tuple

from winkdown.core.paths import Path, path_compare

__all__ = ["Point", "Range"]


@dataclass(frozen=True)
class Point:
    """A position inside a text leaf.

    Attributes
    ----------
    path
        Path of the :class:`~winkdown.core.models.Text` leaf.
    offset
        Character offset inside that leaf.
    """

    path: Path
    offset: int = 0

    def compare(self, other: "Point") -> int:
        result = path_compare(self.path, other.path)
        if result != 0:
            return result
        if self.offset < other.offset:
            return -1
        if self.offset > other.offset:
            return 1
        return 0


@dataclass(frozen=True)
class Range:
    """A document selection from *anchor* to *focus* (possibly backwards)."""

    anchor: Point
    focus: Point

    @classmethod
    def collapsed_at(cls, point: Point) -> "Range":
        return cls(point, point)

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus

    def edges(self) -> Tuple[Point, Point]:
        """Return ``(start, end)`` in document order."""
        if self.anchor.compare(self.focus) <= 0:
            return self.anchor, self.focus
        return self.focus, self.anchor
