from __future__ import annotations

"""Virtual occupancy grid of a table.

A table stores rows of materialized cells; a cell with ``row_span``/``col_span``
above one covers grid positions in later rows or columns that hold no cell of
their own. :func:`resolve_grid` derives, from the rows alone, which cell owns
every ``(row, col)`` position. The grid is never stored on the table: it is
recomputed whenever a caller needs it, so it can never drift from the tree.

Examples
--------
A 2x2 table whose first cell spans both rows::

    grid = resolve_grid(table, table_path=(0,))
    grid.owner(1, 0)       # -> (0, 0, 0), covered by the spanning cell
    grid.rect_of((0, 1, 0))  # -> CellRect(row=1, col=1, row_span=1, col_span=1)
"""

from dataclasses import dataclass
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from winkdown.core.exceptions import GridIntegrityError, NodeNotFoundError
from winkdown.core.models import Table, TableCell, TableRow
from winkdown.core.paths import Path

__all__ = ["CellRect", "GridSlot", "TableGrid", "resolve_grid"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellRect:
    """A rectangle of grid positions; ``bottom`` and ``right`` are exclusive."""

    row: int
    col: int
    row_span: int = 1
    col_span: int = 1

    @property
    def bottom(self) -> int:
        return self.row + self.row_span

    @property
    def right(self) -> int:
        return self.col + self.col_span

    @property
    def area(self) -> int:
        return self.row_span * self.col_span

    def contains(self, row: int, col: int) -> bool:
        return self.row <= row < self.bottom and self.col <= col < self.right

    def covers(self, other: "CellRect") -> bool:
        """Return True if *other* lies entirely inside this rectangle."""
        return (self.row <= other.row and other.bottom <= self.bottom
                and self.col <= other.col and other.right <= self.right)

    def intersects(self, other: "CellRect") -> bool:
        return (self.row < other.bottom and other.row < self.bottom
                and self.col < other.right and other.col < self.right)

    def union(self, other: "CellRect") -> "CellRect":
        row = min(self.row, other.row)
        col = min(self.col, other.col)
        return CellRect(row, col, max(self.bottom, other.bottom) - row, max(self.right, other.right) - col)

    def positions(self) -> Iterator[Tuple[int, int]]:
        for row in range(self.row, self.bottom):
            for col in range(self.col, self.right):
                yield row, col


@dataclass(frozen=True)
class GridSlot:
    """One grid position: the owning anchor and whether this is its top-left."""

    anchor: Path
    is_anchor: bool


class TableGrid:
    """Occupancy grid of one table, as produced by :func:`resolve_grid`."""

    def __init__(self, table_path: Path, slots: List[List[Optional[GridSlot]]],
                 rects: Dict[Path, CellRect], declared_cols: int, overflow: int) -> None:
        self.table_path = table_path
        self._slots = slots
        self._rects = rects
        self._declared_cols = declared_cols
        self._overflow = overflow

    @property
    def row_count(self) -> int:
        return len(self._slots)

    @property
    def col_count(self) -> int:
        return len(self._slots[0]) if self._slots else 0

    @property
    def bounds(self) -> CellRect:
        return CellRect(0, 0, self.row_count, self.col_count)

    def slot(self, row: int, col: int) -> Optional[GridSlot]:
        if not (0 <= row < self.row_count and 0 <= col < self.col_count):
            return None
        return self._slots[row][col]

    def owner(self, row: int, col: int) -> Optional[Path]:
        """Return the path of the anchor cell owning ``(row, col)``."""
        slot = self.slot(row, col)
        return slot.anchor if slot is not None else None

    cell_at = owner

    def rect_of(self, path: Sequence[int]) -> CellRect:
        try:
            return self._rects[tuple(path)]
        except KeyError:
            raise NodeNotFoundError("Path is not a cell of this table", tuple(path)) from None

    def contains_cell(self, path: Sequence[int]) -> bool:
        return tuple(path) in self._rects

    def anchors(self) -> List[Path]:
        """Return every anchor path in row-major order of its top-left corner."""
        return sorted(self._rects, key=lambda p: (self._rects[p].row, self._rects[p].col))

    def anchors_within(self, rect: CellRect) -> List[Path]:
        return [p for p in self.anchors() if rect.covers(self._rects[p])]

    def anchors_intersecting(self, rect: CellRect) -> List[Path]:
        return [p for p in self.anchors() if rect.intersects(self._rects[p])]

    def row_anchors(self, row: int) -> List[Path]:
        """Anchors whose region starts on *row*, left to right."""
        return [p for p in self.anchors() if self._rects[p].row == row]

    def is_partition(self) -> bool:
        try:
            self.validate()
        except GridIntegrityError:
            return False
        return True

    def validate(self, check_widths: bool = True) -> None:
        """Raise :class:`GridIntegrityError` unless the grid is a clean partition.

        Parameters
        ----------
        check_widths
            Also require ``len(col_sizes)`` to equal the column count.
        """
        if self._overflow:
            raise GridIntegrityError(
                f"Row spans extend {self._overflow} row(s) past the last row", self.table_path
            )
        for row, line in enumerate(self._slots):
            for col, slot in enumerate(line):
                if slot is None:
                    raise GridIntegrityError("Grid position owned by no cell", self.table_path, (row, col))
        if check_widths and self._declared_cols != self.col_count:
            raise GridIntegrityError(
                f"Table declares {self._declared_cols} column width(s) for {self.col_count} column(s)",
                self.table_path,
            )

    def __repr__(self) -> str:
        return f"TableGrid(path={list(self.table_path)}, rows={self.row_count}, cols={self.col_count})"


def resolve_grid(table: Table, table_path: Sequence[int] = (), strict: bool = False) -> TableGrid:
    """Compute the occupancy grid of *table*.

    Rows are walked top to bottom while a per-column carry remembers which
    anchor still occupies that column from an earlier row's ``row_span``.
    Within a row, carried columns are skipped; every other column consumes the
    next materialized cell. The input is never mutated.

    Parameters
    ----------
    table
        The table node.
    table_path
        Path of the table in the document; cell paths in the result are
        ``table_path + (row_index, cell_index)``.
    strict
        Reject rows reaching past ``len(table.col_sizes)`` columns.

    Raises
    ------
    GridIntegrityError
        On spans below one, overlapping regions, non-row or non-cell children,
        or (strict mode) rows wider than the declared column widths.
    """
    base = tuple(table_path)
    declared = len(table.col_sizes)
    lines: List[Dict[int, GridSlot]] = []
    rects: Dict[Path, CellRect] = {}
    carry: Dict[int, Tuple[Path, int]] = {}

    for r, row in enumerate(table.children):
        if not isinstance(row, TableRow):
            raise GridIntegrityError("Table child is not a row", base + (r,))
        line: Dict[int, GridSlot] = {c: GridSlot(anchor, False) for c, (anchor, _) in carry.items()}
        started: Dict[int, Tuple[Path, int]] = {}
        col = 0
        for i, cell in enumerate(row.children):
            path = base + (r, i)
            if not isinstance(cell, TableCell):
                raise GridIntegrityError("Row child is not a cell", path)
            if cell.col_span < 1 or cell.row_span < 1:
                raise GridIntegrityError(
                    f"Invalid span col_span={cell.col_span} row_span={cell.row_span}", path
                )
            while col in line:
                col += 1
            for c in range(col, col + cell.col_span):
                if c in line:
                    raise GridIntegrityError("Cell overlaps another region", path, (r, c))
                line[c] = GridSlot(path, c == col)
                if cell.row_span > 1:
                    started[c] = (path, cell.row_span - 1)
            rects[path] = CellRect(r, col, cell.row_span, cell.col_span)
            col += cell.col_span
            if strict and declared and col > declared:
                raise GridIntegrityError(
                    f"Row has more cells than the {declared} declared column(s)", path, (r, col - 1)
                )
        carry = {c: (anchor, left - 1) for c, (anchor, left) in carry.items() if left > 1}
        carry.update(started)
        lines.append(line)

    col_count = max((max(line) + 1 for line in lines if line), default=0)
    slots = [[line.get(c) for c in range(col_count)] for line in lines]
    overflow = max((left for _, left in carry.values()), default=0)
    if overflow:
        logger.debug("Grid: row spans overflow table at %s by %d row(s)", list(base), overflow)
    return TableGrid(base, slots, rects, declared, overflow)
