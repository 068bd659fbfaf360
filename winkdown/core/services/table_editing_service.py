from __future__ import annotations

"""Service layer for structural edits on tables.

This module provides a UI-agnostic, testable service that encapsulates the
table operations exposed to toolbars and context menus: inserting and deleting
rows and columns, merging a rectangular cell selection, splitting a merged
cell, and setting column widths and cell attributes.

Scope and guarantees:
- Operates purely in-memory through the :class:`~winkdown.core.editor.Editor`
  primitives, no I/O nor UI imports.
- Invalid context (no table under the cursor, no multi-cell selection, a
  selection that is not a clean rectangle) returns
  ``OperationResult(success=False, ...)`` and never mutates the document.
- Structural operations are atomic: they are computed on a copy of the table,
  the resulting grid is validated, then the copy replaces the table in a
  single edit.
- A table whose rows and cells do not form a valid grid raises
  :class:`~winkdown.core.exceptions.GridIntegrityError`; corruption is never
  reported as a declined operation.

Examples
--------
Basic usage:

    service = TableEditingService(editor, selection_manager)
    result = service.insert_row(above=False)
    if not result.success:
        print(result.message)

"""

import copy
from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional, Sequence, Set

from winkdown.config import ConfigManager
from winkdown.core.editor import Editor
from winkdown.core.grid import CellRect, TableGrid, resolve_grid
from winkdown.core.models import (
    ALIGNMENTS,
    BORDER_EDGES,
    CellBorder,
    Paragraph,
    Point,
    Range,
    Table,
    TableCell,
    TableRow,
    Text,
    node_string,
)
from winkdown.core.paths import Path, is_ancestor
from winkdown.core.selection import TableSelectionManager, classify_selection

__all__ = ["OperationResult", "TableEditingService", "build_table"]

logger = logging.getLogger(__name__)

DEFAULT_COL_WIDTH = 150
FALLBACK_COL_WIDTH = 150
DEFAULT_ROWS = 3
DEFAULT_COLS = 3


@dataclass(frozen=True)
class OperationResult:
    """Result of a table editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class _Placement:
    """A cell of a working table copy together with its grid position."""
    cell: TableCell
    row: int
    col: int


@dataclass
class _TableContext:
    table_path: Path
    table: Table
    cell_path: Path
    grid: TableGrid
    selection: Optional[Range] = None

    @property
    def rect(self) -> CellRect:
        return self.grid.rect_of(self.cell_path)


def build_table(row_count: int, col_count: int, col_width: int = DEFAULT_COL_WIDTH) -> Table:
    """Return a fresh table of plain cells with uniform column widths."""
    return Table(
        col_sizes=[col_width] * col_count,
        children=[TableRow(children=[TableCell() for _ in range(col_count)]) for _ in range(row_count)],
    )


class TableEditingService:
    """Encapsulates structural edit operations on tables.

    Operations act on the table containing the cursor, falling back to the
    table of the active cell selection when the cursor is elsewhere.

    Parameters
    ----------
    editor
        Editor owning the document.
    selection_manager
        Cell selection of the same editor; consulted by merge and attribute
        operations and cleared after every structural change.
    config
        Optional ``table`` configuration section; defaults to the values
        loaded by :class:`~winkdown.config.ConfigManager`.
    """

    def __init__(self, editor: Editor, selection_manager: TableSelectionManager,
                 config: Optional[Dict[str, Any]] = None) -> None:
        self._editor = editor
        self._selection = selection_manager
        cfg = config if config is not None else ConfigManager().get_table_config()
        self._default_col_width = int(cfg.get("default_col_width", DEFAULT_COL_WIDTH))
        self._fallback_col_width = int(cfg.get("fallback_col_width", FALLBACK_COL_WIDTH))
        self._default_rows = int(cfg.get("default_rows", DEFAULT_ROWS))
        self._default_cols = int(cfg.get("default_cols", DEFAULT_COLS))

    # -------------------------------------------------------------------------
    # Queries for UI affordances
    # -------------------------------------------------------------------------

    def is_in_table(self) -> bool:
        return self._locate_cell() is not None

    def current_cell(self) -> Optional[Path]:
        return self._locate_cell()

    def can_merge(self) -> bool:
        return self._selection.has_selection() and self._selection.is_clean_rectangle()

    def can_split(self) -> bool:
        cell_path = self._locate_cell()
        if cell_path is None:
            return False
        return not self._editor.node(cell_path).is_plain

    # -------------------------------------------------------------------------
    # Whole tables
    # -------------------------------------------------------------------------

    def insert_table(self, row_count: Optional[int] = None, col_count: Optional[int] = None,
                     col_width: Optional[int] = None) -> OperationResult:
        """Insert a ``row_count`` x ``col_count`` table at the cursor.

        Omitted dimensions come from the ``table`` configuration. An empty
        paragraph under the cursor is replaced by the table; otherwise the
        table goes right after the top-level block holding the cursor (or at
        the end of the document without a cursor). The cursor moves into the
        first cell.
        """
        row_count = int(row_count if row_count is not None else self._default_rows)
        col_count = int(col_count if col_count is not None else self._default_cols)
        logger.info("Edit: insert_table rows=%s cols=%s", row_count, col_count)
        if row_count < 1 or col_count < 1:
            logger.info("Edit noop: insert_table invalid_size")
            return OperationResult(False, "A table needs at least one row and one column.",
                                   {"rows": row_count, "cols": col_count})
        width = int(col_width) if col_width is not None else self._default_col_width
        if width <= 0:
            return OperationResult(False, "Column width must be positive.", {"col_width": col_width})

        table = build_table(row_count, col_count, width)
        editor = self._editor
        if editor.selection is None:
            at: Path = (len(editor.children),)
            editor.insert_node(table, at)
        else:
            top = editor.selection.anchor.path[0]
            current = editor.node((top,))
            if isinstance(current, Paragraph) and node_string(current) == "":
                at = (top,)
                editor.replace_node(at, table)
            else:
                at = (top + 1,)
                editor.insert_node(table, at)
        if at[0] == len(editor.children) - 1:
            editor.insert_node(Paragraph(), (at[0] + 1,))
        editor.move_cursor_to_start(at + (0, 0))
        self._selection.clear_selection()
        logger.info("Edit OK: insert_table path=%s", list(at))
        return OperationResult(True, "Inserted table.", {"table_path": list(at), "rows": row_count, "cols": col_count})

    def delete_table(self) -> OperationResult:
        logger.info("Edit: delete_table")
        cell_path = self._locate_cell()
        if cell_path is None:
            logger.info("Edit noop: delete_table no_table")
            return OperationResult(False, "Cursor is not inside a table.")
        table_path = cell_path[:-2]
        self._remove_table(table_path)
        logger.info("Edit OK: delete_table path=%s", list(table_path))
        return OperationResult(True, "Deleted table.", {"table_path": list(table_path)})

    # -------------------------------------------------------------------------
    # Rows and columns
    # -------------------------------------------------------------------------

    def insert_row(self, above: bool = True) -> OperationResult:
        """Insert a grid row above or below the cursor's cell region.

        Regions crossing the insertion boundary grow by one row instead of
        receiving a new cell; every other column gets a new plain cell.
        """
        logger.info("Edit: insert_row above=%s", above)
        ctx = self._table_context()
        if ctx is None:
            logger.info("Edit noop: insert_row no_table")
            return OperationResult(False, "Cursor is not inside a table.")

        rect = ctx.rect
        boundary = rect.row if above else rect.bottom
        work, placements, cursor_cell = self._working_copy(ctx)
        grown_cols = set()
        for p in placements:
            if p.row < boundary < p.row + p.cell.row_span:
                p.cell.row_span += 1
                grown_cols.update(range(p.col, p.col + p.cell.col_span))
            elif p.row >= boundary:
                p.row += 1
        for col in range(ctx.grid.col_count):
            if col not in grown_cols:
                placements.append(_Placement(self._new_cell(), boundary, col))

        _materialize(work, placements, ctx.grid.row_count + 1)
        self._commit(ctx, work)
        self._restore_cursor(ctx, work, cursor_cell)
        logger.info("Edit OK: insert_row index=%d grown=%d", boundary, len(grown_cols))
        return OperationResult(True, "Inserted row.", {"row_index": boundary, "grown_columns": sorted(grown_cols)})

    def insert_column(self, before: bool = True) -> OperationResult:
        """Insert a grid column left or right of the cursor's cell region."""
        logger.info("Edit: insert_column before=%s", before)
        ctx = self._table_context()
        if ctx is None:
            logger.info("Edit noop: insert_column no_table")
            return OperationResult(False, "Cursor is not inside a table.")

        rect = ctx.rect
        boundary = rect.col if before else rect.right
        work, placements, cursor_cell = self._working_copy(ctx)
        grown_rows = set()
        for p in placements:
            if p.col < boundary < p.col + p.cell.col_span:
                p.cell.col_span += 1
                grown_rows.update(range(p.row, p.row + p.cell.row_span))
            elif p.col >= boundary:
                p.col += 1
        for row in range(ctx.grid.row_count):
            if row not in grown_rows:
                placements.append(_Placement(self._new_cell(), row, boundary))

        sizes = work.col_sizes
        width = sizes[rect.col] if rect.col < len(sizes) else self._fallback_col_width
        sizes.insert(boundary, width)
        _materialize(work, placements, ctx.grid.row_count)
        self._commit(ctx, work)
        self._restore_cursor(ctx, work, cursor_cell)
        logger.info("Edit OK: insert_column index=%d width=%d", boundary, width)
        return OperationResult(True, "Inserted column.", {"col_index": boundary, "width": width})

    def delete_row(self) -> OperationResult:
        """Remove the grid row on which the cursor's cell region starts.

        Single-row regions on that line disappear; taller regions shrink by
        one row and, when anchored on the removed line, are re-anchored on the
        next row. Removing the only row deletes the table.
        """
        logger.info("Edit: delete_row")
        ctx = self._table_context()
        if ctx is None:
            logger.info("Edit noop: delete_row no_table")
            return OperationResult(False, "Cursor is not inside a table.")
        if ctx.grid.row_count <= 1:
            self._remove_table(ctx.table_path)
            logger.info("Edit OK: delete_row removed_table path=%s", list(ctx.table_path))
            return OperationResult(True, "Deleted last row and its table.", {"table_removed": True})

        rect = ctx.rect
        line = rect.row
        work, placements, _ = self._working_copy(ctx)
        had_cells = {p.row - (p.row > line) for p in placements if p.row != line}
        kept: List[_Placement] = []
        for p in placements:
            if p.row <= line < p.row + p.cell.row_span:
                if p.cell.row_span == 1:
                    continue
                p.cell.row_span -= 1
            elif p.row > line:
                p.row -= 1
            kept.append(p)

        row_count = _drop_emptied_rows(kept, ctx.grid.row_count - 1, had_cells)
        if row_count == 0:
            self._remove_table(ctx.table_path)
            return OperationResult(True, "Deleted last row and its table.", {"table_removed": True})
        _materialize(work, kept, row_count)
        new_grid = self._commit(ctx, work)
        self._cursor_to_position(ctx.table_path, new_grid, min(line, row_count - 1), rect.col)
        logger.info("Edit OK: delete_row index=%d rows=%d", line, row_count)
        return OperationResult(True, "Deleted row.", {"row_index": line, "table_removed": False})

    def delete_column(self) -> OperationResult:
        """Remove the grid column on which the cursor's cell region starts."""
        logger.info("Edit: delete_column")
        ctx = self._table_context()
        if ctx is None:
            logger.info("Edit noop: delete_column no_table")
            return OperationResult(False, "Cursor is not inside a table.")
        if ctx.grid.col_count <= 1:
            self._remove_table(ctx.table_path)
            logger.info("Edit OK: delete_column removed_table path=%s", list(ctx.table_path))
            return OperationResult(True, "Deleted last column and its table.", {"table_removed": True})

        rect = ctx.rect
        line = rect.col
        work, placements, _ = self._working_copy(ctx)
        had_cells = {p.row for p in placements}
        kept: List[_Placement] = []
        for p in placements:
            if p.col <= line < p.col + p.cell.col_span:
                if p.cell.col_span == 1:
                    continue
                p.cell.col_span -= 1
            elif p.col > line:
                p.col -= 1
            kept.append(p)

        if line < len(work.col_sizes):
            work.col_sizes.pop(line)
        row_count = _drop_emptied_rows(kept, ctx.grid.row_count, had_cells)
        if row_count == 0:
            self._remove_table(ctx.table_path)
            return OperationResult(True, "Deleted last column and its table.", {"table_removed": True})
        _materialize(work, kept, row_count)
        new_grid = self._commit(ctx, work)
        self._cursor_to_position(ctx.table_path, new_grid, rect.row, min(line, new_grid.col_count - 1))
        logger.info("Edit OK: delete_column index=%d cols=%d", line, new_grid.col_count)
        return OperationResult(True, "Deleted column.", {"col_index": line, "table_removed": False})

    # -------------------------------------------------------------------------
    # Merge and split
    # -------------------------------------------------------------------------

    def merge_cells(self, cells: Optional[Sequence[Sequence[int]]] = None) -> OperationResult:
        """Merge the selected cells into the top-left one.

        Parameters
        ----------
        cells
            Explicit anchor cell paths; defaults to the selection manager's
            selected cells. The cells must exactly tile a rectangle.

        The surviving anchor receives the rectangle's spans and the content of
        the other non-empty cells appended in reading order. Row nodes left
        without cells stay as grid lines covered by the merged region.
        """
        if cells is None:
            if not self._selection.has_selection():
                logger.info("Edit noop: merge_cells no_selection")
                return OperationResult(False, "Select at least two cells to merge.")
            paths = self._selection.selected_cells()
        else:
            paths = [tuple(p) for p in cells]
        paths = list(dict.fromkeys(paths))
        logger.info("Edit: merge_cells count=%d", len(paths))
        if len(paths) < 2:
            logger.info("Edit noop: merge_cells too_few_cells")
            return OperationResult(False, "Select at least two cells to merge.", {"count": len(paths)})

        table_path = paths[0][:-2]
        if any(p[:-2] != table_path for p in paths) or not self._editor.has_path(table_path):
            logger.info("Edit noop: merge_cells mixed_tables")
            return OperationResult(False, "Selected cells do not belong to one table.")
        table = self._editor.node(table_path)
        if not isinstance(table, Table):
            return OperationResult(False, "Selected cells do not belong to a table.")
        grid = resolve_grid(table, table_path)
        grid.validate()
        bounds = classify_selection(grid, paths)
        if bounds is None:
            logger.info("Edit noop: merge_cells not_rectangular")
            return OperationResult(False, "Selected cells do not form a rectangle.",
                                   {"cells": [list(p) for p in paths]})

        ctx = _TableContext(table_path, table, paths[0], grid)
        work, placements, _ = self._working_copy(ctx)
        selected = {p[-2:] for p in paths}
        local = {id(p.cell): key for key, p in self._placements_by_local_path(work, grid).items()}
        chosen = sorted((p for p in placements if local[id(p.cell)] in selected), key=lambda p: (p.row, p.col))
        anchor = chosen[0]

        blocks: List[Any] = []
        for p in chosen:
            if node_string(p.cell).strip():
                blocks.extend(p.cell.children)
        anchor.cell.children = blocks or anchor.cell.children
        anchor.cell.row_span = bounds.row_span
        anchor.cell.col_span = bounds.col_span

        survivors = [p for p in placements if p is anchor or local[id(p.cell)] not in selected]
        _materialize(work, survivors, grid.row_count)
        self._commit(ctx, work)
        anchor_path = _find_cell_path(work, anchor.cell, table_path)
        self._editor.move_cursor_to_start(anchor_path)
        logger.info("Edit OK: merge_cells rect=%s", bounds)
        return OperationResult(True, "Merged cells.", {
            "anchor_path": list(anchor_path),
            "row_span": bounds.row_span,
            "col_span": bounds.col_span,
        })

    def split_cell(self) -> OperationResult:
        """Split the merged cell under the cursor back into plain cells.

        The original content stays in the top-left cell; every other position
        of the freed region receives a new empty cell.
        """
        logger.info("Edit: split_cell")
        ctx = self._table_context()
        if ctx is None:
            logger.info("Edit noop: split_cell no_table")
            return OperationResult(False, "Cursor is not inside a table.")
        rect = ctx.rect
        if rect.area == 1:
            logger.info("Edit noop: split_cell not_merged")
            return OperationResult(False, "Cell is not merged.")

        work, placements, cursor_cell = self._working_copy(ctx)
        cursor_cell.row_span = 1
        cursor_cell.col_span = 1
        for row, col in rect.positions():
            if (row, col) != (rect.row, rect.col):
                placements.append(_Placement(self._new_cell(), row, col))
        _materialize(work, placements, ctx.grid.row_count)
        self._commit(ctx, work)
        self._restore_cursor(ctx, work, cursor_cell)
        logger.info("Edit OK: split_cell rect=%s", rect)
        return OperationResult(True, "Split cell.", {"created": rect.area - 1})

    # -------------------------------------------------------------------------
    # Widths and cell attributes
    # -------------------------------------------------------------------------

    def set_column_width(self, index: int, px: int) -> OperationResult:
        logger.info("Edit: set_column_width index=%s px=%s", index, px)
        cell_path = self._locate_cell()
        if cell_path is None:
            logger.info("Edit noop: set_column_width no_table")
            return OperationResult(False, "Cursor is not inside a table.")
        table_path = cell_path[:-2]
        table = self._editor.node(table_path)
        if not 0 <= index < len(table.col_sizes):
            logger.info("Edit noop: set_column_width out_of_range")
            return OperationResult(False, "Column index out of range.",
                                   {"index": index, "columns": len(table.col_sizes)})
        if px <= 0:
            return OperationResult(False, "Column width must be positive.", {"px": px})
        sizes = list(table.col_sizes)
        sizes[index] = int(px)
        self._editor.set_node_properties(table_path, col_sizes=sizes)
        logger.info("Edit OK: set_column_width index=%d px=%d", index, px)
        return OperationResult(True, "Set column width.", {"index": index, "px": int(px)})

    def set_cell_align(self, value: Optional[str]) -> OperationResult:
        if value is not None and value not in ALIGNMENTS:
            return OperationResult(False, f"Unknown alignment '{value}'.", {"allowed": list(ALIGNMENTS)})
        return self._apply_to_cells("set_cell_align", align=value)

    def set_cell_background(self, color: Optional[str]) -> OperationResult:
        return self._apply_to_cells("set_cell_background", background=color or None)

    def set_cell_borders(self, border: Optional[CellBorder],
                         edges: Sequence[str] = BORDER_EDGES) -> OperationResult:
        """Set (or clear, with ``border=None``) the given edges on target cells."""
        unknown = [e for e in edges if e not in BORDER_EDGES]
        if unknown or not edges:
            return OperationResult(False, "Unknown border edge.", {"edges": list(edges)})
        targets = self._target_cells()
        if not targets:
            logger.info("Edit noop: set_cell_borders no_cells")
            return OperationResult(False, "No table cell to update.")
        logger.info("Edit: set_cell_borders cells=%d edges=%s", len(targets), ",".join(edges))
        for path in targets:
            borders = dict(self._editor.node(path).borders or {})
            for edge in edges:
                if border is None:
                    borders.pop(edge, None)
                else:
                    borders[edge] = CellBorder(border.size, border.style, border.color)
            self._editor.set_node_properties(path, borders=borders or None)
        return OperationResult(True, "Updated cell borders.", {"count": len(targets)})

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply_to_cells(self, operation: str, **props: Any) -> OperationResult:
        targets = self._target_cells()
        if not targets:
            logger.info("Edit noop: %s no_cells", operation)
            return OperationResult(False, "No table cell to update.")
        logger.info("Edit: %s cells=%d", operation, len(targets))
        for path in targets:
            self._editor.set_node_properties(path, **props)
        return OperationResult(True, "Updated cells.", {"count": len(targets), **props})

    def _target_cells(self) -> List[Path]:
        """Selected cells when a multi-cell selection is active, else the cursor cell."""
        if self._selection.has_selection():
            paths = [p for p in self._selection.selected_cells()
                     if self._editor.has_path(p) and isinstance(self._editor.node(p), TableCell)]
            if paths:
                return paths
        cell_path = self._locate_cell()
        return [cell_path] if cell_path is not None else []

    def _locate_cell(self) -> Optional[Path]:
        """Return the cursor's cell path, or the selection anchor cell."""
        entry = self._editor.above(match=lambda n: isinstance(n, TableCell))
        if entry is not None and len(entry[1]) >= 3 and isinstance(self._editor.node(entry[1][:-2]), Table):
            return entry[1]
        anchor = self._selection.anchor_path
        if anchor is not None and self._editor.has_path(anchor) and isinstance(self._editor.node(anchor), TableCell):
            return anchor
        return None

    def _table_context(self) -> Optional[_TableContext]:
        cell_path = self._locate_cell()
        if cell_path is None:
            return None
        table_path = cell_path[:-2]
        table = self._editor.node(table_path)
        grid = resolve_grid(table, table_path)
        grid.validate()
        return _TableContext(table_path, table, cell_path, grid, self._editor.selection)

    def _working_copy(self, ctx: _TableContext):
        """Deep-copy the table and list its cells with their grid positions.

        Returns ``(work, placements, cursor_cell)`` where *cursor_cell* is the
        copy of the context cell.
        """
        work = copy.deepcopy(ctx.table)
        by_local = self._placements_by_local_path(work, ctx.grid)
        placements = list(by_local.values())
        cursor_cell = by_local[ctx.cell_path[-2:]].cell
        return work, placements, cursor_cell

    @staticmethod
    def _placements_by_local_path(work: Table, grid: TableGrid) -> Dict[Path, _Placement]:
        result: Dict[Path, _Placement] = {}
        for path in grid.anchors():
            row_index, cell_index = path[-2:]
            rect = grid.rect_of(path)
            result[(row_index, cell_index)] = _Placement(work.children[row_index].children[cell_index],
                                                         rect.row, rect.col)
        return result

    def _commit(self, ctx: _TableContext, work: Table) -> TableGrid:
        new_grid = resolve_grid(work, ctx.table_path)
        new_grid.validate()
        self._editor.replace_node(ctx.table_path, work)
        self._selection.clear_selection()
        return new_grid

    def _restore_cursor(self, ctx: _TableContext, work: Table, cell: TableCell) -> None:
        new_path = _find_cell_path(work, cell, ctx.table_path)
        selection = ctx.selection
        if selection is not None and is_ancestor(ctx.cell_path, selection.anchor.path):
            suffix = selection.anchor.path[len(ctx.cell_path):]
            candidate = new_path + suffix
            if self._editor.has_path(candidate):
                leaf = self._editor.node(candidate)
                if isinstance(leaf, Text) and selection.anchor.offset <= len(leaf.text):
                    self._editor.move_cursor(Point(candidate, selection.anchor.offset))
                    return
        self._editor.move_cursor_to_start(new_path)

    def _cursor_to_position(self, table_path: Path, grid: TableGrid, row: int, col: int) -> None:
        owner = grid.owner(max(0, row), max(0, min(col, grid.col_count - 1)))
        if owner is not None:
            self._editor.move_cursor_to_start(owner)

    def _remove_table(self, table_path: Path) -> None:
        editor = self._editor
        editor.remove_node(table_path)
        if not editor.children:
            editor.insert_node(Paragraph(), (0,))
        if editor.selection is None:
            index = min(table_path[-1], len(editor.parent(table_path).children) - 1)
            editor.move_cursor_to_start(table_path[:-1] + (max(index, 0),))
        self._selection.clear_selection()

    @staticmethod
    def _new_cell() -> TableCell:
        return TableCell(children=[Paragraph()])


def _materialize(work: Table, placements: Sequence[_Placement], row_count: int) -> None:
    """Rebuild *work*'s rows from placements, each row ordered left to right."""
    rows = [TableRow(children=[]) for _ in range(row_count)]
    for p in sorted(placements, key=lambda p: (p.row, p.col)):
        rows[p.row].children.append(p.cell)
    work.children = rows


def _drop_emptied_rows(placements: Sequence[_Placement], row_count: int, had_cells: Set[int]) -> int:
    """Remove rows that held a region start in *had_cells* but hold none now.

    Rows that were already covered-only stay; regions crossing a removed row
    shrink by one. Returns the new row count.
    """
    occupied = {p.row for p in placements}
    for row in sorted(had_cells - occupied, reverse=True):
        if row >= row_count:
            continue
        for p in placements:
            if p.row > row:
                p.row -= 1
            elif p.row < row < p.row + p.cell.row_span:
                p.cell.row_span -= 1
        row_count -= 1
    return row_count


def _find_cell_path(work: Table, cell: TableCell, table_path: Path) -> Path:
    for row_index, row in enumerate(work.children):
        for cell_index, candidate in enumerate(row.children):
            if candidate is cell:
                return tuple(table_path) + (row_index, cell_index)
    raise ValueError("Cell is not part of the working table")
