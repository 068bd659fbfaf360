from __future__ import annotations

"""Rectangular cell selection inside a table.

The manager tracks a drag (or shift-click) selection from an anchor cell to a
focus cell. Every update re-resolves the table grid, takes the bounding
rectangle of both cells' regions and grows it until no merged region is only
partly inside (a *closed* rectangle). The cells whose regions lie inside that
rectangle are the selection.

One manager belongs to one editor session; it is not process-global, so
several editors can hold independent selections.
"""

from functools import reduce
import logging
from typing import Dict, List, Optional, Sequence

from winkdown.core.editor import Editor
from winkdown.core.exceptions import GridIntegrityError, NodeNotFoundError
from winkdown.core.grid import CellRect, TableGrid, resolve_grid
from winkdown.core.models import Table, TableCell
from winkdown.core.paths import Path

__all__ = ["TableSelectionManager", "expand_to_closed", "classify_selection"]

logger = logging.getLogger(__name__)


def expand_to_closed(grid: TableGrid, rect: CellRect) -> CellRect:
    """Grow *rect* until every region it touches lies entirely inside it.

    Repeats full passes over the grid's anchors until a pass produces no
    growth. The rectangle never shrinks and the grid is finite, so the loop
    terminates; a rectangle that is already closed is returned unchanged.
    """
    current = rect
    while True:
        grown = current
        for path in grid.anchors():
            region = grid.rect_of(path)
            if grown.intersects(region) and not grown.covers(region):
                grown = grown.union(region)
        if grown == current:
            return current
        current = grown


def classify_selection(grid: TableGrid, paths: Sequence[Sequence[int]]) -> Optional[CellRect]:
    """Return the bounding rectangle if *paths* exactly tile it, else None.

    Regions of a valid grid never overlap, so the anchors tile their bounding
    rectangle exactly when their areas add up to its area.
    """
    unique: List[Path] = list(dict.fromkeys(tuple(p) for p in paths))
    if not unique or not all(grid.contains_cell(p) for p in unique):
        return None
    rects = [grid.rect_of(p) for p in unique]
    bounds = reduce(CellRect.union, rects)
    if sum(r.area for r in rects) != bounds.area:
        return None
    return bounds


class TableSelectionManager:
    """Stateful rectangular cell selection for one editor.

    Parameters
    ----------
    editor
        The editor whose tables are selected. The manager follows its table
        and cells through later edits by node identity, and clears itself when
        they leave the document or the editor loses its document selection.
    """

    def __init__(self, editor: Editor) -> None:
        self._editor = editor
        self._table_path: Optional[Path] = None
        self._anchor: Optional[Path] = None
        self._focus: Optional[Path] = None
        # Tracked nodes; paths are re-derived from them after every edit.
        self._table: Optional[Table] = None
        self._anchor_cell: Optional[TableCell] = None
        self._focus_cell: Optional[TableCell] = None
        self._rect: Optional[CellRect] = None
        self._cells: List[Path] = []
        self._selecting = False
        editor.add_listener(self._on_editor_event)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start_selection(self, anchor_path: Sequence[int]) -> bool:
        """Begin selecting at the cell at *anchor_path*.

        Returns False (and leaves the manager cleared) when the path is not a
        table cell.
        """
        self.clear_selection()
        anchor = tuple(anchor_path)
        if not self._is_cell(anchor):
            logger.debug("Selection: start ignored, %s is not a table cell", list(anchor))
            return False
        self._table_path = anchor[:-2]
        self._anchor = anchor
        self._focus = anchor
        self._table = self._editor.node(self._table_path)
        self._anchor_cell = self._focus_cell = self._editor.node(anchor)
        self._selecting = True
        return self._recompute()

    def update_selection(self, focus_path: Sequence[int]) -> bool:
        """Move the focus corner while a selection is in progress."""
        if not self._selecting or self._table_path is None:
            return False
        focus = tuple(focus_path)
        if focus[:-2] != self._table_path or not self._is_cell(focus):
            return False
        if focus == self._focus:
            return True
        self._focus = focus
        self._focus_cell = self._editor.node(focus)
        return self._recompute()

    def end_selection(self) -> None:
        """Stop tracking pointer movement; the selected cells are kept."""
        self._selecting = False

    def clear_selection(self) -> None:
        self._table_path = None
        self._anchor = None
        self._focus = None
        self._table = None
        self._anchor_cell = None
        self._focus_cell = None
        self._rect = None
        self._cells = []
        self._selecting = False

    def has_selection(self) -> bool:
        """Return True when more than one cell is selected."""
        return len(self._cells) > 1

    def selected_cells(self) -> List[Path]:
        """Return selected anchor paths, top-to-bottom then left-to-right."""
        return list(self._cells)

    def is_selected(self, path: Sequence[int]) -> bool:
        return tuple(path) in self._cells

    def is_clean_rectangle(self) -> bool:
        """Return True if the selected cells exactly tile the selection rectangle."""
        if self._rect is None or self._table_path is None:
            return False
        grid = resolve_grid(self._editor.node(self._table_path), self._table_path)
        return classify_selection(grid, self._cells) == self._rect

    @property
    def is_selecting(self) -> bool:
        return self._selecting

    @property
    def table_path(self) -> Optional[Path]:
        return self._table_path

    @property
    def anchor_path(self) -> Optional[Path]:
        return self._anchor

    @property
    def focus_path(self) -> Optional[Path]:
        return self._focus

    @property
    def rect(self) -> Optional[CellRect]:
        return self._rect

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_editor_event(self, event: str, editor: Editor) -> None:
        if self._table is None:
            return
        if event == "selection" and editor.selection is None:
            logger.debug("Selection: cleared after document selection loss")
            self.clear_selection()
        elif event == "edit":
            self._follow_edit()

    def _follow_edit(self) -> None:
        """Re-derive the table and corner paths from the tracked nodes."""
        tracked = {id(self._table), id(self._anchor_cell), id(self._focus_cell)}
        found: Dict[int, Path] = {}
        for node, path in self._editor.nodes():
            if id(node) in tracked:
                found[id(node)] = path
        table_path = found.get(id(self._table))
        anchor = found.get(id(self._anchor_cell))
        focus = found.get(id(self._focus_cell))
        if (table_path is None or anchor is None or focus is None
                or anchor[:-2] != table_path or focus[:-2] != table_path):
            logger.debug("Selection: cleared, selected table or cells left the document")
            self.clear_selection()
            return
        self._table_path, self._anchor, self._focus = table_path, anchor, focus
        try:
            self._recompute()
        except GridIntegrityError:
            logger.debug("Selection: cleared, table grid is inconsistent after edit")
            self.clear_selection()

    def _is_cell(self, path: Path) -> bool:
        if len(path) < 3:
            return False
        try:
            return (isinstance(self._editor.node(path), TableCell)
                    and isinstance(self._editor.node(path[:-2]), Table))
        except NodeNotFoundError:
            return False

    def _recompute(self) -> bool:
        try:
            grid = resolve_grid(self._editor.node(self._table_path), self._table_path)
            bounds = grid.rect_of(self._anchor).union(grid.rect_of(self._focus))
        except NodeNotFoundError:
            logger.debug("Selection: stale cell path, clearing")
            self.clear_selection()
            return False
        self._rect = expand_to_closed(grid, bounds)
        self._cells = grid.anchors_within(self._rect)
        logger.debug("Selection: rect=%s cells=%d", self._rect, len(self._cells))
        return True
