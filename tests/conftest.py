"""Shared fixtures for the Winkdown test-suite.

Documents are built from compact literals so tests read like the grids they
exercise. A table literal is a list of rows; each cell is either a string
(plain 1x1 cell holding that text) or a ``(text, row_span, col_span)`` tuple.
"""

import logging
from typing import List, Sequence, Union

import pytest

from winkdown.config import ConfigManager
from winkdown.core.context import EditorSession
from winkdown.core.editor import Editor
from winkdown.core.grid import resolve_grid
from winkdown.core.models import Table, TableCell, TableRow, paragraph

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

CellLiteral = Union[str, tuple]


def build_table(rows: Sequence[Sequence[CellLiteral]], col_width: int = 100) -> Table:
    table_rows: List[TableRow] = []
    for row in rows:
        cells = []
        for literal in row:
            if isinstance(literal, tuple):
                text, row_span, col_span = literal
            else:
                text, row_span, col_span = literal, 1, 1
            cells.append(TableCell(children=[paragraph(text)], row_span=row_span, col_span=col_span))
        table_rows.append(TableRow(children=cells))
    table = Table(children=table_rows)
    table.col_sizes = [col_width] * resolve_grid(table).col_count
    return table


def grid_layout(editor: Editor, table_path=(1,)) -> List[List[str]]:
    """Return the text of the owning cell for every grid position."""
    grid = resolve_grid(editor.node(table_path), table_path)
    return [
        [editor.string(grid.owner(r, c)) for c in range(grid.col_count)]
        for r in range(grid.row_count)
    ]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty directory and reload config per test."""
    monkeypatch.setenv("WINKDOWN_CONFIG_DIR", str(tmp_path / "config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def make_table():
    return build_table


@pytest.fixture
def layout():
    return grid_layout


@pytest.fixture
def make_editor():
    """Factory: editor holding ``[before, table, after]``; the table sits at path (1,)."""
    def factory(rows: Sequence[Sequence[CellLiteral]], cursor=None) -> Editor:
        editor = Editor([paragraph("before"), build_table(rows), paragraph("after")])
        if cursor is not None:
            editor.move_cursor_to_start(tuple(cursor))
        return editor
    return factory


@pytest.fixture
def grid_3x3():
    return [
        ["a", "b", "c"],
        ["d", "e", "f"],
        ["g", "h", "i"],
    ]


@pytest.fixture
def session():
    return EditorSession()
