import pytest

from winkdown.core.grid import CellRect, resolve_grid
from winkdown.core.models import paragraph
from winkdown.core.selection import TableSelectionManager, classify_selection, expand_to_closed


@pytest.fixture
def editor_3x3(make_editor, grid_3x3):
    return make_editor(grid_3x3, cursor=(1, 0, 0))


@pytest.fixture
def manager(editor_3x3):
    return TableSelectionManager(editor_3x3)


class TestDragSelection:
    def test_rectangle_from_anchor_to_focus(self, manager):
        assert manager.start_selection((1, 0, 0))
        assert manager.update_selection((1, 1, 1))
        assert manager.rect == CellRect(0, 0, 2, 2)
        assert manager.selected_cells() == [(1, 0, 0), (1, 0, 1), (1, 1, 0), (1, 1, 1)]
        assert manager.has_selection()
        assert manager.is_clean_rectangle()

    def test_backwards_drag(self, manager):
        manager.start_selection((1, 2, 2))
        manager.update_selection((1, 1, 1))
        assert manager.rect == CellRect(1, 1, 2, 2)
        assert manager.selected_cells()[0] == (1, 1, 1)

    def test_single_cell_is_not_a_selection(self, manager):
        manager.start_selection((1, 1, 1))
        assert manager.selected_cells() == [(1, 1, 1)]
        assert not manager.has_selection()

    def test_start_outside_table(self, manager):
        assert not manager.start_selection((0,))
        assert manager.table_path is None
        assert not manager.has_selection()

    def test_update_requires_active_drag(self, manager):
        assert not manager.update_selection((1, 1, 1))
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 0, 1))
        manager.end_selection()
        assert not manager.is_selecting
        assert not manager.update_selection((1, 2, 2))
        assert manager.selected_cells() == [(1, 0, 0), (1, 0, 1)]

    def test_focus_in_other_table_is_ignored(self, make_editor, make_table, grid_3x3):
        editor = make_editor(grid_3x3)
        editor.insert_node(make_table([["x", "y"]]), (3,))
        manager = TableSelectionManager(editor)
        manager.start_selection((1, 0, 0))
        assert not manager.update_selection((3, 0, 1))
        assert manager.focus_path == (1, 0, 0)

    def test_cleared_when_editor_loses_selection(self, manager, editor_3x3):
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 2, 2))
        editor_3x3.deselect()
        assert manager.selected_cells() == []
        assert manager.rect is None

    def test_stale_focus_after_table_removed(self, manager, editor_3x3):
        manager.start_selection((1, 0, 0))
        editor_3x3.remove_node((1,))
        assert manager.table_path is None
        assert not manager.update_selection((1, 1, 1))

    def test_independent_managers(self, make_editor, grid_3x3):
        first = TableSelectionManager(make_editor(grid_3x3))
        second = TableSelectionManager(make_editor(grid_3x3))
        first.start_selection((1, 0, 0))
        first.update_selection((1, 0, 2))
        assert first.has_selection()
        assert not second.has_selection()


class TestFollowsEdits:
    def test_paths_shift_with_blocks_inserted_before_table(self, manager, editor_3x3):
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 1, 1))
        editor_3x3.insert_node(paragraph("new"), (0,))
        assert manager.table_path == (2,)
        assert (manager.anchor_path, manager.focus_path) == ((2, 0, 0), (2, 1, 1))
        assert manager.selected_cells() == [(2, 0, 0), (2, 0, 1), (2, 1, 0), (2, 1, 1)]
        assert manager.rect == CellRect(0, 0, 2, 2)
        assert manager.update_selection((2, 2, 2))
        assert manager.rect == CellRect(0, 0, 3, 3)

    def test_paragraph_join_before_table(self, make_editor, grid_3x3):
        editor = make_editor(grid_3x3)
        editor.insert_node(paragraph("p"), (1,))
        manager = TableSelectionManager(editor)
        manager.start_selection((2, 0, 0))
        manager.update_selection((2, 0, 1))
        editor.move_cursor_to_start((1,))
        editor.delete_backward()
        assert editor.string((0,)) == "beforep"
        assert manager.selected_cells() == [(1, 0, 0), (1, 0, 1)]

    def test_cleared_when_table_replaced(self, manager, editor_3x3, make_table):
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 0, 1))
        editor_3x3.replace_node((1,), make_table([["x", "y"]]))
        assert not manager.has_selection()
        assert manager.anchor_path is None

    def test_cleared_when_selected_cell_removed(self, manager, editor_3x3):
        manager.start_selection((1, 2, 0))
        manager.update_selection((1, 2, 2))
        editor_3x3.remove_node((1, 2))
        assert manager.selected_cells() == []

    def test_text_edit_inside_cell_keeps_selection(self, manager, editor_3x3):
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 0, 1))
        editor_3x3.move_cursor_to_end((1, 0, 0))
        editor_3x3.insert_text("x")
        assert manager.selected_cells() == [(1, 0, 0), (1, 0, 1)]


class TestClosedExpansion:
    @pytest.fixture
    def staggered(self, make_editor):
        # a spans columns 0-1 on row 0; d spans columns 1-2 on row 1
        return make_editor([
            [("a", 1, 2), "b"],
            ["c", ("d", 1, 2)],
        ])

    def test_partial_region_grows_rectangle(self, staggered):
        manager = TableSelectionManager(staggered)
        manager.start_selection((1, 0, 0))
        manager.update_selection((1, 1, 0))
        assert manager.rect == CellRect(0, 0, 2, 3)
        assert manager.selected_cells() == [(1, 0, 0), (1, 0, 1), (1, 1, 0), (1, 1, 1)]

    def test_expansion_is_idempotent(self, staggered):
        grid = resolve_grid(staggered.node((1,)), (1,))
        assert expand_to_closed(grid, CellRect(1, 0, 1, 2)) == CellRect(1, 0, 1, 3)
        once = expand_to_closed(grid, CellRect(0, 0, 2, 2))
        assert once == CellRect(0, 0, 2, 3)
        assert expand_to_closed(grid, once) == once

    def test_closed_rectangle_unchanged(self, editor_3x3):
        grid = resolve_grid(editor_3x3.node((1,)), (1,))
        rect = CellRect(0, 0, 2, 2)
        assert expand_to_closed(grid, rect) == rect


class TestClassifySelection:
    def test_rectangle(self, editor_3x3):
        grid = resolve_grid(editor_3x3.node((1,)), (1,))
        cells = [(1, 1, 1), (1, 1, 2), (1, 2, 1), (1, 2, 2)]
        assert classify_selection(grid, cells) == CellRect(1, 1, 2, 2)

    def test_l_shape(self, editor_3x3):
        grid = resolve_grid(editor_3x3.node((1,)), (1,))
        assert classify_selection(grid, [(1, 0, 0), (1, 0, 1), (1, 1, 0)]) is None

    def test_unknown_cell(self, editor_3x3):
        grid = resolve_grid(editor_3x3.node((1,)), (1,))
        assert classify_selection(grid, [(1, 0, 0), (1, 9, 9)]) is None
        assert classify_selection(grid, []) is None
