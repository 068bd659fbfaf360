import pytest

from winkdown.core.editor import Editor
from winkdown.core.models import CellBorder, Point, paragraph
from winkdown.core.serialization import node_to_dict
from winkdown.core.services.undo_service import UndoService


@pytest.fixture
def editor():
    editor = Editor([paragraph("a")])
    editor.move_cursor_to_end((0,))
    return editor


@pytest.fixture
def service():
    return UndoService(max_history=3)


def _text(editor):
    return editor.string((0,))


def test_undo_redo_restores_text_and_cursor(editor, undo_service):
    undo_service.push_snapshot(editor)
    editor.insert_text("b")
    undo_service.push_snapshot(editor)

    assert undo_service.can_undo()
    assert not undo_service.can_redo()
    assert undo_service.undo(editor)
    assert _text(editor) == "a"
    assert editor.selection.anchor == Point((0, 0), 1)

    assert undo_service.can_redo()
    assert undo_service.redo(editor)
    assert _text(editor) == "ab"
    assert editor.selection.anchor == Point((0, 0), 2)


def test_undo_needs_a_baseline(editor, undo_service):
    assert not undo_service.undo(editor)
    undo_service.push_snapshot(editor)
    assert not undo_service.can_undo()
    assert not undo_service.undo(editor)
    assert not undo_service.redo(editor)


def test_push_clears_redo(editor, undo_service):
    undo_service.push_snapshot(editor)
    editor.insert_text("b")
    undo_service.push_snapshot(editor)
    undo_service.undo(editor)
    editor.insert_text("c")
    undo_service.push_snapshot(editor)
    assert not undo_service.can_redo()
    assert not undo_service.redo(editor)


def test_identical_snapshot_is_not_pushed_twice(editor, undo_service):
    assert undo_service.push_snapshot(editor)
    assert not undo_service.push_snapshot(editor)
    assert not undo_service.can_undo()


def test_max_history_trims_oldest(editor, service):
    for char in "bcde":
        service.push_snapshot(editor)
        editor.insert_text(char)
    service.push_snapshot(editor)  # "abcde"

    undone = 0
    while service.undo(editor):
        undone += 1
    assert undone == 2
    assert _text(editor) == "abc"


def test_snapshot_is_isolated_from_later_edits(editor, undo_service):
    undo_service.push_snapshot(editor)
    editor.node((0, 0)).text = "mutated in place"
    editor.insert_text("!")
    undo_service.push_snapshot(editor)
    undo_service.undo(editor)
    assert _text(editor) == "a"


def test_table_attributes_survive_round_trip(make_editor, undo_service):
    editor = make_editor([[("a", 2, 1), "b"], ["c"]], cursor=(1, 0, 1))
    cell = editor.node((1, 0, 1))
    cell.background = "#eef"
    cell.align = "right"
    cell.borders = {"top": CellBorder(2, "dashed", "#123")}
    before = [node_to_dict(block) for block in editor.children]

    undo_service.push_snapshot(editor)
    editor.remove_node((1,))
    undo_service.push_snapshot(editor)
    assert undo_service.undo(editor)
    assert [node_to_dict(block) for block in editor.children] == before


def test_clear(editor, undo_service):
    undo_service.push_snapshot(editor)
    editor.insert_text("b")
    undo_service.push_snapshot(editor)
    undo_service.clear()
    assert not undo_service.can_undo()
    assert not undo_service.can_redo()
