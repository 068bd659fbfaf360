import pytest

from winkdown.core.editor import Editor
from winkdown.core.exceptions import NodeNotFoundError
from winkdown.core.models import ListItem, Table, TableCell, TableRow, Text, paragraph
from winkdown.core.ordinals import ListOrdinalResolver, list_marker, list_ordinal


def _item(text, kind="ordered", indent=0):
    return ListItem(children=[Text(text)], kind=kind, indent=indent)


class TestListOrdinal:
    def test_insertion_renumbers_without_stored_counters(self):
        editor = Editor([_item("one"), _item("two"), _item("three")])
        assert [list_ordinal(editor, (i,)) for i in range(3)] == [1, 2, 3]

        editor.insert_node(_item("inserted"), (1,))
        assert [list_ordinal(editor, (i,)) for i in range(4)] == [1, 2, 3, 4]
        assert editor.string((1,)) == "inserted"

    def test_kind_and_indent_are_counted_separately(self):
        editor = Editor([
            _item("a"),
            _item("a.1", indent=1),
            _item("bullet", kind="unordered"),
            _item("a.2", indent=1),
            _item("b"),
        ])
        assert [list_ordinal(editor, (i,)) for i in range(5)] == [1, 1, 1, 2, 2]

    def test_other_blocks_do_not_reset_count(self):
        editor = Editor([_item("a"), paragraph("interlude"), _item("b")])
        assert list_ordinal(editor, (2,)) == 2

    def test_items_inside_table_cells_follow_document_order(self):
        cell = TableCell(children=[_item("in cell")])
        table = Table(children=[TableRow(children=[cell])], col_sizes=[100])
        editor = Editor([_item("first"), table, _item("last")])
        assert list_ordinal(editor, (1, 0, 0, 0)) == 2
        assert list_ordinal(editor, (2,)) == 3

    def test_lookup_by_node(self):
        target = _item("two")
        editor = Editor([_item("one"), target])
        assert list_ordinal(editor, target) == 2

    def test_errors(self):
        editor = Editor([_item("one"), paragraph("p")])
        with pytest.raises(NodeNotFoundError):
            list_ordinal(editor, _item("detached"))
        with pytest.raises(NodeNotFoundError):
            list_ordinal(editor, (1,))


class TestMarkers:
    def test_list_marker(self):
        assert list_marker(_item("x"), 3) == "3."
        assert list_marker(_item("x", kind="unordered"), 3) == "•"
        assert list_marker(_item("x", kind="unordered"), 1, bullet="-") == "-"

    def test_resolver_tracks_revisions(self):
        editor = Editor([_item("one"), _item("two")])
        resolver = ListOrdinalResolver(editor, bullet="-")
        assert resolver.ordinal((1,)) == 2
        assert resolver.marker((1,)) == "2."

        editor.insert_node(_item("zero"), (0,))
        assert resolver.ordinal((2,)) == 3

        editor.set_node_properties((2,), indent=1)
        assert resolver.ordinal((2,)) == 1

        editor.set_node_properties((2,), kind="unordered")
        assert resolver.marker((2,)) == "-"
