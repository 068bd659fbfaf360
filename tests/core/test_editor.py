import pytest

from winkdown.core.editor import Editor
from winkdown.core.exceptions import NodeNotFoundError
from winkdown.core.models import Heading, ListItem, Paragraph, Point, Range, TableCell, Text, paragraph
from winkdown.core.paths import is_ancestor, next_path, path_compare, previous_path


class TestPaths:
    def test_compare(self):
        assert path_compare((0, 1), (0, 2)) == -1
        assert path_compare((1,), (0, 5)) == 1
        assert path_compare((0,), (0, 3)) == 0

    def test_ancestry_and_siblings(self):
        assert is_ancestor((1,), (1, 0, 2))
        assert not is_ancestor((1,), (1,))
        assert next_path((2, 3)) == (2, 4)
        assert previous_path((2, 3)) == (2, 2)
        with pytest.raises(ValueError):
            previous_path((0,))


class TestQueries:
    def test_node_lookup(self):
        editor = Editor([paragraph("a"), paragraph("b")])
        assert editor.node(()) is editor
        assert editor.string((1,)) == "b"
        assert not editor.has_path((2,))
        with pytest.raises(NodeNotFoundError):
            editor.node((0, 4))

    def test_nodes_in_document_order(self, make_editor):
        editor = make_editor([["a", "b"]])
        paths = [path for _, path in editor.nodes(match=lambda n: isinstance(n, Text))]
        assert paths == [(0, 0), (1, 0, 0, 0, 0), (1, 0, 1, 0, 0), (2, 0)]
        reverse = [path for _, path in editor.nodes(match=lambda n: isinstance(n, Text), reverse=True)]
        assert reverse == list(reversed(paths))

    def test_above_modes(self, make_editor):
        editor = make_editor([["a"]], cursor=(1, 0, 0))
        assert editor.above(match=lambda n: isinstance(n, Paragraph))[1] == (1, 0, 0, 0)
        assert editor.above(mode="highest")[1] == (1,)
        assert editor.block_above()[1] == (1, 0, 0, 0)

    def test_find_path_by_identity(self):
        target = paragraph("same")
        editor = Editor([paragraph("same"), target])
        assert editor.find_path(target) == (1,)
        with pytest.raises(NodeNotFoundError):
            editor.find_path(paragraph("same"))


class TestStructuralEdits:
    def test_insert_shifts_cursor(self):
        editor = Editor([paragraph("a"), paragraph("b")])
        editor.move_cursor(Point((1, 0), 1))
        editor.insert_node(paragraph("new"), (0,))
        assert editor.selection.anchor == Point((2, 0), 1)
        assert editor.string((2,)) == "b"

    def test_remove_relocates_cursor(self):
        editor = Editor([paragraph("a"), paragraph("b")])
        editor.move_cursor(Point((0, 0), 1))
        editor.remove_node((0,))
        assert editor.selection.anchor == Point((0, 0), 0)
        assert editor.string((0,)) == "b"

    def test_remove_before_cursor_shifts_it_back(self):
        editor = Editor([paragraph("a"), paragraph("b")])
        editor.move_cursor(Point((1, 0), 1))
        editor.remove_node((0,))
        assert editor.selection.anchor == Point((0, 0), 1)

    def test_set_properties_and_convert(self):
        editor = Editor([ListItem(children=[Text("x")], kind="ordered", indent=3)])
        editor.set_node_properties((0,), indent=4)
        assert editor.node((0,)).indent == 4
        editor.set_node_properties((0,), type="heading", level=2)
        node = editor.node((0,))
        assert isinstance(node, Heading) and node.level == 2
        assert editor.string((0,)) == "x"
        with pytest.raises(ValueError):
            editor.set_node_properties((0,), indent=1)

    @pytest.mark.parametrize("node, props", [
        (ListItem(children=[Text("x")], kind="unordered", indent=2), {"indent": 11}),
        (ListItem(children=[Text("x")], kind="unordered", indent=2), {"kind": "numbered"}),
        (Heading(children=[Text("x")], level=2), {"level": 7}),
        (TableCell(), {"col_span": 0}),
        (TableCell(), {"align": "middle"}),
    ])
    def test_set_properties_validates_values(self, node, props):
        editor = Editor([node])
        before = dict(node.attributes())
        with pytest.raises(ValueError):
            editor.set_node_properties((0,), **props)
        assert editor.node((0,)) is node
        assert node.attributes() == before
        assert editor.revision == 0

    def test_set_properties_updates_in_place(self):
        item = ListItem(children=[Text("x")], kind="ordered", indent=0)
        editor = Editor([item])
        editor.set_node_properties((0,), indent=10, kind="unordered")
        assert editor.node((0,)) is item
        assert (item.indent, item.kind) == (10, "unordered")

    def test_revision_and_listeners(self):
        editor = Editor()
        events = []
        editor.add_listener(lambda event, ed: events.append(event))
        editor.move_cursor_to_start((0,))
        editor.insert_text("x")
        assert editor.revision == 1
        assert events == ["selection", "edit"]


class TestTextEditing:
    def test_insert_text_merges_runs(self):
        editor = Editor([paragraph("ac")])
        editor.move_cursor(Point((0, 0), 1))
        editor.insert_text("b")
        assert [run.text for run in editor.node((0,)).children] == ["abc"]
        assert editor.selection.anchor == Point((0, 0), 2)

    def test_delete_backward_within_and_across_blocks(self):
        editor = Editor([paragraph("ab"), paragraph("cd")])
        editor.move_cursor(Point((1, 0), 1))
        editor.delete_backward()
        assert editor.string((1,)) == "d"
        editor.delete_backward()
        assert len(editor.children) == 1
        assert editor.string((0,)) == "abd"
        assert editor.selection.anchor == Point((0, 0), 2)

    def test_split_keeps_variant(self):
        editor = Editor([Heading(children=[Text("TitleRest")], level=2)])
        editor.move_cursor(Point((0, 0), 5))
        assert editor.split_block() == (1,)
        assert [editor.string((i,)) for i in range(2)] == ["Title", "Rest"]
        assert editor.node((1,)).level == 2

    def test_split_list_item_gets_fresh_uid(self):
        editor = Editor([ListItem(children=[Text("ab")])])
        editor.move_cursor(Point((0, 0), 1))
        editor.split_block()
        assert editor.node((0,)).uid != editor.node((1,)).uid

    def test_mark_across_blocks(self):
        editor = Editor([paragraph("abc"), paragraph("def")])
        editor.select(Range(Point((0, 0), 1), Point((1, 0), 2)))
        editor.toggle_mark("bold")
        assert [(r.text, r.bold) for r in editor.node((0,)).children] == [("a", False), ("bc", True)]
        assert [(r.text, r.bold) for r in editor.node((1,)).children] == [("de", True), ("f", False)]
        assert editor.is_mark_active("bold")
        editor.toggle_mark("bold")
        assert [r.text for r in editor.node((0,)).children] == ["abc"]

    def test_unknown_mark(self):
        editor = Editor()
        with pytest.raises(ValueError):
            editor.add_mark("strike")
