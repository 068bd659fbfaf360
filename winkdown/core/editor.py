from __future__ import annotations

"""Minimal editable-tree runtime the engine's services call into.

The :class:`Editor` owns the document's top-level blocks, the cursor/selection
and a revision counter. It provides the generic primitives services build on:
node lookup and enumeration, insertion, removal, replacement, property
updates, cursor movement, plain text editing inside a block and inline mark
toggling.

Every mutation bumps :attr:`Editor.revision` and notifies listeners with the
event name ``"edit"``; cursor changes notify ``"selection"``. Listeners receive
``(event, editor)``.

Primitives raise :class:`~winkdown.core.exceptions.NodeNotFoundError` for
paths that do not resolve; they never perform structural validation of
tables, which is the grid resolver's job.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from winkdown.core.exceptions import NodeNotFoundError
from winkdown.core.models import (
    MARKS,
    Element,
    Node,
    Paragraph,
    Point,
    Range,
    Text,
    TextBlock,
    convert_node,
    node_string,
)
from winkdown.core.paths import Path, is_ancestor, path_compare

__all__ = ["Editor", "NodeEntry"]

logger = logging.getLogger(__name__)

NodeEntry = Tuple[Node, Path]
Listener = Callable[[str, "Editor"], None]


class Editor:
    """Document tree plus cursor, with the primitive edit operations.

    Parameters
    ----------
    children
        Top-level blocks. An empty document gets a single empty paragraph.
    selection
        Initial selection, or None when the editor is not focused.
    """

    def __init__(self, children: Optional[List[Element]] = None,
                 selection: Optional[Range] = None) -> None:
        self.children: List[Node] = list(children) if children else [Paragraph()]
        self.selection: Optional[Range] = selection
        self.revision: int = 0
        self._pending_marks: Optional[Dict[str, bool]] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    def _touch(self) -> None:
        self.revision += 1
        self._emit("edit")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def node(self, path: Sequence[int]) -> Any:
        """Return the node at *path*; the empty path returns the editor itself."""
        current: Any = self
        for depth, index in enumerate(path):
            children = getattr(current, "children", None)
            if children is None or not 0 <= index < len(children):
                raise NodeNotFoundError("No node at path", tuple(path[: depth + 1]))
            current = children[index]
        return current

    def has_path(self, path: Sequence[int]) -> bool:
        try:
            self.node(path)
        except NodeNotFoundError:
            return False
        return True

    def parent(self, path: Sequence[int]) -> Any:
        if not path:
            raise NodeNotFoundError("The root has no parent", ())
        return self.node(path[:-1])

    def find_path(self, node: Node) -> Path:
        """Return the path of *node*, compared by identity."""
        for candidate, path in self.nodes():
            if candidate is node:
                return path
        raise NodeNotFoundError(f"Node {type(node).__name__} is not part of the document")

    def nodes(self, at: Sequence[int] = (), match: Optional[Callable[[Node], bool]] = None,
              reverse: bool = False) -> Iterator[NodeEntry]:
        """Iterate ``(node, path)`` pairs in document order below *at*.

        The node at *at* itself is included unless *at* is the root.
        """
        start = self.node(at)
        stack: List[NodeEntry] = []
        if at:
            stack.append((start, tuple(at)))
        else:
            children = list(enumerate(start.children))
            for index, child in children if reverse else reversed(children):
                stack.append((child, (index,)))
        while stack:
            node, path = stack.pop()
            if match is None or match(node):
                yield node, path
            if isinstance(node, Element):
                children = list(enumerate(node.children))
                for index, child in children if reverse else reversed(children):
                    stack.append((child, path + (index,)))

    def above(self, at: Optional[Sequence[int]] = None,
              match: Optional[Callable[[Node], bool]] = None,
              mode: str = "lowest") -> Optional[NodeEntry]:
        """Return the closest (or highest) ancestor of *at* matching *match*.

        *at* defaults to the anchor of the current selection. The node at *at*
        itself is considered when it is an element.
        """
        if at is None:
            if self.selection is None:
                return None
            at = self.selection.anchor.path
        entries: List[NodeEntry] = []
        for depth in range(1, len(at) + 1):
            path = tuple(at[:depth])
            node = self.node(path)
            if isinstance(node, Element) and (match is None or match(node)):
                entries.append((node, path))
        if not entries:
            return None
        return entries[-1] if mode == "lowest" else entries[0]

    def block_above(self, at: Optional[Sequence[int]] = None) -> Optional[Tuple[TextBlock, Path]]:
        """Return the lowest text block containing *at* (default: the cursor)."""
        entry = self.above(at, match=lambda n: isinstance(n, TextBlock))
        return entry  # type: ignore[return-value]

    def string(self, path: Sequence[int]) -> str:
        return node_string(self.node(path))

    def leaves(self, at: Sequence[int] = ()) -> List[Tuple[Text, Path]]:
        return [(n, p) for n, p in self.nodes(at, match=lambda n: isinstance(n, Text))]  # type: ignore[misc]

    def start(self, path: Sequence[int]) -> Point:
        """Return the first position inside the node at *path*."""
        leaves = self.leaves(path)
        if not leaves:
            raise NodeNotFoundError("Node holds no text", tuple(path))
        return Point(leaves[0][1], 0)

    def end(self, path: Sequence[int]) -> Point:
        leaves = self.leaves(path)
        if not leaves:
            raise NodeNotFoundError("Node holds no text", tuple(path))
        leaf, leaf_path = leaves[-1]
        return Point(leaf_path, len(leaf.text))

    def is_at_block_start(self) -> bool:
        """Return True when a collapsed cursor sits at offset 0 of its block."""
        if self.selection is None or not self.selection.is_collapsed:
            return False
        entry = self.block_above()
        if entry is None:
            return False
        return self.block_offset(entry[1], self.selection.anchor) == 0

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def select(self, selection: Optional[Range]) -> None:
        self.selection = selection
        self._pending_marks = None
        self._emit("selection")

    def move_cursor(self, point: Point) -> None:
        self.select(Range.collapsed_at(point))

    def move_cursor_to_start(self, path: Sequence[int]) -> None:
        self.move_cursor(self.start(path))

    def move_cursor_to_end(self, path: Sequence[int]) -> None:
        self.move_cursor(self.end(path))

    def deselect(self) -> None:
        self.select(None)

    # ------------------------------------------------------------------
    # Structural mutations
    # ------------------------------------------------------------------

    def insert_node(self, node: Node, at: Sequence[int]) -> Path:
        """Insert *node* so that it ends up at path *at*."""
        at = tuple(at)
        parent = self.parent(at)
        if not 0 <= at[-1] <= len(parent.children):
            raise NodeNotFoundError("Insertion index out of range", at)
        parent.children.insert(at[-1], node)
        self.selection = self._shift_selection(at, +1)
        self._touch()
        return at

    def remove_node(self, at: Sequence[int]) -> Node:
        """Remove and return the node at *at*.

        A cursor inside the removed node is relocated to the nearest
        surviving sibling, or cleared when none exists.
        """
        at = tuple(at)
        parent = self.parent(at)
        self.node(at)
        removed = parent.children.pop(at[-1])
        cursor_inside = self.selection is not None and (
            self._inside(at, self.selection.anchor.path) or self._inside(at, self.selection.focus.path)
        )
        if cursor_inside:
            self.selection = self._relocated_cursor(at)
            self._emit("selection")
        else:
            self.selection = self._shift_selection(at, -1)
        self._touch()
        return removed

    def replace_node(self, at: Sequence[int], node: Node) -> None:
        """Swap the node at *at* for *node* in a single edit."""
        at = tuple(at)
        parent = self.parent(at)
        self.node(at)
        parent.children[at[-1]] = node
        if self.selection is not None and not self._selection_resolves():
            self.selection = self._relocated_cursor(at)
            self._emit("selection")
        self._touch()

    def set_node_properties(self, path: Sequence[int], **props: Any) -> Node:
        """Update attributes of the node at *path*.

        A ``type`` property rebuilds the node as another registered variant
        while keeping its children. Unknown attributes raise ``ValueError``.
        """
        path = tuple(path)
        node = self.node(path)
        if not isinstance(node, Element):
            raise ValueError("set_node_properties only applies to elements")
        type_tag = props.pop("type", None)
        if type_tag is not None and type_tag != node.type:
            node = convert_node(node, type_tag, **props)
            self.parent(path).children[path[-1]] = node
        else:
            known = node.attributes()
            for key in props:
                if key not in known:
                    raise ValueError(f"{node.type} has no attribute {key!r}")
            # Building a throwaway variant runs its range checks; the node
            # itself is updated in place so references to it stay valid.
            convert_node(node, node.type, **props)
            for key, value in props.items():
                setattr(node, key, value)
        self._touch()
        return node

    def set_document(self, children: List[Node], selection: Optional[Range] = None) -> None:
        """Swap the whole document, e.g. when restoring a history snapshot.

        A *selection* that does not resolve in the new document is dropped.
        """
        self.children = list(children) if children else [Paragraph()]
        self.selection = selection
        if not self._selection_resolves():
            self.selection = None
        self._pending_marks = None
        self._emit("selection")
        self._touch()

    # ------------------------------------------------------------------
    # Text editing inside a block
    # ------------------------------------------------------------------

    def block_offset(self, block_path: Sequence[int], point: Point) -> int:
        """Translate *point* into a character offset relative to its block."""
        block = self.node(block_path)
        offset = 0
        for index, run in enumerate(block.children):
            if tuple(block_path) + (index,) == tuple(point.path):
                return offset + point.offset
            offset += len(run.text)
        raise NodeNotFoundError("Point is not inside block", tuple(point.path))

    def point_at(self, block_path: Sequence[int], offset: int) -> Point:
        """Inverse of :meth:`block_offset`; boundaries resolve to the earlier run."""
        block = self.node(block_path)
        consumed = 0
        for index, run in enumerate(block.children):
            if consumed + len(run.text) >= offset:
                return Point(tuple(block_path) + (index,), offset - consumed)
            consumed += len(run.text)
        last = len(block.children) - 1
        return Point(tuple(block_path) + (last,), len(block.children[last].text))

    def insert_text(self, text: str) -> None:
        """Insert *text* at the cursor, replacing an expanded selection."""
        if self.selection is None or not text:
            return
        if not self.selection.is_collapsed:
            self.delete_fragment()
        entry = self.block_above()
        if entry is None:
            return
        block, block_path = entry
        offset = self.block_offset(block_path, self.selection.anchor)
        marks = self.marks()
        runs = _split_runs(block.children, [offset])
        runs.insert(_run_index_at(runs, offset), Text(text, **marks))
        self._rewrite_runs(block_path, runs)
        self._pending_marks = None
        self.selection = Range.collapsed_at(self.point_at(block_path, offset + len(text)))
        self._touch()

    def delete_text(self, block_path: Sequence[int], start: int, end: int) -> None:
        """Delete characters ``[start, end)`` of the block at *block_path*."""
        if end <= start:
            return
        block = self.node(block_path)
        cursor = self._cursor_offset_in(block_path)
        runs = _split_runs(block.children, [start, end])
        kept: List[Text] = []
        position = 0
        for run in runs:
            run_end = position + len(run.text)
            if not (position >= start and run_end <= end) or not run.text:
                kept.append(run)
            position = run_end
        self._rewrite_runs(block_path, kept)
        if cursor is not None:
            if cursor >= end:
                cursor -= end - start
            elif cursor > start:
                cursor = start
            self.selection = Range.collapsed_at(self.point_at(block_path, cursor))
        self._touch()

    def delete_fragment(self) -> None:
        """Delete the content of an expanded selection within one block."""
        if self.selection is None or self.selection.is_collapsed:
            return
        start, end = self.selection.edges()
        start_block = self.block_above(start.path)
        end_block = self.block_above(end.path)
        if start_block is None or end_block is None:
            return
        if start_block[1] != end_block[1]:
            # Cross-block deletion is left to the host runtime.
            self.move_cursor(start)
            return
        block_path = start_block[1]
        lo = self.block_offset(block_path, start)
        hi = self.block_offset(block_path, end)
        self.selection = Range.collapsed_at(start)
        self.delete_text(block_path, lo, hi)

    def delete_backward(self) -> None:
        """Delete one character before the cursor, joining blocks at a start."""
        if self.selection is None:
            return
        if not self.selection.is_collapsed:
            self.delete_fragment()
            return
        entry = self.block_above()
        if entry is None:
            return
        block, block_path = entry
        offset = self.block_offset(block_path, self.selection.anchor)
        if offset > 0:
            self.delete_text(block_path, offset - 1, offset)
            return
        if block_path[-1] == 0:
            return
        previous_path = block_path[:-1] + (block_path[-1] - 1,)
        previous = self.node(previous_path)
        if not isinstance(previous, TextBlock):
            return
        join = len(previous.text())
        runs = list(previous.children) + list(block.children)
        self.parent(block_path).children.pop(block_path[-1])
        self._rewrite_runs(previous_path, runs)
        self.selection = Range.collapsed_at(self.point_at(previous_path, join))
        self._touch()

    def split_block(self, factory: Optional[Callable[[List[Text]], Element]] = None) -> Optional[Path]:
        """Split the text block at the cursor into two sibling blocks.

        The text after the cursor moves into a new block built by *factory*
        (default: a block of the same variant and attributes). The cursor
        moves to the start of the new block, whose path is returned.
        """
        if self.selection is None:
            return None
        if not self.selection.is_collapsed:
            self.delete_fragment()
        entry = self.block_above()
        if entry is None:
            return None
        block, block_path = entry
        offset = self.block_offset(block_path, self.selection.anchor)
        runs = _split_runs(block.children, [offset])
        cut = _run_index_at(runs, offset)
        head, tail = runs[:cut], runs[cut:]
        if not tail:
            tail = [Text(**(head[-1].marks() if head else {}))]
        tail = _normalize_runs(tail)
        if factory is None:
            attributes = block.attributes()
            # a fresh uid is generated for split list items
            attributes.pop("uid", None)
            new_block = type(block)(children=tail, **attributes)
        else:
            new_block = factory(tail)
        self._rewrite_runs(block_path, head)
        new_path = block_path[:-1] + (block_path[-1] + 1,)
        self.parent(block_path).children.insert(new_path[-1], new_block)
        self.selection = Range.collapsed_at(self.start(new_path))
        self._touch()
        return new_path

    # ------------------------------------------------------------------
    # Inline marks
    # ------------------------------------------------------------------

    def marks(self) -> Dict[str, bool]:
        """Return the marks that apply at the cursor (pending marks first)."""
        if self._pending_marks is not None:
            return dict(self._pending_marks)
        if self.selection is None:
            return {}
        start, _ = self.selection.edges()
        leaf = self.node(start.path)
        if not self.selection.is_collapsed and isinstance(leaf, Text) and start.offset == len(leaf.text):
            # an expanded range starting at a run boundary covers the next run
            following = start.path[:-1] + (start.path[-1] + 1,)
            if self.has_path(following):
                leaf = self.node(following)
        return leaf.marks() if isinstance(leaf, Text) else {}

    def is_mark_active(self, mark: str) -> bool:
        return self.marks().get(mark, False)

    def toggle_mark(self, mark: str) -> None:
        if self.is_mark_active(mark):
            self.remove_mark(mark)
        else:
            self.add_mark(mark)

    def add_mark(self, mark: str) -> None:
        self._set_mark(mark, True)

    def remove_mark(self, mark: str) -> None:
        self._set_mark(mark, False)

    def _set_mark(self, mark: str, value: bool) -> None:
        if mark not in MARKS:
            raise ValueError(f"Unknown mark {mark!r}")
        if self.selection is None:
            return
        if self.selection.is_collapsed:
            marks = self.marks()
            if value:
                marks[mark] = True
            else:
                marks.pop(mark, None)
            self._pending_marks = marks
            return

        start, end = self.selection.edges()
        start_block = self.block_above(start.path)
        end_block = self.block_above(end.path)
        if start_block is None or end_block is None:
            return
        anchor_block = self.block_above(self.selection.anchor.path)
        focus_block = self.block_above(self.selection.focus.path)
        anchor_offset = self.block_offset(anchor_block[1], self.selection.anchor)  # type: ignore[index]
        focus_offset = self.block_offset(focus_block[1], self.selection.focus)  # type: ignore[index]

        for block, block_path in list(self.nodes(match=lambda n: isinstance(n, TextBlock))):
            if path_compare(block_path, start_block[1]) < 0 or path_compare(block_path, end_block[1]) > 0:
                continue
            length = len(block.text())
            lo = self.block_offset(block_path, start) if block_path == start_block[1] else 0
            hi = self.block_offset(block_path, end) if block_path == end_block[1] else length
            runs = _split_runs(block.children, [lo, hi])
            position = 0
            updated: List[Text] = []
            for run in runs:
                run_end = position + len(run.text)
                if position >= lo and run_end <= hi and run.text:
                    run = Text(run.text, **{**run.marks(), mark: value})
                updated.append(run)
                position = run_end
            self._rewrite_runs(block_path, updated)

        self.selection = Range(
            self.point_at(anchor_block[1], anchor_offset),  # type: ignore[index]
            self.point_at(focus_block[1], focus_offset),  # type: ignore[index]
        )
        self._touch()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _inside(ancestor: Path, path: Sequence[int]) -> bool:
        return tuple(path) == ancestor or is_ancestor(ancestor, path)

    def _cursor_offset_in(self, block_path: Sequence[int]) -> Optional[int]:
        if self.selection is None or not self.selection.is_collapsed:
            return None
        if not is_ancestor(tuple(block_path), self.selection.anchor.path):
            return None
        return self.block_offset(block_path, self.selection.anchor)

    def _rewrite_runs(self, block_path: Sequence[int], runs: List[Text]) -> None:
        block = self.node(block_path)
        block.children = _normalize_runs(runs)

    def _selection_resolves(self) -> bool:
        if self.selection is None:
            return True
        for point in (self.selection.anchor, self.selection.focus):
            try:
                leaf = self.node(point.path)
            except NodeNotFoundError:
                return False
            if not isinstance(leaf, Text) or point.offset > len(leaf.text):
                return False
        return True

    def _shift_selection(self, at: Path, delta: int) -> Optional[Range]:
        if self.selection is None:
            return None

        def shift(point: Point) -> Point:
            path = point.path
            depth = len(at) - 1
            if len(path) > depth and tuple(path[:depth]) == at[:-1] and path[depth] >= at[-1]:
                if delta < 0 and path[depth] == at[-1]:
                    return point
                path = path[:depth] + (path[depth] + delta,) + path[depth + 1:]
            return Point(path, point.offset)

        return Range(shift(self.selection.anchor), shift(self.selection.focus))

    def _relocated_cursor(self, at: Path) -> Optional[Range]:
        parent = self.parent(at)
        candidates: List[Path] = []
        if at[-1] < len(parent.children):
            candidates.append(at)
        if at[-1] > 0:
            candidates.append(at[:-1] + (at[-1] - 1,))
        if at[:-1]:
            candidates.append(at[:-1])
        for path in candidates:
            try:
                return Range.collapsed_at(self.start(path))
            except NodeNotFoundError:
                continue
        return None


def _split_runs(runs: Sequence[Node], offsets: Sequence[int]) -> List[Text]:
    """Split text runs so that every offset in *offsets* is a run boundary."""
    cuts = sorted(set(offsets))
    result: List[Text] = []
    position = 0
    for run in runs:
        if not isinstance(run, Text):
            continue
        run_start = position
        run_end = position + len(run.text)
        pieces = [c - run_start for c in cuts if run_start < c < run_end]
        last = 0
        for piece in pieces:
            result.append(run.with_text(run.text[last:piece]))
            last = piece
        result.append(run.with_text(run.text[last:]))
        position = run_end
    return result


def _run_index_at(runs: Sequence[Text], offset: int) -> int:
    """Return the index of the first run starting at or after *offset*."""
    position = 0
    for index, run in enumerate(runs):
        if position >= offset:
            return index
        position += len(run.text)
    return len(runs)


def _normalize_runs(runs: Sequence[Text]) -> List[Node]:
    """Merge adjacent runs with identical marks and drop empty runs."""
    merged: List[Text] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].has_same_marks(run):
            merged[-1] = merged[-1].with_text(merged[-1].text + run.text)
        else:
            merged.append(run)
    if not merged:
        first = runs[0] if runs else Text()
        merged.append(Text("", **first.marks()))
    return list(merged)
