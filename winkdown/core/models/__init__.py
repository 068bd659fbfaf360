from __future__ import annotations

"""Document tree model shared across the editing engine.

This package exposes the node dataclasses the services operate on. It is
intentionally free of editing behaviour so the contained objects can be reused
in any context (unit-tests, serializers, front-ends).

Block variants form a closed set registered in :data:`NODE_TYPES`; every
variant carries a class-level ``type`` tag used for dispatch and
serialization.
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional, Type, Union
import uuid

from .ranges import Point, Range

__all__ = [
    "MARKS",
    "ALIGNMENTS",
    "BORDER_EDGES",
    "LIST_KINDS",
    "MAX_LIST_INDENT",
    "Text",
    "Element",
    "TextBlock",
    "Paragraph",
    "Heading",
    "Quote",
    "CodeBlock",
    "ListItem",
    "CellBorder",
    "TableCell",
    "TableRow",
    "Table",
    "Node",
    "NODE_TYPES",
    "Point",
    "Range",
    "generate_uid",
    "node_string",
    "convert_node",
    "paragraph",
]

MARKS = ("bold", "italic", "underline", "code")
ALIGNMENTS = ("left", "center", "right")
BORDER_EDGES = ("top", "right", "bottom", "left")
LIST_KINDS = ("ordered", "unordered")
MAX_LIST_INDENT = 10


def generate_uid() -> str:
    """Return a fresh stable identifier for a list item."""
    return uuid.uuid4().hex[:12]


@dataclass
class Text:
    """Leaf text run carrying a payload and independent boolean marks."""

    text: str = ""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    code: bool = False

    type: ClassVar[str] = "text"

    def marks(self) -> Dict[str, bool]:
        """Return the active marks only, e.g. ``{"bold": True}``."""
        return {name: True for name in MARKS if getattr(self, name)}

    def has_same_marks(self, other: "Text") -> bool:
        return self.marks() == other.marks()

    def with_text(self, text: str) -> "Text":
        """Return a run with the same marks and a different payload."""
        return Text(text, **self.marks())


@dataclass
class Element:
    """Base class for every non-leaf node."""

    children: List["Node"] = field(default_factory=list)

    type: ClassVar[str] = "element"

    def attributes(self) -> Dict[str, Any]:
        """Return the node's own attributes (everything except children)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "children"}


@dataclass
class TextBlock(Element):
    """A block whose children are text runs (paragraph, heading, ...)."""

    def __post_init__(self) -> None:
        if not self.children:
            self.children = [Text()]

    def text(self) -> str:
        return "".join(child.text for child in self.children if isinstance(child, Text))


@dataclass
class Paragraph(TextBlock):
    type: ClassVar[str] = "paragraph"


@dataclass
class Heading(TextBlock):
    level: int = 1

    type: ClassVar[str] = "heading"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not 1 <= int(self.level) <= 6:
            raise ValueError(f"Heading level must be within 1..6, got {self.level}")


@dataclass
class Quote(TextBlock):
    type: ClassVar[str] = "quote"


@dataclass
class CodeBlock(TextBlock):
    type: ClassVar[str] = "code"


@dataclass
class ListItem(TextBlock):
    """A list item; lists are flat runs of items distinguished by indent."""

    kind: str = "unordered"
    indent: int = 0
    uid: str = field(default_factory=generate_uid)

    type: ClassVar[str] = "list-item"

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.kind not in LIST_KINDS:
            raise ValueError(f"Unknown list kind {self.kind!r}")
        if not 0 <= int(self.indent) <= MAX_LIST_INDENT:
            raise ValueError(f"List indent must be within 0..{MAX_LIST_INDENT}, got {self.indent}")

    @property
    def ordered(self) -> bool:
        return self.kind == "ordered"


@dataclass
class CellBorder:
    """Border style for one cell edge."""

    size: int = 1
    style: str = "solid"
    color: str = "#ddd"


@dataclass
class TableCell(Element):
    """Table cell; a cell with a span above one anchors a merged region."""

    col_span: int = 1
    row_span: int = 1
    background: Optional[str] = None
    borders: Optional[Dict[str, CellBorder]] = None
    align: Optional[str] = None

    type: ClassVar[str] = "table-cell"

    def __post_init__(self) -> None:
        if not self.children:
            self.children = [Paragraph()]
        if self.col_span < 1 or self.row_span < 1:
            raise ValueError(
                f"Cell spans must be >= 1, got col_span={self.col_span} row_span={self.row_span}"
            )
        if self.align is not None and self.align not in ALIGNMENTS:
            raise ValueError(f"Unknown cell alignment {self.align!r}")

    @property
    def is_plain(self) -> bool:
        return self.col_span == 1 and self.row_span == 1


@dataclass
class TableRow(Element):
    type: ClassVar[str] = "table-row"

    @property
    def cells(self) -> List[TableCell]:
        return [child for child in self.children if isinstance(child, TableCell)]


@dataclass
class Table(Element):
    """Table node; ``col_sizes`` holds one pixel width per logical column."""

    col_sizes: List[int] = field(default_factory=list)

    type: ClassVar[str] = "table"

    @property
    def rows(self) -> List[TableRow]:
        return [child for child in self.children if isinstance(child, TableRow)]


Node = Union[Text, Element]

NODE_TYPES: Dict[str, Type[Element]] = {
    cls.type: cls
    for cls in (Paragraph, Heading, Quote, CodeBlock, ListItem, Table, TableRow, TableCell)
}


def node_string(node: Node) -> str:
    """Concatenate every text run below *node* in document order."""
    if isinstance(node, Text):
        return node.text
    return "".join(node_string(child) for child in node.children)


def convert_node(node: Element, type_tag: str, **props: Any) -> Element:
    """Rebuild *node* as the variant registered under *type_tag*.

    Children are kept. Attributes shared by both variants are carried over
    unless overridden by *props*; attributes the target variant does not know
    are dropped (e.g. a list item's ``indent`` when converting to paragraph).
    """
    try:
        target = NODE_TYPES[type_tag]
    except KeyError:
        raise ValueError(f"Unknown node type {type_tag!r}") from None
    accepted = {f.name for f in fields(target)} - {"children"}
    kwargs = {k: v for k, v in node.attributes().items() if k in accepted}
    kwargs.update({k: v for k, v in props.items() if k in accepted})
    return target(children=node.children, **kwargs)


def paragraph(text: str = "", **marks: bool) -> Paragraph:
    """Shorthand for a paragraph holding a single run."""
    return Paragraph(children=[Text(text, **marks)])
