from __future__ import annotations

"""Conversion of document trees to plain records and to XML.

Two interchange shapes are supported:

- Nested records (dictionaries) mirroring the tree: elements as
  ``{"type": ..., <attributes>, "children": [...]}`` and text leaves as
  ``{"text": ..., <active marks>}``. Attributes holding ``None`` are omitted.
- An lxml element tree rooted at ``<document>``, one XML element per node,
  tagged with the node's type tag. The undo history stores these as bytes.

Both directions validate through the node dataclasses, so a malformed record
raises ``ValueError`` (unknown type, bad attribute value).
"""

from dataclasses import fields
from typing import Any, Dict, List, Sequence, Type

from lxml import etree as ET

from winkdown.core.models import (
    MARKS,
    NODE_TYPES,
    CellBorder,
    Element,
    Node,
    Text,
)

__all__ = [
    "node_to_dict",
    "node_from_dict",
    "document_to_dicts",
    "document_from_dicts",
    "node_to_xml",
    "node_from_xml",
    "document_to_xml",
    "document_from_xml",
]

_INT_ATTRIBUTES = {"level", "indent", "col_span", "row_span"}
_DOCUMENT_TAG = "document"
_BORDER_TAG = "border"


def _build(cls: Type[Element], children: List[Node], kwargs: Dict[str, Any]) -> Element:
    accepted = {f.name for f in fields(cls)} - {"children"}
    unknown = sorted(set(kwargs) - accepted)
    if unknown:
        raise ValueError(f"{cls.type} has no attribute(s) {', '.join(unknown)}")
    return cls(children=children, **kwargs)


# ---------------------------------------------------------------------------
# Nested records
# ---------------------------------------------------------------------------

def node_to_dict(node: Node) -> Dict[str, Any]:
    """Return the nested-record form of *node*."""
    if isinstance(node, Text):
        return {"text": node.text, **node.marks()}
    record: Dict[str, Any] = {"type": node.type}
    for key, value in node.attributes().items():
        if value is None:
            continue
        if key == "borders":
            value = {edge: {"size": b.size, "style": b.style, "color": b.color} for edge, b in value.items()}
        elif isinstance(value, list):
            value = list(value)
        record[key] = value
    record["children"] = [node_to_dict(child) for child in node.children]
    return record


def node_from_dict(record: Dict[str, Any]) -> Node:
    """Rebuild a node from its nested-record form."""
    if "type" not in record:
        if "text" not in record:
            raise ValueError("Record has neither 'type' nor 'text'")
        return Text(str(record["text"]), **{m: bool(record.get(m)) for m in MARKS})
    try:
        cls = NODE_TYPES[record["type"]]
    except KeyError:
        raise ValueError(f"Unknown node type {record['type']!r}") from None
    kwargs: Dict[str, Any] = {}
    for key, value in record.items():
        if key in ("type", "children"):
            continue
        if key == "borders" and value is not None:
            value = {edge: CellBorder(**attrs) for edge, attrs in value.items()}
        kwargs[key] = value
    children = [node_from_dict(child) for child in record.get("children", [])]
    return _build(cls, children, kwargs)


def document_to_dicts(nodes: Sequence[Node]) -> List[Dict[str, Any]]:
    return [node_to_dict(node) for node in nodes]


def document_from_dicts(records: Sequence[Dict[str, Any]]) -> List[Node]:
    return [node_from_dict(record) for record in records]


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------

def node_to_xml(node: Node) -> ET._Element:
    """Return an lxml element for *node*.

    Text leaves become ``<text>`` elements carrying the payload as element
    text and each active mark as a ``"true"`` attribute.
    """
    if isinstance(node, Text):
        elem = ET.Element("text")
        for mark in node.marks():
            elem.set(mark, "true")
        elem.text = node.text
        return elem

    elem = ET.Element(node.type)
    for key, value in node.attributes().items():
        if value is None:
            continue
        if key == "borders":
            for edge, border in value.items():
                ET.SubElement(elem, _BORDER_TAG, edge=edge, size=str(border.size),
                              style=border.style, color=border.color)
        elif key == "col_sizes":
            elem.set(key, " ".join(str(size) for size in value))
        else:
            elem.set(key, str(value))
    for child in node.children:
        elem.append(node_to_xml(child))
    return elem


def node_from_xml(elem: ET._Element) -> Node:
    tag = elem.tag
    if tag == "text":
        return Text(elem.text or "", **{m: elem.get(m) == "true" for m in MARKS})
    try:
        cls = NODE_TYPES[tag]
    except KeyError:
        raise ValueError(f"Unknown node element <{tag}>") from None

    kwargs: Dict[str, Any] = {}
    for key, raw in elem.attrib.items():
        if key in _INT_ATTRIBUTES:
            kwargs[key] = int(raw)
        elif key == "col_sizes":
            kwargs[key] = [int(part) for part in raw.split()]
        else:
            kwargs[key] = str(raw)
    borders: Dict[str, CellBorder] = {}
    children: List[Node] = []
    for child in elem:
        if not isinstance(child.tag, str):
            continue  # comments and processing instructions
        if child.tag == _BORDER_TAG:
            borders[child.get("edge")] = CellBorder(int(child.get("size", 1)),
                                                     child.get("style", "solid"),
                                                     child.get("color", "#ddd"))
        else:
            children.append(node_from_xml(child))
    if borders:
        kwargs["borders"] = borders
    return _build(cls, children, kwargs)


def document_to_xml(nodes: Sequence[Node]) -> ET._Element:
    """Wrap the top-level blocks in a ``<document>`` root element."""
    root = ET.Element(_DOCUMENT_TAG)
    for node in nodes:
        root.append(node_to_xml(node))
    return root


def document_from_xml(root: ET._Element) -> List[Node]:
    if root.tag != _DOCUMENT_TAG:
        raise ValueError(f"Expected <{_DOCUMENT_TAG}> root, got <{root.tag}>")
    return [node_from_xml(child) for child in root if isinstance(child.tag, str)]
