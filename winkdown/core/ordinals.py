from __future__ import annotations

"""Display ordinals of list items.

Lists are not containers: a list is a flat run of :class:`ListItem` blocks
whose nesting is expressed by ``indent``. An item's ordinal is its position
among the items sharing its ``(kind, indent)`` pair, counted over the whole
document in document order. Items of another kind or indent in between do not
reset the count.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple, Union

from winkdown.core.editor import Editor
from winkdown.core.exceptions import NodeNotFoundError
from winkdown.core.models import ListItem
from winkdown.core.paths import Path

__all__ = ["list_ordinal", "list_marker", "ListOrdinalResolver", "DEFAULT_BULLET"]

logger = logging.getLogger(__name__)

DEFAULT_BULLET = "•"


def _resolve_item(editor: Editor, node_or_path: Union[ListItem, Sequence[int]]) -> Tuple[ListItem, Path]:
    if isinstance(node_or_path, ListItem):
        return node_or_path, editor.find_path(node_or_path)
    path = tuple(node_or_path)
    node = editor.node(path)
    if not isinstance(node, ListItem):
        raise NodeNotFoundError("Node is not a list item", path)
    return node, path


def list_ordinal(editor: Editor, node_or_path: Union[ListItem, Sequence[int]]) -> int:
    """Return the 1-based display ordinal of a list item.

    Parameters
    ----------
    editor
        Editor holding the document.
    node_or_path
        The list item itself (located by identity) or its path.

    Raises
    ------
    NodeNotFoundError
        If the item is not part of the document or the path is not a list item.
    """
    item, path = _resolve_item(editor, node_or_path)
    count = 0
    for candidate, candidate_path in editor.nodes(match=lambda n: isinstance(n, ListItem)):
        if candidate.kind == item.kind and candidate.indent == item.indent:
            count += 1
        if candidate_path == path:
            return count
    raise NodeNotFoundError("List item is not part of the document", path)


def list_marker(item: ListItem, ordinal: int, bullet: str = DEFAULT_BULLET) -> str:
    """Render the marker shown before a list item (``"3."`` or a bullet)."""
    return f"{ordinal}." if item.ordered else bullet


class ListOrdinalResolver:
    """Ordinal lookups cached per editor revision.

    The whole document is scanned once per revision; any edit bumps the
    revision and invalidates the map.
    """

    def __init__(self, editor: Editor, bullet: str = DEFAULT_BULLET) -> None:
        self._editor = editor
        self._bullet = bullet
        self._revision: Optional[int] = None
        self._ordinals: Dict[Path, int] = {}

    def ordinal(self, node_or_path: Union[ListItem, Sequence[int]]) -> int:
        _, path = _resolve_item(self._editor, node_or_path)
        return self._ordinal_map()[path]

    def marker(self, node_or_path: Union[ListItem, Sequence[int]]) -> str:
        item, path = _resolve_item(self._editor, node_or_path)
        return list_marker(item, self._ordinal_map()[path], self._bullet)

    def _ordinal_map(self) -> Dict[Path, int]:
        if self._revision != self._editor.revision:
            counters: Dict[Tuple[str, int], int] = {}
            ordinals: Dict[Path, int] = {}
            for item, path in self._editor.nodes(match=lambda n: isinstance(n, ListItem)):
                key = (item.kind, item.indent)
                counters[key] = counters.get(key, 0) + 1
                ordinals[path] = counters[key]
            self._ordinals = ordinals
            self._revision = self._editor.revision
            logger.debug("Ordinals: recomputed %d item(s) at revision %d", len(ordinals), self._revision)
        return self._ordinals
