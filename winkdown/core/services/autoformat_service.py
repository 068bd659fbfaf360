from __future__ import annotations

"""Block autoformat state machine driven by key events.

The service inspects the block under a collapsed cursor and, for the keys it
recognises, performs a block-level transformation instead of the default
editing behaviour:

- ``Tab`` / ``Shift+Tab`` in a list item change its indent (clamped).
- ``Enter`` on an empty list item ends the list; on a non-empty one it splits
  the item into a new item of the same kind and indent.
- ``Backspace`` at the start of a list item turns it into a paragraph; at the
  start of an empty heading, quote or code block it does the same.
- ``Space`` after a short markdown-like prefix typed at the start of a
  paragraph converts the paragraph (``#``..``######``, ``>``, three
  backticks, ``1.``, ``-``, ``*``) and swallows the space.
- ``Ctrl``/``Meta`` + ``b``/``i``/``u``/backtick toggle inline marks.

:meth:`AutoformatService.handle_key` returns True when the event was consumed,
in which case the caller must suppress its default behaviour.
"""

from dataclasses import dataclass
import logging
import re
from typing import Any, Dict, Optional

from winkdown.config import ConfigManager
from winkdown.core.editor import Editor
from winkdown.core.models import (
    MAX_LIST_INDENT,
    CodeBlock,
    Heading,
    ListItem,
    Paragraph,
    Quote,
    generate_uid,
    node_string,
)

__all__ = ["KeyEvent", "AutoformatService"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_PREFIX_LENGTH = 10

_HEADING_PREFIX = re.compile(r"^(#{1,6})$")
_ORDERED_PREFIX = re.compile(r"^(\d+)\.$", re.ASCII)
_MARK_SHORTCUTS = {"b": "bold", "i": "italic", "u": "underline", "`": "code"}


@dataclass(frozen=True)
class KeyEvent:
    """A keyboard event as delivered by the host.

    ``key`` follows DOM naming: ``"Tab"``, ``"Enter"``, ``"Backspace"``,
    ``" "`` for the space bar, or the printable character.
    """
    key: str
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
    alt: bool = False


class AutoformatService:
    """Key-driven block transformations for one editor.

    Parameters
    ----------
    editor
        Editor owning the document and cursor.
    config
        Optional mapping with ``enabled``, ``max_prefix_length`` and
        ``max_indent`` keys; defaults come from the ``autoformat`` and
        ``lists`` configuration sections.
    """

    def __init__(self, editor: Editor, config: Optional[Dict[str, Any]] = None) -> None:
        self._editor = editor
        if config is None:
            cfg = ConfigManager()
            config = {**cfg.get_lists_config(), **cfg.get_autoformat_config()}
        self._enabled = bool(config.get("enabled", True))
        self._max_prefix = int(config.get("max_prefix_length", DEFAULT_MAX_PREFIX_LENGTH))
        self._max_indent = min(int(config.get("max_indent", MAX_LIST_INDENT)), MAX_LIST_INDENT)

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> bool:
        """Apply the transformation bound to *event*, if any.

        Returns True when the event was consumed. Without a document
        selection nothing is consumed.
        """
        if self._editor.selection is None:
            return False
        if event.key == "Tab":
            return self._on_tab(event)
        if event.key == "Enter" and self._on_enter():
            return True
        if event.key == "Backspace" and self._on_backspace():
            return True
        if event.key == " " and self._enabled and self._on_space():
            return True
        if event.ctrl or event.meta:
            return self._on_shortcut(event)
        return False

    # ---------------------------------------------------------------------------
    # Rules
    # ---------------------------------------------------------------------------

    def _list_item(self):
        return self._editor.above(match=lambda n: isinstance(n, ListItem))

    def _on_tab(self, event: KeyEvent) -> bool:
        entry = self._list_item()
        if entry is None:
            return False
        item, path = entry
        if event.shift:
            indent = max(0, item.indent - 1)
        else:
            indent = min(item.indent + 1, self._max_indent)
        if indent != item.indent:
            self._editor.set_node_properties(path, indent=indent)
        logger.debug("Autoformat: indent %s -> %d", list(path), indent)
        return True

    def _on_enter(self) -> bool:
        entry = self._list_item()
        if entry is None or not self._editor.selection.is_collapsed:
            return False
        item, path = entry
        if node_string(item).strip() == "":
            self._editor.set_node_properties(path, type=Paragraph.type)
            logger.debug("Autoformat: empty list item %s ended the list", list(path))
            return True
        kind, indent = item.kind, item.indent
        self._editor.split_block(lambda runs: ListItem(children=runs, kind=kind, indent=indent, uid=generate_uid()))
        logger.debug("Autoformat: split list item %s", list(path))
        return True

    def _on_backspace(self) -> bool:
        editor = self._editor
        if not editor.selection.is_collapsed:
            return False
        entry = self._list_item()
        if entry is not None:
            _, path = entry
            if editor.selection.anchor == editor.start(path):
                editor.set_node_properties(path, type=Paragraph.type)
                logger.debug("Autoformat: list item %s converted to paragraph", list(path))
                return True

        block_entry = editor.block_above()
        if block_entry is None:
            return False
        block, path = block_entry
        if isinstance(block, (Heading, Quote, CodeBlock)) and node_string(block).strip() == "":
            if editor.selection.anchor == editor.start(path):
                editor.set_node_properties(path, type=Paragraph.type)
                logger.debug("Autoformat: empty %s %s converted to paragraph", block.type, list(path))
                return True
        return False

    def _on_space(self) -> bool:
        editor = self._editor
        if not editor.selection.is_collapsed:
            return False
        block_entry = editor.block_above()
        if block_entry is None:
            return False
        block, path = block_entry
        if type(block) is not Paragraph:
            return False

        cursor = editor.block_offset(path, editor.selection.anchor)
        before = block.text()[:cursor]
        trimmed = before.strip()
        if not trimmed or len(trimmed) > self._max_prefix or not before.endswith(trimmed):
            return False
        delete_start = len(before) - len(before.lstrip())

        props: Optional[Dict[str, Any]] = None
        heading = _HEADING_PREFIX.match(trimmed)
        if heading:
            props = {"type": Heading.type, "level": len(heading.group(1))}
        elif trimmed == ">":
            props = {"type": Quote.type}
        elif trimmed == "```":
            props = {"type": CodeBlock.type}
        elif _ORDERED_PREFIX.match(trimmed):
            props = {"type": ListItem.type, "kind": "ordered", "indent": 0, "uid": generate_uid()}
        elif trimmed in ("-", "*"):
            props = {"type": ListItem.type, "kind": "unordered", "indent": 0, "uid": generate_uid()}
        if props is None:
            return False

        editor.delete_text(path, delete_start, cursor)
        editor.set_node_properties(path, **props)
        logger.debug("Autoformat: prefix %r converted %s to %s", trimmed, list(path), props["type"])
        return True

    def _on_shortcut(self, event: KeyEvent) -> bool:
        mark = _MARK_SHORTCUTS.get(event.key.lower())
        if mark is None:
            return False
        self._editor.toggle_mark(mark)
        return True
