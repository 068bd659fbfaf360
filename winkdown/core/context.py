from __future__ import annotations

"""Editor session bundling one document with its editing services.

An :class:`EditorSession` owns an :class:`~winkdown.core.editor.Editor` and the
services bound to it: the table cell selection, table operations, the
autoformat key machine, list ordinals and the undo history. Front-ends keep
one session per open document; sessions share no state with each other.
"""

import logging
from typing import Any, List, Optional

from winkdown.config import ConfigManager
from winkdown.core.editor import Editor
from winkdown.core.models import Element, Range
from winkdown.core.ordinals import DEFAULT_BULLET, ListOrdinalResolver
from winkdown.core.selection import TableSelectionManager
from winkdown.core.services import (
    AutoformatService,
    KeyEvent,
    OperationResult,
    TableEditingService,
    UndoService,
)

logger = logging.getLogger(__name__)

__all__ = ["EditorSession"]


class EditorSession:
    """One editable document and its services.

    Parameters
    ----------
    children
        Initial top-level blocks; an empty paragraph when omitted.
    selection
        Initial cursor/selection.
    config
        Configuration source; defaults to the process :class:`ConfigManager`.

    Attributes
    ----------
    editor, selection_manager, tables, autoformat, ordinals, history
        The bound editor and services, exposed for front-end wiring.
    """

    def __init__(self, children: Optional[List[Element]] = None,
                 selection: Optional[Range] = None,
                 config: Optional[ConfigManager] = None) -> None:
        cfg = config if config is not None else ConfigManager()
        lists_cfg = cfg.get_lists_config()

        self.editor = Editor(children, selection)
        self.selection_manager = TableSelectionManager(self.editor)
        self.tables = TableEditingService(self.editor, self.selection_manager, cfg.get_table_config())
        self.autoformat = AutoformatService(self.editor, {**lists_cfg, **cfg.get_autoformat_config()})
        self.ordinals = ListOrdinalResolver(self.editor, lists_cfg.get("bullet_marker", DEFAULT_BULLET))
        self.history = UndoService(cfg.get_history_config().get("max_history", 50))
        # Baseline snapshot so the first edit can be undone
        self.history.push_snapshot(self.editor)
        logger.debug("EditorSession initialized with %d block(s)", len(self.editor.children))

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def handle_key_event(self, event: KeyEvent) -> bool:
        """Dispatch a key event; returns True when the event was consumed.

        The autoformat machine runs first. Keys it does not consume get the
        default editing behaviour: printable characters are inserted, Enter
        splits the current block and Backspace deletes backward. Modified
        keys without a binding are left to the host.
        """
        revision = self.editor.revision
        consumed = self.autoformat.handle_key(event) or self._default_key(event)
        if self.editor.revision != revision:
            self.history.push_snapshot(self.editor)
        return consumed

    def type_text(self, text: str) -> None:
        """Feed *text* one character at a time through :meth:`handle_key_event`."""
        for char in text:
            self.handle_key_event(KeyEvent(char))

    def _default_key(self, event: KeyEvent) -> bool:
        editor = self.editor
        if editor.selection is None or event.ctrl or event.meta or event.alt:
            return False
        if event.key == "Enter":
            editor.split_block()
            return True
        if event.key == "Backspace":
            editor.delete_backward()
            return True
        if len(event.key) == 1:
            editor.insert_text(event.key)
            return True
        return False

    # -------------------------------------------------------------------------
    # Table operations and history
    # -------------------------------------------------------------------------

    def run_table_operation(self, name: str, *args: Any, **kwargs: Any) -> OperationResult:
        """Invoke ``TableEditingService.<name>`` and record a history entry on success."""
        operation = getattr(self.tables, name, None)
        if operation is None or name.startswith("_"):
            raise AttributeError(f"Unknown table operation {name!r}")
        result = operation(*args, **kwargs)
        if result.success:
            self.history.push_snapshot(self.editor)
        return result

    def undo(self) -> bool:
        self.selection_manager.clear_selection()
        return self.history.undo(self.editor)

    def redo(self) -> bool:
        self.selection_manager.clear_selection()
        return self.history.redo(self.editor)
