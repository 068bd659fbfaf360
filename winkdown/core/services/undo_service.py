from __future__ import annotations

"""Undo/redo snapshot management for an :class:`~winkdown.core.editor.Editor`.

This service is UI-agnostic and performs pure in-memory history tracking of
the whole document plus the cursor. Each snapshot stores the document as
serialized XML bytes so later edits can never leak into stored history.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- Snapshots are immutable blobs once stored.
- Redo stack is cleared on every new snapshot push (standard undo/redo behavior).
- Memory usage controlled by a max_history policy (trim oldest).
"""

from dataclasses import dataclass
import logging
from typing import List, Optional, Tuple

from lxml import etree as ET

from winkdown.core.editor import Editor
from winkdown.core.models import Point, Range
from winkdown.core.serialization import document_from_xml, document_to_xml

__all__ = ["UndoService"]

logger = logging.getLogger(__name__)

_PointState = Tuple[Tuple[int, ...], int]


@dataclass(frozen=True)
class _Snapshot:
    """Immutable in-memory snapshot of an editor.

    Attributes
    ----------
    document_xml :
        The ``<document>`` tree serialized as bytes.
    selection :
        ``(anchor, focus)`` as ``(path, offset)`` pairs, or None.
    """

    document_xml: bytes
    selection: Optional[Tuple[_PointState, _PointState]]


class UndoService:
    """Manage undo/redo stacks for an :class:`Editor`.

    Parameters
    ----------
    max_history : int, default=50
        Maximum number of undo snapshots to keep. Oldest entries are discarded
        when the capacity is exceeded. Values below 1 are coerced to 1.

    Notes
    -----
    Callers push a snapshot BEFORE a mutation (baseline) and AFTER it (post).
    Undo restores the baseline and moves the post snapshot onto the redo
    stack; redo restores it again.

    Examples
    --------
    >>> svc = UndoService(max_history=10)
    >>> svc.push_snapshot(editor)
    >>> editor.insert_text("x")
    >>> svc.push_snapshot(editor)
    >>> svc.undo(editor)
    True
    """

    def __init__(self, max_history: int = 50) -> None:
        self._max_history: int = max(1, int(max_history))
        self._undo_stack: List[_Snapshot] = []
        self._redo_stack: List[_Snapshot] = []

    # --------------------------------------------------------------------- API

    def push_snapshot(self, editor: Editor) -> bool:
        """Capture the editor state and push it onto the undo stack.

        A snapshot identical to the current top is not pushed twice. Returns
        True when a snapshot was recorded.
        """
        snap = self._create_snapshot(editor)
        if snap is None:
            return False
        if self._undo_stack and self._undo_stack[-1] == snap:
            return False
        self._undo_stack.append(snap)
        # New user action invalidates redo history
        self._redo_stack.clear()
        self._trim(self._undo_stack)
        return True

    def undo(self, editor: Editor) -> bool:
        """Restore the previous (baseline) state into *editor*.

        Given ``undo_stack = [..., baseline, post]`` and the editor at
        ``post``, pops ``post`` onto the redo stack and restores ``baseline``.
        """
        if len(self._undo_stack) < 2:
            return False

        post_snap = self._undo_stack.pop()
        baseline_snap = self._undo_stack[-1]
        if not self._restore_snapshot(editor, baseline_snap):
            # Put back the popped snapshot to maintain stack consistency
            self._undo_stack.append(post_snap)
            return False

        self._redo_stack.append(post_snap)
        self._trim(self._redo_stack)
        return True

    def redo(self, editor: Editor) -> bool:
        """Re-apply a state that was previously undone."""
        if not self._redo_stack:
            return False

        post_snap = self._redo_stack.pop()
        if not self._restore_snapshot(editor, post_snap):
            self._redo_stack.append(post_snap)
            return False

        self._undo_stack.append(post_snap)
        self._trim(self._undo_stack)
        return True

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return len(self._undo_stack) > 1

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return bool(self._redo_stack)

    def clear(self) -> None:
        """Clear both undo and redo histories."""
        self._undo_stack.clear()
        self._redo_stack.clear()

    # --------------------------------------------------------------- Internals

    def _trim(self, stack: List[_Snapshot]) -> None:
        overflow = len(stack) - self._max_history
        if overflow > 0:
            del stack[0:overflow]

    def _create_snapshot(self, editor: Editor) -> Optional[_Snapshot]:
        try:
            document_xml = ET.tostring(document_to_xml(editor.children), encoding="utf-8")
        except (ValueError, ET.LxmlError) as exc:
            logger.warning("Undo: snapshot skipped, document not serializable: %s", exc)
            return None
        selection = None
        if editor.selection is not None:
            anchor, focus = editor.selection.anchor, editor.selection.focus
            selection = ((tuple(anchor.path), anchor.offset), (tuple(focus.path), focus.offset))
        return _Snapshot(document_xml=document_xml, selection=selection)

    def _restore_snapshot(self, editor: Editor, snap: _Snapshot) -> bool:
        """Restore *snap* into *editor* in a build-then-swap manner.

        Returns False, leaving the editor untouched, when the blob cannot be
        parsed back into nodes.
        """
        try:
            children = document_from_xml(ET.fromstring(snap.document_xml))
        except (ValueError, ET.LxmlError) as exc:
            logger.warning("Undo: snapshot could not be restored: %s", exc)
            return False
        selection = None
        if snap.selection is not None:
            (anchor_path, anchor_offset), (focus_path, focus_offset) = snap.selection
            selection = Range(Point(anchor_path, anchor_offset), Point(focus_path, focus_offset))
        editor.set_document(children, selection)
        return True
