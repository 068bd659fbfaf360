from __future__ import annotations

"""Editing services (tables, autoformat, undo/redo).

Services are instantiated per editor session; none of them keeps
process-global state.
"""

from .table_editing_service import OperationResult, TableEditingService  # noqa: F401
from .autoformat_service import AutoformatService, KeyEvent  # noqa: F401
from .undo_service import UndoService  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "TableEditingService",
    "AutoformatService",
    "KeyEvent",
    "UndoService",
]
