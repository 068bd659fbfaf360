import pytest

from winkdown.core.editor import Editor
from winkdown.core.selection import TableSelectionManager
from winkdown.core.services.table_editing_service import TableEditingService
from winkdown.core.services.undo_service import UndoService


@pytest.fixture
def table_config():
    return {"default_col_width": 120, "fallback_col_width": 90}


@pytest.fixture
def make_service(table_config):
    """Factory: ``(selection_manager, service)`` bound to *editor*."""
    def factory(editor: Editor):
        manager = TableSelectionManager(editor)
        return manager, TableEditingService(editor, manager, table_config)
    return factory


@pytest.fixture
def undo_service():
    return UndoService(max_history=50)
