import logging
import logging.handlers
import os

import pytest

from winkdown.config import ConfigManager
from winkdown.logging_config import setup_logging

_TOUCHED = (
    "winkdown.core.services",
    "winkdown.core.grid",
    "winkdown.core.selection",
    "winkdown.core.services.table_editing_service",
)


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("WINKDOWN_DEBUG_TABLES", raising=False)
    monkeypatch.delenv("WINKDOWN_DEBUG_MODULES", raising=False)
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level
    yield
    for name in _TOUCHED + ("custom.module",):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    for handler in list(root.handlers):
        if handler not in root_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in root_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(root_level)


def test_file_handler_points_at_log_dir(tmp_path):
    log_file = setup_logging(str(tmp_path / "logs"))
    assert log_file == os.path.join(str(tmp_path / "logs"), "winkdown.log")
    handlers = logging.getLogger("winkdown.core.services").handlers
    files = [h for h in handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert files and files[0].baseFilename == os.path.abspath(log_file)


def test_env_log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("WINKDOWN_LOG_DIR", str(tmp_path / "env-logs"))
    assert setup_logging().startswith(str(tmp_path / "env-logs"))


def test_table_debug_override(tmp_path, monkeypatch):
    monkeypatch.setenv("WINKDOWN_DEBUG_TABLES", "yes")
    monkeypatch.setenv("WINKDOWN_DEBUG_MODULES", "custom.module, ")
    setup_logging(str(tmp_path))
    assert logging.getLogger("winkdown.core.services.table_editing_service").level == logging.DEBUG
    assert logging.getLogger("winkdown.core.grid").level == logging.DEBUG
    assert logging.getLogger("custom.module").level == logging.DEBUG


def test_minimal_fallback_without_config(tmp_path, monkeypatch):
    monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: {})
    setup_logging(str(tmp_path))
    service_logger = logging.getLogger("winkdown.core.services.table_editing_service")
    assert service_logger.propagate is False
    assert service_logger.handlers
