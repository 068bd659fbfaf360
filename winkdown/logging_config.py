from __future__ import annotations

"""Central logging configuration for Winkdown.

Import and call :func:`setup_logging` once at host start-up. The engine
itself only creates module loggers and never configures handlers.
"""

import copy
import logging
import logging.config
import os
from typing import Optional

from winkdown.config import ConfigManager

__all__ = ["setup_logging"]

_TABLE_LOGGERS = (
    "winkdown.core.services.table_editing_service",
    "winkdown.core.selection",
    "winkdown.core.grid",
)


def setup_logging(log_dir: Optional[str] = None) -> str:
    """Configure logging from the ``logging`` configuration section.

    Parameters
    ----------
    log_dir
        Directory for ``winkdown.log``; defaults to ``$WINKDOWN_LOG_DIR`` or
        ``logs``.

    Returns
    -------
    str
        Path of the log file handed to the file handler.
    """
    log_dir = log_dir or os.environ.get("WINKDOWN_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "winkdown.log")

    try:
        logging_config = copy.deepcopy(ConfigManager().get_logging_config())

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports bad handler/formatter definitions through these
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()
    return log_file


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": "INFO",
            },
        },
        "root": {
            "level": "INFO",
            "handlers": ["console"],
        },
        # Module logger entry so the env overrides can flip it in minimal mode
        "loggers": {
            "winkdown.core.services.table_editing_service": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            }
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - WINKDOWN_DEBUG_TABLES=true  -> DEBUG for the table service, selection and grid
    - WINKDOWN_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_tables = os.environ.get("WINKDOWN_DEBUG_TABLES", "").strip().lower() in {"1", "true", "yes", "on"}
    extra_modules = os.environ.get("WINKDOWN_DEBUG_MODULES", "").strip()
    targets = []
    if debug_tables:
        targets.extend(_TABLE_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(",") if m.strip()])

    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
            logger.addHandler(handler)
        logger.info("Debug override active for logger '%s'", name)
