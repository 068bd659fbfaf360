from __future__ import annotations

"""Engine exception classes.

User-facing misuse (no table under the cursor, a selection that is not a clean
rectangle, ...) is never reported through exceptions: services return an
``OperationResult`` with ``success=False`` instead. The classes below signal
programming-contract failures, i.e. an invalid path handed to a primitive or a
document whose table geometry is corrupt.
"""

from typing import Any, Optional, Tuple

__all__ = ["WinkdownError", "NodeNotFoundError", "GridIntegrityError"]


class WinkdownError(Exception):
    """Base exception for all engine errors.

    All engine exceptions inherit from this base class so that callers can
    tell a corrupt document apart from an operation that was simply declined.
    """

    def __init__(self, message: str, path: Optional[Tuple[int, ...]] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path is not None:
            return f"[path {list(self.path)}] {super().__str__()}"
        return super().__str__()


class NodeNotFoundError(WinkdownError):
    """Raised when a path or node cannot be resolved in the document tree."""
    pass


class GridIntegrityError(WinkdownError):
    """Raised when a table's rows and cells do not form a valid occupancy grid.

    This includes spans lower than one, regions overlapping each other,
    vertical spans running past the last row, and grid positions owned by no
    cell once a table is expected to be stable.
    """

    def __init__(self, message: str, path: Optional[Tuple[int, ...]] = None,
                 position: Optional[Tuple[int, int]] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, path, cause)
        self.position = position

    def details(self) -> dict[str, Any]:
        """Return a structured description suitable for logs."""
        return {
            "message": super().__str__(),
            "path": list(self.path) if self.path is not None else None,
            "position": list(self.position) if self.position is not None else None,
        }
