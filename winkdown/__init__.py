"""Top-level package for the Winkdown structured-document editing engine.

The package is GUI-agnostic: front-ends (web bridge, Tk shell, tests) should
only depend on the public API exposed here rather than importing internal
modules directly.
"""

from .core.context import EditorSession  # re-export for convenience
from .core.editor import Editor

__all__: list[str] = [
    "Editor",
    "EditorSession",
]
