"""
Unified test infrastructure for fragtpl.

Modules:
- file_utils: Utilities for creating files and directories
- cli_utils: Running the CLI as a subprocess
- rendering_utils: Compiling and rendering template text without an engine
"""

from .file_utils import write, write_template
from .cli_utils import run_cli, jload
from .rendering_utils import CaptureHostStub, compile_text, render_text

__all__ = [
    "write",
    "write_template",
    "run_cli",
    "jload",
    "CaptureHostStub",
    "compile_text",
    "render_text",
]
