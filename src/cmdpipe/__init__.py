"""cmdpipe - Interactive command-pipeline console.

An embeddable console that runs shell-like pipelines of builtin commands and
external programs.

Features:
- Quote-aware pipe splitting
- All-or-nothing stage resolution before execution
- Output chaining between builtins and external programs
- Tab completion for command names and option flags
"""

__version__ = "0.3.0"
__license__ = "MIT"

from cmdpipe.cli import main

__all__ = ["main", "__version__"]
