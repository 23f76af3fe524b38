"""Shell module for the interactive pipeline console.

Provides the pipe-syntax parser, the pipeline interpreter, external program
execution, tab completion and the REPL.
"""

from __future__ import annotations

from cmdpipe.shell.builtins import default_registry, register_builtins
from cmdpipe.shell.command import (
    ArgumentSchema,
    Command,
    CommandRegistry,
    OptionSpec,
    PositionalSpec,
)
from cmdpipe.shell.completion import Candidate, CompletionEngine
from cmdpipe.shell.errors import (
    ArgumentValidationError,
    CommandError,
    CommandExecutionError,
    ConsoleError,
    EmptyCommandLineError,
    LexError,
    PipelineBrokenError,
    UnrecognizedCommandError,
)
from cmdpipe.shell.external import ExternalProcessRunner, ExternalResult
from cmdpipe.shell.interpreter import ConsoleState, ShellInterpreter
from cmdpipe.shell.parser import PipelineParser, parse_pipeline, split_pipeline
from cmdpipe.shell.repl import Console, run_command, run_repl, run_script

__all__ = [
    "Console",
    "Command",
    "CommandRegistry",
    "ArgumentSchema",
    "OptionSpec",
    "PositionalSpec",
    "ConsoleState",
    "ShellInterpreter",
    "PipelineParser",
    "CompletionEngine",
    "Candidate",
    "ExternalProcessRunner",
    "ExternalResult",
    "ConsoleError",
    "LexError",
    "EmptyCommandLineError",
    "UnrecognizedCommandError",
    "ArgumentValidationError",
    "CommandError",
    "CommandExecutionError",
    "PipelineBrokenError",
    "split_pipeline",
    "parse_pipeline",
    "default_registry",
    "register_builtins",
    "run_repl",
    "run_command",
    "run_script",
]
