"""Error types raised while parsing and executing console pipelines.

Every per-line failure derives from ``ConsoleError``; the console loop reports
these to the diagnostic stream and moves on to the next prompt.
"""

from __future__ import annotations


class ConsoleError(Exception):
    """Base class for errors that abort a single input line."""
    pass


class LexError(ConsoleError):
    """Raised when a stage cannot be split into shell words."""

    def __init__(self, stage: str, reason: str = ""):
        self.stage = stage
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Error splitting string: {stage!r}{detail}")


class EmptyCommandLineError(ConsoleError):
    """Raised when a pipeline stage holds no command."""

    def __init__(self) -> None:
        super().__init__("Empty command line")


class UnrecognizedCommandError(ConsoleError):
    """Raised when a stage names a command that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unrecognized command: {name}")


class ArgumentValidationError(ConsoleError):
    """Raised by a command's argument parser.

    The message is the parser's own output (usage and error, or help text)
    and is printed as-is.
    """

    def __init__(self, message: str, status: int = 2):
        self.message = message
        self.status = status
        super().__init__(message)


class CommandExecutionError(ConsoleError):
    """Raised when a resolved stage fails while running."""

    def __init__(self, name: str, message: str):
        self.name = name
        self.message = message
        super().__init__(f"Error executing command {name}: {message}")


class PipelineBrokenError(ConsoleError):
    """Wraps a ``CommandExecutionError`` raised mid-pipeline."""

    def __init__(self, cause: CommandExecutionError):
        self.cause = cause
        super().__init__(f"Broken pipe at {cause.name}: {cause}")

    @property
    def name(self) -> str:
        return self.cause.name


class CommandError(Exception):
    """Raised by command implementations to report a failure."""
    pass


class ExternalProcessError(Exception):
    """Raised when an external program cannot be spawned or fed."""
    pass
