"""REPL (Read-Eval-Print Loop) for the interactive console.

Reads lines, runs them as pipelines and prints the final output. Per-line
errors are reported on stderr and the loop carries on.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Union

from cmdpipe.config import ConsoleConfig
from cmdpipe.shell.builtins import default_registry
from cmdpipe.shell.command import CommandRegistry
from cmdpipe.shell.completion import CompletionEngine
from cmdpipe.shell.errors import ConsoleError
from cmdpipe.shell.interpreter import ConsoleState, ShellInterpreter

logger = logging.getLogger(__name__)

try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False
    logger.debug("readline not available - tab completion disabled")


class ReadlineCompleter:
    """Adapts ``CompletionEngine`` to readline's completer protocol."""

    DELIMS = ' \t\n|'

    def __init__(self, engine: CompletionEngine, prompt: str = "", stdout: Optional[TextIO] = None):
        """Initialize completer.

        Args:
            engine: Completion engine
            prompt: Prompt redrawn after hints are printed
            stdout: Stream hints are printed to
        """
        self.engine = engine
        self.prompt = prompt
        self.stdout = stdout or sys.stdout
        self._matches: List[str] = []

    def install(self) -> None:
        readline.set_completer_delims(self.DELIMS)
        readline.set_completer(self.complete)
        readline.parse_and_bind("tab: complete")

    def matches(self, line: str, begin: int, end: int) -> List[str]:
        """Compute readline matches for the word spanning ``begin:end``.

        Candidates with an empty replacement are hints; when nothing else is
        offered they are printed under the prompt.

        Args:
            line: Current line buffer
            begin: Start of the word readline will replace
            end: Cursor offset

        Returns:
            Replacement strings for ``line[begin:end]``
        """
        start, candidates = self.engine.complete(line, end)
        replacements = [c for c in candidates if c.replacement]
        if not replacements:
            hints = [c.display for c in candidates]
            if hints:
                self._show_hints(hints, line)
            return []

        head = line[:start]
        return [(head + c.replacement)[begin:].rstrip() for c in replacements]

    def complete(self, text: str, state: int) -> Optional[str]:
        if state == 0:
            self._matches = self.matches(
                readline.get_line_buffer(),
                readline.get_begidx(),
                readline.get_endidx()
            )
        if state < len(self._matches):
            return self._matches[state]
        return None

    def _show_hints(self, hints: List[str], line: str) -> None:
        self.stdout.write('\n' + '  '.join(hints) + '\n')
        self.stdout.write(self.prompt + line)
        self.stdout.flush()


class Console:
    """Interactive pipeline console.

    The registry is frozen when the loop starts; register commands before
    calling ``cmd_loop``.
    """

    def __init__(
        self,
        registry: Optional[CommandRegistry] = None,
        config: Optional[ConsoleConfig] = None,
        input_func: Optional[Callable[[str], str]] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None
    ):
        """Initialize console.

        Args:
            registry: Builtin commands (the example builtins if None)
            config: Console configuration (defaults if None)
            input_func: Reads one line given a prompt; raises EOFError at
                end of input (``input`` if None)
            stdout: Stream for pipeline output
            stderr: Stream for diagnostics
        """
        self.registry = registry if registry is not None else default_registry()
        self.config = config or ConsoleConfig()
        self.input_func = input_func or input
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.state = ConsoleState()
        self.interpreter = ShellInterpreter(self.registry, self.state, self.config, self.stderr)
        self.completion = CompletionEngine(self.registry)
        self.running = False

    @property
    def prompt(self) -> str:
        return self.config.prompt

    def _setup_readline(self) -> None:
        """Setup readline tab completion (history stays in memory)."""
        completer = ReadlineCompleter(self.completion, self.prompt, self.stdout)
        completer.install()

    def _interactive(self) -> bool:
        return self.input_func is input and sys.stdin.isatty()

    def cmd_loop(self) -> int:
        """Run the loop until end of input or ``exit``.

        Returns:
            0 on normal termination

        Raises:
            OSError: If reading input or flushing output fails
        """
        self.registry.freeze()
        if HAS_READLINE and self.config.completion and self._interactive():
            self._setup_readline()
        if self.config.banner:
            self.stdout.write(self.config.banner + '\n')

        self.running = True
        while self.running:
            self._print_async_messages()
            try:
                line = self.input_func(self.prompt)
            except EOFError:
                self.stdout.write('\n')
                self.stdout.flush()
                break
            except KeyboardInterrupt:
                self.stdout.write('\n')
                continue

            if not line.strip():
                continue

            try:
                self.run_line(line)
            except KeyboardInterrupt:
                self.stdout.write('\n')
                continue

            if self.state.exit_requested:
                self.running = False

        self._print_async_messages()
        return 0

    def run_line(self, line: str) -> bool:
        """Execute one line and print its output.

        Args:
            line: Input line

        Returns:
            True if the pipeline succeeded
        """
        try:
            output = self.interpreter.execute(line)
        except ConsoleError as e:
            self._report(e)
            return False

        self.stdout.write(output)
        self.stdout.flush()
        return True

    def _report(self, error: ConsoleError) -> None:
        logger.debug(f"Line aborted: {type(error).__name__}")
        print(error, file=self.stderr)
        self.stderr.flush()

    def _print_async_messages(self) -> None:
        for message in self.state.drain_messages():
            self.stdout.write(message + '\n')
        self.stdout.flush()


def run_repl(
    registry: Optional[CommandRegistry] = None,
    config: Optional[ConsoleConfig] = None
) -> int:
    """Run the interactive console.

    Args:
        registry: Optional command registry
        config: Optional console configuration

    Returns:
        Exit code
    """
    console = Console(registry=registry, config=config)
    return console.cmd_loop()


def run_command(
    command: str,
    registry: Optional[CommandRegistry] = None,
    config: Optional[ConsoleConfig] = None
) -> int:
    """Run a single line non-interactively.

    Args:
        command: Line to execute
        registry: Optional command registry
        config: Optional console configuration

    Returns:
        Exit code
    """
    console = Console(registry=registry, config=config)
    ok = console.run_line(command)
    console._print_async_messages()
    return 0 if ok else 1


def run_script(
    script_path: Union[str, Path],
    console: Optional[Console] = None
) -> int:
    """Run lines from a script file, stopping at the first failure.

    Blank lines and lines starting with ``#`` are skipped.

    Args:
        script_path: Path to script file
        console: Console to run in (a default console if None)

    Returns:
        Exit code
    """
    if console is None:
        console = Console()

    with open(script_path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.rstrip('\n')
            if not line.strip() or line.lstrip().startswith('#'):
                continue

            logger.debug(f"Executing line {line_num}: {line}")
            if not console.run_line(line):
                print(f"Error on line {line_num}", file=console.stderr)
                return 1
            if console.state.exit_requested:
                break

    console._print_async_messages()
    return 0
