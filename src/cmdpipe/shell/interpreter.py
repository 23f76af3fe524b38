"""Shell interpreter for executing parsed pipelines.

Runs resolved stages left to right, feeding each stage's output to the next.
"""

from __future__ import annotations

import io
import logging
import sys
from typing import List, Optional, TextIO

from cmdpipe.config import ConsoleConfig
from cmdpipe.shell.command import CommandRegistry
from cmdpipe.shell.errors import (
    CommandError,
    CommandExecutionError,
    ExternalProcessError,
    PipelineBrokenError,
)
from cmdpipe.shell.external import ExternalProcessRunner
from cmdpipe.shell.parser import BuiltinStage, ExternalStage, Pipeline, PipelineParser, Stage

logger = logging.getLogger(__name__)


class ConsoleState:
    """Mutable state handed to every command execution.

    Commands use it to queue messages shown before the next prompt, or to ask
    the console to stop.
    """

    def __init__(self):
        """Initialize console state."""
        self._messages: List[str] = []
        self.exit_requested = False

    def add_async_message(self, message: str) -> None:
        """Queue a message for display before the next prompt."""
        self._messages.append(message)

    def drain_messages(self) -> List[str]:
        """Return and clear the queued messages."""
        messages, self._messages = self._messages, []
        return messages

    def request_exit(self) -> None:
        self.exit_requested = True


class ShellInterpreter:
    """Parses and executes pipelines.

    Every stage is resolved before any of them runs; a failing stage aborts
    the rest of the line.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        state: Optional[ConsoleState] = None,
        config: Optional[ConsoleConfig] = None,
        stderr: Optional[TextIO] = None,
        runner: Optional[ExternalProcessRunner] = None
    ):
        """Initialize interpreter.

        Args:
            registry: Builtin commands
            state: State handle passed to commands (creates new if None)
            config: Console configuration (defaults if None)
            stderr: Stream receiving external programs' diagnostics
            runner: External program runner
        """
        self.registry = registry
        self.state = state or ConsoleState()
        self.config = config or ConsoleConfig()
        self.stderr = stderr
        self.parser = PipelineParser(registry, self.config.external_marker)
        self.runner = runner or ExternalProcessRunner(self.config.encoding)

    def execute(self, line: str) -> str:
        """Execute a command line.

        Args:
            line: Command line to execute

        Returns:
            Output of the last stage, verbatim

        Raises:
            ConsoleError: If parsing or any stage fails
        """
        pipeline = self.parser.parse(line)
        return self.run_pipeline(pipeline)

    def run_pipeline(self, pipeline: Pipeline) -> str:
        """Run a resolved pipeline.

        Args:
            pipeline: Pipeline to run

        Returns:
            Output of the last stage

        Raises:
            CommandExecutionError: If a single-stage pipeline fails
            PipelineBrokenError: If a stage of a longer pipeline fails
        """
        previous_output = ""

        for index, stage in enumerate(pipeline):
            try:
                previous_output = self._run_stage(stage, previous_output)
            except CommandExecutionError as e:
                logger.debug(f"Stage {index + 1}/{len(pipeline)} ({stage.name}) failed: {e.message}")
                if len(pipeline) > 1:
                    raise PipelineBrokenError(e) from e
                raise

        return previous_output

    def _run_stage(self, stage: Stage, stdin: str) -> str:
        if isinstance(stage, ExternalStage):
            return self._run_external(stage, stdin)
        return self._run_builtin(stage, stdin)

    def _run_builtin(self, stage: BuiltinStage, stdin: str) -> str:
        output = io.StringIO()
        try:
            stage.command.execute(self.state, stage.args, stdin, output)
        except CommandError as e:
            raise CommandExecutionError(stage.name, str(e)) from e
        except Exception as e:
            logger.debug(f"Command {stage.name} raised {type(e).__name__}", exc_info=True)
            raise CommandExecutionError(stage.name, f"{type(e).__name__}: {e}") from e
        return output.getvalue()

    def _run_external(self, stage: ExternalStage, stdin: str) -> str:
        try:
            result = self.runner.run(stage.program, stage.args, stdin)
        except ExternalProcessError as e:
            raise CommandExecutionError(stage.name, str(e)) from e

        if result.stderr:
            stderr = self.stderr or sys.stderr
            stderr.write(result.stderr)
            stderr.flush()
        return result.stdout
