"""Parser for shell pipe syntax.

Splits lines like ``echo hello | upper | !tr A-Z a-z`` into stages and
resolves each stage to a builtin command or an external program.
"""

from __future__ import annotations

import argparse
import logging
import shlex
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from cmdpipe.shell.command import Command, CommandRegistry
from cmdpipe.shell.errors import EmptyCommandLineError, LexError, UnrecognizedCommandError

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_MARKER = '!'


@dataclass(frozen=True)
class BuiltinStage:
    """A stage running a registered command."""

    command: Command
    args: argparse.Namespace

    @property
    def name(self) -> str:
        return self.command.get_name()


@dataclass(frozen=True)
class ExternalStage:
    """A stage spawning an external program."""

    program: str
    args: List[str]

    @property
    def name(self) -> str:
        return self.program


Stage = Union[BuiltinStage, ExternalStage]


@dataclass
class Pipeline:
    """Fully resolved stages of one input line."""

    stages: List[Stage]

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __repr__(self) -> str:
        names = ' | '.join(stage.name for stage in self.stages)
        return f"Pipeline({names})"


def _pipe_positions(line: str) -> List[int]:
    """Indices of the unquoted ``|`` characters in a line.

    Only the quote character that opened a span closes it; the other quote
    character inside a span is inert.
    """
    positions = []
    quote_char: Optional[str] = None

    for index, char in enumerate(line):
        if quote_char is None:
            if char in ('"', "'"):
                quote_char = char
            elif char == '|':
                positions.append(index)
        elif char == quote_char:
            quote_char = None

    return positions


def split_pipeline(line: str) -> List[str]:
    """Split a line on unquoted pipes, keeping quotes in place.

    Args:
        line: Line to split

    Returns:
        Stage strings; always one more than the number of splitting pipes
    """
    parts = []
    start = 0
    for index in _pipe_positions(line):
        parts.append(line[start:index])
        start = index + 1
    parts.append(line[start:])
    return parts


def last_stage_offset(line: str) -> int:
    """Offset where the last pipeline stage of ``line`` begins."""
    positions = _pipe_positions(line)
    return positions[-1] + 1 if positions else 0


def tokenize(stage: str) -> List[str]:
    """Split one stage into shell words.

    Args:
        stage: Raw stage text

    Returns:
        List of tokens (empty for a blank stage)

    Raises:
        LexError: On unterminated quotes or a dangling escape
    """
    try:
        return shlex.split(stage)
    except ValueError as e:
        raise LexError(stage, str(e)) from e


class PipelineParser:
    """Resolves input lines into pipelines against a command registry.

    Every stage is tokenized, classified and validated before a pipeline is
    returned. A failure anywhere discards the whole line.
    """

    def __init__(self, registry: CommandRegistry, external_marker: str = DEFAULT_EXTERNAL_MARKER):
        """Initialize parser.

        Args:
            registry: Commands available as builtins
            external_marker: Prefix marking a stage as an external program
        """
        self.registry = registry
        self.external_marker = external_marker

    def parse(self, line: str) -> Pipeline:
        """Parse a line into a pipeline.

        Args:
            line: Input line (e.g., "echo hello | upper")

        Returns:
            Resolved pipeline

        Raises:
            ConsoleError: If any stage fails to resolve
        """
        stages = [self.resolve_stage(part) for part in split_pipeline(line)]
        pipeline = Pipeline(stages)
        logger.debug(f"Resolved {pipeline!r}")
        return pipeline

    def resolve_stage(self, raw: str) -> Stage:
        """Resolve one raw stage string.

        Args:
            raw: Stage text between pipes

        Returns:
            BuiltinStage or ExternalStage

        Raises:
            LexError: If the stage cannot be tokenized
            EmptyCommandLineError: If the stage has no command
            UnrecognizedCommandError: If the command is not registered
            ArgumentValidationError: If the command rejects its arguments
        """
        tokens = tokenize(raw)
        if not tokens:
            raise EmptyCommandLineError()

        first = tokens[0]
        if first.startswith(self.external_marker):
            return self._external_stage(tokens)

        command = self.registry.get(first)
        if command is None:
            raise UnrecognizedCommandError(first)

        args = command.validate(tokens)
        return BuiltinStage(command=command, args=args)

    def _external_stage(self, tokens: List[str]) -> ExternalStage:
        program = tokens[0][len(self.external_marker):]
        rest = tokens[1:]
        if not program:
            if not rest:
                raise EmptyCommandLineError()
            program, rest = rest[0], rest[1:]
        return ExternalStage(program=program, args=rest)


def parse_pipeline(line: str, registry: CommandRegistry, external_marker: str = DEFAULT_EXTERNAL_MARKER) -> Pipeline:
    """Parse a pipeline command line.

    Convenience function that creates a parser and parses the line.

    Args:
        line: Command line to parse
        registry: Commands available as builtins
        external_marker: Prefix marking external programs

    Returns:
        Resolved pipeline
    """
    parser = PipelineParser(registry, external_marker)
    return parser.parse(line)
