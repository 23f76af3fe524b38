"""Command capability and the command registry.

Commands declare their arguments with ``argparse``. The console never lets a
parser exit the process: ``CommandArgumentParser`` collects whatever argparse
would print and raises ``ArgumentValidationError`` instead.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO

from cmdpipe.shell.errors import ArgumentValidationError

logger = logging.getLogger(__name__)


class CommandArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._pending: List[str] = []

    def _print_message(self, message: str, file: Any = None) -> None:
        if message:
            self._pending.append(message)

    def exit(self, status: int = 0, message: Optional[str] = None) -> None:
        if message:
            self._pending.append(message)
        text = ''.join(self._pending).rstrip('\n')
        self._pending = []
        raise ArgumentValidationError(text, status=status)


@dataclass(frozen=True)
class PositionalSpec:
    """A declared positional slot."""

    id: str


@dataclass(frozen=True)
class OptionSpec:
    """A declared option flag with a long form, a short form, or both."""

    long: Optional[str] = None
    short: Optional[str] = None


@dataclass
class ArgumentSchema:
    """Positionals and options declared by a command's parser."""

    positionals: List[PositionalSpec] = field(default_factory=list)
    options: List[OptionSpec] = field(default_factory=list)

    @classmethod
    def from_parser(cls, parser: argparse.ArgumentParser) -> 'ArgumentSchema':
        """Read declared arguments off an argparse parser.

        Help actions are left out. Option strings that are neither ``--long``
        nor a single-character ``-s`` are ignored.

        Args:
            parser: Parser to inspect

        Returns:
            Argument schema
        """
        schema = cls()
        for action in parser._actions:
            if isinstance(action, argparse._HelpAction):
                continue
            if not action.option_strings:
                metavar = action.metavar
                if isinstance(metavar, tuple):
                    metavar = ' '.join(metavar)
                schema.positionals.append(PositionalSpec(id=metavar or action.dest))
                continue

            long = next((s[2:] for s in action.option_strings if s.startswith('--')), None)
            short = next(
                (s[1] for s in action.option_strings
                 if len(s) == 2 and s[0] == '-' and s[1] != '-'),
                None
            )
            if long is None and short is None:
                logger.debug(f"Skipping option without long or short form: {action.option_strings}")
                continue
            schema.options.append(OptionSpec(long=long, short=short))
        return schema


class Command:
    """Base class for builtin commands.

    Subclasses set ``name`` (and optionally ``description``), declare their
    arguments in ``configure_parser`` and implement ``execute``.
    """

    name: str = ''
    description: str = ''

    def get_name(self) -> str:
        return self.name

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        """Add arguments to this command's parser. No arguments by default."""
        pass

    def get_parser(self) -> CommandArgumentParser:
        """Build a fresh parser for this command.

        Returns:
            Parser whose ``prog`` is the command name
        """
        parser = CommandArgumentParser(prog=self.name, description=self.description or None)
        self.configure_parser(parser)
        return parser

    def get_schema(self) -> ArgumentSchema:
        return ArgumentSchema.from_parser(self.get_parser())

    def validate(self, tokens: List[str]) -> argparse.Namespace:
        """Validate and bind a full token list (command name first).

        Args:
            tokens: Tokens of the stage, starting with the command name

        Returns:
            Bound arguments

        Raises:
            ArgumentValidationError: If the tokens do not match the parser
        """
        return self.get_parser().parse_args(tokens[1:])

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        """Run the command.

        Args:
            state: Console state handle (async messages, exit flag)
            args: Arguments bound by ``validate``
            stdin: Output of the previous stage, empty for the first stage
            stdout: Stream receiving this stage's output

        Raises:
            CommandError: If the command fails
        """
        raise NotImplementedError('Command.execute must be implemented')

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FunctionCommand(Command):
    """Command backed by a plain function.

    The function is called as ``func(state, args, stdin, stdout)``.
    """

    def __init__(
        self,
        name: str,
        func: Callable[..., None],
        description: str = "",
        configure: Optional[Callable[[argparse.ArgumentParser], None]] = None
    ):
        self.name = name
        self.description = description
        self.func = func
        self._configure = configure

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        if self._configure is not None:
            self._configure(parser)

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        self.func(state, args, stdin, stdout)


class CommandRegistry:
    """Registry of builtin commands, keyed by name."""

    def __init__(self):
        """Initialize an empty registry."""
        self._commands: Dict[str, Command] = {}
        self._frozen = False

    def register(self, command: Command) -> Command:
        """Register a command.

        Args:
            command: Command to register

        Returns:
            The registered command

        Raises:
            ValueError: If the name is empty or already taken
            RuntimeError: If the registry has been frozen
        """
        if self._frozen:
            raise RuntimeError("Cannot register commands once the console is running")
        name = command.get_name()
        if not name:
            raise ValueError(f"Command {command!r} has no name")
        if name in self._commands:
            raise ValueError(f"Command '{name}' is already registered")
        self._commands[name] = command
        logger.debug(f"Registered command: {name}")
        return command

    def command(
        self,
        name: str,
        description: str = "",
        configure: Optional[Callable[[argparse.ArgumentParser], None]] = None
    ) -> Callable:
        """Decorator registering a function as a command.

        Args:
            name: Command name
            description: Help text
            configure: Optional callback adding arguments to the parser

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            self.register(FunctionCommand(name, func, description, configure))
            return func
        return decorator

    def freeze(self) -> None:
        """Refuse further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def names(self) -> List[str]:
        """Registered command names, sorted."""
        return sorted(self._commands)

    def list_commands(self) -> List[Command]:
        return [self._commands[name] for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


def format_help(command: Command) -> str:
    """Render a command's argparse help text."""
    return command.get_parser().format_help()
