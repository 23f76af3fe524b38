"""Built-in commands for the console.

Provides a small set of example commands: echo, upper, lower, buzz, help and
exit.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, TextIO

from cmdpipe.shell.command import Command, CommandRegistry, format_help
from cmdpipe.shell.errors import CommandError

logger = logging.getLogger(__name__)


class EchoCommand(Command):
    """Write the arguments joined by spaces."""

    name = "echo"
    description = "Write arguments to the output"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument('words', nargs='*', metavar='WORD', help='Words to write')
        parser.add_argument(
            '-n', '--no-newline',
            action='store_true',
            help='Do not write the trailing newline'
        )

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        stdout.write(' '.join(args.words))
        if not args.no_newline:
            stdout.write('\n')


class UpperCommand(Command):
    name = "upper"
    description = "Uppercase the input"

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        stdout.write(stdin.upper())


class LowerCommand(Command):
    name = "lower"
    description = "Lowercase the input"

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        stdout.write(stdin.lower())


class BuzzCommand(Command):
    """Queue an asynchronous message shown before the next prompt."""

    name = "buzz"
    description = "Register an asynchronous message with the console"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument('message', metavar='MESSAGE', help='Message to add to the queue')

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        state.add_async_message(args.message)
        stdout.write("Hello, world!\n")


class HelpCommand(Command):
    """List registered commands or show one command's usage."""

    name = "help"
    description = "Show help for available commands"

    def __init__(self, registry: CommandRegistry):
        """Initialize help command.

        Args:
            registry: Registry whose commands are described
        """
        self.registry = registry

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument('command', nargs='?', metavar='COMMAND', help='Command to describe')

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        if args.command is None:
            lines = ["Available commands:", ""]
            for cmd in self.registry.list_commands():
                lines.append(f"  {cmd.name:<15} {cmd.description}")
            lines.extend([
                "",
                "Pipeline syntax:",
                "  echo hello | upper",
                "",
                "Prefix a stage with ! to run an external program:",
                "  echo hello | !tr a-z A-Z",
            ])
            stdout.write('\n'.join(lines) + '\n')
            return

        command = self.registry.get(args.command)
        if command is None:
            raise CommandError(f"No command '{args.command}'")
        stdout.write(format_help(command))


class ExitCommand(Command):
    name = "exit"
    description = "Exit the console"

    def execute(self, state: Any, args: argparse.Namespace, stdin: str, stdout: TextIO) -> None:
        logger.debug("Exiting console...")
        state.request_exit()


def register_builtins(registry: CommandRegistry) -> CommandRegistry:
    """Register the example commands.

    Args:
        registry: Registry to populate

    Returns:
        The same registry
    """
    for command in (
        EchoCommand(),
        UpperCommand(),
        LowerCommand(),
        BuzzCommand(),
        HelpCommand(registry),
        ExitCommand(),
    ):
        registry.register(command)
    return registry


def default_registry() -> CommandRegistry:
    """Create a registry holding every builtin."""
    return register_builtins(CommandRegistry())
