"""Context-sensitive tab completion.

Completes command names in the first word of the current stage, and option
flags after it using the command's argparse declarations. Positional slots
are shown as hints only.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import List, Tuple

from cmdpipe.shell.command import CommandRegistry, OptionSpec
from cmdpipe.shell.parser import last_stage_offset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A completion offered at the cursor.

    An empty ``replacement`` marks an informational hint.
    """

    display: str
    replacement: str


class CompletionEngine:
    """Computes completions against a command registry."""

    def __init__(self, registry: CommandRegistry):
        """Initialize completion engine.

        Args:
            registry: Commands to complete
        """
        self.registry = registry

    def complete(self, line: str, cursor: int) -> Tuple[int, List[Candidate]]:
        """Complete the word at ``cursor``.

        Args:
            line: Full input line
            cursor: Cursor offset into ``line``

        Returns:
            Tuple of (offset where replacements start, candidates)
        """
        offset = last_stage_offset(line[:cursor])
        segment = line[offset:cursor]

        try:
            tokens = shlex.split(segment)
        except ValueError:
            return cursor, []

        typed = segment.lstrip()
        if len(tokens) <= 1 and not any(char.isspace() for char in typed):
            prefix = tokens[0] if tokens else ""
            return cursor - len(typed), self._complete_command(prefix)

        command = self.registry.get(tokens[0])
        if command is None:
            return cursor, []
        schema = command.get_schema()

        if segment[-1].isspace():
            return cursor, [Candidate(display=arg.id, replacement="") for arg in schema.positionals]

        word = tokens[-1]
        if word.startswith('--'):
            return cursor - len(word), self._complete_long(word, schema.options)
        if word.startswith('-'):
            return cursor - len(word), self._complete_any(word, schema.options)
        return cursor, []

    def _complete_command(self, prefix: str) -> List[Candidate]:
        return [
            Candidate(display=name, replacement=name)
            for name in self.registry.names()
            if name.startswith(prefix)
        ]

    def _complete_long(self, word: str, options: List[OptionSpec]) -> List[Candidate]:
        candidates = []
        for option in options:
            if option.long is None:
                continue
            replacement = f"--{option.long}"
            if replacement.startswith(word):
                candidates.append(Candidate(display=f"[{replacement}]", replacement=replacement))
        return candidates

    def _complete_any(self, word: str, options: List[OptionSpec]) -> List[Candidate]:
        candidates = []
        for option in options:
            if option.long is not None and option.short is not None:
                display = f"[-{option.short}, --{option.long}]"
                replacement = f"-{option.short} "
            elif option.long is not None:
                display = f"[--{option.long}]"
                replacement = f"--{option.long} "
            elif option.short is not None:
                display = f"[-{option.short}]"
                replacement = f"-{option.short} "
            else:
                raise AssertionError("Option must have at least one of long or short form")

            if replacement.startswith(word):
                candidates.append(Candidate(display=display, replacement=replacement))
        return candidates
