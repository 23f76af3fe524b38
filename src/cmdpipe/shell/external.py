"""External program execution for pipeline stages.

The upstream text is written to the child's stdin by a dedicated worker while
the calling thread drains stdout and stderr. Writing everything up front
would deadlock as soon as the child fills its output pipe before it has read
all of its input.
"""

from __future__ import annotations

import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

from cmdpipe.shell.errors import ExternalProcessError

logger = logging.getLogger(__name__)


@dataclass
class ExternalResult:
    """Captured streams of a finished external program."""

    stdout: str
    stderr: str
    returncode: int


def _write_and_close(fd: int, data: bytes) -> None:
    with os.fdopen(fd, 'wb') as pipe:
        pipe.write(data)


class ExternalProcessRunner:
    """Runs programs with literal argv, feeding them text on stdin."""

    def __init__(self, encoding: str = "utf-8"):
        """Initialize runner.

        Args:
            encoding: Encoding used for stdin, stdout and stderr
        """
        self.encoding = encoding

    def run(self, program: str, args: List[str], stdin_text: str = "") -> ExternalResult:
        """Run a program to completion.

        The exit status is returned but never treated as a failure.

        Args:
            program: Program name or path
            args: Arguments passed verbatim
            stdin_text: Text written to the program's stdin

        Returns:
            Captured output, diagnostics and exit status

        Raises:
            ExternalProcessError: If the program cannot be spawned or its
                stdin cannot be written
        """
        argv = [program, *args]
        logger.debug(f"Spawning external program: {argv}")
        data = stdin_text.encode(self.encoding, errors='replace')

        read_fd, write_fd = os.pipe()
        try:
            process = subprocess.Popen(
                argv,
                stdin=read_fd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except (OSError, ValueError) as e:
            os.close(write_fd)
            raise ExternalProcessError(f"Failed to spawn {program}: {e}") from e
        finally:
            os.close(read_fd)

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="stdin-writer") as executor:
            writer = executor.submit(_write_and_close, write_fd, data)
            stdout, stderr = process.communicate()
            try:
                writer.result()
            except Exception as e:
                raise ExternalProcessError(f"Failed to write stdin of {program}: {e}") from e

        logger.debug(f"{program} exited with status {process.returncode}")
        return ExternalResult(
            stdout=stdout.decode(self.encoding, errors='replace'),
            stderr=stderr.decode(self.encoding, errors='replace'),
            returncode=process.returncode
        )
