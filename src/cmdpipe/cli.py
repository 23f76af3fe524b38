from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

from cmdpipe.config import ConsoleConfig, load_config
from cmdpipe.shell.repl import Console, run_command, run_repl, run_script


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: Enable debug logging
        quiet: Suppress info logging
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog='cmdpipe',
        description="Interactive command-pipeline console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cmdpipe\n"
            "  cmdpipe -e 'echo hello | upper'\n"
            "  cmdpipe --script commands.txt\n"
        )
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        metavar='PATH',
        help='Path to a YAML configuration file'
    )
    parser.add_argument(
        '--command', '-e',
        metavar='LINE',
        help='Execute a single pipeline and exit'
    )
    parser.add_argument(
        '--script',
        type=Path,
        metavar='PATH',
        help='Execute pipelines from a file, one per line'
    )
    parser.add_argument(
        '--prompt',
        help='Override the prompt string'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress informational output'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    if args.config is not None:
        try:
            logger.debug(f"Loading configuration from {args.config}")
            config = load_config(args.config)
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            if args.verbose:
                logger.exception("Configuration error details:")
            return 1
    else:
        config = ConsoleConfig()

    if args.prompt is not None:
        config = config.model_copy(update={'prompt': args.prompt})

    if args.command is not None:
        return run_command(args.command, config=config)

    if args.script is not None:
        if not args.script.exists():
            logger.error(f"Script not found: {args.script}")
            return 1
        return run_script(args.script, Console(config=config))

    return run_repl(config=config)


if __name__ == "__main__":
    sys.exit(main())
