"""
Command-line plumbing shared by close_pr and list_pr.
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from github_errors import ArgumentError, GitHubToolError

logger = logging.getLogger(__name__)


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises ArgumentError instead of exiting"""

    def error(self, message):
        raise ArgumentError(message)


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug output'
    )


def setup_logging(verbose: bool = False) -> None:
    # stderr only, stdout is reserved for command output
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='[%(levelname)s] %(message)s',
        stream=sys.stderr,
    )


def run(command: Callable[[List[str]], int], parser: argparse.ArgumentParser,
        argv: Optional[List[str]] = None) -> int:
    """
    Run a command and map any tool error to an exit code.

    Argument errors also print the usage text to stderr.
    """
    try:
        return command(sys.argv[1:] if argv is None else argv)
    except ArgumentError as e:
        logger.error(f"Invalid argument: {e}")
        parser.print_usage(sys.stderr)
        return e.exit_code
    except GitHubToolError as e:
        logger.error(str(e))
        return e.exit_code
