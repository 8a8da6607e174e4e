#!/usr/bin/env python3
"""
List every pull request matching a GitHub search query.

  $ list-pr QUERY

Prints a JSON array of {number, title, state, url} objects. All result
pages are held in memory before anything is printed, so very broad
queries grow without bound.

Requires a GitHub token in the GITHUB_TOKEN environment variable.
"""

import json
import logging
from typing import List, Optional

from github_cli import ArgumentParser, add_verbose_flag, run, setup_logging
from github_client import Config, GitHubClient

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog='list-pr',
        description='List pull requests matching a GitHub search query as JSON.'
    )
    add_verbose_flag(parser)
    parser.add_argument('query', help='GitHub search query, e.g. "repo:acme/widgets is:open"')
    return parser


def list_command(argv: List[str]) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    client = GitHubClient(Config.from_env())
    results = client.search_pull_requests(args.query)
    logger.debug(f"Found {len(results)} pull requests")

    print(json.dumps([pr.to_dict() for pr in results]))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    return run(list_command, build_parser(), argv)


if __name__ == '__main__':
    raise SystemExit(main())
