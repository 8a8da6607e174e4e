#!/usr/bin/env python3
"""
Close a pull request on GitHub.

  $ close-pr [--close-comment STRING] [--delete-branch] [--strict] OWNER REPO NUMBER

Optionally comments on the PR before closing it, and deletes its head
branch afterwards when the branch lives in the base repository.

Requires a GitHub token in the GITHUB_TOKEN environment variable.
"""

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from github_cli import ArgumentParser, add_verbose_flag, run, setup_logging
from github_client import Config, GitHubClient, PullRequest
from github_errors import ArgumentError, PreconditionError

logger = logging.getLogger(__name__)


class CloseOutcome(enum.Enum):
    SKIPPED = 'skipped'
    CLOSED = 'closed'
    BRANCH_SKIPPED = 'branch_skipped'
    BRANCH_DELETED = 'branch_deleted'


@dataclass(frozen=True)
class CloseOptions:
    close_comment: str = ''
    delete_branch: bool = False
    strict: bool = False


def close_pull_request(client: GitHubClient, owner: str, repo: str, pr: PullRequest,
                       options: CloseOptions) -> CloseOutcome:
    """
    Comment on, close, and optionally delete the branch of a looked-up PR.

    Each step must succeed before the next one runs. Nothing is rolled back
    if a later step fails.
    """
    if not pr.is_open:
        if options.strict:
            raise PreconditionError(f"PR {pr.number} is not open (state: {pr.state})")
        logger.warning(f"PR {pr.number} is not open (state: {pr.state}) - nothing to do")
        return CloseOutcome.SKIPPED

    if options.close_comment:
        client.create_comment(owner, repo, pr.number, options.close_comment)
        logger.debug(f"Commented on PR {pr.number}")

    client.close_pull_request(owner, repo, pr.number)
    logger.info(f"Successfully closed PR {pr.number}")

    if not options.delete_branch:
        return CloseOutcome.CLOSED

    if not pr.is_same_repo:
        logger.warning(
            f"PR head repository {pr.head_repo_name} and base repository {pr.base_repo_name} "
            f"are different - not attempting to delete PR branch"
        )
        return CloseOutcome.BRANCH_SKIPPED

    client.delete_branch(owner, repo, pr.head_ref)
    logger.info(f"Successfully deleted ref {pr.head_ref}")
    return CloseOutcome.BRANCH_DELETED


def parse_pr_number(value: str) -> int:
    number = int(value) if value.isascii() and value.isdigit() else 0
    if number <= 0:
        raise ArgumentError(f"PR number {value} must be a valid positive number")
    return number


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog='close-pr',
        description='Close a pull request on GitHub.'
    )
    parser.add_argument('--close-comment', default='', help='Comment to post before closing')
    parser.add_argument(
        '--delete-branch',
        action='store_true',
        help='Delete the PR branch if it lives in the base repository'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Fail instead of warning when the PR is not open'
    )
    add_verbose_flag(parser)
    parser.add_argument('owner', help='Repository owner')
    parser.add_argument('repo', help='Repository name')
    parser.add_argument('number', help='Pull request number')
    return parser


def close_command(argv: List[str]) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    number = parse_pr_number(args.number)
    options = CloseOptions(
        close_comment=args.close_comment,
        delete_branch=args.delete_branch,
        strict=args.strict,
    )

    client = GitHubClient(Config.from_env())
    pr = client.get_pull_request(args.owner, args.repo, number)
    close_pull_request(client, args.owner, args.repo, pr, options)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    return run(close_command, build_parser(), argv)


if __name__ == '__main__':
    raise SystemExit(main())
