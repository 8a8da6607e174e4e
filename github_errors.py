"""Exceptions raised by the GitHub PR tools."""


class GitHubToolError(Exception):
    """Base class for every error the tools report"""
    exit_code = 1


class ConfigError(GitHubToolError):
    exit_code = 2


class ArgumentError(GitHubToolError):
    exit_code = 2


class AuthError(GitHubToolError):
    pass


class NotFoundError(GitHubToolError):
    pass


class TransportError(GitHubToolError):
    """Network failure or timeout talking to GitHub"""


class APIError(GitHubToolError):
    """GitHub answered with an unexpected status or a GraphQL error"""


class PreconditionError(GitHubToolError):
    pass
