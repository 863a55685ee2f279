from .auth import select_auth_token
from .client import (
    GitHubError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubResponse,
    GitHubRestClient,
    RetryableGitHubError,
)
from .pulls import PullRequestSource
from .teams import GitHubTeamDirectory
from .urls import PullRequestRef, parse_pull_request_url

__all__ = [
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
    "GitHubResponse",
    "GitHubRestClient",
    "GitHubTeamDirectory",
    "PullRequestRef",
    "PullRequestSource",
    "RetryableGitHubError",
    "parse_pull_request_url",
    "select_auth_token",
]
