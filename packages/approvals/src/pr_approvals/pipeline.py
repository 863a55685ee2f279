from __future__ import annotations

import asyncio

import structlog
from aiolimiter import AsyncLimiter

from .analysis import AnalysisResult, resolve_approvals
from .config import ApprovalsConfig
from .github.auth import select_auth_token
from .github.client import GitHubRestClient
from .github.pulls import PullRequestSource
from .github.rate_limit import rate_limit_from_headers
from .github.teams import GitHubTeamDirectory
from .github.urls import parse_pull_request_url
from .teams.cache import TeamRosterCache

logger = structlog.get_logger(__name__)


def build_client(config: ApprovalsConfig, token: str | None) -> GitHubRestClient:
    return GitHubRestClient(
        token=token,
        base_url=config.github_api_url,
        limiter=AsyncLimiter(config.requests_per_second, 1),
    )


def build_cache(config: ApprovalsConfig) -> TeamRosterCache:
    return TeamRosterCache(
        ttl=config.team_cache_ttl_seconds,
        max_size=config.team_cache_max_size,
    )


async def analyze_pull_request(
    pr_url: str,
    *,
    client: GitHubRestClient,
    config: ApprovalsConfig | None = None,
    cache: TeamRosterCache | None = None,
    stop: asyncio.Event | None = None,
) -> AnalysisResult:
    """Fetch a pull request and report which approvals it still needs.

    Raises `ValueError` for a malformed URL and `UpstreamUnavailable` when
    the pull request data itself cannot be read.
    """
    cfg = config or ApprovalsConfig()
    ref = parse_pull_request_url(pr_url)
    source = PullRequestSource(client, ref, codeowners_paths=cfg.codeowners_paths)

    info = await source.fetch_info()
    files, review_state, (rules_text, rules_path) = await asyncio.gather(
        source.fetch_changed_files(),
        source.fetch_review_state(),
        source.fetch_rules_text(info.base_sha or info.base_ref),
    )
    logger.info(
        "pull_request_loaded",
        repo=ref.full_name,
        number=ref.number,
        files=len(files),
        approvals=len(review_state.approvals),
        rules_path=rules_path,
    )

    result = await resolve_approvals(
        files,
        rules_text,
        review_state,
        GitHubTeamDirectory(client),
        cache=cache,
        concurrency=cfg.team_concurrency,
        timeout=cfg.team_resolution_timeout,
        stop=stop,
    )
    result.report.pr_info = info
    result.report.rate_limit_info = rate_limit_from_headers(
        client.last_headers, threshold=cfg.rate_limit_warning_threshold
    )
    return result


async def analyze_pull_request_url(
    pr_url: str,
    *,
    token: str | None = None,
    config: ApprovalsConfig | None = None,
    cache: TeamRosterCache | None = None,
) -> AnalysisResult:
    cfg = config or ApprovalsConfig.from_env()
    async with build_client(cfg, select_auth_token(token)) as client:
        return await analyze_pull_request(
            pr_url,
            client=client,
            config=cfg,
            cache=cache if cache is not None else build_cache(cfg),
        )
