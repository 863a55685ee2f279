from __future__ import annotations

import pytest
from aiolimiter import AsyncLimiter

from pr_approvals.github.client import GitHubResponse, GitHubRestClient
from pr_approvals.github.teams import GitHubTeamDirectory


def _directory(routes: dict[str, GitHubResponse]) -> GitHubTeamDirectory:
    async def request(method, path, params=None, headers=None):
        return routes.get(path, GitHubResponse(data=None, headers={}, status_code=404))

    client = GitHubRestClient(
        token="x", request_func=request, limiter=AsyncLimiter(1000, 1), max_attempts=1
    )
    return GitHubTeamDirectory(client)


@pytest.mark.asyncio
async def test_lists_team_members_sorted():
    lookup = _directory(
        {
            "/orgs/acme/teams/core": GitHubResponse(
                data={"slug": "core", "name": "Core", "description": "Core maintainers"},
                headers={},
            ),
            "/orgs/acme/teams/core/members": GitHubResponse(
                data=[
                    {"login": "dave", "avatar_url": "https://avatars/dave"},
                    {"login": "Carol"},
                ],
                headers={},
            ),
        }
    )

    team = await lookup("@acme/core")

    assert team.full_name == "acme/core"
    assert team.display_name == "Core"
    assert team.members_resolvable is True
    assert team.member_logins == ["Carol", "dave"]
    assert team.members[1].avatar_url == "https://avatars/dave"


@pytest.mark.asyncio
async def test_hidden_members_keep_team_metadata():
    lookup = _directory(
        {
            "/orgs/acme/teams/core": GitHubResponse(
                data={"slug": "core", "name": "Core"}, headers={}
            ),
            "/orgs/acme/teams/core/members": GitHubResponse(
                data=None, headers={}, status_code=403
            ),
        }
    )

    team = await lookup("acme/core")

    assert team.display_name == "Core"
    assert team.members_resolvable is False
    assert team.members == []


@pytest.mark.asyncio
async def test_unknown_team_is_unresolvable():
    team = await _directory({})("acme/ghosts")

    assert team.members_resolvable is False
    assert team.full_name == "acme/ghosts"
