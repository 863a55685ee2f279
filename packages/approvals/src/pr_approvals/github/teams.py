from __future__ import annotations

import httpx
import structlog

from ..owners.models import OwnerRef, Team, TeamMember
from .client import GitHubError, GitHubRestClient

logger = structlog.get_logger(__name__)


class GitHubTeamDirectory:
    """Team lookup backed by the GitHub organisation teams API.

    Listing members needs `read:org`; without it the team is returned with
    `members_resolvable=False` instead of raising.
    """

    def __init__(self, client: GitHubRestClient) -> None:
        self.client = client

    async def __call__(self, team_name: str) -> Team:
        owner = OwnerRef.team(team_name)
        if owner.org is None:
            return Team.unresolvable(owner)
        base = f"/orgs/{owner.org}/teams/{owner.slug}"

        try:
            meta = await self.client.get_json(base)
        except (GitHubError, httpx.HTTPError) as exc:
            logger.warning("team_metadata_unavailable", team=team_name, error=str(exc))
            return Team.unresolvable(owner)

        meta = meta if isinstance(meta, dict) else {}
        team = Team(
            slug=str(meta.get("slug") or owner.slug),
            org=owner.org,
            display_name=str(meta.get("name") or owner.slug),
            description=meta.get("description"),
        )

        try:
            members = [
                TeamMember(login=str(m["login"]), avatar_url=m.get("avatar_url"))
                async for m in self.client.paginate(f"{base}/members", params={"per_page": 100})
                if isinstance(m, dict) and m.get("login")
            ]
        except (GitHubError, httpx.HTTPError) as exc:
            logger.warning("team_members_unavailable", team=team_name, error=str(exc))
            return team.model_copy(update={"members_resolvable": False})

        members.sort(key=lambda m: m.login.lower())
        return team.model_copy(update={"members": members})
