from __future__ import annotations

import asyncio

import pytest

from pr_approvals.owners.models import Team, TeamMember
from pr_approvals.teams.cache import TeamRosterCache


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _team(slug: str, *members: str, resolvable: bool = True) -> Team:
    return Team(
        slug=slug,
        org="acme",
        display_name=slug,
        members=[TeamMember(login=m) for m in members],
        members_resolvable=resolvable,
    )


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_fetch() -> None:
    cache = TeamRosterCache()
    calls = {"count": 0}
    release = asyncio.Event()

    async def fetch() -> Team:
        calls["count"] += 1
        await release.wait()
        return _team("web", "carol")

    waiters = [asyncio.create_task(cache.get_or_fetch("acme/web", fetch)) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    teams = await asyncio.gather(*waiters)

    assert calls["count"] == 1
    assert all(t.member_logins == ["carol"] for t in teams)
    assert "ACME/web" in cache


@pytest.mark.asyncio
async def test_entries_expire_after_ttl() -> None:
    clock = _Clock()
    cache = TeamRosterCache(ttl=60, timer=clock)
    calls = {"count": 0}

    async def fetch() -> Team:
        calls["count"] += 1
        return _team("web")

    await cache.get_or_fetch("acme/web", fetch)
    clock.now = 30
    await cache.get_or_fetch("acme/web", fetch)
    assert calls["count"] == 1

    clock.now = 61
    await cache.get_or_fetch("acme/web", fetch)
    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_invalidate_forces_refetch() -> None:
    cache = TeamRosterCache()
    calls = {"count": 0}

    async def fetch() -> Team:
        calls["count"] += 1
        return _team("web")

    await cache.get_or_fetch("acme/web", fetch)
    cache.invalidate("@acme/web")
    await cache.get_or_fetch("acme/web", fetch)

    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_unresolvable_teams_are_not_cached() -> None:
    cache = TeamRosterCache()

    async def fetch() -> Team:
        return _team("web", resolvable=False)

    team = await cache.get_or_fetch("acme/web", fetch)

    assert not team.members_resolvable
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_fetch_errors_reach_every_waiter_and_are_not_cached() -> None:
    cache = TeamRosterCache()
    release = asyncio.Event()

    async def fetch() -> Team:
        await release.wait()
        raise RuntimeError("boom")

    first = asyncio.create_task(cache.get_or_fetch("acme/web", fetch))
    await asyncio.sleep(0)
    second = asyncio.create_task(cache.get_or_fetch("acme/web", fetch))
    await asyncio.sleep(0)
    release.set()

    results = await asyncio.gather(first, second, return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_cancelled_caller_leaves_fetch_running_for_others() -> None:
    cache = TeamRosterCache()
    release = asyncio.Event()

    async def fetch() -> Team:
        await release.wait()
        return _team("web", "carol")

    first = asyncio.create_task(cache.get_or_fetch("acme/web", fetch))
    await asyncio.sleep(0)
    second = asyncio.create_task(cache.get_or_fetch("acme/web", fetch))
    await asyncio.sleep(0)
    first.cancel()
    release.set()

    team = await second
    await asyncio.gather(first, return_exceptions=True)
    assert team.member_logins == ["carol"]
    assert first.cancelled()
    assert "acme/web" in cache
