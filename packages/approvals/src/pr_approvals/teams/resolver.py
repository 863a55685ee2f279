from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

import structlog

from ..config import DEFAULT_TEAM_CONCURRENCY, DEFAULT_TEAM_RESOLUTION_TIMEOUT
from ..errors import Diagnostic, DiagnosticKind
from ..owners.models import OwnerKind, OwnerRef, Team
from .cache import TeamRosterCache, cache_key

logger = structlog.get_logger(__name__)

# Receives the team owner name (`org/team`) and returns its metadata. A team
# whose members cannot be listed comes back with `members_resolvable=False`.
TeamLookup = Callable[[str], Awaitable[Team]]


@dataclass
class TeamResolution:
    rosters: dict[str, Team] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def get(self, owner: OwnerRef) -> Team | None:
        return self.rosters.get(cache_key(owner.name))


def _unresolved(owner: OwnerRef, reason: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.unresolved_team,
        message=f"members of {owner.handle} unavailable: {reason}",
        subject=owner.name,
    )


class TeamResolver:
    """Resolve team owners to rosters with bounded concurrency.

    Every distinct team is looked up once. Lookups that fail, are cancelled,
    or are still running when the deadline passes (or `stop` is set) degrade
    to `members_resolvable=False`; they never abort the other teams.
    """

    def __init__(
        self,
        lookup: TeamLookup,
        *,
        cache: TeamRosterCache | None = None,
        concurrency: int = DEFAULT_TEAM_CONCURRENCY,
        timeout: float | None = DEFAULT_TEAM_RESOLUTION_TIMEOUT,
    ) -> None:
        self._lookup = lookup
        self._cache = cache
        self._concurrency = max(1, concurrency)
        self._timeout = timeout

    async def _fetch(self, owner: OwnerRef, gate: asyncio.Semaphore) -> Team:
        async with gate:
            if self._cache is not None:
                return await self._cache.get_or_fetch(
                    owner.name, lambda: self._lookup(owner.name)
                )
            return await self._lookup(owner.name)

    async def resolve(
        self,
        owners: Sequence[OwnerRef],
        *,
        stop: asyncio.Event | None = None,
    ) -> TeamResolution:
        teams: list[OwnerRef] = []
        seen: set[str] = set()
        for o in owners:
            if o.kind is not OwnerKind.team or cache_key(o.name) in seen:
                continue
            seen.add(cache_key(o.name))
            teams.append(o)

        out = TeamResolution()
        if not teams:
            return out

        gate = asyncio.Semaphore(self._concurrency)
        tasks = {cache_key(o.name): asyncio.create_task(self._fetch(o, gate)) for o in teams}
        stopper: asyncio.Task | None = None
        if stop is not None:
            stopper = asyncio.create_task(stop.wait())

        loop = asyncio.get_running_loop()
        deadline = None if self._timeout is None else loop.time() + self._timeout
        try:
            pending: set[asyncio.Future] = set(tasks.values())
            while pending:
                remaining = None if deadline is None else deadline - loop.time()
                if remaining is not None and remaining <= 0:
                    break
                watch = pending | ({stopper} if stopper is not None else set())
                done, _ = await asyncio.wait(
                    watch, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                if not done or (stopper is not None and stopper in done):
                    break
                pending -= done
        finally:
            for t in tasks.values():
                if not t.done():
                    t.cancel()
            if stopper is not None:
                stopper.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)

        for owner in teams:
            task = tasks[cache_key(owner.name)]
            team: Team
            if task.cancelled():
                logger.warning("team_resolution_abandoned", team=owner.name)
                out.diagnostics.append(_unresolved(owner, "resolution did not finish"))
                team = Team.unresolvable(owner)
            elif task.exception() is not None:
                exc = task.exception()
                logger.warning("team_resolution_failed", team=owner.name, error=str(exc))
                out.diagnostics.append(_unresolved(owner, type(exc).__name__))
                team = Team.unresolvable(owner)
            else:
                team = task.result()
                if not team.members_resolvable:
                    out.diagnostics.append(_unresolved(owner, "insufficient access"))
            out.rosters[cache_key(owner.name)] = team

        logger.debug(
            "teams_resolved",
            teams=len(teams),
            unresolved=len(out.diagnostics),
        )
        return out
