from __future__ import annotations

import asyncio
import functools
import time
from typing import Awaitable, Callable

import structlog
from cachetools import TTLCache

from ..config import DEFAULT_TEAM_CACHE_MAX_SIZE, DEFAULT_TEAM_CACHE_TTL_SECONDS
from ..owners.models import Team

logger = structlog.get_logger(__name__)


def cache_key(team_name: str) -> str:
    return team_name.strip().lstrip("@").lower()


class TeamRosterCache:
    """Read-through cache of resolved team rosters.

    Entries expire after `ttl` seconds. Concurrent `get_or_fetch` calls for
    the same key share a single in-flight fetch, which keeps running when one
    of its callers is cancelled. Teams whose members could not be listed are
    returned to the caller but never stored.
    """

    def __init__(
        self,
        *,
        ttl: float = DEFAULT_TEAM_CACHE_TTL_SECONDS,
        max_size: int = DEFAULT_TEAM_CACHE_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TTLCache[str, Team] = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)
        self._inflight: dict[str, asyncio.Future[Team]] = {}

    def get(self, team_name: str) -> Team | None:
        return self._entries.get(cache_key(team_name))

    def put(self, team_name: str, team: Team) -> None:
        if team.members_resolvable:
            self._entries[cache_key(team_name)] = team

    def invalidate(self, team_name: str) -> None:
        self._entries.pop(cache_key(team_name), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, team_name: object) -> bool:
        return isinstance(team_name, str) and cache_key(team_name) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(
        self, team_name: str, fetch: Callable[[], Awaitable[Team]]
    ) -> Team:
        key = cache_key(team_name)
        hit = self._entries.get(key)
        if hit is not None:
            logger.debug("team_cache_hit", team=key)
            return hit

        task = self._inflight.get(key)
        if task is None:
            # Owned by the cache: cancelling a caller leaves it running.
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
        else:
            logger.debug("team_cache_join", team=key)
        return await asyncio.shield(task)

    def _settle(self, key: str, task: asyncio.Future[Team]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("team_fetch_failed", team=key, error=str(exc))
            return
        self.put(key, task.result())
