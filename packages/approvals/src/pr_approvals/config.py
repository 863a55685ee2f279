from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_CODEOWNERS_PATHS: tuple[str, ...] = (
    ".github/CODEOWNERS",
    "CODEOWNERS",
    "docs/CODEOWNERS",
)
DEFAULT_TEAM_CONCURRENCY = 8
DEFAULT_TEAM_CACHE_TTL_SECONDS = 300.0
DEFAULT_TEAM_CACHE_MAX_SIZE = 512
DEFAULT_TEAM_RESOLUTION_TIMEOUT = 20.0
DEFAULT_RATE_LIMIT_WARNING_THRESHOLD = 100
DEFAULT_REQUESTS_PER_SECOND = 8.0

ENV_PREFIX = "PR_APPROVALS_"


class ApprovalsConfig(BaseModel):
    github_api_url: str = DEFAULT_GITHUB_API_URL
    codeowners_paths: tuple[str, ...] = DEFAULT_CODEOWNERS_PATHS
    team_concurrency: int = DEFAULT_TEAM_CONCURRENCY
    team_cache_ttl_seconds: float = DEFAULT_TEAM_CACHE_TTL_SECONDS
    team_cache_max_size: int = DEFAULT_TEAM_CACHE_MAX_SIZE
    team_resolution_timeout: float = DEFAULT_TEAM_RESOLUTION_TIMEOUT
    rate_limit_warning_threshold: int = DEFAULT_RATE_LIMIT_WARNING_THRESHOLD
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ApprovalsConfig":
        """Build a config from `PR_APPROVALS_*` variables over the defaults.

        `PR_APPROVALS_CODEOWNERS_PATHS` is a comma-separated list.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or not raw.strip():
                continue
            if name == "codeowners_paths":
                values[name] = tuple(p.strip() for p in raw.split(",") if p.strip())
            else:
                values[name] = raw.strip()
        return cls.model_validate(values)
