from __future__ import annotations

import pytest
from pydantic import ValidationError

from pr_approvals.config import DEFAULT_CODEOWNERS_PATHS, ApprovalsConfig


def test_defaults_without_environment():
    cfg = ApprovalsConfig.from_env({})

    assert cfg == ApprovalsConfig()
    assert cfg.codeowners_paths == DEFAULT_CODEOWNERS_PATHS


def test_environment_overrides_defaults():
    cfg = ApprovalsConfig.from_env(
        {
            "PR_APPROVALS_TEAM_CONCURRENCY": "3",
            "PR_APPROVALS_TEAM_RESOLUTION_TIMEOUT": "2.5",
            "PR_APPROVALS_CODEOWNERS_PATHS": " CODEOWNERS , .github/CODEOWNERS,",
            "PR_APPROVALS_GITHUB_API_URL": "",
            "UNRELATED": "1",
        }
    )

    assert cfg.team_concurrency == 3
    assert cfg.team_resolution_timeout == 2.5
    assert cfg.codeowners_paths == ("CODEOWNERS", ".github/CODEOWNERS")
    assert cfg.github_api_url == "https://api.github.com"


def test_invalid_environment_value_is_rejected():
    with pytest.raises(ValidationError):
        ApprovalsConfig.from_env({"PR_APPROVALS_TEAM_CONCURRENCY": "many"})
