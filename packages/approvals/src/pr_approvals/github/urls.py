from __future__ import annotations

import re
from dataclasses import dataclass

_PR_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]{0,38}))/"
    r"(?P<repo>[A-Za-z0-9._-]+)/pull/(?P<number>\d+)"
    r"(?:[/?#].*)?$"
)


@dataclass(frozen=True)
class PullRequestRef:
    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/pull/{self.number}"


def parse_pull_request_url(url: str) -> PullRequestRef:
    m = _PR_URL_RE.match(url.strip())
    if not m:
        raise ValueError(f"not a GitHub pull request URL: {url!r}")
    return PullRequestRef(
        owner=m.group("owner"),
        repo=m.group("repo"),
        number=int(m.group("number")),
    )
