from __future__ import annotations

import base64
from datetime import datetime
from typing import Any, Iterable, Sequence

import httpx
import structlog

from ..config import DEFAULT_CODEOWNERS_PATHS
from ..errors import UpstreamUnavailable
from ..owners.models import ReviewState
from ..report import PullRequestInfo, PullRequestStatus
from .client import GitHubError, GitHubNotFoundError, GitHubRestClient
from .urls import PullRequestRef

logger = structlog.get_logger(__name__)

# Review states that replace a reviewer's earlier verdict. COMMENTED and
# PENDING reviews leave an earlier approval in place.
_DECISIVE_STATES = {"APPROVED", "CHANGES_REQUESTED", "DISMISSED"}


def _parse_dt(value: Any) -> datetime | None:
    if not value:
        return None
    s = str(value)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def _decode_content(payload: object) -> str | None:
    if not isinstance(payload, dict):
        return None
    content = payload.get("content")
    if not isinstance(content, str):
        return None
    encoding = str(payload.get("encoding") or "").lower()
    if encoding == "base64":
        raw = base64.b64decode(content)
        return raw.decode("utf-8", errors="replace")
    return str(content)


def fold_reviews(reviews: Iterable[dict[str, Any]]) -> list[str]:
    """Return reviewers whose latest decisive review is an approval.

    Reviews are expected in submission order, as the API returns them. The
    result keeps the order in which the surviving approvals were submitted.
    """
    latest: dict[str, tuple[int, str, str]] = {}
    for idx, review in enumerate(reviews):
        user = review.get("user") or {}
        login = str(user.get("login") or "").strip()
        state = str(review.get("state") or "").upper()
        if not login or state not in _DECISIVE_STATES:
            continue
        latest[login.lower()] = (idx, login, state)
    approved = [v for v in latest.values() if v[2] == "APPROVED"]
    return [login for _, login, _ in sorted(approved)]


def pull_request_info(ref: PullRequestRef, payload: dict[str, Any]) -> PullRequestInfo:
    merged = bool(payload.get("merged") or payload.get("merged_at"))
    state = "merged" if merged else str(payload.get("state") or "open")
    user = payload.get("user") or {}
    base = payload.get("base") or {}
    head = payload.get("head") or {}
    return PullRequestInfo(
        repo=ref.full_name,
        number=int(payload.get("number") or ref.number),
        title=str(payload.get("title") or ""),
        author=user.get("login"),
        state=state,
        url=str(payload.get("html_url") or ref.html_url),
        base_ref=base.get("ref"),
        base_sha=base.get("sha"),
        head_sha=head.get("sha"),
        status_details=PullRequestStatus(
            is_merged=merged,
            merged_at=_parse_dt(payload.get("merged_at")),
            mergeable_state=payload.get("mergeable_state"),
            is_draft=bool(payload.get("draft")),
        ),
    )


class PullRequestSource:
    """Reads everything the engine needs about one pull request."""

    def __init__(
        self,
        client: GitHubRestClient,
        ref: PullRequestRef,
        *,
        codeowners_paths: Sequence[str] = DEFAULT_CODEOWNERS_PATHS,
    ) -> None:
        self.client = client
        self.ref = ref
        self.codeowners_paths = tuple(codeowners_paths)

    @property
    def _base(self) -> str:
        return f"/repos/{self.ref.owner}/{self.ref.repo}"

    async def _collect(self, path: str, what: str) -> list[Any]:
        try:
            return [item async for item in self.client.paginate(path, params={"per_page": 100})]
        except (GitHubError, httpx.HTTPError) as exc:
            raise UpstreamUnavailable(f"could not fetch {what} for {self.ref.full_name}#{self.ref.number}") from exc

    async def fetch_info(self) -> PullRequestInfo:
        try:
            payload = await self.client.get_json(f"{self._base}/pulls/{self.ref.number}")
        except (GitHubError, httpx.HTTPError) as exc:
            raise UpstreamUnavailable(
                f"could not fetch pull request {self.ref.full_name}#{self.ref.number}"
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailable("unexpected pull request payload")
        return pull_request_info(self.ref, payload)

    async def fetch_changed_files(self) -> list[str]:
        items = await self._collect(f"{self._base}/pulls/{self.ref.number}/files", "files")
        return [str(f["filename"]) for f in items if isinstance(f, dict) and f.get("filename")]

    async def fetch_review_state(self) -> ReviewState:
        reviews = await self._collect(f"{self._base}/pulls/{self.ref.number}/reviews", "reviews")
        try:
            requested = await self.client.get_json(
                f"{self._base}/pulls/{self.ref.number}/requested_reviewers"
            )
        except (GitHubError, httpx.HTTPError) as exc:
            raise UpstreamUnavailable("could not fetch requested reviewers") from exc

        requested = requested if isinstance(requested, dict) else {}
        reviewers = [str(u["login"]) for u in requested.get("users") or [] if u.get("login")]
        reviewers += [
            f"{self.ref.owner}/{t['slug']}" for t in requested.get("teams") or [] if t.get("slug")
        ]
        return ReviewState(approvals=fold_reviews(reviews), requested_reviewers=reviewers)

    async def fetch_rules_text(self, ref: str | None) -> tuple[str, str | None]:
        """Return the first CODEOWNERS file found at `ref` and its path.

        A repository without one yields empty text.
        """
        params = {"ref": ref} if ref else None
        for path in self.codeowners_paths:
            try:
                payload = await self.client.get_json(f"{self._base}/contents/{path}", params=params)
            except GitHubNotFoundError:
                continue
            except (GitHubError, httpx.HTTPError) as exc:
                raise UpstreamUnavailable(f"could not fetch {path}") from exc
            text = _decode_content(payload)
            if text is not None:
                logger.debug("codeowners_found", repo=self.ref.full_name, path=path)
                return text.replace("\r\n", "\n"), path
        logger.info("codeowners_missing", repo=self.ref.full_name)
        return "", None
