from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import parse_qs, urlparse

import httpx
import structlog
from aiolimiter import AsyncLimiter
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import DEFAULT_GITHUB_API_URL

logger = structlog.get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableGitHubError(GitHubError):
    pass


class GitHubPermissionError(GitHubError):
    pass


class GitHubNotFoundError(GitHubError):
    pass


@dataclass(frozen=True)
class GitHubResponse:
    data: Any
    headers: Mapping[str, str]
    status_code: int | None = None


RequestFunc = Callable[
    [str, str, dict | None, dict | None],
    Awaitable[GitHubResponse],
]


def header_value(headers: Mapping[str, str], name: str) -> str | None:
    if isinstance(headers, httpx.Headers):
        return headers.get(name)
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def is_rate_limited(status_code: int, headers: Mapping[str, str]) -> bool:
    if status_code == 429:
        return True
    return status_code == 403 and header_value(headers, "x-ratelimit-remaining") == "0"


def raise_for_status(status_code: int, headers: Mapping[str, str], path: str) -> None:
    if status_code < 400:
        return
    if is_rate_limited(status_code, headers) or status_code in RETRYABLE_STATUS:
        raise RetryableGitHubError(f"GitHub retryable {status_code} for {path}", status_code)
    if status_code in {401, 403}:
        raise GitHubPermissionError(f"GitHub denied access to {path}", status_code)
    if status_code == 404:
        raise GitHubNotFoundError(f"GitHub resource not found: {path}", status_code)
    raise GitHubError(f"GitHub API error {status_code} for {path}", status_code)


class GitHubRestClient:
    def __init__(
        self,
        token: str | None,
        base_url: str = DEFAULT_GITHUB_API_URL,
        limiter: AsyncLimiter | None = None,
        request_func: RequestFunc | None = None,
        timeout: float = 30.0,
        max_attempts: int = 5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._limiter = limiter or AsyncLimiter(8, 1)
        self._request_func = request_func
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._client: httpx.AsyncClient | None = None
        self.last_headers: Mapping[str, str] = {}
        if request_func is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": "pr-approvals",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if token:
                headers["Authorization"] = f"Bearer {token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=timeout,
            )

    async def __aenter__(self) -> "GitHubRestClient":
        if self._client is None and self._request_func is None:
            raise RuntimeError("GitHub client unavailable.")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> GitHubResponse:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, RetryableGitHubError)),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
            stop=stop_after_attempt(self._max_attempts),
            reraise=True,
        ):
            with attempt:
                async with self._limiter:
                    response = await self._request(method, path, params, headers)
                self.last_headers = response.headers
                raise_for_status(response.status_code or 200, response.headers, path)
                return response
        raise RuntimeError("GitHub request retries exhausted")

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> GitHubResponse:
        if self._request_func is not None:
            return await self._request_func(method, path, params, headers)

        if self._client is None:
            raise RuntimeError("HTTP client not initialized")
        logger.debug("github_request", method=method, path=path)
        response = await self._client.request(
            method, path, params=params, headers=headers
        )
        data = None
        if response.status_code < 400 and response.content:
            data = response.json()
        return GitHubResponse(
            data=data,
            headers=response.headers,
            status_code=response.status_code,
        )

    async def get_json(self, path: str, params: dict | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return response.data

    async def paginate(
        self,
        path: str,
        params: dict | None = None,
        *,
        max_pages: int | None = None,
    ):
        next_path: str | None = path
        next_params = params or {}
        pages_seen = 0
        while next_path:
            response = await self.request("GET", next_path, params=next_params)
            data = response.data or []
            for item in data:
                yield item
            next_path, next_params = _next_page(response.headers)
            pages_seen += 1
            if max_pages is not None and pages_seen >= max_pages:
                break


def _next_page(headers: Mapping[str, str]) -> tuple[str | None, dict | None]:
    link = header_value(headers, "Link")
    if not link:
        return None, None
    for part in link.split(","):
        section = part.strip()
        if 'rel="next"' not in section:
            continue
        url = section.split(";")[0].strip().lstrip("<").rstrip(">")
        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        return parsed.path, params
    return None, None
