from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Mapping

from ..config import DEFAULT_RATE_LIMIT_WARNING_THRESHOLD
from ..report import RateLimitInfo
from .client import header_value


def rate_limit_from_headers(
    headers: Mapping[str, str],
    *,
    threshold: int = DEFAULT_RATE_LIMIT_WARNING_THRESHOLD,
    now: datetime | None = None,
) -> RateLimitInfo | None:
    """Summarise the `X-RateLimit-*` headers of the latest response."""
    raw_limit = header_value(headers, "x-ratelimit-limit")
    raw_remaining = header_value(headers, "x-ratelimit-remaining")
    raw_reset = header_value(headers, "x-ratelimit-reset")
    if raw_limit is None or raw_remaining is None or raw_reset is None:
        return None
    try:
        limit = int(raw_limit)
        remaining = int(raw_remaining)
        reset_at = datetime.fromtimestamp(int(raw_reset), tz=timezone.utc)
    except ValueError:
        return None

    current = now or datetime.now(timezone.utc)
    seconds = max(0.0, (reset_at - current).total_seconds())
    return RateLimitInfo(
        limit=limit,
        remaining=remaining,
        reset_at=reset_at,
        minutes_until_reset=math.ceil(seconds / 60),
        reset_time_formatted=reset_at.strftime("%H:%M:%S UTC"),
        show_warning=remaining <= threshold,
    )
