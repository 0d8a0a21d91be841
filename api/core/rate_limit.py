"""
Fixed-window rate limiting backed by Postgres.

One row per (namespace, identifier, window_start); the counter is bumped with
a single upsert so concurrent requests across workers see the same count.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import HTTPException, status

from . import config, db

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_S = 60


def search_limit_per_minute() -> int:
    return config.env_int("RATE_LIMIT_SEARCH_PER_MINUTE", 10)


def _window_start(now_s: float, window_s: int) -> datetime:
    start = int(now_s) - (int(now_s) % window_s)
    return datetime.fromtimestamp(start, tz=timezone.utc)


async def hit(namespace: str, identifier: str, *, window_s: int = DEFAULT_WINDOW_S) -> int:
    """
    Count one request and return the number of requests in the current window.
    """
    window_start = _window_start(time.time(), window_s)
    count = await db.fetch_val(
        """
        INSERT INTO rate_limits (namespace, identifier, window_start, count)
        VALUES ($1, $2, $3, 1)
        ON CONFLICT (namespace, identifier, window_start) DO UPDATE
        SET count = rate_limits.count + 1
        RETURNING count
        """,
        namespace,
        identifier,
        window_start,
    )
    return int(count or 0)


async def check_limit(
    namespace: str,
    identifier: str,
    *,
    limit: int,
    window_s: int = DEFAULT_WINDOW_S,
    detail: str = "Too many requests. Please try again in a minute.",
) -> None:
    if limit <= 0:
        return None

    key = (identifier or "").strip().lower()
    count = await hit(namespace, key, window_s=window_s)
    if count > limit:
        logger.warning("rate_limited namespace=%s identifier=%s count=%s limit=%s", namespace, key, count, limit)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)
