"""
Sitemap entries: static routes by priority plus every stored content slug.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from core import config

from . import repository

HIGH_PRIORITY_ROUTES = ("/", "/docs", "/features", "/pricing")
MEDIUM_PRIORITY_ROUTES = ("/launch", "/faq", "/tasks", "/download", "/components")
LOW_PRIORITY_ROUTES = ("/terms-of-service", "/privacy-policy")
EXAMPLE_ROUTES = (
    "/examples/dashboard",
    "/examples/forms",
    "/examples/authentication",
    "/examples/forms/notifications",
    "/examples/forms/profile",
)
CONTENT_PREFIX = "/content"


def _entry(base_url: str, route: str, *, last_modified: datetime, change_frequency: str, priority: float) -> dict:
    return {
        "url": f"{base_url}{route}",
        "last_modified": last_modified.isoformat(),
        "change_frequency": change_frequency,
        "priority": priority,
    }


def static_entries(now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    base_url = config.site_url()
    groups = (
        (HIGH_PRIORITY_ROUTES, "daily", 1.0),
        (MEDIUM_PRIORITY_ROUTES, "weekly", 0.8),
        (LOW_PRIORITY_ROUTES, "monthly", 0.5),
        (EXAMPLE_ROUTES, "weekly", 0.7),
    )
    return [
        _entry(base_url, route, last_modified=now, change_frequency=frequency, priority=priority)
        for routes, frequency, priority in groups
        for route in routes
    ]


async def build_entries() -> list[dict[str, Any]]:
    entries = static_entries()
    base_url = config.site_url()
    for row in await repository.list_slugs():
        entries.append(
            _entry(
                base_url,
                f"{CONTENT_PREFIX}/{row['slug']}",
                last_modified=row["generated_at"],
                change_frequency="monthly",
                priority=0.6,
            )
        )
    return entries
