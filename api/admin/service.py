"""
Admin dashboard data.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from auth import repository as auth_repository
from payments import service as payment_service

from . import github

logger = logging.getLogger(__name__)


async def list_users() -> list[dict[str, Any]]:
    return await payment_service.get_users_with_payments()


async def list_payments() -> list[dict[str, Any]]:
    return await payment_service.get_payments_with_users()


async def _github_details(username: str) -> dict[str, Any] | None:
    try:
        return await github.get_collaborator_details(username)
    except (github.GitHubError, httpx.HTTPError):
        logger.warning("github_lookup_failed username=%s", username, exc_info=True)
        return None


async def list_github_users() -> list[dict[str, Any]]:
    """
    Users with a GitHub username, each enriched with a concurrent profile lookup.
    """
    users = await auth_repository.list_github_users()
    details = await asyncio.gather(*(_github_details(str(user["github_username"])) for user in users))
    return [{**user, "github_details": detail} for user, detail in zip(users, details)]
