"""
GitHub REST client (collaborator lookups for the admin view).

Used endpoints:
- GET /users/{username}
- GET /repos/{owner}/{repo}/collaborators/{username}/permission
    -> {"permission": "admin" | "write" | "read" | "none", ...}

The repository is configured with GITHUB_REPO_OWNER / GITHUB_REPO_NAME. When
it is not configured only the public profile is returned.
"""

from __future__ import annotations

from typing import Any

import httpx

from core import config

DEFAULT_API_URL = "https://api.github.com"


class GitHubError(RuntimeError):
    pass


def api_url() -> str:
    return config.env_str("GITHUB_API_URL", DEFAULT_API_URL).rstrip("/")


def repo() -> tuple[str, str] | None:
    owner = config.env_str("GITHUB_REPO_OWNER")
    name = config.env_str("GITHUB_REPO_NAME")
    if not owner or not name:
        return None
    return owner, name


def timeout_s() -> float:
    return config.env_float("GITHUB_TIMEOUT_S", 15.0)


def _json_object(resp: httpx.Response, action: str) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as exc:
        raise GitHubError(f"{action} returned a non-JSON body: {resp.text[:200]}") from exc
    if not isinstance(data, dict):
        raise GitHubError(f"{action} returned an unexpected payload.")
    return data


def _headers() -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    token = config.env_str("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def _repo_permission(client: httpx.AsyncClient, username: str) -> str | None:
    configured = repo()
    if configured is None:
        return None

    owner, name = configured
    resp = await client.get(f"/repos/{owner}/{name}/collaborators/{username}/permission")
    if resp.status_code == 404:
        return None
    if resp.status_code != 200:
        body = resp.text[:300]
        raise GitHubError(f"Permission lookup failed for {username}: {resp.status_code} {body}")

    permission = _json_object(resp, f"Permission lookup for {username}").get("permission")
    return str(permission) if permission else None


async def get_collaborator_details(username: str) -> dict[str, Any]:
    username = (username or "").strip()
    if not username:
        raise GitHubError("GitHub username is empty.")

    async with httpx.AsyncClient(base_url=api_url(), timeout=timeout_s(), headers=_headers()) as client:
        resp = await client.get(f"/users/{username}")
        if resp.status_code != 200:
            body = resp.text[:300]
            raise GitHubError(f"User lookup failed for {username}: {resp.status_code} {body}")
        profile = _json_object(resp, f"User lookup for {username}")
        permission = await _repo_permission(client, username)

    return {
        "login": profile.get("login") or username,
        "name": profile.get("name"),
        "avatar_url": profile.get("avatar_url"),
        "html_url": profile.get("html_url"),
        "public_repos": profile.get("public_repos"),
        "followers": profile.get("followers"),
        "permission": permission,
        "is_collaborator": permission not in (None, "none"),
    }
