"""
Component registry client + pure helpers for browsing registry indexes.

A registry serves `<url>/index.json` (a list of items) and per-item details at
`<url>/styles/<style>/<item>.json`. Items look like:

    {"name": "button", "type": "registry:ui", "description": "...",
     "categories": ["forms"], "dependencies": ["@radix-ui/react-slot"]}
"""

from __future__ import annotations

from typing import Any

import httpx

from core import config

BUILT_IN_REGISTRIES: tuple[dict[str, str], ...] = (
    {
        "name": "shadcn/ui",
        "url": "https://ui.shadcn.com/r",
        "description": "Official shadcn/ui component registry with customizable components and blocks",
        "base_component_url": "https://ui.shadcn.com/r",
        "base_block_url": "https://ui.shadcn.com/r",
    },
    {
        "name": "Magic UI",
        "url": "https://magicui.design/r",
        "description": "Beautiful animated components and effects for modern web applications",
        "base_component_url": "https://magicui.design/r",
        "base_block_url": "https://magicui.design/r",
    },
    {
        "name": "Bones Registry",
        "url": "https://registry.bones.sh",
        "description": "Community-driven component registry",
        "base_component_url": "https://registry.bones.sh",
        "base_block_url": "https://registry.bones.sh",
    },
)

ITEM_TYPES = {"components": "registry:ui", "blocks": "registry:block"}


class RegistryError(RuntimeError):
    pass


def timeout_s() -> float:
    return config.env_float("REGISTRY_TIMEOUT_S", 20.0)


def built_in_names() -> set[str]:
    return {registry["name"] for registry in BUILT_IN_REGISTRIES}


def index_url(registry_url: str) -> str:
    if registry_url.endswith("index.json"):
        return registry_url
    if registry_url.endswith("/"):
        return f"{registry_url}index.json"
    return f"{registry_url}/index.json"


def item_url(base_url: str, item_name: str, style: str = "default") -> str:
    base = base_url[: -len("/index.json")] if base_url.endswith("/index.json") else base_url.rstrip("/")
    return f"{base}/styles/{style}/{item_name}.json"


async def _get_json(url: str) -> Any:
    async with httpx.AsyncClient(timeout=timeout_s(), follow_redirects=True) as client:
        resp = await client.get(url)
    if resp.status_code != 200:
        raise RegistryError(f"Failed to fetch {url}: {resp.status_code} {resp.reason_phrase}")
    try:
        return resp.json()
    except ValueError as exc:
        raise RegistryError(f"Registry returned invalid JSON: {url}") from exc


async def fetch_registry_index(registry_url: str) -> list[dict[str, Any]]:
    data = await _get_json(index_url(registry_url))
    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        raise RegistryError("Registry index is not a list of items.")
    return [item for item in data if isinstance(item, dict)]


async def fetch_item_details(base_url: str, item_name: str, style: str = "default") -> dict[str, Any]:
    url = item_url(base_url, item_name, style)
    data = await _get_json(url)
    if not isinstance(data, dict):
        raise RegistryError("Registry item is not an object.")
    return {**data, "componentUrl": url}


def categorize_items(items: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    categorized: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        key = "Blocks" if item.get("type") == "registry:block" else "Components"
        categorized.setdefault(key, []).append(item)
    return categorized


def group_items_by_type(items: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        for category in item.get("categories") or ["Uncategorized"]:
            grouped.setdefault(category, []).append(item)
    return grouped


def _haystack(item: dict[str, Any]) -> str:
    parts = [
        str(item.get("name") or ""),
        str(item.get("description") or ""),
        *(str(value) for value in item.get("categories") or []),
        *(str(value) for value in item.get("dependencies") or []),
    ]
    return " ".join(parts).lower()


def search_items(
    items: list[dict[str, Any]],
    query: str = "",
    *,
    item_type: str = "all",
    category: str | None = None,
) -> list[dict[str, Any]]:
    """
    Filter by type (`components` / `blocks`), category and query terms.

    Every whitespace-separated term must appear in the item's name,
    description, categories or dependencies.
    """
    wanted_type = ITEM_TYPES.get(item_type)
    terms = (query or "").lower().split()

    results = []
    for item in items:
        if wanted_type and item.get("type") != wanted_type:
            continue
        if category and category != "all" and category not in (item.get("categories") or []):
            continue
        if terms:
            haystack = _haystack(item)
            if not all(term in haystack for term in terms):
                continue
        results.append(item)
    return results
