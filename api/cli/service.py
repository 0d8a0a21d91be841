"""
Registry browsing: built-in + custom registries, item search and details.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import HTTPException, status

from . import registry, repository, schemas

logger = logging.getLogger(__name__)


async def list_registries() -> list[dict[str, Any]]:
    custom = await repository.list_custom_registries()
    return [
        *({**entry, "built_in": True} for entry in registry.BUILT_IN_REGISTRIES),
        *({**entry, "built_in": False} for entry in custom),
    ]


async def get_registry(name: str) -> dict[str, Any]:
    for entry in registry.BUILT_IN_REGISTRIES:
        if entry["name"] == name:
            return dict(entry)

    custom = await repository.get_custom_registry(name)
    if custom is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Registry {name} not found")
    return custom


async def add_registry(payload: schemas.RegistryCreate) -> dict[str, Any]:
    name = payload.name.strip()
    if name in registry.built_in_names():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Registry {name} already exists")

    url = payload.url.strip().rstrip("/")
    row = await repository.insert_custom_registry(
        name=name,
        url=url,
        description=payload.description.strip(),
        base_component_url=(payload.base_component_url or "").strip() or url,
        base_block_url=(payload.base_block_url or "").strip() or url,
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Registry {name} already exists")

    logger.info("registry_added name=%s url=%s", name, url)
    return {**row, "built_in": False}


async def remove_registry(name: str) -> dict[str, bool]:
    if name in registry.built_in_names():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Built-in registries cannot be removed")
    if not await repository.delete_custom_registry(name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Registry {name} not found")

    logger.info("registry_removed name=%s", name)
    return {"ok": True}


async def browse_items(
    registry_name: str,
    *,
    query: str = "",
    item_type: str = "all",
    category: str | None = None,
) -> dict[str, Any]:
    entry = await get_registry(registry_name)
    try:
        items = await registry.fetch_registry_index(entry["url"])
    except (registry.RegistryError, httpx.HTTPError) as exc:
        logger.warning("registry_index_failed registry=%s error=%s", registry_name, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    matches = registry.search_items(items, query, item_type=item_type, category=category)
    return {
        "registry": entry["name"],
        "total": len(matches),
        "items": matches,
        "categorized": registry.categorize_items(matches),
        "grouped": registry.group_items_by_type(matches),
    }


async def item_details(registry_name: str, item_name: str, *, style: str = "default") -> dict[str, Any]:
    entry = await get_registry(registry_name)
    try:
        return await registry.fetch_item_details(entry["base_component_url"], item_name, style)
    except (registry.RegistryError, httpx.HTTPError) as exc:
        logger.warning("registry_item_failed registry=%s item=%s error=%s", registry_name, item_name, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
