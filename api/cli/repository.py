"""
Custom registry persistence.
"""

from __future__ import annotations

from typing import Any

from core import db

REGISTRY_COLUMNS = "name, url, description, base_component_url, base_block_url"


async def list_custom_registries() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {REGISTRY_COLUMNS}
        FROM custom_registries
        ORDER BY created_at ASC, name ASC
        """
    )


async def get_custom_registry(name: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {REGISTRY_COLUMNS}
        FROM custom_registries
        WHERE name = $1
        """,
        name,
    )


async def insert_custom_registry(
    *,
    name: str,
    url: str,
    description: str,
    base_component_url: str,
    base_block_url: str,
) -> dict[str, Any] | None:
    """
    Returns None when a registry with this name already exists.
    """
    return await db.fetch_one(
        f"""
        INSERT INTO custom_registries ({REGISTRY_COLUMNS})
        VALUES ($1, $2, $3, $4, $5)
        ON CONFLICT (name) DO NOTHING
        RETURNING {REGISTRY_COLUMNS}
        """,
        name,
        url,
        description,
        base_component_url,
        base_block_url,
    )


async def delete_custom_registry(name: str) -> bool:
    row = await db.fetch_one("DELETE FROM custom_registries WHERE name = $1 RETURNING name", name)
    return row is not None
