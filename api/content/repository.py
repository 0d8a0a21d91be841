"""
Generated content SQL (raw). One row per slug, written once.
"""

from __future__ import annotations

from typing import Any

from core import db


async def get_content(slug: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT slug, title, body, generated_at
        FROM generated_content
        WHERE slug = $1
        """,
        slug,
    )


async def insert_content(*, slug: str, title: str, body: str) -> dict[str, Any]:
    """
    Insert-if-absent. When another request stored the slug first, its row wins.
    """
    row = await db.fetch_one(
        """
        INSERT INTO generated_content (slug, title, body)
        VALUES ($1, $2, $3)
        ON CONFLICT (slug) DO NOTHING
        RETURNING slug, title, body, generated_at
        """,
        slug,
        title,
        body,
    )
    if row is None:
        row = await get_content(slug)
    if row is None:
        raise RuntimeError(f"Failed to store content for slug {slug}.")
    return row


async def list_slugs() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT slug, generated_at
        FROM generated_content
        ORDER BY generated_at DESC, slug ASC
        """
    )
