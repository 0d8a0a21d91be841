"""
Content + sitemap endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import dependencies as auth_dependencies

from . import service, sitemap

router = APIRouter()


class PregenerateRequest(BaseModel):
    slugs: list[str] = Field(..., min_length=1, max_length=500)


@router.get("/sitemap.json")
async def sitemap_json() -> list[dict]:
    return await sitemap.build_entries()


@router.post("/content/pregenerate")
async def pregenerate(
    request: PregenerateRequest,
    _admin: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.pregenerate(request.slugs)


@router.get("/content/{slug:path}")
async def content(slug: str) -> dict:
    return await service.get_or_generate(slug)
