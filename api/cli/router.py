"""
CLI endpoints: registry browser, component installer, project info.

Registry names may contain "/" (e.g. "shadcn/ui"), so they travel as a query
parameter or as a trailing path segment.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import StreamingResponse

from auth import dependencies as auth_dependencies

from . import installer, project, schemas, service

router = APIRouter(prefix="/cli", dependencies=[Depends(auth_dependencies.require_admin)])


@router.get("/registries")
async def registries() -> list[dict]:
    return await service.list_registries()


@router.post("/registries", status_code=201)
async def add_registry(payload: schemas.RegistryCreate) -> dict:
    return await service.add_registry(payload)


@router.delete("/registries/{name:path}")
async def remove_registry(name: str) -> dict:
    return await service.remove_registry(name)


@router.get("/items")
async def items(
    registry: str = Query(..., min_length=1),
    q: str = Query(default="", max_length=200),
    type: Literal["all", "components", "blocks"] = "all",
    category: str | None = Query(default=None, max_length=100),
) -> dict:
    return await service.browse_items(registry, query=q, item_type=type, category=category)


@router.get("/items/{item_name}")
async def item(
    item_name: str = Path(..., pattern=r"^[A-Za-z0-9_.-]+$"),
    registry: str = Query(..., min_length=1),
    style: str = Query(default="default", pattern=r"^[A-Za-z0-9_-]+$"),
) -> dict:
    return await service.item_details(registry, item_name, style=style)


@router.post("/install")
async def install(payload: schemas.InstallRequest) -> StreamingResponse:
    stream = installer.install_component(
        payload.component_url,
        overwrite=payload.overwrite,
        style=payload.style,
        typescript=payload.typescript,
        path=payload.path,
    )
    return StreamingResponse(stream, media_type="text/plain; charset=utf-8")


@router.get("/project")
async def project_info() -> dict:
    return await project.project_info()
