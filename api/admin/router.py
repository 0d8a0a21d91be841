"""
Admin API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/admin", dependencies=[Depends(auth_dependencies.require_admin)])


@router.get("/users")
async def users() -> list[dict]:
    return await service.list_users()


@router.get("/payments")
async def payments() -> list[dict]:
    return await service.list_payments()


@router.get("/github")
async def github_users() -> list[dict]:
    return await service.list_github_users()
