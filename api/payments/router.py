"""
Lemon Squeezy webhook endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Header, Request
from fastapi.responses import PlainTextResponse

from . import service

router = APIRouter(prefix="/webhooks")


@router.post("/lemonsqueezy", response_class=PlainTextResponse)
async def lemonsqueezy_webhook(
    request: Request,
    x_signature: str | None = Header(default=None),
) -> str:
    raw_body = await request.body()
    await service.handle_webhook(raw_body, x_signature)
    return "Webhook processed"


@router.get("/lemonsqueezy", response_class=PlainTextResponse, status_code=405)
async def lemonsqueezy_webhook_get() -> str:
    return "Method not allowed"
