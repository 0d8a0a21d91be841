"""
Lemon Squeezy HTTP client (JSON:API).

Used endpoint:
- GET {LEMONSQUEEZY_API_URL}/v1/orders
    -> {"data": [{"id": "...", "attributes": {...}}], "links": {"next": "..."}}

Webhook signatures are hex HMAC-SHA256 digests of the raw request body keyed
with LEMONSQUEEZY_WEBHOOK_SECRET.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Any

import httpx

from core import config

DEFAULT_API_URL = "https://api.lemonsqueezy.com"
PAGE_SIZE = 100
MAX_PAGES = 50


class LemonSqueezyError(RuntimeError):
    pass


def api_key() -> str:
    return config.env_str("LEMONSQUEEZY_API_KEY")


def api_url() -> str:
    return config.env_str("LEMONSQUEEZY_API_URL", DEFAULT_API_URL).rstrip("/")


def webhook_secret() -> str:
    return config.env_str("LEMONSQUEEZY_WEBHOOK_SECRET")


def timeout_s() -> float:
    return config.env_float("LEMONSQUEEZY_TIMEOUT_S", 30.0)


def _headers() -> dict[str, str]:
    key = api_key()
    if not key:
        raise LemonSqueezyError("LEMONSQUEEZY_API_KEY is not set.")
    return {
        "Accept": "application/vnd.api+json",
        "Content-Type": "application/vnd.api+json",
        "Authorization": f"Bearer {key}",
    }


async def list_orders(*, user_email: str | None = None) -> list[dict[str, Any]]:
    """
    Fetch every order (following JSON:API `links.next`), optionally filtered by email.
    """
    params: dict[str, Any] | None = {"page[size]": PAGE_SIZE}
    if user_email:
        params["filter[user_email]"] = user_email.strip()

    orders: list[dict[str, Any]] = []
    url: str | None = "/v1/orders"
    async with httpx.AsyncClient(base_url=api_url(), timeout=timeout_s(), headers=_headers()) as client:
        for _ in range(MAX_PAGES):
            if url is None:
                break
            resp = await client.get(url, params=params)
            if resp.status_code != 200:
                body = resp.text[:500]
                raise LemonSqueezyError(f"Order listing failed: {resp.status_code} {body}")

            try:
                data = resp.json()
            except ValueError as exc:
                raise LemonSqueezyError(f"Order listing returned a non-JSON body: {resp.text[:200]}") from exc
            if not isinstance(data, dict):
                raise LemonSqueezyError("Order listing returned an unexpected payload.")

            page = data.get("data")
            if isinstance(page, list):
                orders.extend(item for item in page if isinstance(item, dict))

            # `next` already carries the query string.
            links = data.get("links")
            url = (links.get("next") if isinstance(links, dict) else None) or None
            params = None
    return orders


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def normalize_order(order: dict[str, Any]) -> dict[str, Any]:
    attributes = order.get("attributes") or {}
    first_item = attributes.get("first_order_item") or {}
    return {
        "id": str(order.get("id") or ""),
        "order_id": attributes.get("identifier"),
        "user_email": attributes.get("user_email") or "Unknown",
        "user_name": attributes.get("user_name"),
        "amount": (attributes.get("total") or 0) / 100,
        "status": attributes.get("status"),
        "product_name": first_item.get("variant_name") or "Unknown Product",
        "purchase_date": _parse_datetime(attributes.get("created_at")),
        "attributes": attributes,
    }


def order_custom_data(order: dict[str, Any]) -> dict[str, Any]:
    attributes = order.get("attributes") or {}
    custom_data = attributes.get("custom_data")
    if not isinstance(custom_data, dict):
        custom_data = ((order.get("meta") or {}).get("custom_data")) or {}
    return custom_data if isinstance(custom_data, dict) else {}


def verify_signature(raw_body: bytes, signature: str | None, *, secret: str) -> bool:
    if not signature:
        return False
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, signature.strip())
