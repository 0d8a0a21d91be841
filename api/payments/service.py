"""
Payment status, admin reporting and Lemon Squeezy webhook handling.

Local `payments` rows are the source of truth for "has paid". Lemon Squeezy
orders fill the gap for purchases made before the buyer had an account (or
with a different email); a paid order found that way is persisted locally.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import asyncpg
import httpx
from fastapi import HTTPException, status

from auth import repository as auth_repository

from . import lemonsqueezy, repository

logger = logging.getLogger(__name__)

_LOOKUP_ERRORS = (RuntimeError, ValueError, httpx.HTTPError, asyncpg.PostgresError, OSError)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PaymentNotFoundError(RuntimeError):
    pass


async def _load_user(user_id: str) -> dict | None:
    if user_id.isdigit():
        return await auth_repository.get_user_by_id(int(user_id))
    if "@" in user_id:
        return await auth_repository.get_user_by_email(user_id)
    return None


def _matches_user(order: dict[str, Any], *, user_id: str, email: str) -> bool:
    custom_data = lemonsqueezy.order_custom_data(order)
    if str(custom_data.get("user_id") or "") == user_id:
        return True
    order_email = str((order.get("attributes") or {}).get("user_email") or "")
    return bool(order_email) and order_email.lower() == email.lower()


async def get_user_payment_status(user_id: str) -> bool:
    logger.debug("payment_status_check user_id=%s", user_id)
    try:
        if await repository.has_payment(user_id):
            return True

        user = await _load_user(user_id)
        if not user or not user.get("email"):
            return False

        orders = await lemonsqueezy.list_orders()
        paid_order = next(
            (
                order
                for order in orders
                if _matches_user(order, user_id=user_id, email=str(user["email"]))
                and (order.get("attributes") or {}).get("status") == "paid"
            ),
            None,
        )
        if paid_order is None:
            return False

        attributes = paid_order.get("attributes") or {}
        await repository.create_payment(
            user_id=user_id,
            order_id=str(paid_order.get("id")),
            amount=attributes.get("total"),
            status="completed",
            metadata={
                "custom_data": lemonsqueezy.order_custom_data(paid_order),
                "order_data": attributes,
            },
        )
        logger.info("payment_linked user_id=%s order_id=%s", user_id, paid_order.get("id"))
        return True
    except _LOOKUP_ERRORS:
        logger.exception("payment_status_check_failed user_id=%s", user_id)
        return False


async def create_payment(
    *,
    user_id: str,
    order_id: str,
    amount: float | int | None,
    status: str,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payment = await repository.create_payment(
        user_id=user_id,
        order_id=order_id,
        amount=amount,
        status=status,
        metadata=metadata,
    )
    logger.info("payment_created payment_id=%s order_id=%s user_id=%s", payment["id"], order_id, user_id)
    return payment


async def update_payment_status(order_id: str, new_status: str) -> dict[str, Any]:
    payment = await repository.update_status(order_id, new_status)
    if payment is None:
        logger.error("payment_not_found order_id=%s status=%s", order_id, new_status)
        raise PaymentNotFoundError(f"Payment not found for order {order_id}.")
    logger.info("payment_status_updated order_id=%s status=%s", order_id, new_status)
    return payment


async def get_payment_by_order_id(order_id: str) -> dict[str, Any] | None:
    return await repository.get_by_order_id(order_id)


async def get_user_payments(user_id: str) -> list[dict[str, Any]]:
    return await repository.list_for_user(user_id)


async def _normalized_orders() -> list[dict[str, Any]]:
    orders = await lemonsqueezy.list_orders()
    return [lemonsqueezy.normalize_order(order) for order in orders]


def _by_purchase_date(order: dict[str, Any]) -> datetime:
    return order.get("purchase_date") or _EPOCH


async def get_users_with_payments() -> list[dict[str, Any]]:
    """
    Every user with an email, annotated with DB + Lemon Squeezy purchase data.
    """
    users = await auth_repository.list_users()
    if not users:
        return []

    paid_user_ids = await repository.list_payment_user_ids()
    try:
        orders = await _normalized_orders()
    except _LOOKUP_ERRORS:
        logger.exception("lemonsqueezy_orders_unavailable")
        orders = []

    result: list[dict[str, Any]] = []
    for user in users:
        email = str(user.get("email") or "")
        if not email:
            continue

        user_orders = sorted(
            (order for order in orders if str(order["user_email"]).lower() == email.lower()),
            key=_by_purchase_date,
            reverse=True,
        )
        has_db_payment = str(user["id"]) in paid_user_ids or email.lower() in paid_user_ids
        result.append(
            {
                "id": user["id"],
                "name": user.get("name"),
                "email": email,
                "created_at": user.get("created_at"),
                "has_paid": has_db_payment or any(order["status"] == "paid" for order in user_orders),
                "last_purchase_date": user_orders[0]["purchase_date"] if user_orders else None,
                "total_purchases": len(user_orders),
                "purchases": [
                    {
                        "id": order["id"],
                        "order_id": order["order_id"],
                        "amount": order["amount"],
                        "status": order["status"],
                        "product_name": order["product_name"],
                        "purchase_date": order["purchase_date"],
                    }
                    for order in user_orders
                ],
            }
        )
    return result


async def get_payments_with_users() -> list[dict[str, Any]]:
    try:
        orders = await _normalized_orders()
    except _LOOKUP_ERRORS:
        logger.exception("payments_listing_failed")
        return []

    payments = [{key: value for key, value in order.items() if key != "attributes"} for order in orders]
    return sorted(payments, key=_by_purchase_date, reverse=True)


async def _process_event(event_name: str, meta: dict[str, Any], data: dict[str, Any]) -> None:
    attributes = data.get("attributes") or {}
    order_id = str(data.get("id") or "")

    if event_name == "order_created":
        custom_data = meta.get("custom_data") or {}
        user_id = custom_data.get("user_id") or attributes.get("user_email")
        if not user_id:
            logger.error("webhook_missing_user order_id=%s", order_id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No user identifier found")

        await create_payment(
            user_id=str(user_id),
            order_id=order_id,
            amount=attributes.get("total_usd") or attributes.get("total"),
            status=str(attributes.get("status") or "pending"),
            metadata={
                "custom_data": custom_data,
                "order_data": attributes,
                "test_mode": meta.get("test_mode"),
            },
        )
    elif event_name == "order_refunded":
        await update_payment_status(order_id, "refunded")
    else:
        logger.info("webhook_unhandled event_name=%s order_id=%s", event_name, order_id)


async def handle_webhook(raw_body: bytes, signature: str | None) -> None:
    secret = lemonsqueezy.webhook_secret()
    if secret and not lemonsqueezy.verify_signature(raw_body, signature, secret=secret):
        logger.warning("webhook_invalid_signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    meta = payload.get("meta") or {}
    data = payload.get("data") or {}
    event_name = str(meta.get("event_name") or "")
    logger.info("webhook_received event_name=%s order_id=%s", event_name, data.get("id"))

    try:
        event_id = await repository.insert_webhook_event(event_name, payload)
    except _LOOKUP_ERRORS as exc:
        logger.exception("webhook_store_failed event_name=%s", event_name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook error") from exc

    try:
        await _process_event(event_name, meta, data)
    except HTTPException as exc:
        await repository.mark_webhook_event(event_id, error=str(exc.detail))
        raise
    except _LOOKUP_ERRORS as exc:
        logger.exception("webhook_processing_failed event_name=%s event_id=%s", event_name, event_id)
        await repository.mark_webhook_event(event_id, error=str(exc))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook error") from exc

    await repository.mark_webhook_event(event_id)
    logger.info("webhook_processed event_name=%s event_id=%s", event_name, event_id)
