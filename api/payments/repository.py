"""
Payments persistence (payments + raw webhook events).
"""

from __future__ import annotations

from typing import Any

from core import db

PAYMENT_COLUMNS = """
    id, user_id, order_id, amount, status, metadata, created_at, updated_at
"""


async def create_payment(
    *,
    user_id: str,
    order_id: str,
    amount: float | int | None,
    status: str,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO payments (user_id, order_id, amount, status, metadata)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {PAYMENT_COLUMNS}
        """,
        user_id,
        order_id,
        amount,
        status,
        metadata or {},
    )
    if row is None:
        raise RuntimeError("Failed to create payment record.")
    return row


async def update_status(order_id: str, status: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE payments
        SET status = $2, updated_at = now()
        WHERE order_id = $1
        RETURNING {PAYMENT_COLUMNS}
        """,
        order_id,
        status,
    )


async def get_by_order_id(order_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {PAYMENT_COLUMNS}
        FROM payments
        WHERE order_id = $1
        ORDER BY id ASC
        LIMIT 1
        """,
        order_id,
    )


async def has_payment(user_id: str) -> bool:
    value = await db.fetch_val("SELECT EXISTS (SELECT 1 FROM payments WHERE user_id = $1)", user_id)
    return bool(value)


async def list_for_user(user_id: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {PAYMENT_COLUMNS}
        FROM payments
        WHERE user_id = $1
        ORDER BY created_at DESC, id DESC
        """,
        user_id,
    )


async def list_payment_user_ids() -> set[str]:
    rows = await db.fetch_all("SELECT DISTINCT user_id FROM payments")
    return {str(row["user_id"]) for row in rows}


async def insert_webhook_event(event_name: str, body: dict[str, Any]) -> int:
    value = await db.fetch_val(
        """
        INSERT INTO webhook_events (event_name, body)
        VALUES ($1, $2)
        RETURNING id
        """,
        event_name,
        body,
    )
    if value is None:
        raise RuntimeError("Failed to store webhook event.")
    return int(value)


async def mark_webhook_event(event_id: int, *, error: str | None = None) -> None:
    await db.execute(
        """
        UPDATE webhook_events
        SET processed = $2, processing_error = $3
        WHERE id = $1
        """,
        event_id,
        error is None,
        error,
    )
