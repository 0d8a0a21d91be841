"""
Auth persistence helpers (users + refresh tokens).
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db

USER_COLUMNS = """
    id, email, password_hash, name, image, github_username,
    is_admin, is_active, created_at, updated_at
"""

REFRESH_TOKEN_COLUMNS = """
    id, user_id, token_hash, expires_at, revoked_at,
    replaced_by_token_id, created_at, last_used_at, user_agent, ip_address
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _clean_optional(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


async def create_user(
    *,
    email: str,
    password_hash: str,
    name: str | None = None,
    github_username: str | None = None,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash, name, github_username)
        VALUES ($1, $2, $3, $4)
        RETURNING {USER_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
        _clean_optional(name),
        _clean_optional(github_username),
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def update_profile(user_id: int, *, fields: dict[str, str | None]) -> dict | None:
    """
    Update the given profile columns; keys outside the allowlist are ignored.
    """
    allowed = ("name", "image", "github_username")
    updates = [(key, _clean_optional(fields[key])) for key in allowed if key in fields]
    if not updates:
        return await get_user_by_id(user_id)

    assignments = ", ".join(f"{key} = ${i}" for i, (key, _value) in enumerate(updates, start=2))
    return await db.fetch_one(
        f"""
        UPDATE users
        SET {assignments}, updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        *[value for _key, value in updates],
    )


async def insert_refresh_token(
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        f"""
        INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {REFRESH_TOKEN_COLUMNS}
        """,
        user_id,
        token_hash,
        expires_at,
        user_agent,
        ip_address,
    )
    if row is None:
        raise RuntimeError("Failed to insert refresh token.")
    return row


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {REFRESH_TOKEN_COLUMNS}
        FROM refresh_tokens
        WHERE token_hash = $1
        """,
        token_hash,
    )


async def rotate_refresh_token(*, old_token_id: int, new_token_id: int) -> None:
    """
    Mark the old token as used + revoked and link it to its replacement.
    """
    await db.execute(
        """
        UPDATE refresh_tokens
        SET last_used_at = now(),
            revoked_at = COALESCE(revoked_at, now()),
            replaced_by_token_id = $2
        WHERE id = $1
        """,
        old_token_id,
        new_token_id,
    )


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE token_hash = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_hash,
    )
    return row is not None


async def revoke_refresh_token_by_id(token_id: int) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE id = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_id,
    )
    return row is not None


async def revoke_all_refresh_tokens_for_user(user_id: int) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE user_id = $1
          AND revoked_at IS NULL
        """,
        user_id,
    )


async def list_users() -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        ORDER BY created_at DESC, id DESC
        """
    )


async def list_github_users() -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, email, name, github_username, created_at, updated_at
        FROM users
        WHERE github_username IS NOT NULL
        ORDER BY created_at DESC, id DESC
        """
    )
