"""
Auth security helpers: password hashing, JWT access tokens, refresh tokens.
"""

from __future__ import annotations

import hashlib
import secrets
import time
from typing import Any

import bcrypt
import jwt

from core import config

DEV_JWT_SECRET = "dev-change-this-secret"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Local default keeps development simple; set JWT_SECRET in production.
    return config.env_str("JWT_SECRET", DEV_JWT_SECRET)


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return config.env_int("ACCESS_TOKEN_EXPIRE_MIN", 15)


def refresh_token_expire_days() -> int:
    return config.env_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)


def admin_emails() -> set[str]:
    return {email.lower() for email in config.env_list("ADMIN_EMAILS")}


def is_admin_user(user_row: dict) -> bool:
    if bool(user_row.get("is_admin", False)):
        return True
    email = str(user_row.get("email") or "").strip().lower()
    return bool(email) and email in admin_emails()


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_access_token(*, user_id: int, email: str, now_s: int | None = None) -> str:
    issued_at = int(time.time()) if now_s is None else now_s
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + (access_token_expire_minutes() * 60),
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if str(payload.get("type") or "").strip().lower() != "access":
        raise AuthSecurityError("Token is not an access token.")
    return payload


def build_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def hash_refresh_token(raw_refresh_token: str) -> str:
    token = (raw_refresh_token or "").encode("utf-8")
    if not token:
        raise AuthSecurityError("Refresh token is empty.")
    return hashlib.sha256(token).hexdigest()
