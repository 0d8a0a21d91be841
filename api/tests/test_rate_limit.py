from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from core import db, rate_limit


def test_window_start_truncates_to_window():
    start = rate_limit._window_start(1_767_225_659.9, 60)
    assert start == datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_hit_upserts_counter(monkeypatch):
    seen = {}

    async def fake_fetch_val(sql, *args):
        seen["sql"] = sql
        seen["args"] = args
        return 3

    monkeypatch.setattr(db, "fetch_val", fake_fetch_val)

    assert await rate_limit.hit("guide-search", "towel") == 3
    assert "ON CONFLICT" in seen["sql"]
    assert seen["args"][:2] == ("guide-search", "towel")


@pytest.mark.asyncio
async def test_check_limit_normalizes_identifier(monkeypatch):
    seen = []

    async def fake_hit(namespace, identifier, *, window_s=60):
        seen.append(identifier)
        return 1

    monkeypatch.setattr(rate_limit, "hit", fake_hit)

    await rate_limit.check_limit("guide-search", "  Towel ", limit=5)
    assert seen == ["towel"]


@pytest.mark.asyncio
async def test_check_limit_raises_over_limit(monkeypatch):
    async def fake_hit(namespace, identifier, *, window_s=60):
        return 6

    monkeypatch.setattr(rate_limit, "hit", fake_hit)

    with pytest.raises(HTTPException) as exc_info:
        await rate_limit.check_limit("guide-search", "towel", limit=5, detail="Slow down.")
    assert exc_info.value.status_code == 429
    assert exc_info.value.detail == "Slow down."


@pytest.mark.asyncio
async def test_check_limit_disabled(monkeypatch):
    async def unexpected_hit(*args, **kwargs):
        raise AssertionError("should not count")

    monkeypatch.setattr(rate_limit, "hit", unexpected_hit)

    assert await rate_limit.check_limit("guide-search", "towel", limit=0) is None
