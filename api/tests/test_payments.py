import hashlib
import hmac
import json
from datetime import datetime, timezone

import httpx
import pytest

from auth import repository as auth_repository
from payments import lemonsqueezy, repository, service


def _order(order_id, *, email, status="paid", total=4900, created_at="2026-01-02T10:00:00.000000Z", user_id=None):
    attributes = {
        "identifier": f"ident-{order_id}",
        "user_email": email,
        "user_name": "Arthur Dent",
        "total": total,
        "status": status,
        "created_at": created_at,
        "first_order_item": {"variant_name": "Lifetime"},
    }
    if user_id is not None:
        attributes["custom_data"] = {"user_id": user_id}
    return {"id": str(order_id), "attributes": attributes}


@pytest.fixture
def stored_events(monkeypatch):
    events = {"inserted": [], "marked": []}

    async def fake_insert(event_name, body):
        events["inserted"].append((event_name, body))
        return len(events["inserted"])

    async def fake_mark(event_id, *, error=None):
        events["marked"].append((event_id, error))

    monkeypatch.setattr(repository, "insert_webhook_event", fake_insert)
    monkeypatch.setattr(repository, "mark_webhook_event", fake_mark)
    return events


def test_normalize_order():
    normalized = lemonsqueezy.normalize_order(_order(1, email=None, total=1999))
    assert normalized["order_id"] == "ident-1"
    assert normalized["amount"] == 19.99
    assert normalized["user_email"] == "Unknown"
    assert normalized["product_name"] == "Lifetime"
    assert normalized["purchase_date"] == datetime(2026, 1, 2, 10, 0, tzinfo=timezone.utc)


def test_normalize_order_without_items():
    order = {"id": "2", "attributes": {"total": 0, "status": "pending"}}
    normalized = lemonsqueezy.normalize_order(order)
    assert normalized["product_name"] == "Unknown Product"
    assert normalized["purchase_date"] is None


def test_verify_signature():
    body = b'{"meta": {}}'
    digest = hmac.new(b"s3cret", body, hashlib.sha256).hexdigest()
    assert lemonsqueezy.verify_signature(body, digest, secret="s3cret")
    assert not lemonsqueezy.verify_signature(body, "deadbeef", secret="s3cret")
    assert not lemonsqueezy.verify_signature(body, None, secret="s3cret")


@pytest.mark.asyncio
async def test_list_orders_follows_pagination(monkeypatch):
    monkeypatch.setenv("LEMONSQUEEZY_API_KEY", "ls-key")
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("page[number]") == "2":
            return httpx.Response(200, json={"data": [_order(2, email="b@example.com")], "links": {}})
        return httpx.Response(
            200,
            json={
                "data": [_order(1, email="a@example.com")],
                "links": {"next": "https://api.lemonsqueezy.com/v1/orders?page[number]=2&page[size]=100"},
            },
        )

    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(lemonsqueezy.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    orders = await lemonsqueezy.list_orders(user_email="a@example.com")

    assert [order["id"] for order in orders] == ["1", "2"]
    assert requests[0].headers["authorization"] == "Bearer ls-key"
    assert requests[0].url.params["filter[user_email]"] == "a@example.com"


@pytest.mark.asyncio
async def test_list_orders_requires_api_key():
    with pytest.raises(lemonsqueezy.LemonSqueezyError):
        await lemonsqueezy.list_orders()


@pytest.mark.asyncio
async def test_payment_status_true_when_recorded(monkeypatch):
    async def fake_has_payment(user_id):
        return True

    monkeypatch.setattr(repository, "has_payment", fake_has_payment)

    assert await service.get_user_payment_status("1") is True


@pytest.mark.asyncio
async def test_payment_status_links_paid_order(monkeypatch, user_factory):
    created = []

    async def fake_has_payment(user_id):
        return False

    async def fake_get_user_by_id(user_id):
        return user_factory(id=user_id, email="Arthur@Example.com")

    async def fake_list_orders(*, user_email=None):
        return [
            _order(10, email="someone@example.com"),
            _order(11, email="arthur@example.com", status="refunded"),
            _order(12, email="other@example.com", user_id="1"),
        ]

    async def fake_create_payment(**kwargs):
        created.append(kwargs)
        return {"id": 1, **kwargs}

    monkeypatch.setattr(repository, "has_payment", fake_has_payment)
    monkeypatch.setattr(auth_repository, "get_user_by_id", fake_get_user_by_id)
    monkeypatch.setattr(lemonsqueezy, "list_orders", fake_list_orders)
    monkeypatch.setattr(repository, "create_payment", fake_create_payment)

    assert await service.get_user_payment_status("1") is True
    assert len(created) == 1
    assert created[0]["order_id"] == "12"
    assert created[0]["status"] == "completed"
    assert created[0]["metadata"]["custom_data"] == {"user_id": "1"}


@pytest.mark.asyncio
async def test_payment_status_false_on_lookup_error(monkeypatch, user_factory):
    async def fake_has_payment(user_id):
        return False

    async def fake_get_user_by_id(user_id):
        return user_factory(id=user_id)

    async def failing_list_orders(*, user_email=None):
        raise lemonsqueezy.LemonSqueezyError("down")

    monkeypatch.setattr(repository, "has_payment", fake_has_payment)
    monkeypatch.setattr(auth_repository, "get_user_by_id", fake_get_user_by_id)
    monkeypatch.setattr(lemonsqueezy, "list_orders", failing_list_orders)

    assert await service.get_user_payment_status("1") is False


@pytest.mark.asyncio
async def test_update_payment_status_missing_order(monkeypatch):
    async def fake_update_status(order_id, status):
        return None

    monkeypatch.setattr(repository, "update_status", fake_update_status)

    with pytest.raises(service.PaymentNotFoundError):
        await service.update_payment_status("404", "refunded")


@pytest.mark.asyncio
async def test_users_with_payments_merges_sources(monkeypatch, user_factory):
    async def fake_list_users():
        return [
            user_factory(id=1, email="arthur@example.com"),
            user_factory(id=2, email="ford@example.com"),
            user_factory(id=3, email=""),
        ]

    async def fake_payment_user_ids():
        return {"2"}

    async def fake_list_orders(*, user_email=None):
        return [
            _order(20, email="ARTHUR@example.com", created_at="2026-01-01T00:00:00Z"),
            _order(21, email="arthur@example.com", status="refunded", created_at="2026-02-01T00:00:00Z"),
        ]

    monkeypatch.setattr(auth_repository, "list_users", fake_list_users)
    monkeypatch.setattr(repository, "list_payment_user_ids", fake_payment_user_ids)
    monkeypatch.setattr(lemonsqueezy, "list_orders", fake_list_orders)

    users = await service.get_users_with_payments()

    assert [user["id"] for user in users] == [1, 2]
    arthur, ford = users
    assert arthur["has_paid"] is True
    assert arthur["total_purchases"] == 2
    assert arthur["purchases"][0]["id"] == "21"
    assert arthur["last_purchase_date"] == datetime(2026, 2, 1, tzinfo=timezone.utc)
    assert ford["has_paid"] is True
    assert ford["purchases"] == []


@pytest.mark.asyncio
async def test_payments_with_users_degrades_to_empty(monkeypatch):
    async def failing_list_orders(*, user_email=None):
        raise lemonsqueezy.LemonSqueezyError("down")

    monkeypatch.setattr(lemonsqueezy, "list_orders", failing_list_orders)

    assert await service.get_payments_with_users() == []


def test_webhook_order_created(client, monkeypatch, stored_events):
    created = []

    async def fake_create_payment(**kwargs):
        created.append(kwargs)
        return {"id": 7, **kwargs}

    monkeypatch.setattr(repository, "create_payment", fake_create_payment)

    payload = {
        "meta": {"event_name": "order_created", "custom_data": {"user_id": "1"}, "test_mode": True},
        "data": {"id": "555", "attributes": {"status": "paid", "total": 4900, "total_usd": 4900}},
    }
    resp = client.post("/webhooks/lemonsqueezy", content=json.dumps(payload))

    assert resp.status_code == 200
    assert resp.text == "Webhook processed"
    assert created[0]["user_id"] == "1"
    assert created[0]["order_id"] == "555"
    assert created[0]["amount"] == 4900
    assert stored_events["marked"] == [(1, None)]


def test_webhook_order_created_without_user(client, stored_events):
    payload = {"meta": {"event_name": "order_created"}, "data": {"id": "556", "attributes": {}}}
    resp = client.post("/webhooks/lemonsqueezy", content=json.dumps(payload))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "No user identifier found"
    assert stored_events["marked"] == [(1, "No user identifier found")]


def test_webhook_refund_for_unknown_order(client, monkeypatch, stored_events):
    async def fake_update_status(order_id, status):
        return None

    monkeypatch.setattr(repository, "update_status", fake_update_status)

    payload = {"meta": {"event_name": "order_refunded"}, "data": {"id": "999", "attributes": {}}}
    resp = client.post("/webhooks/lemonsqueezy", content=json.dumps(payload))

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Webhook error"


def test_webhook_checks_signature_when_secret_set(client, monkeypatch, stored_events):
    monkeypatch.setenv("LEMONSQUEEZY_WEBHOOK_SECRET", "s3cret")
    body = json.dumps({"meta": {"event_name": "subscription_created"}, "data": {"id": "1"}}).encode()

    rejected = client.post("/webhooks/lemonsqueezy", content=body, headers={"X-Signature": "nope"})
    assert rejected.status_code == 401
    assert stored_events["inserted"] == []

    signature = hmac.new(b"s3cret", body, hashlib.sha256).hexdigest()
    accepted = client.post("/webhooks/lemonsqueezy", content=body, headers={"X-Signature": signature})
    assert accepted.status_code == 200


def test_webhook_get_not_allowed(client):
    resp = client.get("/webhooks/lemonsqueezy")
    assert resp.status_code == 405
    assert resp.text == "Method not allowed"


def _lemonsqueezy_replies(monkeypatch, response):
    monkeypatch.setenv("LEMONSQUEEZY_API_KEY", "ls-key")
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: response)
    monkeypatch.setattr(lemonsqueezy.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))


@pytest.mark.asyncio
async def test_list_orders_rejects_maintenance_page(monkeypatch):
    _lemonsqueezy_replies(monkeypatch, httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(lemonsqueezy.LemonSqueezyError, match="non-JSON body"):
        await lemonsqueezy.list_orders()


@pytest.mark.asyncio
async def test_list_orders_rejects_non_object_payload(monkeypatch):
    _lemonsqueezy_replies(monkeypatch, httpx.Response(200, json=[1, 2]))

    with pytest.raises(lemonsqueezy.LemonSqueezyError, match="unexpected payload"):
        await lemonsqueezy.list_orders()


@pytest.mark.asyncio
async def test_payment_status_false_on_maintenance_page(monkeypatch, user_factory):
    async def fake_has_payment(user_id):
        return False

    async def fake_get_user_by_id(user_id):
        return user_factory(id=user_id)

    monkeypatch.setattr(repository, "has_payment", fake_has_payment)
    monkeypatch.setattr(auth_repository, "get_user_by_id", fake_get_user_by_id)
    _lemonsqueezy_replies(monkeypatch, httpx.Response(200, text="<html>maintenance</html>"))

    assert await service.get_user_payment_status("1") is False


def test_webhook_rejects_invalid_json(client, stored_events):
    resp = client.post("/webhooks/lemonsqueezy", content=b"<xml>order</xml>")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid JSON payload"
    assert stored_events["inserted"] == []
