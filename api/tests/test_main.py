def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_root(client):
    assert client.get("/").json() == {"message": "shipkit api"}


def test_platform_prefers_client_hint(client):
    resp = client.get(
        "/platform",
        headers={
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
            "Sec-CH-UA-Platform": '"macOS"',
        },
    )
    assert resp.json() == {"mac": True, "windows": False}


def test_platform_from_user_agent(client):
    resp = client.get("/platform", headers={"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"})
    assert resp.json() == {"mac": False, "windows": True}
