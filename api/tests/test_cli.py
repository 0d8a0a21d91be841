import asyncio
import signal

import httpx
import pytest

from cli import installer, project, registry, repository

ITEMS = [
    {"name": "button", "type": "registry:ui", "description": "Clickable", "categories": ["forms"]},
    {
        "name": "date-picker",
        "type": "registry:ui",
        "description": "Pick a date",
        "categories": ["forms", "dates"],
        "dependencies": ["react-day-picker"],
    },
    {"name": "dashboard-01", "type": "registry:block", "description": "Sidebar dashboard"},
]


async def _collect(stream):
    return "".join([chunk async for chunk in stream])


def test_index_and_item_urls():
    assert registry.index_url("https://ui.shadcn.com/r") == "https://ui.shadcn.com/r/index.json"
    assert registry.index_url("https://ui.shadcn.com/r/") == "https://ui.shadcn.com/r/index.json"
    assert registry.index_url("https://x.dev/index.json") == "https://x.dev/index.json"
    assert registry.item_url("https://x.dev/index.json", "button") == "https://x.dev/styles/default/button.json"
    assert registry.item_url("https://x.dev/", "card", "new-york") == "https://x.dev/styles/new-york/card.json"


def test_search_items():
    assert [item["name"] for item in registry.search_items(ITEMS, "pick DATE")] == ["date-picker"]
    assert [item["name"] for item in registry.search_items(ITEMS, "day-picker")] == ["date-picker"]
    assert [item["name"] for item in registry.search_items(ITEMS, item_type="blocks")] == ["dashboard-01"]
    assert [item["name"] for item in registry.search_items(ITEMS, category="forms")] == ["button", "date-picker"]
    assert len(registry.search_items(ITEMS, category="all")) == 3


def test_categorize_and_group():
    categorized = registry.categorize_items(ITEMS)
    assert [item["name"] for item in categorized["Components"]] == ["button", "date-picker"]
    assert [item["name"] for item in categorized["Blocks"]] == ["dashboard-01"]

    grouped = registry.group_items_by_type(ITEMS)
    assert set(grouped) == {"forms", "dates", "Uncategorized"}
    assert [item["name"] for item in grouped["Uncategorized"]] == ["dashboard-01"]


@pytest.mark.asyncio
async def test_fetch_registry_index_accepts_wrapped_items(monkeypatch):
    def handler(request):
        assert str(request.url) == "https://registry.example.com/index.json"
        return httpx.Response(200, json={"items": ITEMS + ["junk"]})

    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(registry.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    items = await registry.fetch_registry_index("https://registry.example.com")
    assert len(items) == 3


@pytest.mark.asyncio
async def test_fetch_item_details_error(monkeypatch):
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    monkeypatch.setattr(registry.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    with pytest.raises(registry.RegistryError):
        await registry.fetch_item_details("https://registry.example.com", "missing")


def test_build_args():
    assert installer.build_args("https://x.dev/button.json") == ["shadcn@latest", "add", "https://x.dev/button.json"]
    assert installer.build_args("button", overwrite=True, style="new-york", typescript=True, path="src/ui") == [
        "shadcn@latest",
        "add",
        "button",
        "--overwrite",
        "--style",
        "new-york",
        "--typescript",
        "--path",
        "src/ui",
    ]


def test_post_install_merges_app_into_src_app(tmp_path):
    (tmp_path / "app" / "dashboard").mkdir(parents=True)
    (tmp_path / "app" / "dashboard" / "page.tsx").write_text("new page")
    (tmp_path / "app" / "layout.tsx").write_text("new layout")
    (tmp_path / "src" / "app").mkdir(parents=True)
    (tmp_path / "src" / "app" / "layout.tsx").write_text("old layout")

    installer.handle_post_install(tmp_path, overwrite=False)

    assert (tmp_path / "src" / "app" / "dashboard" / "page.tsx").read_text() == "new page"
    assert (tmp_path / "src" / "app" / "layout.tsx").read_text() == "old layout"
    assert (tmp_path / "app" / "layout.tsx").exists()
    assert not (tmp_path / "app" / "dashboard").exists()


def test_post_install_overwrite_removes_empty_source(tmp_path):
    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "layout.tsx").write_text("new layout")
    (tmp_path / "src" / "app").mkdir(parents=True)
    (tmp_path / "src" / "app" / "layout.tsx").write_text("old layout")

    installer.handle_post_install(tmp_path, overwrite=True)

    assert (tmp_path / "src" / "app" / "layout.tsx").read_text() == "new layout"
    assert not (tmp_path / "app").exists()


def test_post_install_skips_without_src_app(tmp_path):
    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "page.tsx").write_text("page")

    installer.handle_post_install(tmp_path, overwrite=True)

    assert (tmp_path / "app" / "page.tsx").exists()


@pytest.mark.asyncio
async def test_install_component_streams_output(tmp_path, monkeypatch):
    monkeypatch.setenv("CLI_PACKAGE_RUNNER", "echo")

    output = await _collect(installer.install_component("https://x.dev/button.json", root=tmp_path))

    assert output.strip() == "shadcn@latest add https://x.dev/button.json"


@pytest.mark.asyncio
async def test_install_component_reports_exit_code(tmp_path, monkeypatch):
    monkeypatch.setenv("CLI_PACKAGE_RUNNER", "false")

    output = await _collect(installer.install_component("button", root=tmp_path))

    assert output.endswith("Process exited with code 1")


@pytest.mark.asyncio
async def test_install_component_spawn_failure(tmp_path, monkeypatch):
    monkeypatch.setenv("CLI_PACKAGE_RUNNER", "definitely-not-a-package-runner")

    output = await _collect(installer.install_component("button", root=tmp_path))

    assert output.startswith("\nError: ")


@pytest.mark.asyncio
async def test_install_component_kills_child_when_stream_closes(tmp_path, monkeypatch):
    monkeypatch.setenv("CLI_PACKAGE_RUNNER", "yes")
    spawned = []
    real_exec = asyncio.create_subprocess_exec

    async def tracking_exec(*args, **kwargs):
        proc = await real_exec(*args, **kwargs)
        spawned.append(proc)
        return proc

    monkeypatch.setattr(installer.asyncio, "create_subprocess_exec", tracking_exec)

    stream = installer.install_component("button", root=tmp_path)
    first = await stream.__anext__()
    await stream.aclose()

    assert first.startswith("shadcn@latest add button")
    assert spawned[0].returncode == -signal.SIGKILL


def test_installed_components_and_dependencies(tmp_path):
    ui_dir = tmp_path / "src" / "components" / "ui"
    ui_dir.mkdir(parents=True)
    for name in ("card.tsx", "button.tsx", "utils.ts"):
        (ui_dir / name).write_text("")
    (tmp_path / "package.json").write_text('{"dependencies": {"next": "15.0.0"}}')

    assert project.installed_components(tmp_path) == ["button", "card"]
    assert project.read_dependencies(tmp_path) == {"dependencies": {"next": "15.0.0"}, "devDependencies": {}}


def test_cli_routes_require_admin(user_client):
    assert user_client.get("/cli/registries").status_code == 403


def test_list_registries(admin_client, monkeypatch):
    async def fake_list_custom():
        return [{"name": "acme", "url": "https://acme.dev/r", "description": "", "base_component_url": "", "base_block_url": ""}]

    monkeypatch.setattr(repository, "list_custom_registries", fake_list_custom)

    resp = admin_client.get("/cli/registries")

    assert resp.status_code == 200
    names = [(entry["name"], entry["built_in"]) for entry in resp.json()]
    assert names == [("shadcn/ui", True), ("Magic UI", True), ("Bones Registry", True), ("acme", False)]


def test_add_registry_defaults_base_urls(admin_client, monkeypatch):
    captured = {}

    async def fake_insert(**kwargs):
        captured.update(kwargs)
        return kwargs

    monkeypatch.setattr(repository, "insert_custom_registry", fake_insert)

    resp = admin_client.post("/cli/registries", json={"name": "acme", "url": "https://acme.dev/r/"})

    assert resp.status_code == 201
    assert captured["url"] == "https://acme.dev/r"
    assert captured["base_component_url"] == "https://acme.dev/r"
    assert resp.json()["built_in"] is False


def test_add_registry_conflicts(admin_client, monkeypatch):
    async def fake_insert(**kwargs):
        return None

    monkeypatch.setattr(repository, "insert_custom_registry", fake_insert)

    assert admin_client.post("/cli/registries", json={"name": "shadcn/ui", "url": "https://x.dev"}).status_code == 409
    assert admin_client.post("/cli/registries", json={"name": "acme", "url": "https://x.dev"}).status_code == 409
    assert admin_client.post("/cli/registries", json={"name": "acme", "url": "ftp://x.dev"}).status_code == 422


def test_remove_registry(admin_client, monkeypatch):
    async def fake_delete(name):
        return name == "acme"

    monkeypatch.setattr(repository, "delete_custom_registry", fake_delete)

    assert admin_client.delete("/cli/registries/shadcn/ui").status_code == 400
    assert admin_client.delete("/cli/registries/acme").json() == {"ok": True}
    assert admin_client.delete("/cli/registries/ghost").status_code == 404


def test_browse_items(admin_client, monkeypatch):
    async def fake_index(url):
        assert url == "https://ui.shadcn.com/r"
        return ITEMS

    monkeypatch.setattr(registry, "fetch_registry_index", fake_index)

    resp = admin_client.get("/cli/items", params={"registry": "shadcn/ui", "q": "date"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["categorized"]["Components"][0]["name"] == "date-picker"


def test_browse_items_registry_failure(admin_client, monkeypatch):
    async def failing_index(url):
        raise registry.RegistryError("Failed to fetch index")

    monkeypatch.setattr(registry, "fetch_registry_index", failing_index)

    resp = admin_client.get("/cli/items", params={"registry": "Magic UI"})
    assert resp.status_code == 502


def test_install_rejects_option_injection(admin_client):
    resp = admin_client.post("/cli/install", json={"component_url": "--help"})
    assert resp.status_code == 422


def test_install_streams(admin_client, monkeypatch, tmp_path):
    monkeypatch.setenv("CLI_PACKAGE_RUNNER", "echo")
    monkeypatch.setenv("CLI_PROJECT_ROOT", str(tmp_path))

    resp = admin_client.post("/cli/install", json={"component_url": "button", "overwrite": True})

    assert resp.status_code == 200
    assert resp.text.strip() == "shadcn@latest add button --overwrite"
