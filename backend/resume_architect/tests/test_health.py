import importlib

import pytest
from httpx import ASGITransport, AsyncClient

from resume_architect import main


@pytest.mark.anyio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["ok"] is True
    assert data["env"] == main.ENV
    assert data["rate_limit_enabled"] is False
    assert data["mock_mode"] is True


@pytest.fixture
async def prod_client(monkeypatch, history):
    monkeypatch.setenv("ENV", "production")
    prod = importlib.reload(main)
    monkeypatch.setattr(prod, "history", history)
    monkeypatch.setattr(prod, "sessions", {})
    transport = ASGITransport(app=prod.app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    monkeypatch.delenv("ENV")
    importlib.reload(main)


@pytest.mark.anyio
async def test_production_limits_only_metered_routes(prod_client):
    health = (await prod_client.get("/health")).json()
    assert health["rate_limit_enabled"] is True

    sid = (await prod_client.post("/api/sessions")).json()["session_id"]
    codes = {(await prod_client.get(f"/api/sessions/{sid}")).status_code for _ in range(30)}
    assert codes == {200}

    codes = [
        (await prod_client.post("/api/achievements", json={"task": "Filed reports."})).status_code
        for _ in range(21)
    ]
    assert codes[:20] == [200] * 20
    assert codes[20] == 429
