import asyncio
import json
import pytest

from conftest import PDF_BYTES


@pytest.mark.anyio
async def test_export_json(client):
    sid = (await client.post("/api/sessions")).json()["session_id"]
    files = {"resume": ("test.pdf", PDF_BYTES, "application/pdf")}

    r = await client.post(f"/api/sessions/{sid}/analyze", files=files)
    assert r.status_code == 200

    # wait until done
    for _ in range(50):
        s = await client.get(f"/api/sessions/{sid}")
        if s.json()["phase"] == "report":
            break
        await asyncio.sleep(0.1)

    d = await client.get(f"/api/sessions/{sid}/export")
    assert d.status_code == 200
    assert d.headers["content-type"].startswith("application/json")
    assert 'filename="resume-analysis.json"' in d.headers["content-disposition"]
    assert d.text.startswith("{\n  ")
    assert json.loads(d.text)["overallScore"] == 78

    html = await client.get(f"/api/sessions/{sid}/report")
    assert html.status_code == 200
    assert "Resume Analysis" in html.text
    assert "test.pdf" in html.text


@pytest.mark.anyio
async def test_export_without_result(client):
    sid = (await client.post("/api/sessions")).json()["session_id"]
    d = await client.get(f"/api/sessions/{sid}/export")
    assert d.status_code == 404
