"""
Smoke tests for the assembled application in main.py: routing, error
envelope, the health endpoint, and serving stored uploads.
"""
from httpx import ASGITransport, AsyncClient

from conftest import FakeLLM
from services.errors import UpstreamTimeout


async def test_health():
    from main import app
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_pipeline_errors_use_json_envelope():
    from main import app
    from services.llm_client import get_llm_client

    app.dependency_overrides[get_llm_client] = lambda: FakeLLM(error=UpstreamTimeout("took too long"))
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.post("/api/interpret", json={"ocrText": "TOTAL 5.00"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 504
    assert resp.json() == {"error": "UpstreamTimeout", "detail": "took too long"}


async def test_routers_mounted():
    from main import app
    paths = {getattr(route, "path", None) for route in app.routes}
    for path in ("/api/interpret", "/api/summarize", "/api/ocr", "/api/receipts",
                 "/api/receipts/{receipt_id}", "/api/trends/monthly", "/api/diagnose"):
        assert path in paths


async def test_uploads_served_when_dir_created_after_mount(tmp_path):
    from fastapi import FastAPI
    from main import mount_uploads
    from services.storage_service import LocalStorage

    upload_dir = str(tmp_path / "not-yet" / "uploads")
    app = FastAPI()
    mount_uploads(app, upload_dir, "/uploads")

    url = LocalStorage(upload_dir, "/uploads").save(b"receipt bytes", "uploads/2025-01-01/x.txt")
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get(url)

    assert url == "/uploads/2025-01-01/x.txt"
    assert resp.status_code == 200
    assert resp.content == b"receipt bytes"
