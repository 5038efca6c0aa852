"""End-to-end tests. They require a running gateway with real API keys, or are skipped."""

import os

import pytest

E2E = os.environ.get("RUN_E2E", "").lower() in ("1", "true", "yes")
pytestmark = pytest.mark.skipif(not E2E, reason="E2E tests disabled (set RUN_E2E=1)")

BASE_URL = os.environ.get("GATEWAY_URL", "http://localhost:3000")


@pytest.mark.asyncio
async def test_process_combine_analyze():
    import httpx

    # The file must already sit in the server's uploads directory
    filename = os.environ.get("E2E_AUDIO_FILE", "sample.mp3")

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=900) as client:
        resp = await client.post("/process-audio", json={"filename": filename})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert all({"speaker", "text", "start", "end"} <= set(e) for e in body["result"])
        saved = body["savedFile"]

        resp = await client.post("/combine-speeches", json={"filename": saved})
        assert resp.status_code == 200, resp.text
        assert resp.json()["outputFile"].endswith("_combined.json")

        resp = await client.post("/analyze-interview", json={"filename": saved})
        assert resp.status_code == 200, resp.text
        analysis = resp.json()["analysis"]
        assert analysis

        resp = await client.get(f"/results/{saved}")
        assert resp.json()["summary"] == analysis
