from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

import main
from app.proctoring.client import ProctoringClient


@pytest_asyncio.fixture
async def api(client):
    # ``client`` installs the database overrides on the app.
    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield ProctoringClient(http_client=http)


@pytest.mark.asyncio
async def test_attempt_through_client(api, client, user_id):
    started = await api.start_assessment(
        user_id=user_id, task_title="Core Payments", week_index=1, day_index=0, task_index=0,
        environment={"browser": "Chrome", "os": "macOS"},
    )
    session_id = started["sessionId"]
    assert started["profile"]["taskTitle"] == "Core Payments"

    assert await api.send_event(session_id, "started", {"startTime": datetime.now(timezone.utc)})
    assert await api.report_violation(session_id, {
        "type": "window_focus_loss",
        "timestamp": datetime.now(timezone.utc),
        "description": "Window lost focus",
        "severity": "low",
    })

    chunk_url = await api.upload_chunk(session_id, "screen", b"\x1a\x45\xdf\xa3chunk", 1760000000000)
    assert chunk_url and session_id in chunk_url
    final_url = await api.upload_recording(session_id, "screen", b"\x1a\x45\xdf\xa3final")
    assert final_url

    result = await api.complete_assessment(attempt_id=started["attemptId"], session_id=session_id, time_spent_seconds=1500)
    assert 0 <= result["score"] <= 100
    assert result["passed"] == (result["score"] >= 80)

    details = client.get(f"/api/assessment/sessions/{session_id}/details").json()
    assert details["status"] == "completed"
    assert len(details["violations"]) == 1
    assert details["screenRecording"]["fileUrl"] == final_url

    results = client.get(f"/api/assessment/results/{user_id}").json()
    assert results[0]["attemptCount"] == 1

    notifications = client.get(f"/api/notifications/{user_id}").json()
    assert len(notifications) == 1
    assert "Core Payments" in notifications[0]["message"]


@pytest.mark.asyncio
async def test_best_effort_calls_report_failure(api):
    assert await api.send_event("session_missing", "heartbeat") is False
    assert await api.report_violation("session_missing", {
        "type": "tab_switch", "timestamp": datetime.now(timezone.utc),
    }) is False
    assert await api.upload_recording("session_missing", "screen", b"data") is None


@pytest.mark.asyncio
async def test_start_errors_raise(api):
    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await api.start_assessment(user_id="user-x", task_title="Unknown Task", week_index=0, day_index=0, task_index=0)
    assert exc_info.value.response.json()["error"]["code"] == "CONFIG_NOT_FOUND"
