import httpx
import pytest

from app.core.constants import RecordingTypeEnum
from app.data.assessment_catalog import PROCTORING_DATA
from app.proctoring.client import ProctoringClient
from app.proctoring.monitor import ViolationMonitor
from app.proctoring.recording import RecordingPipeline


def _client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver")
    return ProctoringClient(http_client=http)


def _html_page(request):
    return httpx.Response(200, text="<html>proxy</html>", headers={"content-type": "text/html"})


def _unavailable(request):
    return httpx.Response(503, text="unavailable")


@pytest.mark.asyncio
async def test_upload_with_non_json_body_returns_none():
    async with _client(_html_page) as api:
        assert await api.upload_chunk("session_x", "screen", b"data", 1760000000000) is None
        assert await api.upload_recording("session_x", "screen", b"data") is None


@pytest.mark.asyncio
async def test_best_effort_calls_swallow_server_errors():
    async with _client(_unavailable) as api:
        assert await api.send_event("session_x", "heartbeat") is False
        assert await api.report_violation("session_x", {"type": "tab_switch"}) is False
        assert await api.upload_recording("session_x", "screen", b"data") is None


@pytest.mark.asyncio
async def test_start_raises_on_server_error():
    async with _client(_unavailable) as api:
        with pytest.raises(httpx.HTTPStatusError):
            await api.start_assessment(user_id="u", task_title="Fintech 101", week_index=0, day_index=0, task_index=0)


@pytest.mark.asyncio
async def test_pipeline_stop_survives_unreadable_upload_response():
    async with _client(_html_page) as api:
        pipeline = RecordingPipeline(api, "session_x")
        pipeline.start()
        pipeline.add_slice(RecordingTypeEnum.SCREEN, b"slice")

        assert await pipeline.stop() == {"screen": None}


@pytest.mark.asyncio
async def test_termination_completes_when_final_upload_is_unreadable():
    requests = []

    def handler(request):
        requests.append(request.url.path)
        if request.url.path.endswith("/upload-recording"):
            return _html_page(request)
        return httpx.Response(200, json={"success": True})

    async with _client(handler) as api:
        pipeline = RecordingPipeline(api, "session_x")
        monitor = ViolationMonitor(
            api, PROCTORING_DATA.proctoring, PROCTORING_DATA.messages,
            close_delay=0, heartbeat_interval=60, captures=[pipeline],
        )
        await monitor.start("session_x")
        pipeline.start()
        pipeline.add_slice(RecordingTypeEnum.SCREEN, b"slice")

        await monitor.terminate("Maximum violations exceeded")
        await monitor.drain()

        assert "/api/assessment/upload-recording" in requests
        assert requests[-1] == "/api/assessment/event"
        assert monitor._close_task is not None
        await monitor._close_task
