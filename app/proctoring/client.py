"""
Async client for the assessment REST surface.

start/complete raise on failure since the caller needs their result. Events,
violations and uploads are fire-and-forget: failures are logged and the call
returns a falsy value instead of raising.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
API_PREFIX = "/api/assessment"


def _jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in data.items()}


class ProctoringClient:

    def __init__(self, base_url: str = "http://localhost:8000", http_client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT):
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def start_assessment(
        self,
        *,
        user_id: str,
        task_title: str,
        week_index: int,
        day_index: int,
        task_index: int,
        environment: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        response = await self._client.post(f"{API_PREFIX}/start", json={
            "userId": user_id,
            "taskTitle": task_title,
            "weekIndex": week_index,
            "dayIndex": day_index,
            "taskIndex": task_index,
            "environment": environment,
        })
        response.raise_for_status()
        return response.json()

    async def complete_assessment(self, *, attempt_id: int, session_id: str, time_spent_seconds: float) -> Dict[str, Any]:
        response = await self._client.post(f"{API_PREFIX}/complete", json={
            "attemptId": attempt_id,
            "sessionId": session_id,
            "timeSpentSeconds": time_spent_seconds,
        })
        response.raise_for_status()
        return response.json()

    async def send_event(self, session_id: str, event_type: str, data: Optional[Dict[str, Any]] = None) -> bool:
        try:
            response = await self._client.post(f"{API_PREFIX}/event", json={
                "sessionId": session_id,
                "eventType": event_type,
                "data": _jsonable(data or {}),
            })
            response.raise_for_status()
            return True
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to send {event_type} event for session {session_id}: {e}")
            return False

    async def report_violation(self, session_id: str, violation: Dict[str, Any]) -> bool:
        try:
            response = await self._client.post(f"{API_PREFIX}/violation", json={
                "sessionId": session_id,
                "violation": _jsonable(violation),
            })
            response.raise_for_status()
            return True
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to report {violation.get('type')} violation for session {session_id}: {e}")
            return False

    async def upload_chunk(self, session_id: str, recording_type: str, content: bytes, chunk_timestamp: int) -> Optional[str]:
        try:
            response = await self._client.post(
                f"{API_PREFIX}/upload-chunk",
                files={"chunk": (f"{recording_type}_chunk_{chunk_timestamp}.webm", content, "video/webm")},
                data={
                    "sessionId": session_id,
                    "recordingType": recording_type,
                    "chunkTimestamp": str(chunk_timestamp),
                    "isChunk": "true",
                },
            )
            response.raise_for_status()
            return response.json().get("fileUrl")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to upload {recording_type} chunk for session {session_id}: {e}")
            return None

    async def upload_recording(self, session_id: str, recording_type: str, content: bytes) -> Optional[str]:
        try:
            response = await self._client.post(
                f"{API_PREFIX}/upload-recording",
                files={"recording": (f"{recording_type}_{session_id}.webm", content, "video/webm")},
                data={"sessionId": session_id, "recordingType": recording_type},
            )
            response.raise_for_status()
            return response.json().get("fileUrl")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to upload final {recording_type} recording for session {session_id}: {e}")
            return None
