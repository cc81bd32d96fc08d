import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from app.core.constants import RecordingTypeEnum
from app.proctoring.client import ProctoringClient
from app.proctoring.face_detection import DetectorConfig, FacePresenceDetector
from app.proctoring.monitor import MonitorState, ViolationMonitor
from app.proctoring.recording import RecordingPipeline
from app.schemas.profile import FlowMessages, ProctoringConfig

logger = logging.getLogger(__name__)


class ProctoredAssessment:
    """Runs one proctored attempt end to end on the client side."""

    def __init__(
        self,
        client: ProctoringClient,
        *,
        face_backend=None,
        detector_config: Optional[DetectorConfig] = None,
        on_warning: Optional[Callable[[str], Any]] = None,
        monitor_options: Optional[Dict[str, Any]] = None,
    ):
        self.client = client
        self.face_backend = face_backend
        self.detector_config = detector_config
        self.on_warning = on_warning
        self.monitor_options = monitor_options or {}

        self.attempt_id: Optional[int] = None
        self.session_id: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.monitor: Optional[ViolationMonitor] = None
        self.pipeline: Optional[RecordingPipeline] = None
        self.detector: Optional[FacePresenceDetector] = None
        # Outlives monitor.stop(), which drops the monitor's own reference.
        self.state: Optional[MonitorState] = None

    @property
    def terminated(self) -> bool:
        return bool(self.state and self.state.terminated)

    async def start(self, **start_kwargs) -> Dict[str, Any]:
        payload = await self.client.start_assessment(**start_kwargs)
        self.attempt_id = payload["attemptId"]
        self.session_id = payload["sessionId"]
        self.started_at = datetime.now(timezone.utc)

        proctoring = ProctoringConfig.model_validate(payload["proctoring"])
        messages = FlowMessages.model_validate(payload["messages"])
        proctoring_enabled = payload["profile"].get("proctoringEnabled", True)

        self.monitor = ViolationMonitor(self.client, proctoring, messages, on_warning=self.on_warning, **self.monitor_options)
        self.pipeline = RecordingPipeline(
            self.client,
            self.session_id,
            is_active=lambda: self.monitor.state is not None and not self.monitor.state.terminated,
        )
        self.monitor.captures.append(self.pipeline)

        if proctoring_enabled and proctoring.screen_recording.enabled:
            types = [RecordingTypeEnum.SCREEN]
            if self.face_backend is not None:
                types.append(RecordingTypeEnum.WEBCAM)
            self.pipeline.start(*types)

        self.state = await self.monitor.start(self.session_id)

        if proctoring_enabled and self.face_backend is not None:
            self.detector = FacePresenceDetector(self.face_backend, self.monitor.report, self.detector_config)
            self.monitor.captures.append(self.detector)
            self.detector.start()

        if self.on_warning:
            self.on_warning(messages.start.content)
        return payload

    async def complete(self) -> Optional[Dict[str, Any]]:
        if self.state is None:
            raise RuntimeError("assessment not started")
        if self.terminated:
            logger.warning(f"Session {self.session_id} was terminated; not submitting completion")
            return None

        ended_at = datetime.now(timezone.utc)
        duration = (ended_at - self.started_at).total_seconds()

        if self.detector:
            await self.detector.stop()
        await self.pipeline.stop()
        await self.client.send_event(self.session_id, "completed", {"endTime": ended_at, "duration": duration})
        await self.monitor.stop()

        result = await self.client.complete_assessment(
            attempt_id=self.attempt_id,
            session_id=self.session_id,
            time_spent_seconds=duration,
        )
        if self.on_warning:
            messages = self.monitor.messages
            self.on_warning(messages.success.content if result.get("passed") else messages.failure.content)
        return result
