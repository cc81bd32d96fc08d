"""
Webcam face presence checks.

The detector polls a pluggable backend on a fixed interval and debounces its
findings with consecutive-frame counters, so brief occlusions do not flood the
violation log. A backend only needs an async ``detect()`` returning the faces
in the current frame, or None when no frame is available yet.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from app.core.constants import ViolationTypeEnum

logger = logging.getLogger(__name__)


@dataclass
class FaceObservation:
    """Horizontal landmark positions of one detected face, in frame pixels."""
    eye_center_x: float
    nose_x: float
    face_width: float
    confidence: float = 1.0

    @property
    def offset_ratio(self) -> float:
        if self.face_width <= 0:
            return 0.0
        return abs(self.eye_center_x - self.nose_x) / self.face_width


@dataclass
class DetectorConfig:
    interval: float = 2.0
    # detections scoring below this are not counted as faces
    min_confidence: float = 0.3
    max_missing_frames: int = 10
    max_faces: int = 1
    multiple_faces_frames: int = 1
    looking_away_ratio: float = 0.3
    # strictly more than this many consecutive frames
    looking_away_frames: int = 3


class FacePresenceDetector:

    def __init__(self, backend, on_violation: Callable[[ViolationTypeEnum, str], Awaitable[Any]], config: Optional[DetectorConfig] = None):
        self.backend = backend
        self.on_violation = on_violation
        self.config = config or DetectorConfig()

        self.missing_frames = 0
        self.multiple_face_frames = 0
        self.multiple_face_warnings = 0
        self.looking_away_count = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.is_monitoring:
            logger.warning("Face detection already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("Face detection monitoring started")

    async def stop(self):
        self._running = False
        task, self._task = self._task, None
        if task is None:
            return
        # A violation raised by this detector can stop it from inside its own loop.
        if task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        logger.info("Face detection stopped")

    async def _run(self):
        while self._running:
            await self.check_once()
            await asyncio.sleep(self.config.interval)

    async def check_once(self) -> List[Tuple[ViolationTypeEnum, str]]:
        try:
            faces = await self.backend.detect()
        except Exception as e:
            # Backend errors are not face misses.
            logger.debug(f"Face detection error (non-critical): {e}")
            return []

        if faces is None:
            logger.debug("Video not ready, skipping detection")
            return []

        emitted = self.process(faces)
        for violation_type, description in emitted:
            await self.on_violation(violation_type, description)
        return emitted

    def process(self, faces: List[FaceObservation]) -> List[Tuple[ViolationTypeEnum, str]]:
        """Update the counters for one frame and return the violations it triggers."""
        cfg = self.config
        emitted = []
        faces = [face for face in faces if face.confidence >= cfg.min_confidence]
        face_count = len(faces)

        if face_count == 0:
            self.missing_frames += 1
            logger.debug(f"No face detected ({self.missing_frames}/{cfg.max_missing_frames})")
            if self.missing_frames >= cfg.max_missing_frames:
                emitted.append((
                    ViolationTypeEnum.NO_FACE_DETECTED,
                    f"No face detected for {self.missing_frames} consecutive checks",
                ))
                self.missing_frames = 0
        else:
            if self.missing_frames:
                logger.info("Face detected again")
            self.missing_frames = 0

        if face_count > cfg.max_faces:
            self.multiple_face_frames += 1
            if self.multiple_face_frames >= cfg.multiple_faces_frames:
                self.multiple_face_warnings += 1
                emitted.append((ViolationTypeEnum.MULTIPLE_FACES, f"{face_count} faces detected in frame"))
                self.multiple_face_frames = 0
        else:
            self.multiple_face_frames = 0

        if face_count == 1:
            if faces[0].offset_ratio > cfg.looking_away_ratio:
                self.looking_away_count += 1
                if self.looking_away_count > cfg.looking_away_frames:
                    emitted.append((ViolationTypeEnum.LOOKING_AWAY, "User appears to be looking away from screen"))
                    self.looking_away_count = 0
            else:
                self.looking_away_count = 0

        return emitted

    def status(self) -> dict:
        return {
            "is_monitoring": self.is_monitoring,
            "missing_frames": self.missing_frames,
            "multiple_face_warnings": self.multiple_face_warnings,
            "looking_away_count": self.looking_away_count,
        }
