import asyncio
import pytest

from app.core.constants import ViolationTypeEnum
from app.proctoring.face_detection import DetectorConfig, FaceObservation, FacePresenceDetector

CENTERED = FaceObservation(eye_center_x=100, nose_x=102, face_width=80)
TURNED = FaceObservation(eye_center_x=100, nose_x=140, face_width=80)


class ScriptedBackend:
    def __init__(self, frames):
        self.frames = list(frames)

    async def detect(self):
        if not self.frames:
            return []
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame


async def _ignore(violation_type, description):
    return None


def _types(emitted):
    return [violation_type for violation_type, _ in emitted]


def test_offset_ratio():
    assert TURNED.offset_ratio == pytest.approx(0.5)
    assert FaceObservation(eye_center_x=1, nose_x=5, face_width=0).offset_ratio == 0.0


def test_missing_face_needs_ten_consecutive_frames():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore)

    for _ in range(9):
        assert detector.process([]) == []
    assert _types(detector.process([])) == [ViolationTypeEnum.NO_FACE_DETECTED]
    assert detector.missing_frames == 0


def test_face_reappearing_resets_missing_counter():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore)
    for _ in range(9):
        detector.process([])
    detector.process([CENTERED])
    assert detector.missing_frames == 0
    assert detector.process([]) == []


def test_multiple_faces_reported_every_frame():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore)
    for _ in range(3):
        assert _types(detector.process([CENTERED, CENTERED])) == [ViolationTypeEnum.MULTIPLE_FACES]
    assert detector.multiple_face_warnings == 3


def test_looking_away_after_more_than_three_frames():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore)
    for _ in range(3):
        assert detector.process([TURNED]) == []
    assert _types(detector.process([TURNED])) == [ViolationTypeEnum.LOOKING_AWAY]
    assert detector.looking_away_count == 0


def test_looking_back_resets_counter():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore)
    for _ in range(3):
        detector.process([TURNED])
    detector.process([CENTERED])
    assert detector.process([TURNED]) == []


@pytest.mark.asyncio
async def test_backend_errors_and_unready_video_are_not_misses():
    reported = []

    async def on_violation(violation_type, description):
        reported.append(violation_type)

    backend = ScriptedBackend([RuntimeError("model crashed"), None])
    detector = FacePresenceDetector(backend, on_violation, DetectorConfig(max_missing_frames=1))

    assert await detector.check_once() == []
    assert await detector.check_once() == []
    assert detector.missing_frames == 0
    assert reported == []

    await detector.check_once()
    assert reported == [ViolationTypeEnum.NO_FACE_DETECTED]


@pytest.mark.asyncio
async def test_polling_loop_reports_and_stops():
    reported = []

    async def on_violation(violation_type, description):
        reported.append(violation_type)

    detector = FacePresenceDetector(ScriptedBackend([]), on_violation, DetectorConfig(interval=0.01, max_missing_frames=2))
    detector.start()
    assert detector.is_monitoring
    await asyncio.sleep(0.1)
    await detector.stop()

    assert not detector.is_monitoring
    assert ViolationTypeEnum.NO_FACE_DETECTED in reported
    assert detector.status()["is_monitoring"] is False


@pytest.mark.asyncio
async def test_detector_can_be_stopped_from_its_own_violation():
    detector = None

    async def on_violation(violation_type, description):
        await detector.stop()

    detector = FacePresenceDetector(ScriptedBackend([]), on_violation, DetectorConfig(interval=0.01, max_missing_frames=1))
    detector.start()
    await asyncio.sleep(0.05)

    assert not detector.is_monitoring


def test_low_confidence_detections_are_not_faces():
    detector = FacePresenceDetector(ScriptedBackend([]), _ignore, DetectorConfig(max_missing_frames=2))
    faint = FaceObservation(eye_center_x=100, nose_x=102, face_width=80, confidence=0.1)

    assert detector.process([CENTERED, faint]) == []
    assert detector.multiple_face_warnings == 0

    detector.process([faint])
    assert _types(detector.process([faint])) == [ViolationTypeEnum.NO_FACE_DETECTED]
