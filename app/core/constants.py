from enum import Enum


class AssessmentStatusEnum(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

class SessionStatusEnum(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"
    FAILED = "failed"

class DifficultyEnum(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

class ViolationTypeEnum(str, Enum):
    TAB_SWITCH = "tab_switch"
    WINDOW_FOCUS_LOSS = "window_focus_loss"
    COPY_PASTE = "copy_paste"
    RIGHT_CLICK = "right_click"
    KEYBOARD_SHORTCUT = "keyboard_shortcut"
    MULTIPLE_WINDOWS = "multiple_windows"
    NO_FACE_DETECTED = "no_face_detected"
    MULTIPLE_FACES = "multiple_faces"
    LOOKING_AWAY = "looking_away"

class SeverityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class RecordingTypeEnum(str, Enum):
    SCREEN = "screen"
    WEBCAM = "webcam"


# Severity is informational only; escalation counts every violation equally.
VIOLATION_SEVERITY = {
    ViolationTypeEnum.TAB_SWITCH: SeverityEnum.MEDIUM,
    ViolationTypeEnum.WINDOW_FOCUS_LOSS: SeverityEnum.LOW,
    ViolationTypeEnum.COPY_PASTE: SeverityEnum.HIGH,
    ViolationTypeEnum.RIGHT_CLICK: SeverityEnum.HIGH,
    ViolationTypeEnum.KEYBOARD_SHORTCUT: SeverityEnum.MEDIUM,
    ViolationTypeEnum.MULTIPLE_WINDOWS: SeverityEnum.HIGH,
}

ASSESSMENT_COMPLETED_EVENT = "assessment_completed"
