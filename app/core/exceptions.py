from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class AssessmentError(HTTPException):
    """Base for assessment/proctoring domain errors.

    Carries a stable ``code`` so the global handler can return it to clients
    instead of the generic status-derived code.
    """
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "Request could not be processed."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=message or self.default_message)
        self.details = details


class ConfigNotFound(AssessmentError):
    code = "CONFIG_NOT_FOUND"
    default_message = "Assessment configuration not found"

    def __init__(self, task_title: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(f"Assessment configuration not found for: {task_title}", details=details)


class AttemptInProgress(AssessmentError):
    code = "ASSESSMENT_IN_PROGRESS"
    default_message = "You already have an assessment in progress for this task."


class MaxAttemptsExceeded(AssessmentError):
    code = "MAX_ATTEMPTS_EXCEEDED"
    default_message = "You have exceeded the maximum number of attempts for this assessment."


class AttemptNotFound(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "ASSESSMENT_NOT_FOUND"
    default_message = "Assessment not found"


class SessionNotFound(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "SESSION_NOT_FOUND"
    default_message = "Proctoring session not found"


class RecordingMissing(AssessmentError):
    code = "NO_FILE"
    default_message = "No recording file provided"


class InvalidRecording(AssessmentError):
    code = "INVALID_RECORDING"
    default_message = "Recording file was rejected"


class StorageError(Exception):
    pass
