from typing import Dict, List, Optional
from pydantic import Field

from app.core.config import settings
from app.core.constants import DifficultyEnum
from app.schemas.base import CamelModel

class AssessmentProfile(CamelModel):
    """Static per-task scoring profile and assessment configuration."""
    task_title: str
    title: str
    description: str
    total_questions: int = Field(..., gt=0)
    passing_score: int = settings.DEFAULT_PASSING_SCORE
    difficulty: DifficultyEnum = DifficultyEnum.BEGINNER
    topics: List[str] = []
    time_limit: int = Field(30, description="Minutes")
    max_attempts: int = settings.DEFAULT_MAX_ATTEMPTS
    proctoring_enabled: bool = True

class ScreenRecordingConfig(CamelModel):
    enabled: bool = True
    quality: str = "medium"
    frame_rate: int = 1

class ViolationRule(CamelModel):
    enabled: bool = True
    max_allowed: Optional[int] = None
    severity: str = "low"
    allowed: List[str] = []

class WarningMessages(CamelModel):
    first_violation: str
    second_violation: str
    final_warning: str

class ProctoringConfig(CamelModel):
    screen_recording: ScreenRecordingConfig = ScreenRecordingConfig()
    violations: Dict[str, ViolationRule] = {}
    warnings: WarningMessages

class FlowMessage(CamelModel):
    title: str
    content: str

class FlowMessages(CamelModel):
    start: FlowMessage
    instructions: List[str] = []
    success: FlowMessage
    failure: FlowMessage
    violation: FlowMessage
    terminated: FlowMessage

class ProctoringData(CamelModel):
    proctoring: ProctoringConfig
    messages: FlowMessages
