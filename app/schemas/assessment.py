from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field

from app.core.constants import AssessmentStatusEnum
from app.schemas.base import CamelModel
from app.schemas.profile import AssessmentProfile, ProctoringConfig, FlowMessages

class ClientEnvironment(CamelModel):
    """Client-reported environment; advisory, never validated against anything."""
    user_agent: Optional[str] = None
    screen_resolution: Optional[str] = "Unknown"
    browser: Optional[str] = "Unknown"
    os: Optional[str] = "Unknown"
    timezone: Optional[str] = "Unknown"
    location: Optional[str] = "Unknown"

class AssessmentCreate(CamelModel):
    user_id: str
    task_title: str
    week_index: int
    day_index: int
    task_index: int
    status: AssessmentStatusEnum = AssessmentStatusEnum.IN_PROGRESS
    attempt_count: int = 1
    max_attempts: int = 3
    total_questions: Optional[int] = None
    passing_score: int = 80
    started_at: Optional[datetime] = None
    created_by: str = "system"

class AssessmentUpdate(CamelModel):
    status: Optional[AssessmentStatusEnum] = None
    score: Optional[int] = None
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    reason: Optional[str] = None
    time_spent_minutes: Optional[float] = None
    violation_count: Optional[int] = None
    completed_at: Optional[datetime] = None

class StartAssessmentRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    task_title: str = Field(..., min_length=1)
    week_index: int = Field(..., ge=0)
    day_index: int = Field(..., ge=0)
    task_index: int = Field(..., ge=0)
    environment: Optional[ClientEnvironment] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None

class StartAssessmentResponse(CamelModel):
    success: bool = True
    attempt_id: int
    session_id: str
    attempt_count: int
    profile: AssessmentProfile
    proctoring: ProctoringConfig
    messages: FlowMessages

class CompleteAssessmentRequest(CamelModel):
    attempt_id: int
    session_id: str
    time_spent_seconds: float = Field(..., ge=0)

class CompleteAssessmentResponse(CamelModel):
    success: bool = True
    attempt_id: int
    score: int
    passed: bool
    status: AssessmentStatusEnum
    feedback: Optional[str] = None

class AssessmentConfigResponse(CamelModel):
    assessment_id: int
    task_title: str
    title: str
    description: str
    status: AssessmentStatusEnum
    attempt_count: int
    week_index: int
    day_index: int
    task_index: int
    profile: AssessmentProfile

class AttemptSummary(CamelModel):
    id: int
    task_title: str
    score: Optional[int] = None
    passed: bool = False
    status: AssessmentStatusEnum
    attempt_count: int
    max_attempts: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    feedback: Optional[str] = None

class AssessmentBrief(CamelModel):
    task_title: str
    score: Optional[int] = None
    passed: bool = False
    completed_at: Optional[datetime] = None

class PracticeRequest(CamelModel):
    task_title: Optional[str] = None

class PracticeResponse(CamelModel):
    mode: str = "practice"
    session_id: str
    config: Dict[str, Any]

class ScoringResult(CamelModel):
    score: int
    passed: bool
    passing_score: int
    total_questions: int
    adjustments: Dict[str, int]
    feedback: str
