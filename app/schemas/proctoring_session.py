from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import Field

from app.core.constants import SessionStatusEnum, ViolationTypeEnum, SeverityEnum
from app.schemas.base import CamelModel
from app.schemas.assessment import AssessmentBrief

class Violation(CamelModel):
    type: ViolationTypeEnum
    timestamp: datetime
    description: Optional[str] = None
    severity: Optional[SeverityEnum] = None

class ViolationRequest(CamelModel):
    session_id: str
    violation: Violation

class RecordingInfo(CamelModel):
    enabled: bool = False
    file_url: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


# Session events, one variant per kind; unknown kinds fail validation.

class StartedData(CamelModel):
    start_time: Optional[datetime] = None

class CompletedData(CamelModel):
    end_time: Optional[datetime] = None
    duration: Optional[float] = None

class TerminatedData(CamelModel):
    reason: Optional[str] = None
    warnings: Optional[int] = None

class HeartbeatData(CamelModel):
    timestamp: Optional[datetime] = None
    violations: Optional[int] = None
    warnings: Optional[int] = None

class StartedEvent(CamelModel):
    session_id: str
    event_type: Literal["started"]
    data: StartedData = StartedData()

class CompletedEvent(CamelModel):
    session_id: str
    event_type: Literal["completed"]
    data: CompletedData = CompletedData()

class TerminatedEvent(CamelModel):
    session_id: str
    event_type: Literal["terminated"]
    data: TerminatedData = TerminatedData()

class HeartbeatEvent(CamelModel):
    session_id: str
    event_type: Literal["heartbeat"]
    data: HeartbeatData = HeartbeatData()

SessionEventVariant = Union[StartedEvent, CompletedEvent, TerminatedEvent, HeartbeatEvent]

SessionEvent = Annotated[
    SessionEventVariant,
    Field(discriminator="event_type"),
]


class ProctoringSessionCreate(CamelModel):
    session_id: str
    user_id: str
    assessment_id: int
    status: SessionStatusEnum = SessionStatusEnum.ACTIVE
    start_time: datetime
    environment: Optional[Dict[str, Any]] = None
    client_metadata: Optional[Dict[str, Any]] = None
    screen_recording: Dict[str, Any] = {"enabled": True}
    webcam_recording: Dict[str, Any] = {"enabled": False}
    events: List[Dict[str, Any]] = []

class ProctoringSessionUpdate(CamelModel):
    status: Optional[SessionStatusEnum] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None

class SessionDetails(CamelModel):
    session_id: str
    user_id: str
    status: SessionStatusEnum
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    violations: List[Violation] = []
    screen_recording: Optional[RecordingInfo] = None
    webcam_recording: Optional[RecordingInfo] = None
    environment: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    assessment: Optional[AssessmentBrief] = None

class SessionSummary(CamelModel):
    session_id: str
    status: SessionStatusEnum
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    violation_count: int
    assessment: Optional[AssessmentBrief] = None

class UploadResponse(CamelModel):
    success: bool = True
    file_url: str
    storage: str
    recording_type: Optional[str] = None
    size: Optional[int] = None
