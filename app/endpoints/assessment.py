from datetime import datetime, timezone
from typing import Annotated, List, Optional
from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from app.data.assessment_catalog import PROCTORING_DATA
from app.schemas.assessment import (
    AssessmentConfigResponse,
    AttemptSummary,
    CompleteAssessmentRequest,
    CompleteAssessmentResponse,
    PracticeRequest,
    PracticeResponse,
    StartAssessmentRequest,
    StartAssessmentResponse,
)
from app.schemas.profile import ProctoringData
from app.schemas.proctoring_session import (
    SessionDetails,
    SessionEventVariant,
    SessionSummary,
    UploadResponse,
    ViolationRequest,
)
from app.schemas.response import SuccessResponse
from app.services.assessment_session import assessment_session_service
from app.services.storage import storage_service
from app.utils import deps

router = APIRouter()


async def _read(upload: Optional[UploadFile]) -> Optional[bytes]:
    if upload is None:
        return None
    return await upload.read()


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": storage_service.get_storage_info(),
    }


@router.get("/data", response_model=ProctoringData)
async def get_proctoring_data():
    return PROCTORING_DATA


@router.post("/practice", response_model=PracticeResponse)
async def start_practice(practice_in: PracticeRequest):
    """Unproctored practice run; nothing is persisted."""
    return assessment_session_service.start_practice(task_title=practice_in.task_title)


@router.post("/start", response_model=StartAssessmentResponse)
async def start_assessment(
    *,
    request: Request,
    db: Session = Depends(deps.get_transactional_db),
    start_in: StartAssessmentRequest,
):
    return assessment_session_service.start_assessment(
        db,
        request=start_in,
        client_host=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/event", response_model=SuccessResponse)
async def record_event(
    *,
    db: Session = Depends(deps.get_transactional_db),
    event_in: Annotated[SessionEventVariant, Body(discriminator="event_type")],
):
    assessment_session_service.record_event(db, event=event_in)
    return SuccessResponse(message=f"Event {event_in.event_type} recorded")


@router.post("/violation", response_model=SuccessResponse)
async def record_violation(
    *,
    db: Session = Depends(deps.get_transactional_db),
    violation_in: ViolationRequest,
):
    count = assessment_session_service.record_violation(db, request=violation_in)
    return SuccessResponse(message=f"Violation recorded ({count} total)")


@router.post("/upload-chunk", response_model=UploadResponse)
async def upload_chunk(
    chunk: Optional[UploadFile] = File(None),
    session_id: Optional[str] = Form(None, alias="sessionId"),
    recording_type: str = Form("screen", alias="recordingType"),
    chunk_timestamp: Optional[str] = Form(None, alias="chunkTimestamp"),
    is_chunk: bool = Form(True, alias="isChunk"),
):
    result = assessment_session_service.upload_chunk(
        session_id=session_id,
        recording_type=recording_type,
        chunk_timestamp=chunk_timestamp,
        content=await _read(chunk),
        content_type=chunk.content_type if chunk else None,
    )
    return UploadResponse(
        file_url=result["file_url"],
        storage=result["storage"],
        recording_type=recording_type,
        size=result["size"],
    )


@router.post("/upload-recording", response_model=UploadResponse)
async def upload_recording(
    db: Session = Depends(deps.get_transactional_db),
    recording: Optional[UploadFile] = File(None),
    screen_recording: Optional[UploadFile] = File(None, alias="screenRecording"),
    webcam_recording: Optional[UploadFile] = File(None, alias="webcamRecording"),
    session_id: Optional[str] = Form(None, alias="sessionId"),
    recording_type: str = Form("screen", alias="recordingType"),
):
    recordings = []
    for kind, upload in ((recording_type, recording), ("screen", screen_recording), ("webcam", webcam_recording)):
        if upload is not None:
            recordings.append((kind, await _read(upload), upload.content_type))

    result = assessment_session_service.upload_recordings(db, session_id=session_id, recordings=recordings)
    return UploadResponse(
        file_url=result["file_url"],
        storage=result["storage"],
        recording_type=result["recording_type"],
        size=result["size"],
    )


@router.post("/complete", response_model=CompleteAssessmentResponse)
async def complete_assessment(
    *,
    db: Session = Depends(deps.get_transactional_db),
    complete_in: CompleteAssessmentRequest,
):
    return await assessment_session_service.complete_assessment(db, request=complete_in)


@router.get("/config/{attempt_id}", response_model=AssessmentConfigResponse)
async def get_assessment_config(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
):
    return assessment_session_service.get_assessment_config(db, assessment_id=attempt_id)


@router.get("/results/{user_id}", response_model=List[AttemptSummary])
async def get_user_results(
    *,
    db: Session = Depends(deps.get_db),
    user_id: str,
):
    return assessment_session_service.get_user_results(db, user_id=user_id)


@router.get("/sessions/{session_id}/details", response_model=SessionDetails)
async def get_session_details(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
):
    return assessment_session_service.get_session_details(db, session_id=session_id)


@router.get("/sessions/user/{user_id}", response_model=List[SessionSummary])
async def get_user_sessions(
    *,
    db: Session = Depends(deps.get_db),
    user_id: str,
):
    return assessment_session_service.get_user_sessions(db, user_id=user_id)
