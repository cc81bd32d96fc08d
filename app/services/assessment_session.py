import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import (
    ASSESSMENT_COMPLETED_EVENT,
    VIOLATION_SEVERITY,
    AssessmentStatusEnum,
    SessionStatusEnum,
    SeverityEnum,
)
from app.core.exceptions import (
    AssessmentError,
    AttemptInProgress,
    AttemptNotFound,
    ConfigNotFound,
    MaxAttemptsExceeded,
    RecordingMissing,
    SessionNotFound,
)
from app.crud.assessment import assessment as crud_assessment
from app.crud.proctoring_session import proctoring_session as crud_session
from app.data.assessment_catalog import PROCTORING_DATA, get_profile
from app.models.assessment import Assessment
from app.models.proctoring_session import ProctoringSession
from app.schemas.assessment import (
    AssessmentBrief,
    AssessmentConfigResponse,
    AssessmentCreate,
    AssessmentUpdate,
    AttemptSummary,
    CompleteAssessmentRequest,
    CompleteAssessmentResponse,
    PracticeResponse,
    StartAssessmentRequest,
    StartAssessmentResponse,
)
from app.schemas.proctoring_session import (
    CompletedEvent,
    HeartbeatEvent,
    ProctoringSessionCreate,
    RecordingInfo,
    SessionDetails,
    SessionEvent,
    SessionSummary,
    StartedEvent,
    TerminatedEvent,
    Violation,
    ViolationRequest,
)
from app.services.scoring import ScoringEngine, scoring_engine
from app.services.storage import StorageService, storage_service
from app.utils.events import event_bus

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_session_id(prefix: str = "session") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


class AssessmentSessionService:
    """Applies attempt/session transitions for the proctored assessment protocol."""

    def __init__(self, scoring: ScoringEngine = scoring_engine, storage: StorageService = storage_service):
        self.scoring = scoring
        self.storage = storage

    def _require_session(self, db: Session, session_id: str) -> ProctoringSession:
        session = crud_session.get_by_session_id(db, session_id)
        if not session:
            raise SessionNotFound()
        return session

    def _require_assessment(self, db: Session, assessment_id: int) -> Assessment:
        attempt = crud_assessment.get(db, id=assessment_id)
        if not attempt:
            raise AttemptNotFound()
        return attempt

    def _check_can_start(self, existing: Assessment, max_attempts: int):
        if existing.status == AssessmentStatusEnum.IN_PROGRESS:
            raise AttemptInProgress()
        if existing.attempt_count >= max_attempts:
            raise MaxAttemptsExceeded()

    def _open_attempt(self, db: Session, request: StartAssessmentRequest, profile) -> Assessment:
        key = dict(
            user_id=request.user_id,
            week_index=request.week_index,
            day_index=request.day_index,
            task_index=request.task_index,
        )
        started_at = _now()

        # Two passes: a concurrent first start can win the unique-key insert,
        # in which case the row is re-read and treated as a retake.
        for _ in range(2):
            existing = crud_assessment.get_by_key(db, **key)
            if existing:
                self._check_can_start(existing, profile.max_attempts)
                claimed = crud_assessment.claim_retake(
                    db,
                    assessment_id=existing.id,
                    task_title=profile.task_title,
                    max_attempts=profile.max_attempts,
                    total_questions=profile.total_questions,
                    passing_score=profile.passing_score,
                    started_at=started_at,
                )
                db.expire(existing)
                if not claimed:
                    # Lost the race; report whichever precondition now fails.
                    self._check_can_start(existing, profile.max_attempts)
                    raise AttemptInProgress()
                return existing

            try:
                return crud_assessment.create(db, obj_in=AssessmentCreate(
                    **key,
                    task_title=profile.task_title,
                    status=AssessmentStatusEnum.IN_PROGRESS,
                    attempt_count=1,
                    max_attempts=profile.max_attempts,
                    total_questions=profile.total_questions,
                    passing_score=profile.passing_score,
                    started_at=started_at,
                ))
            except IntegrityError:
                db.rollback()
                logger.warning(f"Concurrent first start for user {request.user_id} task {profile.task_title}, retrying as retake")

        raise AttemptInProgress()

    def start_assessment(
        self,
        db: Session,
        *,
        request: StartAssessmentRequest,
        client_host: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> StartAssessmentResponse:
        profile = get_profile(request.task_title)
        if not profile:
            raise ConfigNotFound(request.task_title)

        attempt = self._open_attempt(db, request, profile)

        environment = request.environment.model_dump() if request.environment else {}
        environment["user_agent"] = environment.get("user_agent") or user_agent

        session = crud_session.create(db, obj_in=ProctoringSessionCreate(
            session_id=_new_session_id(),
            user_id=request.user_id,
            assessment_id=attempt.id,
            status=SessionStatusEnum.ACTIVE,
            start_time=_now(),
            environment=environment,
            client_metadata={
                "ip_address": client_host,
                "location": environment.get("location"),
                "timezone": environment.get("timezone"),
                "user_email": request.user_email,
                "user_name": request.user_name,
            },
            screen_recording={"enabled": profile.proctoring_enabled},
            webcam_recording={"enabled": profile.proctoring_enabled},
        ))

        logger.info(
            f"Assessment started - user: {request.user_id}, task: {profile.task_title}, "
            f"attempt: {attempt.attempt_count}/{profile.max_attempts}, session: {session.session_id}"
        )

        return StartAssessmentResponse(
            attempt_id=attempt.id,
            session_id=session.session_id,
            attempt_count=attempt.attempt_count,
            profile=profile,
            proctoring=PROCTORING_DATA.proctoring,
            messages=PROCTORING_DATA.messages,
        )

    def record_event(self, db: Session, *, event: SessionEvent) -> ProctoringSession:
        session = self._require_session(db, event.session_id)
        now = _now()

        if session.status != SessionStatusEnum.ACTIVE:
            logger.warning(f"Event {event.event_type} received for {session.status.value} session {session.session_id}")

        if isinstance(event, StartedEvent):
            session.status = SessionStatusEnum.ACTIVE
            if event.data.start_time:
                session.start_time = event.data.start_time
        elif isinstance(event, CompletedEvent):
            session.status = SessionStatusEnum.COMPLETED
            session.end_time = event.data.end_time or now
            session.duration = event.data.duration
        elif isinstance(event, TerminatedEvent):
            session.status = SessionStatusEnum.TERMINATED
            session.end_time = now
        elif isinstance(event, HeartbeatEvent):
            pass
        else:
            raise TypeError(f"Unhandled session event: {type(event).__name__}")

        session.last_activity = now
        session.events.append({
            "type": event.event_type,
            "data": event.data.model_dump(mode="json", exclude_none=True),
            "timestamp": now.isoformat(),
        })
        db.add(session)
        db.flush()
        return session

    def record_violation(self, db: Session, *, request: ViolationRequest) -> int:
        session = self._require_session(db, request.session_id)
        violation = request.violation
        if violation.severity is None:
            violation = violation.model_copy(update={
                "severity": VIOLATION_SEVERITY.get(violation.type, SeverityEnum.LOW)
            })

        if session.status != SessionStatusEnum.ACTIVE:
            logger.warning(f"Violation {violation.type.value} recorded on {session.status.value} session {session.session_id}")

        crud_session.add_violation(db, db_obj=session, violation=violation)
        session.last_activity = _now()
        db.add(session)
        db.flush()

        count = crud_session.count_violations(db, db_obj=session)
        logger.info(f"Violation {violation.type.value} recorded for session {session.session_id} (total {count})")
        return count

    def upload_chunk(
        self,
        *,
        session_id: Optional[str],
        recording_type: str,
        chunk_timestamp: Optional[str],
        content: Optional[bytes],
        content_type: Optional[str] = None,
    ) -> dict:
        if not content or not session_id:
            raise RecordingMissing("Missing required fields")

        label = f"{recording_type}_chunk_{chunk_timestamp or int(_now().timestamp() * 1000)}"
        result = self.storage.upload_recording(content, session_id, label, content_type)
        logger.info(f"Chunk saved via {result['storage']}: {result['file_url']}")
        return result

    def upload_recordings(
        self,
        db: Session,
        *,
        session_id: Optional[str],
        recordings: List[Tuple[str, bytes, Optional[str]]],
    ) -> dict:
        if not session_id:
            raise AssessmentError("Session ID is required")
        session = self._require_session(db, session_id)

        recordings = [r for r in recordings if r[1]]
        if not recordings:
            raise RecordingMissing()

        result = None
        for recording_type, content, content_type in recordings:
            result = self.storage.upload_recording(content, session.session_id, recording_type, content_type)
            info = RecordingInfo(
                enabled=True,
                file_url=result["file_url"],
                start_time=session.start_time,
                end_time=_now(),
            ).model_dump(mode="json")
            if recording_type == "webcam":
                session.webcam_recording = info
            else:
                session.screen_recording = info
            logger.info(f"{recording_type} recording uploaded via {result['storage']}: {result['file_url']}")

        db.add(session)
        db.flush()
        return {**result, "recording_type": recordings[-1][0]}

    async def complete_assessment(self, db: Session, *, request: CompleteAssessmentRequest) -> CompleteAssessmentResponse:
        attempt = self._require_assessment(db, request.attempt_id)
        session = self._require_session(db, request.session_id)
        if session.assessment_id != attempt.id:
            logger.warning(f"Session {session.session_id} belongs to assessment {session.assessment_id}, completing {attempt.id}")

        violation_count = crud_session.count_violations(db, db_obj=session)
        time_spent_minutes = request.time_spent_seconds / 60
        result = self.scoring.calculate_score(
            attempt.task_title,
            time_spent_minutes=time_spent_minutes,
            violation_count=violation_count,
            attempt_count=attempt.attempt_count,
        )

        now = _now()
        status = AssessmentStatusEnum.COMPLETED if result.passed else AssessmentStatusEnum.FAILED
        crud_assessment.update(db, db_obj=attempt, obj_in=AssessmentUpdate(
            status=status,
            score=result.score,
            passed=result.passed,
            feedback=result.feedback,
            reason="Assessment passed" if result.passed else "Assessment failed",
            time_spent_minutes=time_spent_minutes,
            violation_count=violation_count,
            completed_at=now,
        ))
        session.status = SessionStatusEnum.COMPLETED
        session.end_time = now
        session.duration = request.time_spent_seconds
        session.last_activity = now
        db.add(session)
        db.commit()

        logger.info(
            f"Assessment completed - user: {attempt.user_id}, task: {attempt.task_title}, "
            f"score: {result.score}%, passed: {result.passed}, violations: {violation_count}"
        )

        await self._notify_outcome(attempt, session, result)

        return CompleteAssessmentResponse(
            attempt_id=attempt.id,
            score=result.score,
            passed=result.passed,
            status=status,
            feedback=result.feedback,
        )

    async def _notify_outcome(self, attempt: Assessment, session: ProctoringSession, result):
        metadata = session.client_metadata or {}
        payload = {
            "assessment_id": attempt.id,
            "session_id": session.session_id,
            "user_id": attempt.user_id,
            "user_email": metadata.get("user_email"),
            "user_name": metadata.get("user_name"),
            "task_title": attempt.task_title,
            "score": result.score,
            "passed": result.passed,
            "passing_score": result.passing_score,
            "attempt_count": attempt.attempt_count,
            "feedback": result.feedback,
        }
        # Completion is already committed; delivery problems are only logged.
        try:
            failures = await event_bus.publish(ASSESSMENT_COMPLETED_EVENT, payload)
        except Exception as e:
            logger.error(f"Outcome notification failed for assessment {attempt.id}: {e}")
            return
        if failures:
            logger.warning(f"{len(failures)} outcome notification handler(s) failed for assessment {attempt.id}")

    def get_assessment_config(self, db: Session, *, assessment_id: int) -> AssessmentConfigResponse:
        attempt = self._require_assessment(db, assessment_id)
        profile = get_profile(attempt.task_title)
        if not profile:
            raise ConfigNotFound(attempt.task_title, status_code=404)

        return AssessmentConfigResponse(
            assessment_id=attempt.id,
            task_title=attempt.task_title,
            title=profile.title,
            description=profile.description,
            status=attempt.status,
            attempt_count=attempt.attempt_count,
            week_index=attempt.week_index,
            day_index=attempt.day_index,
            task_index=attempt.task_index,
            profile=profile,
        )

    def get_user_results(self, db: Session, *, user_id: str) -> List[AttemptSummary]:
        return [AttemptSummary.model_validate(a) for a in crud_assessment.get_all_by_user(db, user_id=user_id)]

    def _brief(self, session: ProctoringSession) -> Optional[AssessmentBrief]:
        return AssessmentBrief.model_validate(session.assessment) if session.assessment else None

    def get_session_details(self, db: Session, *, session_id: str) -> SessionDetails:
        session = self._require_session(db, session_id)
        return SessionDetails(
            session_id=session.session_id,
            user_id=session.user_id,
            status=session.status,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=session.duration,
            violations=[Violation.model_validate(v) for v in session.violations],
            screen_recording=RecordingInfo.model_validate(session.screen_recording or {}),
            webcam_recording=RecordingInfo.model_validate(session.webcam_recording or {}),
            environment=session.environment,
            metadata=session.client_metadata,
            assessment=self._brief(session),
        )

    def get_user_sessions(self, db: Session, *, user_id: str) -> List[SessionSummary]:
        return [
            SessionSummary(
                session_id=s.session_id,
                status=s.status,
                start_time=s.start_time,
                end_time=s.end_time,
                duration=s.duration,
                violation_count=len(s.violations),
                assessment=self._brief(s),
            )
            for s in crud_session.get_all_by_user(db, user_id=user_id)
        ]

    def start_practice(self, *, task_title: Optional[str]) -> PracticeResponse:
        if not task_title:
            raise AssessmentError("Task title is required")
        profile = get_profile(task_title)
        if not profile:
            raise ConfigNotFound(task_title)

        config = profile.model_dump(by_alias=True, mode="json")
        config["proctoringEnabled"] = False
        return PracticeResponse(session_id=_new_session_id("practice"), config=config)

    def sweep_stale_sessions(self, db: Session, *, stale_after_minutes: int) -> int:
        cutoff = _now() - timedelta(minutes=stale_after_minutes)
        stale = crud_session.get_stale_active(db, cutoff=cutoff)
        for session in stale:
            session.status = SessionStatusEnum.FAILED
            session.end_time = _now()
            db.add(session)
            logger.info(f"Closed abandoned session {session.session_id}")
        db.flush()
        return len(stale)


assessment_session_service = AssessmentSessionService()
