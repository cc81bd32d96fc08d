from datetime import datetime, timedelta, timezone
import pytest
from sqlalchemy.orm import Session

from app.core import scheduler as scheduler_module
from app.core.constants import ASSESSMENT_COMPLETED_EVENT, AssessmentStatusEnum, SessionStatusEnum, SeverityEnum, ViolationTypeEnum
from app.core.exceptions import AttemptInProgress, MaxAttemptsExceeded, SessionNotFound
from app.crud.assessment import assessment as crud_assessment
from app.crud.proctoring_session import proctoring_session as crud_session
from app.schemas.assessment import AssessmentCreate, CompleteAssessmentRequest, StartAssessmentRequest
from app.schemas.proctoring_session import CompletedEvent, HeartbeatEvent, StartedEvent, TerminatedEvent, Violation, ViolationRequest
from app.services import assessment_session as service_module
from app.services.assessment_session import assessment_session_service as service


def _start(db, user_id, task_title="Core Payments", task_index=0, **extra):
    request = StartAssessmentRequest(
        user_id=user_id, task_title=task_title, week_index=0, day_index=0, task_index=task_index, **extra
    )
    return service.start_assessment(db, request=request, client_host="10.0.0.8", user_agent="pytest")


def _violation(violation_type=ViolationTypeEnum.TAB_SWITCH, severity=None):
    return Violation(type=violation_type, timestamp=datetime.now(timezone.utc), description="test", severity=severity)


def test_claim_retake_only_succeeds_once(db_session: Session, user_id):
    attempt = crud_assessment.create(db_session, obj_in=AssessmentCreate(
        user_id=user_id, task_title="Recurring", week_index=0, day_index=0, task_index=0,
        status=AssessmentStatusEnum.FAILED, attempt_count=1,
    ))
    kwargs = dict(
        assessment_id=attempt.id, task_title="Recurring", max_attempts=3,
        total_questions=15, passing_score=80, started_at=datetime.now(timezone.utc),
    )

    assert crud_assessment.claim_retake(db_session, **kwargs) is True
    assert crud_assessment.claim_retake(db_session, **kwargs) is False

    db_session.refresh(attempt)
    assert attempt.attempt_count == 2
    assert attempt.status == AssessmentStatusEnum.IN_PROGRESS


def test_claim_retake_respects_attempt_limit(db_session: Session, user_id):
    attempt = crud_assessment.create(db_session, obj_in=AssessmentCreate(
        user_id=user_id, task_title="Recurring", week_index=0, day_index=0, task_index=0,
        status=AssessmentStatusEnum.FAILED, attempt_count=3,
    ))
    assert crud_assessment.claim_retake(
        db_session, assessment_id=attempt.id, task_title="Recurring", max_attempts=3,
        total_questions=15, passing_score=80, started_at=datetime.now(timezone.utc),
    ) is False


def test_concurrent_first_start_is_resolved_by_unique_key(db_session: Session, monkeypatch, user_id):
    # Another request inserted the row after this one read "no attempt yet".
    crud_assessment.create(db_session, obj_in=AssessmentCreate(
        user_id=user_id, task_title="Core Payments", week_index=0, day_index=0, task_index=0,
    ), commit=True)

    real_get_by_key = crud_assessment.get_by_key
    reads = []

    def stale_first_read(db, **key):
        reads.append(key)
        return None if len(reads) == 1 else real_get_by_key(db, **key)

    monkeypatch.setattr(crud_assessment, "get_by_key", stale_first_read)

    with pytest.raises(AttemptInProgress):
        _start(db_session, user_id)
    assert len(reads) == 2


def test_start_records_environment_and_contact(db_session: Session, user_id):
    started = _start(db_session, user_id, user_email="ada@example.com", user_name="Ada")
    session = crud_session.get_by_session_id(db_session, started.session_id)

    assert session.environment["user_agent"] == "pytest"
    assert session.client_metadata["ip_address"] == "10.0.0.8"
    assert session.client_metadata["user_email"] == "ada@example.com"
    assert session.screen_recording == {"enabled": True}
    assert started.proctoring.warnings.final_warning


def test_limit_check_comes_after_in_progress_check(db_session: Session, user_id):
    crud_assessment.create(db_session, obj_in=AssessmentCreate(
        user_id=user_id, task_title="Core Payments", week_index=0, day_index=0, task_index=0,
        status=AssessmentStatusEnum.IN_PROGRESS, attempt_count=3,
    ))
    with pytest.raises(AttemptInProgress):
        _start(db_session, user_id)


def test_limit_reached(db_session: Session, user_id):
    crud_assessment.create(db_session, obj_in=AssessmentCreate(
        user_id=user_id, task_title="Core Payments", week_index=0, day_index=0, task_index=0,
        status=AssessmentStatusEnum.FAILED, attempt_count=3,
    ))
    with pytest.raises(MaxAttemptsExceeded):
        _start(db_session, user_id)


def test_event_variants_update_session(db_session: Session, user_id):
    sid = _start(db_session, user_id).session_id
    end = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)

    service.record_event(db_session, event=StartedEvent(session_id=sid, event_type="started"))
    session = service.record_event(db_session, event=CompletedEvent(
        session_id=sid, event_type="completed", data={"end_time": end, "duration": 1800},
    ))
    assert session.status == SessionStatusEnum.COMPLETED
    assert session.duration == 1800

    session = service.record_event(db_session, event=HeartbeatEvent(session_id=sid, event_type="heartbeat"))
    assert session.status == SessionStatusEnum.COMPLETED
    assert [e["type"] for e in session.events] == ["started", "completed", "heartbeat"]

    session = service.record_event(db_session, event=TerminatedEvent(session_id=sid, event_type="terminated"))
    assert session.status == SessionStatusEnum.TERMINATED


def test_event_for_missing_session(db_session: Session):
    with pytest.raises(SessionNotFound):
        service.record_event(db_session, event=HeartbeatEvent(session_id="session_gone", event_type="heartbeat"))


def test_violation_severity_defaults_from_type(db_session: Session, user_id):
    sid = _start(db_session, user_id).session_id

    assert service.record_violation(db_session, request=ViolationRequest(session_id=sid, violation=_violation(ViolationTypeEnum.COPY_PASTE))) == 1
    assert service.record_violation(db_session, request=ViolationRequest(session_id=sid, violation=_violation(ViolationTypeEnum.LOOKING_AWAY))) == 2
    assert service.record_violation(db_session, request=ViolationRequest(
        session_id=sid, violation=_violation(ViolationTypeEnum.TAB_SWITCH, severity=SeverityEnum.HIGH),
    )) == 3

    session = crud_session.get_by_session_id(db_session, sid)
    assert [v.severity for v in session.violations] == [SeverityEnum.HIGH, SeverityEnum.LOW, SeverityEnum.HIGH]


def test_violations_are_kept_after_termination(db_session: Session, user_id):
    sid = _start(db_session, user_id).session_id
    service.record_event(db_session, event=TerminatedEvent(session_id=sid, event_type="terminated"))

    assert service.record_violation(db_session, request=ViolationRequest(session_id=sid, violation=_violation())) == 1


@pytest.mark.asyncio
async def test_complete_publishes_outcome(db_session: Session, monkeypatch, user_id):
    published = []

    async def fake_publish(event_type, data):
        published.append((event_type, data))
        return []

    monkeypatch.setattr(service_module.event_bus, "publish", fake_publish)

    started = _start(db_session, user_id, task_title="Merchant and Admin Dashboard", user_email="ada@example.com")
    service.record_violation(db_session, request=ViolationRequest(session_id=started.session_id, violation=_violation()))
    result = await service.complete_assessment(db_session, request=CompleteAssessmentRequest(
        attempt_id=started.attempt_id, session_id=started.session_id, time_spent_seconds=2400,
    ))

    assert len(published) == 1
    event_type, data = published[0]
    assert event_type == ASSESSMENT_COMPLETED_EVENT
    assert data["user_id"] == user_id
    assert data["user_email"] == "ada@example.com"
    assert data["score"] == result.score
    assert data["passed"] == result.passed

    attempt = crud_assessment.get(db_session, id=started.attempt_id)
    assert attempt.violation_count == 1
    assert attempt.reason in ("Assessment passed", "Assessment failed")


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_completion(db_session: Session, monkeypatch, user_id):
    async def broken_publish(event_type, data):
        raise RuntimeError("bus offline")

    monkeypatch.setattr(service_module.event_bus, "publish", broken_publish)

    started = _start(db_session, user_id)
    result = await service.complete_assessment(db_session, request=CompleteAssessmentRequest(
        attempt_id=started.attempt_id, session_id=started.session_id, time_spent_seconds=600,
    ))

    db_session.expire_all()
    attempt = crud_assessment.get(db_session, id=started.attempt_id)
    assert attempt.score == result.score
    assert attempt.status in (AssessmentStatusEnum.COMPLETED, AssessmentStatusEnum.FAILED)


def test_sweep_closes_only_idle_active_sessions(db_session: Session, user_id):
    idle = crud_session.get_by_session_id(db_session, _start(db_session, user_id, task_index=0).session_id)
    busy = crud_session.get_by_session_id(db_session, _start(db_session, user_id, task_index=1).session_id)
    idle.last_activity = datetime.now(timezone.utc) - timedelta(hours=3)
    busy.last_activity = datetime.now(timezone.utc)
    db_session.flush()

    swept = service.sweep_stale_sessions(db_session, stale_after_minutes=120)

    assert swept >= 1
    assert idle.status == SessionStatusEnum.FAILED
    assert idle.end_time is not None
    assert busy.status == SessionStatusEnum.ACTIVE


def test_scheduler_stays_off_in_tests():
    scheduler_module.start_scheduler()
    assert not scheduler_module.scheduler.running
