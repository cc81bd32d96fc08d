from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.constants import SessionStatusEnum
from app.crud.base import CRUDBase
from app.models.proctoring_session import ProctoringSession, SessionViolation
from app.schemas.proctoring_session import ProctoringSessionCreate, ProctoringSessionUpdate, Violation

class CRUDProctoringSession(CRUDBase[ProctoringSession, ProctoringSessionCreate, ProctoringSessionUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(ProctoringSession).options(
            selectinload(ProctoringSession.assessment),
            selectinload(ProctoringSession.violations),
        )

    def get_by_session_id(self, db: Session, session_id: str) -> Optional[ProctoringSession]:
        return self._query_with_relationships(db).filter(ProctoringSession.session_id == session_id).first()

    def get_all_by_user(self, db: Session, user_id: str, skip: int = 0, limit: int = 100) -> List[ProctoringSession]:
        return (
            self._query_with_relationships(db)
            .filter(ProctoringSession.user_id == user_id)
            .order_by(ProctoringSession.start_time.desc(), ProctoringSession.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def add_violation(self, db: Session, *, db_obj: ProctoringSession, violation: Violation) -> SessionViolation:
        row = SessionViolation(
            type=violation.type,
            timestamp=violation.timestamp,
            description=violation.description,
            severity=violation.severity,
        )
        db_obj.violations.append(row)
        db.flush()
        return row

    def count_violations(self, db: Session, *, db_obj: ProctoringSession) -> int:
        return (
            db.query(func.count(SessionViolation.id))
            .filter(SessionViolation.session_pk == db_obj.id)
            .scalar()
        )

    def get_stale_active(self, db: Session, *, cutoff: datetime) -> List[ProctoringSession]:
        return (
            db.query(ProctoringSession)
            .filter(
                ProctoringSession.status == SessionStatusEnum.ACTIVE,
                or_(
                    ProctoringSession.last_activity < cutoff,
                    (ProctoringSession.last_activity.is_(None)) & (ProctoringSession.start_time < cutoff),
                ),
            )
            .all()
        )


proctoring_session = CRUDProctoringSession(ProctoringSession)
