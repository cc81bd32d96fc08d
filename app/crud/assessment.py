from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.constants import AssessmentStatusEnum
from app.crud.base import CRUDBase
from app.models.assessment import Assessment
from app.schemas.assessment import AssessmentCreate, AssessmentUpdate

class CRUDAssessment(CRUDBase[Assessment, AssessmentCreate, AssessmentUpdate]):

    def get_by_key(self, db: Session, *, user_id: str, week_index: int, day_index: int, task_index: int) -> Optional[Assessment]:
        return (
            db.query(Assessment)
            .filter(
                Assessment.user_id == user_id,
                Assessment.week_index == week_index,
                Assessment.day_index == day_index,
                Assessment.task_index == task_index,
            )
            .first()
        )

    def claim_retake(
        self,
        db: Session,
        *,
        assessment_id: int,
        task_title: str,
        max_attempts: int,
        total_questions: int,
        passing_score: int,
        started_at: datetime,
    ) -> bool:
        """Move an existing attempt back to in_progress in a single UPDATE.

        The WHERE clause re-checks both start preconditions so two concurrent
        starts can never both increment the counter. Returns False when the
        row no longer qualifies.
        """
        rows = (
            db.query(Assessment)
            .filter(
                Assessment.id == assessment_id,
                Assessment.status != AssessmentStatusEnum.IN_PROGRESS,
                Assessment.attempt_count < max_attempts,
            )
            .update(
                {
                    Assessment.status: AssessmentStatusEnum.IN_PROGRESS,
                    Assessment.attempt_count: Assessment.attempt_count + 1,
                    Assessment.task_title: task_title,
                    Assessment.max_attempts: max_attempts,
                    Assessment.total_questions: total_questions,
                    Assessment.passing_score: passing_score,
                    Assessment.started_at: started_at,
                },
                synchronize_session=False,
            )
        )
        return rows == 1

    def get_all_by_user(self, db: Session, user_id: str, skip: int = 0, limit: int = 100) -> List[Assessment]:
        return (
            db.query(Assessment)
            .filter(Assessment.user_id == user_id)
            .order_by(Assessment.created_at.desc(), Assessment.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


assessment = CRUDAssessment(Assessment)
