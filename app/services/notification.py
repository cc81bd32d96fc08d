import logging
from typing import Any, Dict, List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import ASSESSMENT_COMPLETED_EVENT
from app.core.database import SessionLocal
from app.crud.notification import notification as crud_notification
from app.schemas.notification import NotificationCreate, NotificationUpdate, Notification
from app.utils.events import event_bus

logger = logging.getLogger(__name__)


def format_outcome_message(data: Dict[str, Any]) -> str:
    task_title = data["task_title"]
    score = data["score"]
    if data["passed"]:
        return (
            f'Congratulations! You have successfully completed the proctored assessment for "{task_title}". '
            f"Your score: {score}%. Status: Passed."
        )
    return (
        f'You have completed the proctored assessment for "{task_title}". '
        f"Your score: {score}%. Status: Not passed. Passing score required: {data['passing_score']}%. "
        "Please review the material and try again."
    )


class NotificationService:
    # Handlers run outside the request, so they open their own session.
    session_factory = SessionLocal

    def create_notification(self, db: Session, *, user_id: str, message: str, link: str | None = None, notification_type: str | None = None) -> Notification:
        notification_in = NotificationCreate(user_id=user_id, message=message, link=link, notification_type=notification_type)
        return crud_notification.create(db, obj_in=notification_in)

    def get_user_notifications(self, db: Session, *, user_id: str, skip: int = 0, limit: int = 100) -> List[Notification]:
        return crud_notification.get_for_user(db, user_id=user_id, skip=skip, limit=limit)

    def mark_notification_as_read(self, db: Session, *, notification_id: int) -> Notification:
        db_obj = crud_notification.get(db, id=notification_id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        return crud_notification.update(db, db_obj=db_obj, obj_in=NotificationUpdate(is_read=True))

    def handle_assessment_completed(self, data: Dict[str, Any]):
        db = self.session_factory()
        try:
            self.create_notification(
                db,
                user_id=data["user_id"],
                message=format_outcome_message(data),
                link=f"/assessment/results/{data['user_id']}",
                notification_type="assessment_passed" if data["passed"] else "assessment_failed",
            )
            db.commit()
            logger.info(f"Outcome notification stored for user {data['user_id']} ({data['task_title']})")
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


notification_service = NotificationService()


def handle_assessment_completed(data: Dict[str, Any]):
    notification_service.handle_assessment_completed(data)

event_bus.subscribe(ASSESSMENT_COMPLETED_EVENT, handle_assessment_completed)
