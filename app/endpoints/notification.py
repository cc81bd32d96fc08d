from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.notification import Notification
from app.services.notification import notification_service
from app.utils import deps

router = APIRouter()

@router.get("/{user_id}", response_model=List[Notification])
async def get_user_notifications(
    user_id: str,
    db: Session = Depends(deps.get_db),
    skip: int = 0,
    limit: int = 100
):
    """Assessment outcome notifications for a user, newest first."""
    return notification_service.get_user_notifications(db, user_id=user_id, skip=skip, limit=limit)

@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(deps.get_transactional_db),
):
    return notification_service.mark_notification_as_read(db, notification_id=notification_id)
