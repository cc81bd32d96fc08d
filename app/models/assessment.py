from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import AssessmentStatusEnum

class Assessment(Base):
    """One live attempt record per (user, week, day, task); never deleted."""
    __tablename__ = "assessments"
    __table_args__ = (
        UniqueConstraint("user_id", "week_index", "day_index", "task_index", name="uq_assessment_user_task"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    task_title = Column(String, nullable=False)
    week_index = Column(Integer, nullable=False)
    day_index = Column(Integer, nullable=False)
    task_index = Column(Integer, nullable=False)

    status = Column(Enum(AssessmentStatusEnum), nullable=False, default=AssessmentStatusEnum.PENDING)
    attempt_count = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    total_questions = Column(Integer, nullable=True)
    passing_score = Column(Integer, nullable=False, default=80)
    score = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=False, default=False)
    time_spent_minutes = Column(Float, nullable=True)
    violation_count = Column(Integer, nullable=False, default=0)
    feedback = Column(Text, nullable=True)
    reason = Column(String, nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String, nullable=False, default="system")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    sessions = relationship("ProctoringSession", back_populates="assessment", order_by="ProctoringSession.start_time")
