from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Enum, JSON
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import SessionStatusEnum, ViolationTypeEnum, SeverityEnum

class ProctoringSession(Base):
    __tablename__ = "proctoring_sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=False, index=True)
    status = Column(Enum(SessionStatusEnum), nullable=False, default=SessionStatusEnum.ACTIVE)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Float, nullable=True)  # seconds
    last_activity = Column(DateTime(timezone=True), nullable=True)

    events = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    screen_recording = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    webcam_recording = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)

    # Client-reported, advisory only
    environment = Column(JSON, nullable=True)
    client_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    assessment = relationship("Assessment", back_populates="sessions")
    violations = relationship(
        "SessionViolation",
        back_populates="session",
        order_by="SessionViolation.id",
        cascade="all, delete-orphan",
    )


class SessionViolation(Base):
    """One row per reported violation; rows are only ever inserted."""
    __tablename__ = "session_violations"

    id = Column(Integer, primary_key=True, index=True)
    session_pk = Column(Integer, ForeignKey("proctoring_sessions.id"), nullable=False, index=True)
    type = Column(Enum(ViolationTypeEnum), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    description = Column(String, nullable=True)
    severity = Column(Enum(SeverityEnum), nullable=False, default=SeverityEnum.LOW)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("ProctoringSession", back_populates="violations")
