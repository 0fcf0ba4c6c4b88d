"""Skill-exchange session model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from backend.database import Base
from backend.models.skill import Skill
from backend.models.user import User

SESSION_STATUSES = ('pending', 'confirmed', 'in-progress', 'completed', 'cancelled', 'no-show')
ACTIVE_SESSION_STATUSES = ('pending', 'confirmed', 'in-progress')
TERMINAL_SESSION_STATUSES = ('completed', 'cancelled')
SESSION_TYPES = ('in-person', 'online', 'hybrid')

MIN_SESSION_DURATION_MINUTES = 15
MAX_SESSION_DURATION_MINUTES = 480


class SkillSession(Base):
    """A scheduled teaching engagement between two users around one skill."""
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint('teacher_id <> student_id', name='ck_sessions_distinct_participants'),
        Index('idx_sessions_teacher_status', 'teacher_id', 'status'),
        Index('idx_sessions_student_status', 'student_id', 'status'),
        Index('idx_sessions_skill_status', 'skill_id', 'status'),
        Index('idx_sessions_scheduled_status', 'scheduled_date', 'status'),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False)

    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    scheduled_date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    session_type = Column(String, nullable=False, default='online')
    location = Column(String(200))
    meeting_link = Column(String)

    status = Column(String, nullable=False, default='pending')

    start_time = Column(DateTime)
    end_time = Column(DateTime)
    actual_duration = Column(Integer)  # minutes

    teacher_notes = Column(String(1000))
    student_notes = Column(String(1000))
    teacher_rating = Column(Integer)
    student_rating = Column(Integer)
    teacher_feedback = Column(String(500))
    student_feedback = Column(String(500))

    cancelled_by = Column(Integer, ForeignKey("users.id"))
    cancellation_reason = Column(String)
    cancelled_at = Column(DateTime)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    teacher = relationship(User, foreign_keys=[teacher_id], lazy='joined')
    student = relationship(User, foreign_keys=[student_id], lazy='joined')
    skill = relationship(Skill, lazy='joined')
