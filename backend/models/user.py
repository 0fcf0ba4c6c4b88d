"""User model definitions."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from backend.database import Base
from backend.models.skill import Skill

USER_ROLES = ('student', 'faculty', 'admin')
AVAILABILITY_MODES = ('online', 'on-campus')
FACULTY_STATUSES = ('free', 'busy', 'in-class', 'unavailable')

# Composite primary keys keep each skill set free of duplicates.
user_skills_offered = Table(
    'user_skills_offered',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('skill_id', Integer, ForeignKey('skills.id', ondelete='CASCADE'), primary_key=True, index=True),
)

user_skills_seeking = Table(
    'user_skills_seeking',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('skill_id', Integer, ForeignKey('skills.id', ondelete='CASCADE'), primary_key=True, index=True),
)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False, default='')
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default='student')  # student/faculty/admin

    is_available = Column(Boolean, nullable=False, default=False)
    availability_mode = Column(String, nullable=False, default='online')
    availability_location = Column(String, nullable=False, default='')

    # Faculty only
    current_status = Column(String, nullable=False, default='unavailable')
    weekly_availability = Column(JSON, nullable=False, default=list)

    skills_offered = relationship(
        Skill,
        secondary=user_skills_offered,
        order_by=Skill.id,
        lazy='selectin',
    )
    skills_seeking = relationship(
        Skill,
        secondary=user_skills_seeking,
        order_by=Skill.id,
        lazy='selectin',
    )

    @property
    def offered_skill_ids(self) -> set[int]:
        return {skill.id for skill in self.skills_offered}

    @property
    def seeking_skill_ids(self) -> set[int]:
        return {skill.id for skill in self.skills_seeking}
