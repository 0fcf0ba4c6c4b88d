"""Skill model definitions."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import validates

from backend.database import Base

SKILL_CATEGORIES = (
    'programming',
    'graphic-design',
    'web-development',
    'dsa',
    'design',
    'marketing',
    'business',
    'language',
    'music',
    'art',
    'photography',
    'writing',
    'data-science',
    'other',
)
SKILL_DIFFICULTIES = ('beginner', 'intermediate', 'advanced', 'expert')


class Skill(Base):
    """A named, categorized competency that users offer or seek."""
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    category = Column(String, nullable=False, default='other')
    description = Column(String(500), nullable=False, default='')
    difficulty = Column(String, nullable=False, default='beginner')

    @validates('name')
    def normalize_name(self, _key, value: str) -> str:
        return value.strip().lower()

    @validates('category')
    def validate_category(self, _key, value: str) -> str:
        if value not in SKILL_CATEGORIES:
            raise ValueError(f'Invalid skill category: {value}')
        return value
