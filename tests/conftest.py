import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('NOTIFICATIONS_ENABLED', 'false')

from backend.database import Base  # noqa: E402
from backend.models.session import SkillSession  # noqa: E402
from backend.models.skill import Skill  # noqa: E402
from backend.models.user import User  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_skill(db):
    def _make_skill(name: str, category: str = 'programming') -> Skill:
        skill = Skill(name=name, category=category, description=f'{name} fundamentals')
        db.add(skill)
        db.commit()
        db.refresh(skill)
        return skill

    return _make_skill


@pytest.fixture
def make_user(db):
    def _make_user(
        name: str,
        role: str = 'student',
        offered: list[Skill] | None = None,
        seeking: list[Skill] | None = None,
        **fields,
    ) -> User:
        user = User(
            full_name=name,
            email=f'{name.lower().replace(" ", ".")}@campus.edu',
            role=role,
            **fields,
        )
        user.skills_offered = list(offered or [])
        user.skills_seeking = list(seeking or [])
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_session(db):
    def _make_session(teacher: User, student: User, skill: Skill, scheduled_date, **fields) -> SkillSession:
        values = {
            'title': 'Intro session',
            'description': 'A first look at the basics',
            'duration': 60,
            'status': 'pending',
        }
        values.update(fields)
        session = SkillSession(
            teacher_id=teacher.id,
            student_id=student.id,
            skill_id=skill.id,
            scheduled_date=scheduled_date,
            **values,
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    return _make_session
