"""Session scheduling and the session status state machine.

    pending -> confirmed -> in-progress -> completed
    pending | confirmed | in-progress -> cancelled

``no-show`` is a valid stored status but no transition here produces it.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from fastapi import BackgroundTasks
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from backend.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from backend.models.session import (
    ACTIVE_SESSION_STATUSES,
    MAX_SESSION_DURATION_MINUTES,
    MIN_SESSION_DURATION_MINUTES,
    SESSION_STATUSES,
    SESSION_TYPES,
    TERMINAL_SESSION_STATUSES,
    SkillSession,
)
from backend.models.skill import Skill
from backend.models.user import User
from backend.services import notifications
from backend.services.matching import build_pagination

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('title', 'description', 'scheduled_date', 'duration', 'session_type', 'location', 'meeting_link')
# Cleared by passing an explicit None; every other field ignores empty values.
CLEARABLE_FIELDS = ('location', 'meeting_link')


def normalize_datetime(value: datetime) -> datetime:
    """Convert aware datetimes to naive local time, matching stored values."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def round_one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _validate_duration(duration: int) -> None:
    if not MIN_SESSION_DURATION_MINUTES <= duration <= MAX_SESSION_DURATION_MINUTES:
        raise ValidationError(
            f'Duration must be between {MIN_SESSION_DURATION_MINUTES} and '
            f'{MAX_SESSION_DURATION_MINUTES} minutes',
        )


def _validate_session_type(session_type: str) -> None:
    if session_type not in SESSION_TYPES:
        raise ValidationError('Session type must be in-person, online, or hybrid')


def get_session_or_404(db: Session, session_id: int) -> SkillSession:
    session = db.query(SkillSession).filter(SkillSession.id == session_id).first()
    if session is None:
        raise NotFoundError('Session not found', {'session_id': session_id})
    return session


def participant_side(session: SkillSession, actor: User) -> str | None:
    if session.teacher_id == actor.id:
        return 'teacher'
    if session.student_id == actor.id:
        return 'student'
    return None


def _require_participant(session: SkillSession, actor: User, action: str) -> str:
    side = participant_side(session, actor)
    if side is None:
        raise ForbiddenError(f'You are not authorized to {action} this session')
    return side


def find_conflicting_session(
    db: Session,
    participant_ids: list[int],
    scheduled_date: datetime,
    duration: int,
) -> SkillSession | None:
    """Return an active session that clashes with a proposed start for any participant.

    Participants are matched in either role. Two sessions clash when their
    start times are at most the longer of the two durations apart, so the
    window is symmetric whichever session is booked first. A short session
    booked near a longer one is rejected even when it falls outside its own
    duration, which is stricter than a window of the proposed duration alone.
    """
    widest = timedelta(minutes=max(duration, MAX_SESSION_DURATION_MINUTES))
    candidates = db.query(SkillSession).filter(
        SkillSession.status.in_(ACTIVE_SESSION_STATUSES),
        or_(
            SkillSession.teacher_id.in_(participant_ids),
            SkillSession.student_id.in_(participant_ids),
        ),
        SkillSession.scheduled_date >= scheduled_date - widest,
        SkillSession.scheduled_date <= scheduled_date + widest,
    ).order_by(SkillSession.scheduled_date.asc(), SkillSession.id.asc()).all()

    for candidate in candidates:
        window = timedelta(minutes=max(duration, candidate.duration))
        if abs(candidate.scheduled_date - scheduled_date) <= window:
            return candidate
    return None


def create_session(
    db: Session,
    teacher: User,
    *,
    student_id: int | None,
    skill_id: int | None,
    title: str | None,
    description: str | None,
    scheduled_date: datetime | None,
    duration: int | None,
    session_type: str | None = None,
    location: str | None = None,
    meeting_link: str | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> SkillSession:
    if not all([student_id, skill_id, title, description, scheduled_date, duration]):
        raise ValidationError(
            'Student, skill, title, description, scheduled date, and duration are required',
        )
    _validate_duration(duration)
    session_type = session_type or 'online'
    _validate_session_type(session_type)

    if student_id == teacher.id:
        raise ConflictError('You cannot create a session with yourself')

    student = db.query(User).filter(User.id == student_id).first()
    if student is None:
        raise NotFoundError('Student not found', {'student_id': student_id})

    skill = db.query(Skill).filter(Skill.id == skill_id).first()
    if skill is None:
        raise NotFoundError('Skill not found', {'skill_id': skill_id})

    if skill_id not in teacher.offered_skill_ids:
        raise ConflictError("You don't offer this skill")
    if skill_id not in student.seeking_skill_ids:
        raise ConflictError("Student doesn't seek this skill")

    scheduled_date = normalize_datetime(scheduled_date)

    # Read-then-insert: two concurrent requests can both pass this check.
    conflict = find_conflicting_session(db, [teacher.id, student.id], scheduled_date, duration)
    if conflict is not None:
        raise ConflictError(
            'Scheduling conflict: One or both participants have a session at this time',
            {'conflicting_session_id': conflict.id},
        )

    session = SkillSession(
        teacher_id=teacher.id,
        student_id=student.id,
        skill_id=skill.id,
        title=title,
        description=description,
        scheduled_date=scheduled_date,
        duration=duration,
        session_type=session_type,
        location=location,
        meeting_link=meeting_link,
        status='pending',
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    logger.info('Session %s created by teacher %s for student %s', session.id, teacher.id, student.id)

    if background_tasks is not None:
        notifications.notify_session_created(
            background_tasks,
            student.email,
            session.title,
            teacher.full_name,
            session.scheduled_date,
        )

    return session


def confirm_session(
    db: Session,
    session_id: int,
    actor: User,
    background_tasks: BackgroundTasks | None = None,
) -> SkillSession:
    session = get_session_or_404(db, session_id)

    if session.student_id != actor.id:
        raise ForbiddenError('Only the student can confirm the session')

    if session.status != 'pending':
        raise ConflictError('Session is not in pending status')

    session.status = 'confirmed'
    db.commit()
    db.refresh(session)

    logger.info('Session %s confirmed by student %s', session.id, actor.id)

    if background_tasks is not None:
        notifications.notify_session_confirmed(
            background_tasks,
            session.teacher.email,
            session.title,
            session.student.full_name,
            session.scheduled_date,
        )

    return session


def cancel_session(db: Session, session_id: int, actor: User, reason: str | None = None) -> SkillSession:
    session = get_session_or_404(db, session_id)
    _require_participant(session, actor, 'cancel')

    if session.status == 'cancelled':
        raise ConflictError('Session is already cancelled')
    if session.status == 'completed':
        raise ConflictError('Cannot cancel a completed session')

    session.status = 'cancelled'
    session.cancelled_by = actor.id
    session.cancellation_reason = reason
    session.cancelled_at = datetime.now()
    db.commit()
    db.refresh(session)

    logger.info('Session %s cancelled by user %s', session.id, actor.id)
    return session


def complete_session(
    db: Session,
    session_id: int,
    actor: User,
    notes: str | None = None,
    rating: int | None = None,
) -> SkillSession:
    session = get_session_or_404(db, session_id)
    side = _require_participant(session, actor, 'complete')

    if session.status not in ('confirmed', 'in-progress'):
        raise ConflictError('Session must be confirmed or in-progress to be completed')

    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError('Rating must be between 1 and 5')

    if side == 'teacher':
        session.teacher_notes = notes
        session.teacher_rating = rating
    else:
        session.student_notes = notes
        session.student_rating = rating

    session.status = 'completed'
    session.end_time = datetime.now()
    if session.start_time is not None:
        elapsed = session.end_time - session.start_time
        session.actual_duration = math.floor(elapsed.total_seconds() / 60 + 0.5)

    db.commit()
    db.refresh(session)

    logger.info('Session %s completed by %s %s', session.id, side, actor.id)
    return session


def update_session(db: Session, session_id: int, actor: User, changes: dict[str, Any]) -> SkillSession:
    """Apply a partial update to the session details.

    The conflict window is not re-checked against a new date or duration.
    """
    session = get_session_or_404(db, session_id)

    if session.teacher_id != actor.id:
        raise ForbiddenError('Only the teacher can update session details')

    if session.status in TERMINAL_SESSION_STATUSES:
        raise ConflictError('Cannot update completed or cancelled sessions')

    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field in CLEARABLE_FIELDS:
            setattr(session, field, value)
            continue
        if not value:
            continue
        if field == 'duration':
            _validate_duration(value)
        elif field == 'session_type':
            _validate_session_type(value)
        elif field == 'scheduled_date':
            value = normalize_datetime(value)
        setattr(session, field, value)

    db.commit()
    db.refresh(session)
    return session


def delete_session(db: Session, session_id: int, actor: User) -> None:
    session = get_session_or_404(db, session_id)
    _require_participant(session, actor, 'delete')

    if session.status != 'cancelled':
        raise ConflictError('Only cancelled sessions can be deleted')

    db.delete(session)
    db.commit()
    logger.info('Session %s deleted by user %s', session_id, actor.id)


def get_session(db: Session, session_id: int, actor: User) -> SkillSession:
    session = get_session_or_404(db, session_id)
    _require_participant(session, actor, 'view')
    return session


def list_user_sessions(
    db: Session,
    actor: User,
    status: str | None = None,
    role: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    query = db.query(SkillSession)

    if role == 'teacher':
        query = query.filter(SkillSession.teacher_id == actor.id)
    elif role == 'student':
        query = query.filter(SkillSession.student_id == actor.id)
    else:
        query = query.filter(or_(SkillSession.teacher_id == actor.id, SkillSession.student_id == actor.id))

    if status:
        query = query.filter(SkillSession.status == status)

    total_sessions = query.count()
    sessions = (
        query.order_by(SkillSession.scheduled_date.desc(), SkillSession.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    pagination = build_pagination(page, limit, total_sessions, len(sessions))
    pagination['total_sessions'] = total_sessions

    return {'sessions': sessions, 'pagination': pagination}


def get_session_stats(db: Session, actor: User) -> dict[str, Any]:
    involves_actor = or_(SkillSession.teacher_id == actor.id, SkillSession.student_id == actor.id)

    status_counts = dict.fromkeys(SESSION_STATUSES, 0)
    rows = db.query(SkillSession.status, func.count(SkillSession.id)).filter(
        involves_actor,
    ).group_by(SkillSession.status).all()
    for status, count in rows:
        status_counts[status] = count

    avg_teacher_rating = db.query(func.avg(SkillSession.teacher_rating)).filter(
        SkillSession.teacher_id == actor.id,
        SkillSession.status == 'completed',
        SkillSession.teacher_rating.is_not(None),
    ).scalar()
    avg_student_rating = db.query(func.avg(SkillSession.student_rating)).filter(
        SkillSession.student_id == actor.id,
        SkillSession.status == 'completed',
        SkillSession.student_rating.is_not(None),
    ).scalar()

    return {
        'total_sessions': sum(status_counts.values()),
        'completed_sessions': status_counts['completed'],
        'pending_sessions': status_counts['pending'],
        'confirmed_sessions': status_counts['confirmed'],
        'status_counts': status_counts,
        'average_ratings': {
            'as_teacher': round_one_decimal(float(avg_teacher_rating or 0)),
            'as_student': round_one_decimal(float(avg_student_rating or 0)),
        },
    }
